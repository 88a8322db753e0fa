"""
Repository context detection.

Recomputed on every run from the presence of a git directory and the
contents of the pre-commit hook.
"""

from pathlib import Path

from donttouch.hooks import PRE_COMMIT_HOOK, hook_path, is_installed
from donttouch.paths import HUSKY_DIR, git_dir
from donttouch.types import Context, ContextKind


def detect(root: Path, ignore_vcs: bool = False) -> Context:
    """Plain unless root is a git checkout (including worktrees and submodules)."""
    if ignore_vcs or git_dir(root) is None:
        return Context(kind=ContextKind.PLAIN)

    use_husky = (root / HUSKY_DIR).is_dir()
    installed = is_installed(hook_path(root, PRE_COMMIT_HOOK, use_husky), PRE_COMMIT_HOOK)
    return Context(
        kind=ContextKind.GIT,
        has_secondary_hook_manager=use_husky,
        hooks_already_installed=installed,
    )
