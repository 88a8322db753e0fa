"""
Path constants and utilities for donttouch.

All paths are relative to the protected project root.
"""

from pathlib import Path

# Configuration document
CONFIG_NAME = ".donttouch.toml"

# Directories never walked during discovery
SKIP_DIRS = frozenset(
    {".git", ".hg", ".svn", "target", "node_modules", "__pycache__", ".venv", ".tox"}
)

# Git
GIT_DIR = ".git"
HUSKY_DIR = ".husky"
PRE_COMMIT = "pre-commit"
PRE_PUSH = "pre-push"

# Hook scripts and agent files belong to the user and need not be UTF-8.
# surrogateescape carries undecodable bytes through a read/write unchanged.
FOREIGN_ENCODING = "utf-8"
FOREIGN_ERRORS = "surrogateescape"


def config_path(root: Path) -> Path:
    """Location of the configuration document under root."""
    return root / CONFIG_NAME


def git_dir(root: Path) -> Path | None:
    """
    The repository's git directory, or None outside a repository.

    Worktrees and submodules carry a `.git` file holding `gitdir: <path>`
    instead of a directory.
    """
    dot_git = root / GIT_DIR
    if dot_git.is_dir():
        return dot_git
    if not dot_git.is_file():
        return None
    try:
        line = read_text(dot_git).strip()
    except OSError:
        return None
    if not line.startswith("gitdir:"):
        return None
    target = Path(line[len("gitdir:"):].strip())
    return target if target.is_absolute() else root / target


def _common_dir(gitdir: Path) -> Path:
    # Linked worktrees share hooks with the main repository
    marker = gitdir / "commondir"
    try:
        common = Path(read_text(marker).strip())
    except OSError:
        return gitdir
    return common if common.is_absolute() else gitdir / common


def hooks_dir(root: Path, use_husky: bool) -> Path:
    """Directory holding hook scripts for the active hook manager."""
    if use_husky:
        return root / HUSKY_DIR
    gitdir = git_dir(root)
    if gitdir is None:
        return root / GIT_DIR / "hooks"
    return _common_dir(gitdir) / "hooks"


def read_text(path: Path) -> str:
    return path.read_text(encoding=FOREIGN_ENCODING, errors=FOREIGN_ERRORS)


def write_text(path: Path, text: str) -> None:
    path.write_text(text, encoding=FOREIGN_ENCODING, errors=FOREIGN_ERRORS)
