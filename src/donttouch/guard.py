"""
Outside-directory check for commands that weaken protection.

An agent working inside the project must not be able to unlock or disable
protection on that same project. Paths are canonicalized so symlinks and
`..` segments cannot sneak the working directory out of the comparison.
"""

import os
from pathlib import Path

from donttouch.errors import OutsideCheckFailed
from donttouch.paths import CONFIG_NAME


def _is_within(child: Path, parent: Path) -> bool:
    return child == parent or parent in child.parents


def assert_outside(target: str | Path, command: str = "disable", cwd: Path | None = None) -> Path:
    """
    Return the canonical target root, or raise OutsideCheckFailed.

    Fails if the target has no config document, or if the current directory
    is the target or nested inside it.
    """
    base = Path(cwd if cwd is not None else os.getcwd())
    try:
        canonical_target = (base / target).resolve(strict=True)
    except OSError as e:
        raise OutsideCheckFailed(f"Cannot resolve target path '{target}': {e.strerror or e}") from e

    if not (canonical_target / CONFIG_NAME).is_file():
        raise OutsideCheckFailed(
            f"No {CONFIG_NAME} found in '{canonical_target}'. Is this the right directory?"
        )

    try:
        canonical_cwd = base.resolve(strict=True)
    except OSError as e:
        raise OutsideCheckFailed(f"Cannot resolve current directory: {e.strerror or e}") from e

    if _is_within(canonical_cwd, canonical_target):
        parent = canonical_target.parent
        raise OutsideCheckFailed(
            "🚫 This command must be run from OUTSIDE the target directory.\n\n"
            f"Current directory: {canonical_cwd}\n"
            f"Target directory:  {canonical_target}\n\n"
            "This restriction prevents AI coding agents from weakening protection\n"
            "while working inside the project.\n\n"
            f"Try: cd {parent} && donttouch {command} {canonical_target}"
        )

    return canonical_target
