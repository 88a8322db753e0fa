"""
Read-only bit management for single files.

On POSIX, locking clears every write bit and unlocking restores the owner
write bit, leaving read/execute bits alone. On Windows only the read-only
attribute exists, which os.chmod maps to stat.S_IWRITE.
"""

import logging
import os
import stat
from dataclasses import dataclass, field
from pathlib import Path

from donttouch.errors import PermissionOperationFailed

log = logging.getLogger(__name__)

WRITE_BITS = stat.S_IWUSR | stat.S_IWGRP | stat.S_IWOTH


def _single_flag() -> bool:
    return os.name == "nt"


def is_readonly(path: Path) -> bool:
    """True if the owner cannot write the file. Missing files read as writable."""
    try:
        mode = path.stat().st_mode
    except OSError:
        return False
    if _single_flag():
        return not mode & stat.S_IWRITE
    return not mode & stat.S_IWUSR


def set_readonly(path: Path, readonly: bool) -> None:
    """Lock or unlock one file. Raises PermissionOperationFailed."""
    try:
        mode = stat.S_IMODE(path.stat().st_mode)
    except OSError as e:
        raise PermissionOperationFailed(f"Cannot read {path}: {e.strerror or e}") from e

    if _single_flag():
        new_mode = stat.S_IREAD if readonly else stat.S_IREAD | stat.S_IWRITE
    elif readonly:
        new_mode = mode & ~WRITE_BITS
    else:
        new_mode = mode | stat.S_IWUSR

    try:
        os.chmod(path, new_mode)
    except OSError as e:
        raise PermissionOperationFailed(
            f"Cannot set permissions on {path}: {e.strerror or e}"
        ) from e


@dataclass
class BatchReport:
    """Outcome of toggling a batch of files."""

    changed: list[str] = field(default_factory=list)
    already: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)  # error messages


def apply(items: list[tuple[Path, str]], readonly: bool) -> BatchReport:
    """
    Set every (path, display_name) to the requested state.

    Files already in that state are counted, not touched. A failure on one
    file is logged and recorded; the rest of the batch still runs.
    """
    report = BatchReport()
    for path, name in items:
        if is_readonly(path) == readonly:
            report.already.append(name)
            continue
        try:
            set_readonly(path, readonly)
        except PermissionOperationFailed as e:
            log.warning("%s", e)
            report.failed.append(str(e))
        else:
            report.changed.append(name)
    return report
