"""
Exception taxonomy for donttouch.

Per-item errors (PatternInvalid, PermissionOperationFailed) are caught where a
batch can continue. The rest propagate to the CLI runner.
"""


class DonttouchError(Exception):
    """Base class; str(err) is the user-facing message."""


class ConfigMissing(DonttouchError):
    """No readable configuration document. Maps to the Uninitialized state."""


class ConfigInvalid(DonttouchError):
    """Configuration document exists but is malformed."""


class PatternInvalid(DonttouchError):
    """A single glob pattern could not be compiled."""


class PermissionOperationFailed(DonttouchError):
    """Reading or changing permission bits of one file failed."""


class OutsideCheckFailed(DonttouchError):
    """A guarded command was run from inside the protected tree."""


class SubprocessUnavailable(DonttouchError):
    """git is missing, failed, or the tree is not a repository."""
