"""
Runtime state derivation.

Nothing is cached between invocations: the state is rebuilt from the config
document, the live permission bits and the repository layout on every run.
"""

from pathlib import Path

from donttouch import config
from donttouch.context import detect
from donttouch.discovery import discover
from donttouch.errors import ConfigMissing
from donttouch.patterns import compile_patterns
from donttouch.types import RuntimeState, StateKind


def resolve(root: Path, ignore_vcs: bool = False) -> RuntimeState:
    """
    Derive the runtime state for root.

    Returns Uninitialized if the config document cannot be read. A malformed
    document raises ConfigInvalid, which is fatal.
    """
    try:
        cfg = config.load(root)
    except ConfigMissing:
        return RuntimeState(kind=StateKind.UNINITIALIZED, root=root)

    patterns = compile_patterns(cfg.patterns)
    files = discover(root, patterns)
    context = detect(root, ignore_vcs)

    return RuntimeState(
        kind=StateKind.ENABLED if cfg.enabled else StateKind.DISABLED,
        root=root,
        config=cfg,
        patterns=tuple(patterns),
        files=tuple(files),
        context=context,
    )
