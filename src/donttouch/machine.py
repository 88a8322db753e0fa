"""
Command dispatch over (command, state) pairs.

Every pair has an explicit entry in TRANSITIONS; a missing pair is an
import-time error rather than a silent default.
"""

import os
from collections.abc import Callable
from itertools import product
from pathlib import Path

from donttouch.commands import integration, protection, setup
from donttouch.errors import ConfigInvalid, OutsideCheckFailed
from donttouch.guard import assert_outside
from donttouch.paths import CONFIG_NAME
from donttouch.state import resolve
from donttouch.types import (
    Command,
    Invocation,
    RuntimeState,
    StateKind,
    TransitionResult,
    failure,
    invalid_for_state,
    success,
)

Handler = Callable[[RuntimeState, Invocation], TransitionResult]

# Commands that weaken protection; they only run from outside the target tree
GUARDED = frozenset({Command.UNLOCK, Command.DISABLE, Command.REMOVE})


def _reply(make: Callable[[str], TransitionResult], message: str) -> Handler:
    def handler(state: RuntimeState, inv: Invocation) -> TransitionResult:
        return make(message)

    return handler


_NOT_INITIALIZED = _reply(
    invalid_for_state, f"No {CONFIG_NAME} found. Run 'donttouch init' first."
)
_ALREADY_EXISTS = _reply(
    invalid_for_state, f"⚠️  {CONFIG_NAME} already exists. Nothing to do."
)
_ENABLE_FIRST = _reply(
    invalid_for_state, "⏸️  Protection is disabled. Run 'donttouch enable' first."
)

U, E, D = StateKind.UNINITIALIZED, StateKind.ENABLED, StateKind.DISABLED

TRANSITIONS: dict[tuple[Command, StateKind], Handler] = {
    (Command.INIT, U): setup.run_init,
    (Command.INIT, E): _ALREADY_EXISTS,
    (Command.INIT, D): _ALREADY_EXISTS,
    (Command.STATUS, U): _NOT_INITIALIZED,
    (Command.STATUS, E): protection.status,
    (Command.STATUS, D): protection.status,
    (Command.LOCK, U): _NOT_INITIALIZED,
    (Command.LOCK, E): protection.lock,
    (Command.LOCK, D): _ENABLE_FIRST,
    (Command.UNLOCK, U): _NOT_INITIALIZED,
    (Command.UNLOCK, E): protection.unlock,
    (Command.UNLOCK, D): protection.unlock,
    (Command.CHECK, U): _NOT_INITIALIZED,
    (Command.CHECK, E): protection.check,
    (Command.CHECK, D): protection.skip_check,
    (Command.CHECK_BEFORE_PUSH, U): _NOT_INITIALIZED,
    (Command.CHECK_BEFORE_PUSH, E): integration.check_before_push,
    (Command.CHECK_BEFORE_PUSH, D): integration.check_before_push,
    (Command.DISABLE, U): _NOT_INITIALIZED,
    (Command.DISABLE, E): protection.disable,
    (Command.DISABLE, D): _reply(success, "⏸️  Protection is already disabled."),
    (Command.ENABLE, U): _NOT_INITIALIZED,
    (Command.ENABLE, E): _reply(success, "✅ Protection is already enabled."),
    (Command.ENABLE, D): protection.enable,
    (Command.REMOVE, U): _NOT_INITIALIZED,
    (Command.REMOVE, E): integration.remove,
    (Command.REMOVE, D): integration.remove,
    (Command.EXPLAIN, U): _NOT_INITIALIZED,
    (Command.EXPLAIN, E): integration.explain,
    (Command.EXPLAIN, D): integration.explain,
    (Command.INJECT, U): _NOT_INITIALIZED,
    (Command.INJECT, E): integration.inject,
    (Command.INJECT, D): _ENABLE_FIRST,
}


def missing_transitions(table: dict[tuple[Command, StateKind], Handler]) -> list[tuple[Command, StateKind]]:
    return [pair for pair in product(Command, StateKind) if pair not in table]


_missing = missing_transitions(TRANSITIONS)
if _missing:
    raise RuntimeError(f"Unhandled (command, state) pairs: {_missing}")


def execute(state: RuntimeState, inv: Invocation) -> TransitionResult:
    """Run a command against a resolved state. Total over all pairs."""
    return TRANSITIONS[(inv.command, state.kind)](state, inv)


def locate_root(inv: Invocation, cwd: Path | None = None) -> Path:
    """
    Root the command operates on.

    Guarded commands go through the outside check (target defaults to ".");
    everything else works on the current directory.
    """
    if inv.command in GUARDED:
        return assert_outside(inv.target or ".", command=inv.command.value, cwd=cwd)
    return cwd if cwd is not None else Path(os.getcwd())


def run(inv: Invocation, cwd: Path | None = None) -> TransitionResult:
    """
    Full invocation: locate root, derive state from disk, dispatch.

    Fatal errors (malformed config, failed outside check) become Failure
    results here so the caller only ever sees a TransitionResult.
    """
    try:
        root = locate_root(inv, cwd)
        state = resolve(root, inv.ignore_git)
    except (ConfigInvalid, OutsideCheckFailed) as e:
        return failure(str(e))
    return execute(state, inv)
