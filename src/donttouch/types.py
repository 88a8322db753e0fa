"""
Shared domain types for donttouch.

Enums provide exhaustiveness checking and prevent stringly-typed errors.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from donttouch.patterns import Pattern


class Command(Enum):
    """CLI commands, one per dispatch table row."""

    INIT = "init"
    STATUS = "status"
    LOCK = "lock"
    UNLOCK = "unlock"
    CHECK = "check"
    CHECK_BEFORE_PUSH = "check-before-push"
    DISABLE = "disable"
    ENABLE = "enable"
    REMOVE = "remove"
    EXPLAIN = "explain"
    INJECT = "inject"


class StateKind(Enum):
    """Runtime state variants."""

    UNINITIALIZED = "uninitialized"
    ENABLED = "enabled"
    DISABLED = "disabled"


class ContextKind(Enum):
    """Kind of tree the protected files live in."""

    PLAIN = "plain"
    GIT = "git"


class ResultKind(Enum):
    """Terminal outcome of a command."""

    SUCCESS = "success"
    INVALID_FOR_STATE = "invalid"
    FAILURE = "failure"


class HookStatus(Enum):
    """Result status for hook file operations."""

    CREATED = "created"
    APPENDED = "appended"
    UNCHANGED = "unchanged"
    STRIPPED = "stripped"
    DELETED = "deleted"
    ABSENT = "absent"


class InjectStatus(Enum):
    """Result status for agent file operations."""

    CREATED = "created"
    APPENDED = "appended"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    STRIPPED = "stripped"
    DELETED = "deleted"


@dataclass(frozen=True)
class Configuration:
    """Decoded [protect] section."""

    patterns: tuple[str, ...] = ()
    enabled: bool = True


@dataclass(frozen=True)
class ProtectedFile:
    """A file matched by a protection pattern, with its current permission state."""

    path: Path  # absolute
    name: str  # root-relative, forward slashes
    readonly: bool


@dataclass(frozen=True)
class Context:
    """Plain directory or git repository, with hook installation details."""

    kind: ContextKind = ContextKind.PLAIN
    has_secondary_hook_manager: bool = False
    hooks_already_installed: bool = False

    @property
    def is_git(self) -> bool:
        return self.kind is ContextKind.GIT


@dataclass(frozen=True)
class RuntimeState:
    """
    Single source of truth for dispatch, rederived from disk on every run.

    Uninitialized states carry only the root; config/files/context are None/empty.
    """

    kind: StateKind
    root: Path
    config: Configuration | None = None
    patterns: tuple[Pattern, ...] = ()
    files: tuple[ProtectedFile, ...] = ()
    context: Context = field(default_factory=Context)

    @property
    def enabled(self) -> bool:
        return self.kind is StateKind.ENABLED


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of executing a command against a state."""

    kind: ResultKind
    message: str

    @property
    def exit_code(self) -> int:
        return 0 if self.kind is ResultKind.SUCCESS else 1


def success(message: str) -> TransitionResult:
    return TransitionResult(ResultKind.SUCCESS, message)


def invalid_for_state(message: str) -> TransitionResult:
    return TransitionResult(ResultKind.INVALID_FOR_STATE, message)


def failure(message: str) -> TransitionResult:
    return TransitionResult(ResultKind.FAILURE, message)


Ask = Callable[[str], str]
Tell = Callable[[str], None]


def _no_answer(question: str) -> str:
    return ""


def _silent(message: str) -> None:
    pass


@dataclass(frozen=True)
class Invocation:
    """A command plus the arguments it was invoked with."""

    command: Command
    target: str | None = None  # unlock/disable/remove
    remote: str = "origin"  # check-before-push
    url: str | None = None  # check-before-push
    file: str | None = None  # explain
    dry_run: bool = False  # inject
    ignore_git: bool = False
    ask: Ask = _no_answer  # interactive answers for init
    tell: Tell = _silent  # progress lines during init
