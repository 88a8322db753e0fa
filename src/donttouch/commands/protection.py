"""
Protection commands - status, lock, unlock, check, enable, disable.

Every handler takes the freshly resolved RuntimeState and returns a
TransitionResult; nothing here prints.
"""

import logging
from pathlib import Path

from donttouch import config, git, permissions
from donttouch.errors import DonttouchError, SubprocessUnavailable
from donttouch.paths import CONFIG_NAME, config_path
from donttouch.patterns import is_protected
from donttouch.types import (
    Invocation,
    RuntimeState,
    TransitionResult,
    failure,
    success,
)

log = logging.getLogger(__name__)


def protected_items(state: RuntimeState) -> list[tuple[Path, str]]:
    return [(f.path, f.name) for f in state.files]


def config_items(state: RuntimeState) -> list[tuple[Path, str]]:
    """The config document, unless a pattern already covers it."""
    path = config_path(state.root)
    if any(f.path == path for f in state.files):
        return []
    return [(path, CONFIG_NAME)]


def staged_protected(state: RuntimeState) -> list[str]:
    """Staged paths matching a pattern. Raises SubprocessUnavailable."""
    return [p for p in git.staged_files(state.root) if is_protected(p, list(state.patterns))]


def _context_line(state: RuntimeState) -> str:
    ctx = state.context
    if not ctx.is_git:
        return "Context: plain directory"
    manager = "husky" if ctx.has_secondary_hook_manager else "git hooks"
    hooks = "installed" if ctx.hooks_already_installed else "not installed"
    return f"Context: git repository ({manager}: {hooks})"


def status(state: RuntimeState, inv: Invocation) -> TransitionResult:
    lines = ["🔒 Protection: enabled" if state.enabled else "🔓 Protection: disabled"]
    lines.append(_context_line(state))

    lines.append("\nPatterns:")
    patterns = state.config.patterns if state.config else ()
    if patterns:
        lines.extend(f"   {p}" for p in patterns)
    else:
        lines.append("   (none)")

    if not state.files:
        lines.append("\nNo files currently match the protected patterns.")
    else:
        lines.append("\nProtected files:")
        for f in state.files:
            icon = "🔒 read-only" if f.readonly else "🔓 writable "
            lines.append(f"   {icon}  {f.name}")

    if state.context.is_git:
        try:
            staged = staged_protected(state)
        except SubprocessUnavailable as e:
            log.warning("Could not list staged files: %s", e)
            staged = []
        if staged:
            lines.append("\nStaged protected files:")
            lines.extend(f"   • {name}" for name in staged)

    return success("\n".join(lines))


def _render_batch(
    report: permissions.BatchReport,
    cfg_report: permissions.BatchReport,
    icon: str,
) -> list[str]:
    lines = [f"   {icon} {name}" for name in report.changed]
    lines.extend(f"   {icon} {name}" for name in cfg_report.changed)
    lines.extend(f"   ❌ {err}" for err in report.failed + cfg_report.failed)
    return lines


def lock(state: RuntimeState, inv: Invocation) -> TransitionResult:
    report = permissions.apply(protected_items(state), readonly=True)
    cfg_report = permissions.apply(config_items(state), readonly=True)

    lines = _render_batch(report, cfg_report, "🔒")
    if lines:
        lines.append("")
    if report.changed:
        lines.append(f"✅ Locked {len(report.changed)} file(s).")
    if report.already:
        lines.append(f"   ({len(report.already)} already read-only)")
    if not report.changed and not report.failed:
        if report.already:
            lines.append("✅ All protected files are already read-only.")
        else:
            lines.append("No files currently match the protected patterns.")

    message = "\n".join(lines)
    if report.failed or cfg_report.failed:
        return failure(message)
    return success(message)


def unlock(state: RuntimeState, inv: Invocation) -> TransitionResult:
    report = permissions.apply(protected_items(state), readonly=False)
    cfg_report = permissions.apply(config_items(state), readonly=False)

    lines = _render_batch(report, cfg_report, "🔓")
    if lines:
        lines.append("")
    if report.changed:
        lines.append(f"✅ Unlocked {len(report.changed)} file(s).")
    elif not report.failed:
        lines.append("All files were already writable.")

    message = "\n".join(lines)
    if report.failed or cfg_report.failed:
        return failure(message)
    return success(message)


def check(state: RuntimeState, inv: Invocation) -> TransitionResult:
    writable = [f.name for f in state.files if not f.readonly]

    staged: list[str] = []
    if state.context.is_git:
        try:
            staged = staged_protected(state)
        except SubprocessUnavailable as e:
            return failure(f"🚫 Cannot list staged files: {e}")

    if not writable and not staged:
        return success("✅ All protected files are read-only.")

    lines = []
    if writable:
        lines.append("🚫 Protected files are writable!\n")
        lines.extend(f"   • {name}" for name in writable)
        lines.append("\nRun 'donttouch lock' to make them read-only.")
    if staged:
        if lines:
            lines.append("")
        lines.append("🚫 Protected files are staged for commit!\n")
        lines.extend(f"   • {name}" for name in staged)
        lines.append("\nUnstage them with 'git restore --staged <file>'.")
    return failure("\n".join(lines))


def skip_check(state: RuntimeState, inv: Invocation) -> TransitionResult:
    return success("⏸️  Protection is disabled. Skipping check.")


def enable(state: RuntimeState, inv: Invocation) -> TransitionResult:
    path = config_path(state.root)
    try:
        if permissions.is_readonly(path):
            permissions.set_readonly(path, False)
        config.set_enabled(state.root, True)
    except DonttouchError as e:
        return failure(str(e))

    report = permissions.apply(protected_items(state), readonly=True)
    cfg_report = permissions.apply(config_items(state), readonly=True)

    lines = []
    if report.changed:
        lines.append(f"   🔒 Locked {len(report.changed)} file(s).")
    lines.extend(f"   ❌ {err}" for err in report.failed + cfg_report.failed)
    lines.append("✅ Protection enabled.")

    message = "\n".join(lines)
    if report.failed or cfg_report.failed:
        return failure(message)
    return success(message)


def disable(state: RuntimeState, inv: Invocation) -> TransitionResult:
    # Config may be locked; unlock it first so the flag can be written
    path = config_path(state.root)
    try:
        if permissions.is_readonly(path):
            permissions.set_readonly(path, False)
        config.set_enabled(state.root, False)
    except DonttouchError as e:
        return failure(str(e))

    report = permissions.apply(protected_items(state), readonly=False)

    lines = []
    if report.changed:
        lines.append(f"   🔓 Unlocked {len(report.changed)} file(s).")
    lines.extend(f"   ❌ {err}" for err in report.failed)
    lines.append("🔓 Protection disabled.")
    lines.append("   ⚠️  You must run 'donttouch enable' before you can push.")

    message = "\n".join(lines)
    if report.failed:
        return failure(message)
    return success(message)
