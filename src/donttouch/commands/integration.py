"""
Integration commands - push enforcement, explain, agent notes, removal.
"""

import os
from pathlib import Path

from donttouch import agents, git, hooks, permissions
from donttouch.commands.protection import config_items, protected_items
from donttouch.errors import SubprocessUnavailable
from donttouch.paths import CONFIG_NAME, SKIP_DIRS, config_path
from donttouch.patterns import is_protected, matching
from donttouch.types import (
    HookStatus,
    InjectStatus,
    Invocation,
    RuntimeState,
    TransitionResult,
    failure,
    success,
)


def check_before_push(state: RuntimeState, inv: Invocation) -> TransitionResult:
    """
    Push-time enforcement. Runs whether or not protection is enabled:
    a disabled tree is itself a reason to refuse the push.
    """
    if not state.context.is_git:
        return failure(
            "🚫 check-before-push requires a git repository "
            f"(no .git in {state.root}, or --ignoregit given)."
        )

    problems = []
    if not state.enabled:
        problems.append(
            "🚫 Protection is disabled. Run 'donttouch enable' before pushing."
        )

    try:
        pending = git.pending_push_files(state.root, inv.remote)
    except SubprocessUnavailable as e:
        return failure(f"🚫 Cannot determine files to push: {e}")

    touched = [p for p in pending if is_protected(p, list(state.patterns))]
    if touched:
        destination = inv.url or inv.remote
        problems.append(f"🚫 Push to {destination} includes changes to protected files:\n")
        problems.extend(f"   • {name}" for name in touched)

    if problems:
        return failure("\n".join(problems))
    return success(f"✅ No protected files in push to {inv.remote}.")


def explain(state: RuntimeState, inv: Invocation) -> TransitionResult:
    if not inv.file:
        return failure("No file given. Usage: donttouch explain <file>")

    root = Path(os.path.abspath(state.root))
    target = Path(os.path.abspath(inv.file))
    try:
        name = target.relative_to(root).as_posix()
    except ValueError:
        return failure(f"{inv.file} is outside the protected tree ({root}).")

    lines = [f"{name}:"]
    first = name.split("/", 1)[0]
    if first in SKIP_DIRS:
        lines.append(f"   Not protected: files under {first}/ are never scanned.")
        return success("\n".join(lines))

    hits = matching(name, list(state.patterns))
    if not hits:
        lines.append("   Not protected: no pattern matches.")
        return success("\n".join(lines))

    lines.append("   Protected by:")
    lines.extend(f"      {p.source}" for p in hits)
    if target.exists():
        mode = "🔒 read-only" if permissions.is_readonly(target) else "🔓 writable"
        lines.append(f"   Current state: {mode}")
    else:
        lines.append("   Current state: does not exist yet")
    if state.enabled:
        lines.append("   Protection is enabled.")
    else:
        lines.append("   Protection is disabled; run 'donttouch enable' to lock it.")
    return success("\n".join(lines))


_INJECT_LABELS = {
    InjectStatus.CREATED: ("✓ Created", "Would create"),
    InjectStatus.APPENDED: ("✓ Added note to", "Would add note to"),
    InjectStatus.UNCHANGED: ("○ Already present:", "○ Already present:"),
}


def inject(state: RuntimeState, inv: Invocation) -> TransitionResult:
    try:
        results = agents.inject(state.root, dry_run=inv.dry_run)
    except OSError as e:
        return failure(f"❌ Could not write agent notes: {e}")

    lines = []
    for r in results:
        if r.status in _INJECT_LABELS:
            label = _INJECT_LABELS[r.status][1 if inv.dry_run else 0]
            lines.append(f"   {label} {r.path}")

    if inv.dry_run:
        lines.append("\n(dry run, nothing written)")
    return success("\n".join(lines))


def remove(state: RuntimeState, inv: Invocation) -> TransitionResult:
    """Undo everything donttouch set up under the target root."""
    report = permissions.apply(protected_items(state) + config_items(state), readonly=False)

    lines = []
    if report.changed:
        lines.append(f"   🔓 Unlocked {len(report.changed)} file(s).")
    lines.extend(f"   ❌ {err}" for err in report.failed)

    try:
        for name, status in hooks.remove_all(state.root).items():
            if status in (HookStatus.STRIPPED, HookStatus.DELETED):
                lines.append(f"   ✓ Removed hook block from {name}")
        for r in agents.remove(state.root):
            if r.status in (InjectStatus.STRIPPED, InjectStatus.DELETED):
                lines.append(f"   ✓ Removed note from {r.path}")
        config_path(state.root).unlink()
    except OSError as e:
        lines.append(f"   ❌ {e}")
        return failure("\n".join(lines))

    lines.append(f"   ✓ Deleted {CONFIG_NAME}")
    lines.append("✅ donttouch removed.")
    message = "\n".join(lines)
    if report.failed:
        return failure(message)
    return success(message)
