"""
First-run setup - writes the config, collects patterns, offers hooks,
agent notes and an initial lock.

All user interaction goes through the invocation's `ask`/`tell` callables so
the flow can be driven by canned answers.
"""

from pathlib import Path

from donttouch import agents, config, hooks
from donttouch.commands.integration import inject
from donttouch.commands.protection import lock
from donttouch.context import detect
from donttouch.errors import PatternInvalid
from donttouch.paths import CONFIG_NAME
from donttouch.patterns import compile_pattern
from donttouch.state import resolve
from donttouch.types import (
    HookStatus,
    Invocation,
    RuntimeState,
    TransitionResult,
    failure,
    success,
)

INTRO = """\
Add file patterns to protect (glob syntax, one per line).
Examples: .env, secrets/**, docker-compose.prod.yml
Press Enter on an empty line when done.
"""


def is_yes(answer: str, default: bool = True) -> bool:
    answer = answer.strip().lower()
    if not answer:
        return default
    return answer in ("y", "yes")


def collect_patterns(inv: Invocation) -> list[str]:
    """Prompt until an empty line, re-prompting on invalid globs."""
    inv.tell(INTRO)
    patterns: list[str] = []
    while True:
        line = inv.ask("pattern").strip()
        if not line:
            break
        try:
            compile_pattern(line)
        except PatternInvalid as e:
            inv.tell(f"   ❌ Invalid pattern: {e}. Try again.")
            continue
        if line in patterns:
            inv.tell(f"   ○ Already added: {line}")
            continue
        inv.tell(f"   ✅ Added: {line}")
        patterns.append(line)
    return patterns


def _offer_hooks(inv: Invocation, root: Path) -> None:
    context = detect(root, inv.ignore_git)
    if not context.is_git or context.hooks_already_installed:
        return
    if not is_yes(inv.ask("Install git pre-commit and pre-push hooks? [Y/n]")):
        return
    try:
        statuses = hooks.install_all(root, use_husky=context.has_secondary_hook_manager)
    except OSError as e:
        inv.tell(f"   ❌ Could not install hooks: {e}")
        return
    for name, status in statuses.items():
        if status is HookStatus.UNCHANGED:
            inv.tell(f"   ○ {name} hook already installed")
        else:
            inv.tell(f"   ✓ {name} hook {status.value}")


def _offer_agent_notes(inv: Invocation, state: RuntimeState) -> None:
    names = ", ".join(a.path for a in agents.AGENT_FILES[:2])
    question = f"Add a protection note for coding agents ({names}, ...)? [y/N]"
    if not is_yes(inv.ask(question), default=False):
        return
    inv.tell(inject(state, inv).message)


def run_init(state: RuntimeState, inv: Invocation) -> TransitionResult:
    root = state.root
    try:
        config.write_default(root)
    except OSError as e:
        return failure(f"Failed to create {CONFIG_NAME}: {e}")
    inv.tell(f"✅ Created {CONFIG_NAME}\n")

    patterns = collect_patterns(inv)
    if patterns:
        try:
            config.write_patterns(root, patterns)
        except OSError as e:
            return failure(f"Failed to write config: {e}")
        inv.tell(f"\n📝 Saved {len(patterns)} pattern(s) to {CONFIG_NAME}")
    else:
        inv.tell(f"\nNo patterns added. You can edit {CONFIG_NAME} later.")

    _offer_hooks(inv, root)
    _offer_agent_notes(inv, state)

    if not is_yes(inv.ask("Lock protected files now? [Y/n]")):
        return success("Ok. Run 'donttouch lock' when you're ready.")

    current = resolve(root, inv.ignore_git)
    if not current.files:
        return success(
            "No files match the protected patterns. Add files and run 'donttouch lock' later."
        )
    return lock(current, inv)
