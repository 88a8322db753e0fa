"""
Git hook management - installs/removes donttouch blocks in hook scripts.

Install handling:
- If hook missing: create it with a shebang and the block, mark executable
- If hook exists and already carries the marker: leave it alone
- If hook exists without the marker: append the block
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from donttouch.paths import PRE_COMMIT, PRE_PUSH, hooks_dir, read_text, write_text
from donttouch.types import HookStatus

log = logging.getLogger(__name__)

MARKER = "# donttouch:"
SHEBANG = "#!/bin/sh"


@dataclass(frozen=True)
class HookSpec:
    """A hook script and the donttouch command it runs."""

    name: str  # pre-commit, pre-push
    invocation: str  # Shell command run when donttouch is available
    purpose: str


PRE_COMMIT_HOOK = HookSpec(
    name=PRE_COMMIT,
    invocation="donttouch check",
    purpose="block commits that touch protected files",
)

PRE_PUSH_HOOK = HookSpec(
    name=PRE_PUSH,
    invocation='donttouch check-before-push "$1" "$2"',
    purpose="block pushes that touch protected files",
)

HOOKS = (PRE_COMMIT_HOOK, PRE_PUSH_HOOK)


def render_block(spec: HookSpec) -> str:
    """Marked block that degrades to a warning when donttouch is not installed."""
    return (
        f"{MARKER} {spec.purpose}\n"
        "if command -v donttouch >/dev/null 2>&1; then\n"
        f"  {spec.invocation} || exit 1\n"
        "else\n"
        f'  echo "donttouch: not installed, skipping {spec.name} check" >&2\n'
        "fi\n"
    )


def hook_path(root: Path, spec: HookSpec, use_husky: bool) -> Path:
    return hooks_dir(root, use_husky) / spec.name


def is_installed(path: Path, spec: HookSpec) -> bool:
    """Marker-substring test only; the block itself is not validated."""
    try:
        return spec.invocation in read_text(path)
    except OSError:
        return False


def install(root: Path, spec: HookSpec, use_husky: bool = False) -> HookStatus:
    """Install the donttouch block into one hook file."""
    path = hook_path(root, spec, use_husky)
    block = render_block(spec)

    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        write_text(path, f"{SHEBANG}\n\n{block}")
        path.chmod(path.stat().st_mode | 0o111)
        log.debug("Created hook %s", path)
        return HookStatus.CREATED

    content = read_text(path)
    if spec.invocation in content:
        return HookStatus.UNCHANGED

    if content and not content.endswith("\n"):
        content += "\n"
    write_text(path, f"{content}\n{block}")
    path.chmod(path.stat().st_mode | 0o111)
    log.debug("Appended donttouch block to %s", path)
    return HookStatus.APPENDED


def strip_block(content: str) -> str:
    """Remove every marked block, from the marker line through its closing `fi`."""
    kept: list[str] = []
    in_block = False
    for line in content.splitlines():
        if not in_block and line.strip().startswith(MARKER):
            in_block = True
            # Drop the blank separator written before the block
            while kept and not kept[-1].strip():
                kept.pop()
            continue
        if in_block:
            if line.strip() == "fi":
                in_block = False
            continue
        kept.append(line)
    return "\n".join(kept)


def _is_empty_script(content: str) -> bool:
    lines = [line.strip() for line in content.splitlines() if line.strip()]
    return all(line.startswith("#!") for line in lines)


def remove(root: Path, spec: HookSpec, use_husky: bool = False) -> HookStatus:
    """Strip the donttouch block; delete the hook if nothing else remains."""
    path = hook_path(root, spec, use_husky)
    if not path.exists():
        return HookStatus.ABSENT

    content = read_text(path)
    if MARKER not in content:
        return HookStatus.UNCHANGED

    remaining = strip_block(content)
    if _is_empty_script(remaining):
        path.unlink()
        log.debug("Deleted hook %s", path)
        return HookStatus.DELETED

    write_text(path, remaining.rstrip("\n") + "\n")
    log.debug("Stripped donttouch block from %s", path)
    return HookStatus.STRIPPED


def install_all(root: Path, use_husky: bool = False) -> dict[str, HookStatus]:
    """Install both hooks. Returns dict of hook name -> status."""
    return {spec.name: install(root, spec, use_husky) for spec in HOOKS}


def remove_all(root: Path) -> dict[str, HookStatus]:
    """Remove both hooks from every hook location that exists."""
    results = {}
    for use_husky in (False, True):
        for spec in HOOKS:
            status = remove(root, spec, use_husky)
            if status is not HookStatus.ABSENT:
                results[_display(root, hook_path(root, spec, use_husky))] = status
    return results


def _display(root: Path, path: Path) -> str:
    # Worktree hooks live in the main repository, outside root
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)
