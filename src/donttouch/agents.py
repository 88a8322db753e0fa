"""
Agent instruction notes - tells coding agents which files are off limits.

Each allowlisted file gets a single marker-prefixed line. Cursor rules get a
dedicated .mdc file with front matter instead.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from donttouch.paths import read_text, write_text
from donttouch.types import InjectStatus

log = logging.getLogger(__name__)

MARKER = "<!-- donttouch -->"

NOTE = (
    f"{MARKER} Files in this project are protected by donttouch and are read-only. "
    "Run `donttouch status` to see which ones. Do not modify, unlock, or disable them."
)

CURSOR_RULE = f"""\
---
description: donttouch file protection
alwaysApply: true
---
{NOTE}
"""


@dataclass(frozen=True)
class AgentFile:
    """An allowlisted agent instruction file."""

    path: str  # root-relative
    create: bool = False  # create if absent
    requires_dir: str | None = None  # only touched if this directory exists
    dedicated: bool = False  # whole file is ours (front-matter rule)


AGENT_FILES = (
    AgentFile("CLAUDE.md", create=True),
    AgentFile("AGENTS.md", create=True),
    AgentFile("GEMINI.md"),
    AgentFile(".cursorrules"),
    AgentFile(".windsurfrules"),
    AgentFile(".github/copilot-instructions.md"),
    AgentFile(".cursor/rules/donttouch.mdc", create=True, requires_dir=".cursor", dedicated=True),
)


@dataclass(frozen=True)
class InjectResult:
    """Result of injecting into / removing from a single file."""

    path: str
    status: InjectStatus


def _inject_one(root: Path, agent: AgentFile, dry_run: bool) -> InjectStatus:
    path = root / agent.path

    if path.exists():
        content = read_text(path)
        if MARKER in content:
            return InjectStatus.UNCHANGED
        if agent.dedicated:
            new_content = CURSOR_RULE
        else:
            if content and not content.endswith("\n"):
                content += "\n"
            sep = "\n" if content else ""
            new_content = f"{content}{sep}{NOTE}\n"
        if not dry_run:
            write_text(path, new_content)
            log.debug("Injected note into %s", path)
        return InjectStatus.APPENDED

    if not agent.create:
        return InjectStatus.SKIPPED
    if agent.requires_dir and not (root / agent.requires_dir).is_dir():
        return InjectStatus.SKIPPED

    if not dry_run:
        path.parent.mkdir(parents=True, exist_ok=True)
        write_text(path, CURSOR_RULE if agent.dedicated else f"{NOTE}\n")
        log.debug("Created %s", path)
    return InjectStatus.CREATED


def inject(root: Path, dry_run: bool = False) -> list[InjectResult]:
    """
    Add the protection note to every allowlisted file.

    Idempotent: files already carrying the marker are left byte-identical.
    With dry_run, computes the same actions without touching disk.
    """
    return [InjectResult(a.path, _inject_one(root, a, dry_run)) for a in AGENT_FILES]


def _remove_one(root: Path, agent: AgentFile) -> InjectStatus:
    path = root / agent.path
    if not path.exists():
        return InjectStatus.SKIPPED

    content = read_text(path)
    if MARKER not in content:
        return InjectStatus.UNCHANGED

    kept = [line for line in content.splitlines() if MARKER not in line]
    remaining = "\n".join(kept).strip("\n")
    if agent.dedicated or not remaining.strip():
        path.unlink()
        return InjectStatus.DELETED

    write_text(path, remaining + "\n")
    return InjectStatus.STRIPPED


def remove(root: Path) -> list[InjectResult]:
    """Strip the protection note from every allowlisted file."""
    return [InjectResult(a.path, _remove_one(root, a)) for a in AGENT_FILES]
