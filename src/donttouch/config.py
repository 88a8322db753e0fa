"""
.donttouch.toml management.

Handles reading the [protect] section and rewriting the `enabled` flag in
place, leaving comments and pattern formatting untouched.
"""

import json
import logging
import re
import tomllib
from pathlib import Path
from typing import Any

from donttouch.errors import ConfigInvalid, ConfigMissing, DonttouchError
from donttouch.paths import CONFIG_NAME, config_path
from donttouch.types import Configuration

log = logging.getLogger(__name__)

SECTION = "protect"

HEADER = """\
# donttouch configuration
# Protect files from being modified by AI coding agents and accidental changes.
"""

DEFAULT_CONFIG = HEADER + """
[protect]
enabled = true
patterns = []
"""

_SECTION_HEADER = re.compile(r"^\s*\[\s*([^\]]+?)\s*\]\s*(#.*)?$")
_ENABLED_LINE = re.compile(r"^(\s*enabled\s*=\s*)(true|false)(?![\w-])(.*)$")


def decode(text: str, source: str = CONFIG_NAME) -> tuple[tuple[str, ...], bool]:
    """
    Validate a document and return (patterns, enabled).

    Raises ConfigInvalid with a message naming `source`.
    """
    try:
        data: dict[str, Any] = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigInvalid(f"Invalid {source}: {e}") from e

    section = data.get(SECTION)
    if not isinstance(section, dict):
        raise ConfigInvalid(f"Invalid {source}: missing [{SECTION}] section")

    patterns = section.get("patterns", [])
    if not isinstance(patterns, list) or not all(isinstance(p, str) for p in patterns):
        raise ConfigInvalid(f"Invalid {source}: 'patterns' must be a list of strings")

    enabled = section.get("enabled", True)
    if not isinstance(enabled, bool):
        raise ConfigInvalid(f"Invalid {source}: 'enabled' must be true or false")

    return tuple(patterns), enabled


def load(root: Path) -> Configuration:
    """
    Load the configuration document under root.

    Raises ConfigMissing if it cannot be read, ConfigInvalid if malformed.
    """
    path = config_path(root)
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ConfigInvalid(f"Invalid {path}: not UTF-8 ({e.reason} at byte {e.start})") from e
    except OSError as e:
        raise ConfigMissing(f"No {CONFIG_NAME} found. Run 'donttouch init' first.") from e

    patterns, enabled = decode(text, source=str(path))
    return Configuration(patterns=patterns, enabled=enabled)


def write_default(root: Path) -> Path:
    """Write the default document (no patterns, enabled)."""
    path = config_path(root)
    path.write_text(DEFAULT_CONFIG, encoding="utf-8")
    return path


def render(patterns: list[str] | tuple[str, ...], enabled: bool = True) -> str:
    """Render a complete document. Strings are emitted as TOML basic strings."""
    if not patterns:
        body = "patterns = []\n"
    else:
        lines = "\n".join(f"    {json.dumps(p)}," for p in patterns)
        body = f"patterns = [\n{lines}\n]\n"
    return HEADER + f"\n[{SECTION}]\nenabled = {str(enabled).lower()}\n" + body


def write_patterns(root: Path, patterns: list[str]) -> Path:
    """Overwrite the document with the given patterns. Used by init only."""
    path = config_path(root)
    path.write_text(render(patterns), encoding="utf-8")
    return path


def rewrite_enabled(text: str, enabled: bool) -> str:
    """
    Return `text` with the [protect] `enabled` line set to `enabled`.

    Only lines inside the [protect] section are considered. If the key is
    absent it is inserted right after the section header. The result is
    re-decoded and must carry the requested flag.
    """
    value = str(enabled).lower()
    lines = text.splitlines()

    header_idx = None
    replaced = False
    in_section = False
    for idx, line in enumerate(lines):
        m = _SECTION_HEADER.match(line)
        if m:
            in_section = m.group(1) == SECTION
            if in_section and header_idx is None:
                header_idx = idx
            continue
        if in_section and not replaced:
            em = _ENABLED_LINE.match(line)
            if em:
                lines[idx] = f"{em.group(1)}{value}{em.group(3)}"
                replaced = True

    if not replaced:
        if header_idx is None:
            raise ConfigInvalid(f"Cannot update {CONFIG_NAME}: no [{SECTION}] section header")
        lines.insert(header_idx + 1, f"enabled = {value}")

    new_text = "\n".join(lines) + "\n"
    _, parsed = decode(new_text)
    if parsed is not enabled:
        raise ConfigInvalid(f"Cannot update {CONFIG_NAME}: unsupported layout for 'enabled'")
    return new_text


def set_enabled(root: Path, enabled: bool) -> None:
    """Rewrite the `enabled` flag of the document under root."""
    path = config_path(root)
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ConfigInvalid(f"Invalid {path}: not UTF-8 ({e.reason} at byte {e.start})") from e
    except OSError as e:
        raise ConfigMissing(f"Could not read {path}: {e}") from e

    new_text = rewrite_enabled(text, enabled)
    try:
        path.write_text(new_text, encoding="utf-8")
    except OSError as e:
        raise DonttouchError(f"Failed to write {path}: {e}") from e
    log.debug("Set enabled = %s in %s", enabled, path)
