"""
Glob pattern compilation and matching.

Patterns match whole root-relative paths with forward slashes:
- `*`, `?` and `[...]` match within a single path segment
- `**` as a complete segment matches zero or more segments
"""

import fnmatch
import logging
import re
from dataclasses import dataclass

from donttouch.errors import PatternInvalid

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Pattern:
    """A compiled glob pattern."""

    source: str
    segments: tuple[re.Pattern | None, ...]  # None stands for `**`

    def matches(self, path: str) -> bool:
        """Check whether a root-relative path matches this pattern."""
        parts = [p for p in path.split("/") if p]
        return _match_segments(parts, self.segments)


def _match_segments(parts: list[str], segments: tuple[re.Pattern | None, ...]) -> bool:
    if not segments:
        return not parts

    head = segments[0]
    if head is None:
        # Zero segments, then one-or-more with `**` still pending
        if _match_segments(parts, segments[1:]):
            return True
        return bool(parts) and _match_segments(parts[1:], segments)

    if not parts:
        return False
    if head.fullmatch(parts[0]):
        return _match_segments(parts[1:], segments[1:])
    return False


def _check_brackets(segment: str) -> None:
    """Reject character classes that are never closed."""
    i = 0
    while i < len(segment):
        if segment[i] == "[":
            j = i + 1
            if j < len(segment) and segment[j] in "!^":
                j += 1
            if j < len(segment) and segment[j] == "]":
                j += 1
            close = segment.find("]", j)
            if close == -1:
                raise PatternInvalid(f"unterminated character class at position {i}")
            i = close + 1
        else:
            i += 1


def compile_pattern(source: str) -> Pattern:
    """
    Compile a single glob string.

    Raises PatternInvalid for empty patterns, `**` mixed with other characters
    in a segment, and unterminated character classes.
    """
    text = source.strip().replace("\\", "/")
    if not text:
        raise PatternInvalid("empty pattern")

    segments: list[re.Pattern | None] = []
    for segment in text.split("/"):
        if segment in ("", "."):
            continue
        if segment == "**":
            # Consecutive `**` segments are equivalent to one
            if not segments or segments[-1] is not None:
                segments.append(None)
            continue
        if "**" in segment:
            raise PatternInvalid("'**' must be a whole path segment")
        _check_brackets(segment)
        try:
            segments.append(re.compile(fnmatch.translate(segment)))
        except re.error as e:
            raise PatternInvalid(str(e)) from e

    if not segments:
        raise PatternInvalid("pattern has no path segments")
    return Pattern(source=source, segments=tuple(segments))


def compile_patterns(raw: list[str] | tuple[str, ...]) -> list[Pattern]:
    """Compile patterns, logging and dropping any that are invalid."""
    compiled = []
    for source in raw:
        try:
            compiled.append(compile_pattern(source))
        except PatternInvalid as e:
            log.warning("bad glob pattern '%s': %s", source, e)
    return compiled


def matching(path: str, patterns: list[Pattern]) -> list[Pattern]:
    """All patterns that match a root-relative path."""
    return [p for p in patterns if p.matches(path)]


def is_protected(path: str, patterns: list[Pattern]) -> bool:
    return any(p.matches(path) for p in patterns)
