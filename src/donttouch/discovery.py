"""
Protected file discovery.

Walks the project tree and reports every file whose root-relative path
matches a compiled pattern, with its read-only bit probed on the spot.
"""

import os
from pathlib import Path

from donttouch.paths import SKIP_DIRS
from donttouch.patterns import Pattern, is_protected
from donttouch.permissions import is_readonly
from donttouch.types import ProtectedFile


def walk_files(root: Path):
    """Yield (absolute path, root-relative name) for every non-directory entry."""
    for dirpath, dirnames, filenames in os.walk(root):
        # Prune in place so os.walk never descends into infrastructure dirs
        dirnames[:] = [d for d in dirnames if d not in SKIP_DIRS]
        base = Path(dirpath)
        rel_dir = base.relative_to(root).as_posix()
        for filename in filenames:
            name = filename if rel_dir == "." else f"{rel_dir}/{filename}"
            yield base / filename, name


def discover(root: Path, patterns: list[Pattern]) -> list[ProtectedFile]:
    """All files under root matching at least one pattern, sorted by path."""
    if not patterns:
        return []

    results = [
        ProtectedFile(path=path, name=name, readonly=is_readonly(path))
        for path, name in walk_files(root)
        if is_protected(name, patterns)
    ]
    results.sort(key=lambda f: f.name)
    return results
