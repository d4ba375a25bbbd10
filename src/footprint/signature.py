"""Cheap change detection for cached project sizes.

A probe only stats paths it already knows about; it never lists a directory.
Directory mtimes catch added, removed and renamed entries, file mtimes catch
content edits.
"""

import os
from pathlib import Path
from typing import Iterable

from footprint.ignore_rules import RULE_FILE_NAME

# Root-level files whose changes usually mean dependencies were added or removed
MANIFEST_FILES = (
    RULE_FILE_NAME,
    "package.json",
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "Cargo.toml",
    "Cargo.lock",
    "requirements.txt",
    "pyproject.toml",
    "poetry.lock",
    "go.mod",
    "go.sum",
    "pom.xml",
    "Gemfile.lock",
    "composer.lock",
    "mix.lock",
)

# Upper bound on paths re-checked per cached project
PROBE_LIMIT = 2048


def root_mtime_ns(root: Path) -> int:
    """
    Newest mtime among the root directory and its manifest files.

    Raises:
        OSError: if the root itself cannot be stat'ed
    """
    newest = os.stat(root).st_mtime_ns
    for name in MANIFEST_FILES:
        try:
            newest = max(newest, os.stat(root / name).st_mtime_ns)
        except OSError:
            continue
    return newest


def probe_signature(root: Path, probe_paths: Iterable[str]) -> int | None:
    """
    Recompute the cheap signature of a project without walking it.

    Args:
        root: Canonical project root
        probe_paths: Paths relative to root recorded with the cache entry

    Returns:
        Newest mtime in nanoseconds, or None if the root or any probed path
        has disappeared (the project must be treated as changed)
    """
    try:
        newest = root_mtime_ns(root)
        for rel_path in probe_paths:
            newest = max(newest, os.stat(root / rel_path).st_mtime_ns)
    except OSError:
        return None
    return newest


def select_probe_paths(
    directories: list[str],
    files: list[tuple[int, str]],
    limit: int = PROBE_LIMIT,
) -> tuple[str, ...]:
    """
    Choose which paths a later probe should re-stat.

    Directories come first since they reveal added and removed entries.
    Remaining room goes to the most recently modified files, which are the
    likeliest to be edited again.

    Args:
        directories: Relative directory paths in walk order
        files: (mtime_ns, relative path) for code files
        limit: Maximum number of paths to keep

    Returns:
        Tuple of relative paths
    """
    selected = directories[:limit]
    room = limit - len(selected)
    if room > 0 and files:
        newest_first = sorted(files, key=lambda f: f[0], reverse=True)
        selected.extend(path for _, path in newest_first[:room])
    return tuple(selected)
