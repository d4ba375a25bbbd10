"""Project tree traversal for size calculation.

Uses os.scandir with an explicit work stack instead of os.walk so whole
subtrees can be pruned before they are ever opened.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, NamedTuple

from footprint.errors import IgnoreParseError, WalkError
from footprint.ignore_rules import IgnoreMatcher

logger = logging.getLogger(__name__)


# Directories holding fetched or vendored packages. Everything below them
# counts as dependency size.
DEPENDENCY_DIRECTORIES = frozenset(
    {
        "node_modules",
        "bower_components",
        "jspm_packages",
        "vendor",
        ".venv",
        "venv",
        "site-packages",
        "deps",  # Elixir / mix
        "Pods",  # CocoaPods
    }
)

# Extra dependency directories enabled by an ecosystem marker file at the root
ECOSYSTEM_DEPENDENCY_DIRECTORIES: dict[str, frozenset[str]] = {
    "Gemfile": frozenset({".bundle"}),
    "pubspec.yaml": frozenset({".dart_tool", ".pub-cache"}),
    "elm.json": frozenset({"elm-stuff"}),
    "build.gradle": frozenset({".gradle"}),
    "build.gradle.kts": frozenset({".gradle"}),
    "pyproject.toml": frozenset({"__pypackages__"}),
}

# Pruned when a project is not under version control
SKIP_DIRECTORIES = frozenset(
    {
        ".git",
        ".svn",
        ".hg",
        "__pycache__",
        ".pytest_cache",
        ".mypy_cache",
        ".ruff_cache",
        ".tox",
        ".cache",
        "target",
        "build",
        "dist",
        "out",
        ".next",
        ".nuxt",
    }
)


class WalkEntry(NamedTuple):
    """One entry produced by walk()."""

    relative_path: str
    size: int
    is_dependency: bool
    mtime_ns: int
    is_dir: bool = False


@dataclass
class WalkStats:
    """Counters collected while walking one project."""

    files: int = 0
    directories: int = 0
    pruned_directories: int = 0
    ignored_files: int = 0
    soft_errors: int = 0

    def record_error(self, error: WalkError) -> None:
        self.soft_errors += 1
        logger.debug("Skipping entry: %s", error)


def detect_dependency_dirs(root: Path) -> frozenset[str]:
    """
    Get the dependency directory names that apply to a project.

    Starts from DEPENDENCY_DIRECTORIES and adds the extras of every ecosystem
    whose marker file sits at the project root.

    Args:
        root: Project root directory

    Returns:
        Set of directory names classified as dependency directories
    """
    names = set(DEPENDENCY_DIRECTORIES)
    for marker, extra in ECOSYSTEM_DEPENDENCY_DIRECTORIES.items():
        if (root / marker).is_file():
            names.update(extra)
    return frozenset(names)


def _join(parent: str, name: str) -> str:
    return f"{parent}/{name}" if parent else name


def walk(
    root: Path,
    matcher: IgnoreMatcher | None = None,
    dependency_dirs: Iterable[str] = DEPENDENCY_DIRECTORIES,
    stats: WalkStats | None = None,
) -> Iterator[WalkEntry]:
    """
    Walk a project tree lazily.

    With a matcher (version-controlled project) ignored directories are pruned
    and ignored files skipped. Without one, SKIP_DIRECTORIES is pruned instead.
    Dependency directories are always descended and everything below them is
    yielded with is_dependency=True, unfiltered. Symlinks are never followed.

    Args:
        root: Project root directory
        matcher: Ignore rules, or None for a project without version control
        dependency_dirs: Directory names classified as dependencies
        stats: Optional counters, updated in place

    Yields:
        WalkEntry for every counted file and every descended directory

    Raises:
        OSError: if the root itself cannot be listed
    """
    dependency_dirs = frozenset(dependency_dirs)
    if stats is None:
        stats = WalkStats()

    # Stack of (absolute path, relative path, inside a dependency directory)
    stack: list[tuple[str, str, bool]] = [(os.fspath(root), "", False)]

    while stack:
        dir_path, rel_dir, in_dependency = stack.pop()

        if matcher is not None and not in_dependency:
            try:
                matcher.load_directory(rel_dir)
            except IgnoreParseError as e:
                stats.soft_errors += 1
                logger.warning("Ignoring unreadable rule file: %s", e)

        try:
            with os.scandir(dir_path) as it:
                entries = list(it)
        except OSError as e:
            if not rel_dir:
                raise
            stats.record_error(WalkError(dir_path, e))
            continue

        subdirs: list[tuple[str, str, bool]] = []
        for entry in entries:
            rel_path = _join(rel_dir, entry.name)
            try:
                if entry.is_symlink():
                    continue

                if entry.is_dir(follow_symlinks=False):
                    dependency = in_dependency or entry.name in dependency_dirs
                    if not dependency:
                        if matcher is not None:
                            if matcher.is_ignored(rel_path, is_dir=True):
                                stats.pruned_directories += 1
                                continue
                        elif entry.name in SKIP_DIRECTORIES:
                            stats.pruned_directories += 1
                            continue

                    st = entry.stat(follow_symlinks=False)
                    stats.directories += 1
                    subdirs.append((entry.path, rel_path, dependency))
                    yield WalkEntry(rel_path, 0, dependency, st.st_mtime_ns, is_dir=True)

                elif entry.is_file(follow_symlinks=False):
                    if (
                        not in_dependency
                        and matcher is not None
                        and matcher.is_ignored(rel_path, is_dir=False)
                    ):
                        stats.ignored_files += 1
                        continue

                    st = entry.stat(follow_symlinks=False)
                    stats.files += 1
                    yield WalkEntry(rel_path, st.st_size, in_dependency, st.st_mtime_ns)

            except OSError as e:
                stats.record_error(WalkError(entry.path, e))
                continue

        # Reversed so siblings come off the stack in directory order
        stack.extend(reversed(subdirs))
