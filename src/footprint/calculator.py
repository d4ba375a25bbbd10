"""Project size calculation with optional persistent caching."""

import asyncio
import logging
import posixpath
from pathlib import Path
from typing import Iterable, NamedTuple

from footprint.cache_store import CacheStore
from footprint.errors import IgnoreParseError
from footprint.ignore_rules import IgnoreMatcher, build_matcher, is_version_controlled
from footprint.models import (
    CacheConfig,
    CacheStats,
    CacheStatus,
    ProjectSizeResult,
    Signature,
    SizeInfo,
)
from footprint.signature import probe_signature, root_mtime_ns, select_probe_paths
from footprint.size_cache import SizeCache
from footprint.walker import WalkStats, detect_dependency_dirs, walk

logger = logging.getLogger(__name__)


class Measurement(NamedTuple):
    """Result of one full walk of a project."""

    size_info: SizeInfo
    signature: Signature
    stats: WalkStats
    is_git_repo: bool


def canonical_path(path: str | Path) -> Path:
    """Absolute path with ~, '.', '..' and symlinks resolved."""
    return Path(path).expanduser().resolve()


def _matcher_for(root: Path) -> IgnoreMatcher:
    try:
        return build_matcher(root)
    except IgnoreParseError:
        # The walk retries the root rule file and records the soft error
        return IgnoreMatcher(root)


def measure_project(root: Path, dependency_dirs: Iterable[str] | None = None) -> Measurement:
    """
    Walk a project once and aggregate its size.

    Version-controlled projects are walked with their ignore rules; others
    with the fixed denylist. The signature covers the root, its manifest
    files and every walked file and directory.

    Args:
        root: Canonical project root
        dependency_dirs: Dependency directory names, detected from the
            project's ecosystem when None

    Returns:
        Measurement with size, signature, walk counters and VCS flag

    Raises:
        OSError: if the root is missing or cannot be listed
    """
    stats = WalkStats()
    # Taken before the walk so changes made during it are never hidden
    newest = root_mtime_ns(root)

    is_git_repo = is_version_controlled(root)
    matcher = _matcher_for(root) if is_git_repo else None
    if matcher is not None:
        logger.debug("%s: %d ignore rules at the root", root, matcher.rule_count)
    if dependency_dirs is None:
        dependency_dirs = detect_dependency_dirs(root)

    code_size = dependency_size = 0
    code_files = dependency_files = 0
    probe_dirs: list[str] = []
    probe_files: list[tuple[int, str]] = []
    dependency_seen: set[str] = set()

    for entry in walk(root, matcher, dependency_dirs, stats):
        newest = max(newest, entry.mtime_ns)

        if entry.is_dir:
            if not entry.is_dependency:
                probe_dirs.append(entry.relative_path)
            else:
                # Only the top of each dependency tree is probed
                if posixpath.dirname(entry.relative_path) not in dependency_seen:
                    probe_dirs.append(entry.relative_path)
                dependency_seen.add(entry.relative_path)
            continue

        if entry.is_dependency:
            dependency_size += entry.size
            dependency_files += 1
        else:
            code_size += entry.size
            code_files += 1
            probe_files.append((entry.mtime_ns, entry.relative_path))

    size_info = SizeInfo.from_parts(code_size, dependency_size, code_files, dependency_files)
    signature = Signature(
        mtime_ns=newest,
        probe_paths=select_probe_paths(probe_dirs, probe_files),
    )
    if stats.soft_errors:
        logger.info("%s: skipped %d unreadable entries", root, stats.soft_errors)
    return Measurement(size_info, signature, stats, is_git_repo)


class SizeCalculator:
    """
    Computes project sizes, optionally backed by a SizeCache.

    SizeCalculator() never caches. SizeCalculator.with_cache(config) loads the
    persisted cache and raises CacheInitError when it cannot; callers decide
    whether to fall back to SizeCalculator().
    """

    def __init__(
        self,
        cache: SizeCache | None = None,
        dependency_dirs: Iterable[str] | None = None,
    ) -> None:
        self.cache = cache
        self.dependency_dirs = frozenset(dependency_dirs) if dependency_dirs is not None else None

    @classmethod
    def with_cache(
        cls,
        config: CacheConfig,
        store: CacheStore | None = None,
        dependency_dirs: Iterable[str] | None = None,
    ) -> "SizeCalculator":
        """
        Create a calculator backed by the persisted cache.

        Raises:
            CacheInitError: if the cache cannot be loaded or created
        """
        return cls(cache=SizeCache(config, store=store), dependency_dirs=dependency_dirs)

    @property
    def caching_enabled(self) -> bool:
        return self.cache is not None and self.cache.config.enabled

    def _measure(self, root: Path) -> Measurement:
        return measure_project(root, self.dependency_dirs)

    def _lookup(self, root: Path) -> SizeInfo | None:
        # Blocking: resolves the key and stats probe paths
        entry = self.cache.get(root)
        if entry is None:
            logger.debug("Cache miss for %s", root)
            return None

        probe = probe_signature(root, entry.signature.probe_paths)
        if probe is None or probe > entry.signature.mtime_ns:
            logger.debug("Cached size for %s is out of date", root)
            return None

        logger.debug("Cache hit for %s", root)
        return entry.size_info

    async def _calculate(self, path: str | Path) -> tuple[SizeInfo, bool, int]:
        root = await asyncio.to_thread(canonical_path, path)

        if self.caching_enabled:
            cached = await asyncio.to_thread(self._lookup, root)
            if cached is not None:
                return cached, True, 0

        measurement = await asyncio.to_thread(self._measure, root)

        if self.caching_enabled:
            await asyncio.to_thread(
                self.cache.put,
                root,
                measurement.size_info,
                measurement.signature,
                measurement.is_git_repo,
            )
        return measurement.size_info, False, measurement.stats.soft_errors

    async def calculate_project_size(self, path: str | Path) -> SizeInfo:
        """
        Get the size of one project.

        With caching enabled, an unexpired entry whose probe shows no change
        is returned without walking the project.

        Raises:
            OSError: if the project root is missing or unreadable
        """
        size_info, _, _ = await self._calculate(path)
        return size_info

    async def calculate_many(
        self,
        paths: Iterable[str | Path],
        max_concurrency: int = 4,
    ) -> list[ProjectSizeResult]:
        """
        Size several projects concurrently.

        A failing project is reported in its result and never stops the
        others. Cache writes are persisted once, after the last project.

        Args:
            paths: Project roots to size
            max_concurrency: Maximum projects walked at the same time

        Returns:
            One ProjectSizeResult per path, in input order
        """
        paths = list(paths)
        semaphore = asyncio.Semaphore(max(1, max_concurrency))

        async def run(path: str | Path) -> ProjectSizeResult:
            async with semaphore:
                try:
                    size_info, from_cache, soft_errors = await self._calculate(path)
                except Exception as e:
                    logger.warning("Cannot size %s: %s", path, e)
                    return ProjectSizeResult(path=str(path), error=str(e))
                return ProjectSizeResult(
                    path=str(path),
                    size_info=size_info,
                    from_cache=from_cache,
                    soft_errors=soft_errors,
                )

        if not self.caching_enabled:
            return list(await asyncio.gather(*(run(p) for p in paths)))

        await asyncio.to_thread(self.cache.cleanup_if_due)
        with self.cache.batch():
            results = await asyncio.gather(*(run(p) for p in paths))
        return list(results)

    def get_cache_status(self, path: str | Path) -> CacheStatus:
        """Cache state of a project. Stats the probe paths, changes nothing."""
        if not self.caching_enabled:
            return CacheStatus.DISABLED

        root = canonical_path(path)
        entry = self.cache.peek(root)
        if entry is None:
            return CacheStatus.MISSING
        if self.cache.is_expired(entry):
            return CacheStatus.STALE

        probe = probe_signature(root, entry.signature.probe_paths)
        if probe is None or probe > entry.signature.mtime_ns:
            return CacheStatus.STALE
        return CacheStatus.FRESH

    def get_cache_stats(self) -> CacheStats:
        if self.cache is None:
            return CacheStats()
        return self.cache.stats()

    def invalidate(self, path: str | Path) -> bool:
        if self.cache is None:
            return False
        return self.cache.invalidate(canonical_path(path))

    def clear_cache(self) -> int:
        if self.cache is None:
            return 0
        return self.cache.clear()

    def cleanup_cache(self) -> int:
        """Remove expired entries now. Returns the number removed."""
        if self.cache is None:
            return 0
        return self.cache.cleanup_expired()
