"""Persistent project size cache.

Entries are keyed by canonical project path and validated by a filesystem
signature, a TTL and a maximum entry count. The in-memory mapping is the
source of truth for the running process; the CacheStore is written in full
after each mutation (or once at the end of a batch).
"""

import logging
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator

from footprint.cache_store import CacheDocument, CacheStore
from footprint.errors import CacheCorruptError, CacheInitError, CachePersistError
from footprint.models import CacheConfig, CacheEntry, CacheStats, Signature, SizeInfo

logger = logging.getLogger(__name__)


def cache_key(path: str | Path) -> str:
    """Canonical cache key for a project path."""
    return str(Path(path).expanduser().resolve())


class SizeCache:
    """Project path -> CacheEntry mapping with TTL, eviction and persistence."""

    def __init__(
        self,
        config: CacheConfig,
        store: CacheStore | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Load the persisted cache, or start empty.

        A corrupt document is discarded and rewritten empty.

        Raises:
            CacheInitError: if the store cannot be read, its directory cannot
                be created, or a corrupt store cannot be reset
        """
        self.config = config
        self.store = store if store is not None else CacheStore()
        self._clock = clock

        # Guards the mapping and counters; never held during file I/O
        self._lock = threading.RLock()
        # Serializes writes of the cache file
        self._persist_lock = threading.Lock()

        self._entries: dict[str, CacheEntry] = {}
        self._created_at = clock()
        self._updated_at = self._created_at
        self._last_cleanup: float | None = None
        self._batch_depth = 0
        self._generation = 0
        self._saved_generation = 0

        self._load()

    # -------------------------------------------------------------------------
    # Loading and persistence
    # -------------------------------------------------------------------------

    def _load(self) -> None:
        try:
            document = self.store.load()
        except CacheCorruptError as e:
            logger.warning("Resetting size cache: %s", e)
            try:
                self.store.save(self._snapshot())
            except CachePersistError as persist_error:
                raise CacheInitError(f"Cannot reset corrupt cache: {persist_error}") from e
            return

        if document is None:
            self.store.prepare()
            return

        self._entries = dict(document.entries)
        self._created_at = document.created_at
        self._updated_at = document.updated_at
        self._last_cleanup = document.last_cleanup
        logger.debug("Loaded %d cached sizes from %s", len(self._entries), self.store.path)

    def _snapshot(self) -> CacheDocument:
        with self._lock:
            return CacheDocument(
                created_at=self._created_at,
                updated_at=self._updated_at,
                last_cleanup=self._last_cleanup,
                entries=dict(self._entries),
            )

    def _touch(self) -> None:
        # Caller holds self._lock
        self._generation += 1
        self._updated_at = self._clock()

    @property
    def dirty(self) -> bool:
        """True while some mutation has not reached the store."""
        with self._lock:
            return self._generation > self._saved_generation

    def _persist(self) -> bool:
        with self._lock:
            if self._batch_depth > 0 or self._generation <= self._saved_generation:
                return True
            generation = self._generation
            document = self._snapshot()

        with self._persist_lock:
            # A newer snapshot may already have been written by another thread
            if generation <= self._saved_generation:
                return True
            try:
                self.store.save(document)
            except CachePersistError as e:
                logger.warning("Size cache not saved, will retry on next change: %s", e)
                return False
            with self._lock:
                self._saved_generation = max(self._saved_generation, generation)
        return True

    def flush(self) -> bool:
        """Write pending changes now. Returns False if the write failed."""
        with self._lock:
            if self._batch_depth > 0:
                return True
        return self._persist()

    @contextmanager
    def batch(self) -> Iterator["SizeCache"]:
        """Defer persistence until the outermost batch exits."""
        with self._lock:
            self._batch_depth += 1
        try:
            yield self
        finally:
            with self._lock:
                self._batch_depth -= 1
                outermost = self._batch_depth == 0
            if outermost:
                self._persist()

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def is_expired(self, entry: CacheEntry, now: float | None = None) -> bool:
        if now is None:
            now = self._clock()
        return entry.cached_at + self.config.expiry_duration.total_seconds() < now

    def peek(self, path: str | Path) -> CacheEntry | None:
        """Return the stored entry, expired or not, without side effects."""
        with self._lock:
            return self._entries.get(cache_key(path))

    def get(self, path: str | Path) -> CacheEntry | None:
        """
        Return the entry for path if present and not expired.

        Expired entries are dropped here; the removal reaches the store with
        the next persisted change.
        """
        if not self.config.enabled:
            return None

        key = cache_key(path)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self.is_expired(entry):
                del self._entries[key]
                self._touch()
                logger.debug("Cached size for %s expired", key)
                return None
            return entry

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def _evict_overflow(self) -> int:
        # Caller holds self._lock. sorted() is stable, so entries with equal
        # cached_at leave in insertion order.
        overflow = len(self._entries) - self.config.max_entries
        if overflow <= 0:
            return 0
        oldest = sorted(self._entries.items(), key=lambda item: item[1].cached_at)
        for key, _ in oldest[:overflow]:
            del self._entries[key]
            logger.debug("Evicted cached size for %s", key)
        return overflow

    def put(
        self,
        path: str | Path,
        size_info: SizeInfo,
        signature: Signature,
        is_git_repo: bool = False,
    ) -> CacheEntry | None:
        """
        Store a freshly computed size, replacing any previous entry.

        Evicts the oldest entries beyond max_entries, then persists unless a
        batch is open. Returns None when caching is disabled.
        """
        if not self.config.enabled:
            return None

        key = cache_key(path)
        entry = CacheEntry(
            path=key,
            size_info=size_info,
            signature=signature,
            cached_at=self._clock(),
            is_git_repo=is_git_repo,
        )
        with self._lock:
            # Re-inserting moves the key to the newest position
            self._entries.pop(key, None)
            self._entries[key] = entry
            self._evict_overflow()
            self._touch()

        self._persist()
        return entry

    def invalidate(self, path: str | Path) -> bool:
        """Remove the entry for path. Returns True if one was removed."""
        if not self.config.enabled:
            return False
        key = cache_key(path)
        with self._lock:
            if self._entries.pop(key, None) is None:
                return False
            self._touch()
        self._persist()
        return True

    def clear(self) -> int:
        """Remove every entry. Returns the number removed."""
        if not self.config.enabled:
            return 0
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
            self._touch()
        self._persist()
        return removed

    def cleanup_expired(self) -> int:
        """Remove all expired entries in one pass and persist once."""
        if not self.config.enabled:
            return 0
        with self._lock:
            now = self._clock()
            expired = [k for k, e in self._entries.items() if self.is_expired(e, now)]
            for key in expired:
                del self._entries[key]
            self._last_cleanup = now
            self._touch()

        if expired:
            logger.debug("Removed %d expired cached sizes", len(expired))
        self._persist()
        return len(expired)

    def cleanup_if_due(self) -> int | None:
        """
        Run cleanup_expired() if cleanup_interval has passed since the last run.

        Returns:
            Number of entries removed, or None if no cleanup was due
        """
        if not self.config.enabled:
            return None
        with self._lock:
            last = self._last_cleanup
        interval = self.config.cleanup_interval.total_seconds()
        if last is not None and self._clock() - last < interval:
            return None
        return self.cleanup_expired()

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    def stats(self) -> CacheStats:
        with self._lock:
            entries = list(self._entries.values())
            updated_at = self._updated_at

        now = self._clock()
        return CacheStats(
            total_entries=len(entries),
            expired_entries=sum(1 for e in entries if self.is_expired(e, now)),
            git_repositories=sum(1 for e in entries if e.is_git_repo),
            total_cached_size=sum(e.size_info.total_size for e in entries),
            total_code_size=sum(e.size_info.code_size for e in entries),
            total_dependency_size=sum(e.size_info.dependency_size for e in entries),
            cache_file_size=self.store.file_size(),
            last_updated=updated_at,
        )
