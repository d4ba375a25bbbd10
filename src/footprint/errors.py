"""Error types for footprint.

Soft errors (WalkError, IgnoreParseError, CachePersistError) are recorded and
logged by the component that hits them. Hard errors (CacheInitError, OSError
for a vanished project root) abort only the operation that raised them.
"""

from pathlib import Path


class FootprintError(Exception):
    """Base class for all footprint errors."""


class WalkError(FootprintError):
    """A directory entry could not be listed or stat'ed during a walk."""

    def __init__(self, path: str | Path, cause: OSError):
        self.path = str(path)
        self.cause = cause
        super().__init__(f"Cannot read {self.path}: {cause}")


class IgnoreParseError(FootprintError):
    """A rule file exists but could not be read or parsed."""

    def __init__(self, path: str | Path, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Invalid ignore file {self.path}: {reason}")


class CacheInitError(FootprintError):
    """The persisted cache could not be loaded or created."""


class CacheCorruptError(CacheInitError):
    """The persisted cache document is unreadable as a size cache."""


class CachePersistError(FootprintError):
    """Writing the cache document failed."""
