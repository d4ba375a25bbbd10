"""Data models for footprint."""

from datetime import timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


def format_size(size_bytes: int) -> str:
    """Format bytes to human-readable string (decimal units)."""
    if size_bytes >= 1000**3:
        return f"{size_bytes / (1000**3):.1f} GB"
    elif size_bytes >= 1000**2:
        return f"{size_bytes / (1000**2):.1f} MB"
    elif size_bytes >= 1000:
        return f"{size_bytes / 1000:.1f} KB"
    else:
        return f"{size_bytes} B"


class CacheStatus(str, Enum):
    """Cache state of a single project path."""

    FRESH = "fresh"  # Entry present, not expired, signature unchanged
    STALE = "stale"  # Entry present but expired or project changed on disk
    MISSING = "missing"  # No entry for this path
    DISABLED = "disabled"  # Calculator runs without a cache


class SizeInfo(BaseModel):
    """Size of one project, split into authored code and dependencies."""

    model_config = ConfigDict(frozen=True)

    code_size: int = Field(0, ge=0, description="Bytes outside dependency directories")
    dependency_size: int = Field(0, ge=0, description="Bytes inside dependency directories")
    total_size: int = Field(0, ge=0, description="code_size + dependency_size")
    code_file_count: int = Field(0, ge=0, description="Number of code files")
    dependency_file_count: int = Field(0, ge=0, description="Number of dependency files")

    @model_validator(mode="after")
    def _check_partition(self) -> "SizeInfo":
        if self.total_size != self.code_size + self.dependency_size:
            raise ValueError(
                f"total_size ({self.total_size}) must equal code_size + dependency_size "
                f"({self.code_size} + {self.dependency_size})"
            )
        return self

    @classmethod
    def from_parts(
        cls,
        code_size: int,
        dependency_size: int,
        code_file_count: int = 0,
        dependency_file_count: int = 0,
    ) -> "SizeInfo":
        """Build a SizeInfo whose total is derived from its parts."""
        return cls(
            code_size=code_size,
            dependency_size=dependency_size,
            total_size=code_size + dependency_size,
            code_file_count=code_file_count,
            dependency_file_count=dependency_file_count,
        )

    @property
    def total_file_count(self) -> int:
        return self.code_file_count + self.dependency_file_count

    @property
    def code_human(self) -> str:
        return format_size(self.code_size)

    @property
    def dependency_human(self) -> str:
        return format_size(self.dependency_size)

    @property
    def total_human(self) -> str:
        return format_size(self.total_size)


class Signature(BaseModel):
    """Cheap proxy for "has this project changed on disk".

    mtime_ns is the newest modification time seen while the project was
    walked. probe_paths lists the paths (relative to the project root) that
    are re-stat'ed to validate a cache entry without walking again.
    """

    model_config = ConfigDict(frozen=True)

    mtime_ns: int = Field(..., description="Newest modification time in nanoseconds")
    probe_paths: tuple[str, ...] = Field(
        default=(), description="Relative paths re-checked by the cheap probe"
    )


class CacheEntry(BaseModel):
    """One cached project size. Replaced on recomputation, never mutated."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Canonical absolute project path")
    size_info: SizeInfo
    signature: Signature
    cached_at: float = Field(..., description="Epoch seconds when the entry was stored")
    is_git_repo: bool = Field(False, description="Whether ignore rules were applied")


class CacheConfig(BaseModel):
    """Cache behaviour, fixed for the lifetime of a SizeCache."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    expiry_duration: timedelta = Field(default=timedelta(hours=24))
    max_entries: int = Field(default=1000, ge=1)
    cleanup_interval: timedelta = Field(default=timedelta(hours=1))


class CacheStats(BaseModel):
    """Read-only view of the cache, computed on demand."""

    total_entries: int = 0
    expired_entries: int = 0
    git_repositories: int = 0
    total_cached_size: int = 0
    total_code_size: int = 0
    total_dependency_size: int = 0
    cache_file_size: int = 0
    last_updated: Optional[float] = None

    @property
    def valid_entries(self) -> int:
        return self.total_entries - self.expired_entries


class ProjectSizeResult(BaseModel):
    """Outcome of sizing one project within a batch."""

    path: str = Field(..., description="Project path as requested")
    size_info: Optional[SizeInfo] = Field(None, description="Computed size, if successful")
    error: Optional[str] = Field(None, description="Error message if the calculation failed")
    from_cache: bool = Field(False, description="Whether the result came from the cache")
    soft_errors: int = Field(0, description="Entries skipped because they could not be read")

    @property
    def ok(self) -> bool:
        return self.error is None and self.size_info is not None
