"""Cache settings as handed over by the configuration layer."""

from datetime import timedelta

from pydantic import BaseModel, Field

from footprint.models import CacheConfig


class CacheSettings(BaseModel):
    """User-facing cache settings. Durations are in hours."""

    enabled: bool = Field(default=True, description="Cache project sizes between runs")
    expiry_hours: float = Field(default=24.0, gt=0, description="Hours before a cached size expires")
    max_entries: int = Field(default=1000, ge=1, description="Maximum number of cached projects")
    cleanup_interval_hours: float = Field(
        default=1.0, gt=0, description="Hours between sweeps of expired entries"
    )

    def to_cache_config(self) -> CacheConfig:
        return CacheConfig(
            enabled=self.enabled,
            expiry_duration=timedelta(hours=self.expiry_hours),
            max_entries=self.max_entries,
            cleanup_interval=timedelta(hours=self.cleanup_interval_hours),
        )
