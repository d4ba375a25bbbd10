"""Tests for data models."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from footprint.models import (
    CacheConfig,
    CacheEntry,
    CacheStats,
    CacheStatus,
    ProjectSizeResult,
    Signature,
    SizeInfo,
    format_size,
)


class TestCacheStatus:
    def test_statuses_exist(self):
        assert CacheStatus.FRESH == "fresh"
        assert CacheStatus.STALE == "stale"
        assert CacheStatus.MISSING == "missing"
        assert CacheStatus.DISABLED == "disabled"


class TestSizeInfo:
    def test_from_parts_derives_total(self):
        info = SizeInfo.from_parts(100, 900, code_file_count=1, dependency_file_count=1)
        assert info.code_size == 100
        assert info.dependency_size == 900
        assert info.total_size == 1000
        assert info.total_file_count == 2

    def test_empty_project(self):
        info = SizeInfo.from_parts(0, 0)
        assert (info.code_size, info.dependency_size, info.total_size) == (0, 0, 0)

    def test_default_is_empty(self):
        assert SizeInfo() == SizeInfo.from_parts(0, 0)

    def test_rejects_inconsistent_total(self):
        with pytest.raises(ValidationError):
            SizeInfo(code_size=100, dependency_size=900, total_size=999)

    def test_rejects_negative_sizes(self):
        with pytest.raises(ValidationError):
            SizeInfo(code_size=-1, dependency_size=1, total_size=0)

    def test_is_immutable(self):
        info = SizeInfo.from_parts(1, 2)
        with pytest.raises(ValidationError):
            info.code_size = 5

    def test_human_sizes(self):
        info = SizeInfo.from_parts(500, 5_000_000)
        assert info.code_human == "500 B"
        assert info.dependency_human == "5.0 MB"
        assert "MB" in info.total_human


class TestFormatSize:
    def test_bytes(self):
        assert format_size(999) == "999 B"

    def test_kilobytes(self):
        assert format_size(1500) == "1.5 KB"

    def test_gigabytes(self):
        assert format_size(2_500_000_000) == "2.5 GB"


class TestCacheConfig:
    def test_defaults(self):
        config = CacheConfig()
        assert config.enabled is True
        assert config.expiry_duration == timedelta(hours=24)
        assert config.max_entries == 1000
        assert config.cleanup_interval == timedelta(hours=1)

    def test_max_entries_must_be_positive(self):
        with pytest.raises(ValidationError):
            CacheConfig(max_entries=0)

    def test_is_immutable(self):
        config = CacheConfig()
        with pytest.raises(ValidationError):
            config.max_entries = 5


class TestCacheEntry:
    def test_round_trips_through_json(self):
        entry = CacheEntry(
            path="/work/project",
            size_info=SizeInfo.from_parts(10, 20),
            signature=Signature(mtime_ns=123, probe_paths=("src", "src/main.x")),
            cached_at=1_700_000_000.5,
            is_git_repo=True,
        )
        restored = CacheEntry.model_validate_json(entry.model_dump_json())
        assert restored == entry
        assert restored.signature.probe_paths == ("src", "src/main.x")


class TestCacheStats:
    def test_valid_entries(self):
        stats = CacheStats(total_entries=5, expired_entries=2)
        assert stats.valid_entries == 3


class TestProjectSizeResult:
    def test_ok_with_size(self):
        result = ProjectSizeResult(path="/p", size_info=SizeInfo.from_parts(1, 1))
        assert result.ok

    def test_not_ok_with_error(self):
        result = ProjectSizeResult(path="/p", error="No such file or directory")
        assert not result.ok
