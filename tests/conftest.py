"""Shared fixtures for footprint tests."""

import os
from pathlib import Path

import pytest

from footprint.cache_store import CacheStore
from footprint.errors import CachePersistError


class FakeClock:
    """Deterministic stand-in for time.time."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingStore(CacheStore):
    """CacheStore that counts saves and can be told to fail."""

    def __init__(self, path: Path, fail_saves: int = 0):
        super().__init__(path)
        self.saves = 0
        self.fail_saves = fail_saves

    def save(self, document) -> None:
        if self.fail_saves > 0:
            self.fail_saves -= 1
            raise CachePersistError("disk full")
        self.saves += 1
        super().save(document)


def bump_mtime(path: Path, seconds: float = 10.0) -> None:
    """Move a path's mtime into the future so a change is always visible."""
    st = os.stat(path)
    future = st.st_mtime_ns + int(seconds * 1_000_000_000)
    os.utime(path, ns=(future, future))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache_path(tmp_path):
    # Outside every project directory so cache writes never touch project mtimes
    return tmp_path / "cache" / "size_cache.json"


@pytest.fixture
def store(cache_path):
    return CountingStore(cache_path)


@pytest.fixture
def make_project(tmp_path):
    """Factory: make_project(name, {relative_path: size_or_text}) -> root."""

    def _make(name: str = "project", files: dict | None = None) -> Path:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        for rel_path, content in (files or {}).items():
            target = root / rel_path
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, int):
                target.write_bytes(b"x" * content)
            else:
                target.write_text(content)
        return root

    return _make


@pytest.fixture
def sample_project(make_project):
    """src/main.x (100 bytes) plus deps/lib.x (900 bytes) in a dependency dir."""
    return make_project("sample", {"src/main.x": 100, "deps/lib.x": 900})
