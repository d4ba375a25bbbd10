"""On-disk persistence for the size cache.

The whole cache is one JSON document, always rewritten in full through a
temporary file and an atomic rename.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Literal, Optional

from platformdirs import user_cache_dir
from pydantic import BaseModel, Field, ValidationError

from footprint.errors import CacheCorruptError, CacheInitError, CachePersistError
from footprint.models import CacheEntry

APP_NAME = "footprint"
CACHE_FILE_NAME = "size_cache.json"
CACHE_DIR_ENV = "FOOTPRINT_CACHE_DIR"
CACHE_FORMAT = "footprint.size_cache"
CACHE_FORMAT_VERSION = 1


def default_cache_file() -> Path:
    """Per-user cache file location, honouring FOOTPRINT_CACHE_DIR."""
    override = os.environ.get(CACHE_DIR_ENV)
    cache_dir = Path(override).expanduser() if override else Path(user_cache_dir(APP_NAME))
    return cache_dir / CACHE_FILE_NAME


class CacheDocument(BaseModel):
    """Serialized form of the whole cache."""

    format: Literal["footprint.size_cache"] = CACHE_FORMAT
    version: int = CACHE_FORMAT_VERSION
    created_at: float = Field(..., description="Epoch seconds when the document was first written")
    updated_at: float = Field(..., description="Epoch seconds of the last write")
    last_cleanup: Optional[float] = Field(None, description="Epoch seconds of the last expiry sweep")
    entries: dict[str, CacheEntry] = Field(default_factory=dict)


class CacheStore:
    """Loads and saves a CacheDocument at a fixed path."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = Path(path) if path is not None else default_cache_file()

    def exists(self) -> bool:
        return self.path.is_file()

    def prepare(self) -> None:
        """
        Create the directory that will hold the cache file.

        Raises:
            CacheInitError: if the directory cannot be created
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheInitError(f"Cannot create cache directory {self.path.parent}: {e}") from e

    def file_size(self) -> int:
        try:
            return self.path.stat().st_size
        except OSError:
            return 0

    def load(self) -> CacheDocument | None:
        """
        Read the cache document.

        Returns:
            The document, or None if no cache file exists yet

        Raises:
            CacheInitError: if the file exists but cannot be read
            CacheCorruptError: if the content is not a usable cache document
        """
        if not self.path.exists():
            return None

        try:
            raw = self.path.read_bytes()
        except OSError as e:
            raise CacheInitError(f"Cannot read cache file {self.path}: {e}") from e

        try:
            data = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CacheCorruptError(f"Cache file {self.path} is not valid JSON: {e}") from e

        if not isinstance(data, dict) or data.get("format") != CACHE_FORMAT:
            raise CacheCorruptError(f"Cache file {self.path} has no {CACHE_FORMAT} marker")
        if data.get("version") != CACHE_FORMAT_VERSION:
            raise CacheCorruptError(
                f"Cache file {self.path} has unsupported version {data.get('version')!r}"
            )

        try:
            return CacheDocument.model_validate(data)
        except ValidationError as e:
            raise CacheCorruptError(f"Cache file {self.path} is malformed: {e}") from e

    def save(self, document: CacheDocument) -> None:
        """
        Replace the cache file with document.

        Raises:
            CachePersistError: if the directory or file cannot be written
        """
        payload = document.model_dump_json()
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise CachePersistError(f"Cannot write cache file {self.path}: {e}") from e
