"""footprint - measure code and dependency size of projects.

Sizes are gitignore-aware and cached between runs.
"""

__version__ = "0.1.0"

from footprint.calculator import SizeCalculator
from footprint.errors import CacheInitError, CachePersistError, IgnoreParseError, WalkError
from footprint.models import CacheConfig, CacheStats, CacheStatus, SizeInfo
from footprint.size_cache import SizeCache

__all__ = [
    "CacheConfig",
    "CacheInitError",
    "CachePersistError",
    "CacheStats",
    "CacheStatus",
    "IgnoreParseError",
    "SizeCache",
    "SizeCalculator",
    "SizeInfo",
    "WalkError",
    "__version__",
]
