"""Report cache backends."""

from .base import CacheEntry, ReportStore, cache_key
from .memory import InMemoryReportCache, ReadWriteLock

__all__ = [
    "CacheEntry",
    "ReportStore",
    "cache_key",
    "InMemoryReportCache",
    "ReadWriteLock",
]
