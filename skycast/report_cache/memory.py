"""In-memory, bounded, expiring report cache with a background sweeper."""

import threading
import time
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional

from skycast.forecast_service import Report
from skycast.report_cache.base import CacheEntry, ReportStore

from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="report_cache/in_memory_report_cache")


class ReadWriteLock:
    """Many concurrent readers or one writer; waiting writers block new readers."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class InMemoryReportCache(ReportStore):
    """Thread-safe, TTL-aware, size-bounded report cache.

    `get` ignores expired entries without removing them; removal happens in
    `sweep`, which the background thread runs every `sweep_interval_seconds`
    between `start()` and `stop()`. Inserting a new key at capacity evicts
    the single oldest entry by creation time.
    """

    def __init__(
        self,
        ttl_seconds: float = 600,
        max_entries: int = 200,
        sweep_interval_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache; the sweeper does not run until `start()`."""
        logger.debug("Initializing InMemoryReportCache")
        self.ttl = ttl_seconds
        self.max_entries = max_entries
        self.sweep_interval = sweep_interval_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = ReadWriteLock()
        self._stop = threading.Event()
        self._sweeper: Optional[threading.Thread] = None

    def get(self, key: str) -> Optional[Report]:
        """Return the report for `key` unless it is missing or past its expiry."""
        with self._lock.read_locked():
            entry = self._entries.get(key)
            if entry is None or self._clock() >= entry.expires_at:
                return None
            return entry.report

    def set(self, key: str, report: Report) -> None:
        """Insert or overwrite `key`; only brand-new keys can trigger eviction."""
        with self._lock.write_locked():
            if key not in self._entries and len(self._entries) >= self.max_entries:
                self._evict_oldest()
            now = self._clock()
            self._entries[key] = CacheEntry(report=report, created_at=now, expires_at=now + self.ttl)

    def _evict_oldest(self) -> None:
        """Drop the entry with the earliest creation time. Caller holds the write lock."""
        if not self._entries:
            return
        oldest = min(self._entries, key=lambda k: self._entries[k].created_at)
        del self._entries[oldest]
        logger.debug("Evicted oldest cache entry", extra={"cache_key": oldest})

    def sweep(self) -> int:
        """Remove every expired entry."""
        with self._lock.write_locked():
            now = self._clock()
            expired = [k for k, e in self._entries.items() if now >= e.expires_at]
            for k in expired:
                del self._entries[k]
        if expired:
            logger.info("Swept expired cache entries", extra={"removed": len(expired)})
        return len(expired)

    def clear(self) -> None:
        with self._lock.write_locked():
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        """Physical presence, regardless of expiry."""
        with self._lock.read_locked():
            return key in self._entries

    def _run_sweeper(self) -> None:
        while not self._stop.wait(self.sweep_interval):
            try:
                self.sweep()
            except Exception:  # pragma: no cover - keep the sweeper alive
                logger.exception("Cache sweep failed")

    def start(self) -> None:
        """Start the periodic sweep thread (no-op if already running)."""
        if self._sweeper is not None and self._sweeper.is_alive():
            return
        self._stop.clear()
        self._sweeper = threading.Thread(target=self._run_sweeper, name="report-cache-sweeper", daemon=True)
        self._sweeper.start()
        logger.info("Started cache sweeper", extra={"interval_s": self.sweep_interval})

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Signal the sweep thread to exit and wait for it."""
        self._stop.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout)
            self._sweeper = None
            logger.info("Stopped cache sweeper")

    @property
    def running(self) -> bool:
        return self._sweeper is not None and self._sweeper.is_alive()
