import threading
import time
import unittest

from skycast.report_cache import InMemoryReportCache, ReadWriteLock, cache_key
from skycast.units import UnitSystem


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def advance(self, seconds):
        self.now += seconds

    def __call__(self):
        return self.now


class TestInMemoryReportCache(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.cache = InMemoryReportCache(ttl_seconds=600, max_entries=3, sweep_interval_seconds=300, clock=self.clock)

    def test_get_returns_stored_report(self):
        report = object()
        self.cache.set("berlin|metric", report)
        self.assertIs(self.cache.get("berlin|metric"), report)
        self.assertIsNone(self.cache.get("paris|metric"))

    def test_expired_entry_reads_absent_until_swept(self):
        self.cache.set("a", "report-a")
        self.clock.advance(599)
        self.assertEqual(self.cache.get("a"), "report-a")
        self.clock.advance(1)
        self.assertIsNone(self.cache.get("a"))
        self.assertEqual(len(self.cache), 1)
        self.assertIn("a", self.cache)

        self.assertEqual(self.cache.sweep(), 1)
        self.assertEqual(len(self.cache), 0)

    def test_sweep_keeps_live_entries(self):
        self.cache.set("old", 1)
        self.clock.advance(400)
        self.cache.set("new", 2)
        self.clock.advance(300)
        self.assertEqual(self.cache.sweep(), 1)
        self.assertEqual(self.cache.get("new"), 2)
        self.assertNotIn("old", self.cache)

    def test_inserting_past_capacity_evicts_oldest(self):
        for key in ("a", "b", "c"):
            self.cache.set(key, key)
            self.clock.advance(1)
        self.cache.set("d", "d")
        self.assertEqual(len(self.cache), 3)
        self.assertNotIn("a", self.cache)
        for key in ("b", "c", "d"):
            self.assertEqual(self.cache.get(key), key)

    def test_overwrite_at_capacity_does_not_evict(self):
        for key in ("a", "b", "c"):
            self.cache.set(key, key)
            self.clock.advance(1)
        self.cache.set("a", "a2")
        self.assertEqual(len(self.cache), 3)
        self.assertEqual(self.cache.get("a"), "a2")
        self.assertEqual(self.cache.get("b"), "b")

        # Overwrite refreshed a's creation time, so b is now the oldest.
        self.clock.advance(1)
        self.cache.set("d", "d")
        self.assertNotIn("b", self.cache)
        self.assertIn("a", self.cache)

    def test_overwrite_refreshes_expiry(self):
        self.cache.set("a", 1)
        self.clock.advance(500)
        self.cache.set("a", 2)
        self.clock.advance(500)
        self.assertEqual(self.cache.get("a"), 2)

    def test_clear(self):
        self.cache.set("a", 1)
        self.cache.clear()
        self.assertEqual(len(self.cache), 0)

    def test_start_and_stop_are_idempotent(self):
        self.cache.start()
        self.cache.start()
        self.assertTrue(self.cache.running)
        self.cache.stop()
        self.cache.stop()
        self.assertFalse(self.cache.running)

    def test_background_sweeper_removes_expired_entries(self):
        cache = InMemoryReportCache(ttl_seconds=10, max_entries=5, sweep_interval_seconds=0.01, clock=self.clock)
        cache.set("a", 1)
        self.clock.advance(11)
        cache.start()
        try:
            deadline = time.monotonic() + 2.0
            while len(cache) and time.monotonic() < deadline:
                time.sleep(0.01)
            self.assertEqual(len(cache), 0)
        finally:
            cache.stop()


class TestReadWriteLock(unittest.TestCase):
    def test_readers_share_the_lock(self):
        lock = ReadWriteLock()
        inside = threading.Barrier(2, timeout=2)

        def reader():
            with lock.read_locked():
                inside.wait()

        threads = [threading.Thread(target=reader) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=3)
        self.assertFalse(any(t.is_alive() for t in threads))

    def test_writer_excludes_readers(self):
        lock = ReadWriteLock()
        events = []
        writer_in = threading.Event()

        def writer():
            with lock.write_locked():
                writer_in.set()
                time.sleep(0.05)
                events.append("writer-done")

        def reader():
            writer_in.wait(timeout=2)
            with lock.read_locked():
                events.append("reader")

        tw = threading.Thread(target=writer)
        tr = threading.Thread(target=reader)
        tw.start()
        tr.start()
        tw.join(timeout=3)
        tr.join(timeout=3)
        self.assertEqual(events, ["writer-done", "reader"])


def test_cache_key_normalizes_place():
    assert cache_key("  London ", UnitSystem.METRIC) == "london|metric"
    assert cache_key("LONDON", UnitSystem.IMPERIAL) == "london|imperial"
    assert cache_key("London", "imperial") == "london|imperial"


def test_concurrent_access_stays_bounded():
    cache = InMemoryReportCache(ttl_seconds=60, max_entries=10)

    def worker(n):
        for i in range(200):
            key = f"k{(n * 7 + i) % 25}"
            cache.set(key, i)
            cache.get(key)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)
    assert len(cache) <= 10


if __name__ == "__main__":
    unittest.main()
