"""Tests for the scheduled cache purge job."""

from unittest.mock import MagicMock

from reeltracker.cache import DataCache
from reeltracker.tasks.cache_maintenance import purge_expired_caches


def test_sums_removed_entries_across_caches(clock) -> None:
    images = DataCache(None, ttl_seconds=10, clock=clock, name="images")
    payloads = DataCache(None, ttl_seconds=10, clock=clock, name="payloads")
    try:
        images.put("a", b"1")
        images.put("b", b"2")
        payloads.put("c", b"3")
        clock.advance(11)

        assert purge_expired_caches(images, payloads) == 3
        assert purge_expired_caches(images, payloads) == 0
    finally:
        images.close()
        payloads.close()


def test_failing_cache_does_not_stop_others(clock) -> None:
    broken = MagicMock(spec=DataCache)
    broken.name = "broken"
    broken.purge_expired.side_effect = RuntimeError("disk gone")
    healthy = DataCache(None, ttl_seconds=10, clock=clock, name="healthy")
    try:
        healthy.put("a", b"1")
        clock.advance(11)

        assert purge_expired_caches(broken, healthy) == 1
    finally:
        healthy.close()


def test_no_caches() -> None:
    assert purge_expired_caches() == 0
