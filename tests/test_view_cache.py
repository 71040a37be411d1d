"""
Tests for the view dedup cache: throttle window, claim release and pruning.
"""

import pytest

from app.services.view_cache import ViewDedupCache
from conftest import FakeClock


class TestThrottleWindow:
    """Claims inside the window are refused, claims after it succeed."""

    def test_first_claim_succeeds(self, view_cache, clock):
        assert view_cache.claim("a1") == clock.now
        assert "a1" in view_cache

    def test_second_claim_within_window_is_throttled(self, view_cache, clock):
        assert view_cache.claim("a1") is not None
        clock.advance(59.9)
        assert view_cache.claim("a1") is None
        assert len(view_cache) == 1

    def test_claim_after_window_succeeds(self, view_cache, clock):
        first = view_cache.claim("a1")
        clock.advance(60.0)
        second = view_cache.claim("a1")
        assert second is not None
        assert second > first

    def test_throttled_claim_does_not_extend_window(self, view_cache, clock):
        view_cache.claim("a1")
        clock.advance(30)
        assert view_cache.claim("a1") is None
        clock.advance(30)
        assert view_cache.claim("a1") is not None

    def test_ids_are_independent(self, view_cache):
        assert view_cache.claim("a1") is not None
        assert view_cache.claim("a2") is not None
        assert view_cache.claim("a1") is None

    def test_throttled_claim_keeps_original_timestamp(self, view_cache, clock):
        first = view_cache.claim("a1")
        clock.advance(10)
        assert view_cache.claim("a1") is None
        assert not view_cache.release("a1", clock.now)
        assert view_cache.release("a1", first)


class TestRelease:
    def test_release_removes_own_claim(self, view_cache):
        claimed_at = view_cache.claim("a1")
        assert view_cache.release("a1", claimed_at)
        assert "a1" not in view_cache
        assert view_cache.claim("a1") is not None

    def test_release_keeps_newer_claim(self, view_cache, clock):
        stale = view_cache.claim("a1")
        clock.advance(61)
        fresh = view_cache.claim("a1")
        assert not view_cache.release("a1", stale)
        assert view_cache.claim("a1") is None
        assert view_cache.release("a1", fresh)


class TestPruning:
    def test_prune_removes_only_expired_entries(self, view_cache, clock):
        view_cache.claim("old")
        clock.advance(61)
        view_cache.claim("new")
        assert view_cache.prune() == 1
        assert "old" not in view_cache
        assert "new" in view_cache

    def test_no_prune_below_high_water_mark(self, clock):
        cache = ViewDedupCache(window_seconds=60, high_water_mark=10, clock=clock)
        for index in range(10):
            cache.claim(f"id{index}")
        clock.advance(120)
        assert cache.prune_if_needed() == 0
        assert len(cache) == 10

    def test_prune_past_high_water_mark_keeps_only_fresh_entry(self, view_cache, clock):
        for index in range(1000):
            view_cache.claim(f"stale{index}")
        clock.advance(61)

        assert view_cache.claim("fresh") is not None
        assert len(view_cache) == 1001

        assert view_cache.prune_if_needed() == 1000
        assert len(view_cache) == 1
        assert "fresh" in view_cache
        assert view_cache.claim("fresh") is None

    def test_stats(self, view_cache, clock):
        view_cache.claim("a1")
        view_cache.claim("a1")
        clock.advance(61)
        view_cache.prune()
        assert view_cache.stats == {
            "tracked": 0,
            "throttled": 1,
            "pruned": 1,
            "window_seconds": 60.0,
            "high_water_mark": 1000,
        }


@pytest.mark.parametrize("window, mark", [(0, 10), (-1, 10), (60, -1)])
def test_rejects_invalid_configuration(window, mark):
    with pytest.raises(ValueError):
        ViewDedupCache(window_seconds=window, high_water_mark=mark, clock=FakeClock())
