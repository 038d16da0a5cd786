"""Extraction rate limiter tests"""

import threading

import pytest

from friends.config import RateLimitConfig
from friends.utils.rate_limiter import ExtractionRateLimiter


def make_limiter(clock, minute=2, hour=5, day=10):
    return ExtractionRateLimiter(
        RateLimitConfig(max_per_minute=minute, max_per_hour=hour, max_per_day=day),
        clock=clock,
    )


# =============================================================================
# Windows
# =============================================================================

class TestWindows:

    def test_fresh_limiter_allows(self, clock):
        status = make_limiter(clock).check_limit()
        assert status.allowed
        assert (status.remaining_minute, status.remaining_hour, status.remaining_day) == (2, 5, 10)
        assert status.retry_after_seconds is None
        assert status.next_window_reset == {'minute': 0, 'hour': 0, 'day': 0}

    def test_minute_cap_blocks_independently(self, clock):
        """caps {2,5,10}: two requests exhaust the minute window only"""
        limiter = make_limiter(clock)
        limiter.record_request()
        limiter.record_request()

        status = limiter.check_limit()
        assert status.allowed is False
        assert status.remaining_minute == 0
        assert status.remaining_hour == 3
        assert status.remaining_day == 8
        assert status.retry_after_seconds == 60
        assert status.next_window_reset['minute'] == 60
        assert status.next_window_reset['hour'] == 0

    def test_cap_is_inclusive(self, clock):
        limiter = make_limiter(clock, minute=3)
        for _ in range(2):
            limiter.record_request()
        assert limiter.check_limit().allowed
        limiter.record_request()
        assert not limiter.check_limit().allowed

    def test_minute_window_slides(self, clock):
        limiter = make_limiter(clock)
        limiter.record_request()
        clock.advance(30)
        limiter.record_request()

        clock.advance(29)
        status = limiter.check_limit()
        assert not status.allowed
        assert status.retry_after_seconds == 1

        # oldest request is exactly 60s old: no longer inside the window
        clock.advance(1)
        status = limiter.check_limit()
        assert status.allowed
        assert status.remaining_minute == 1
        assert status.remaining_hour == 3

    def test_hour_window_blocks_after_minutes_pass(self, clock):
        limiter = make_limiter(clock, minute=10, hour=3, day=10)
        for _ in range(3):
            limiter.record_request()
            clock.advance(61)

        status = limiter.check_limit()
        assert not status.allowed
        assert status.remaining_minute == 10
        assert status.remaining_hour == 0
        assert status.retry_after_seconds == 3600 - 3 * 61
        assert status.next_window_reset['hour'] == 3600 - 3 * 61

    def test_retry_after_uses_soonest_saturated_window(self, clock):
        limiter = make_limiter(clock, minute=1, hour=1, day=5)
        limiter.record_request()
        status = limiter.check_limit()
        assert status.next_window_reset == {'minute': 60, 'hour': 3600, 'day': 0}
        assert status.retry_after_seconds == 60

    def test_day_old_entries_are_pruned(self, clock):
        limiter = make_limiter(clock)
        limiter.record_request()
        clock.advance(24 * 3600 + 1)
        limiter.record_request()
        assert len(limiter._requests) == 1

    def test_check_does_not_record(self, clock):
        limiter = make_limiter(clock)
        for _ in range(5):
            limiter.check_limit()
        assert limiter.get_status().remaining_day == 10

    def test_check_leaves_log_untouched(self, clock):
        limiter = make_limiter(clock)
        limiter.record_request()
        clock.advance(24 * 3600 + 1)

        status = limiter.check_limit()

        assert status.remaining_day == 10
        assert len(limiter._requests) == 1

        limiter.try_acquire()
        assert len(limiter._requests) == 1


# =============================================================================
# Configuration and reset
# =============================================================================

class TestConfiguration:

    def test_defaults(self):
        config = ExtractionRateLimiter().get_config()
        assert (config.max_per_minute, config.max_per_hour, config.max_per_day) == (10, 100, 500)

    def test_configure_merges_partial_caps(self, clock):
        limiter = make_limiter(clock)
        limiter.configure(max_per_hour=50)
        config = limiter.get_config()
        assert config.max_per_minute == 2
        assert config.max_per_hour == 50
        assert config.max_per_day == 10

    def test_update_config_alias(self, clock):
        limiter = make_limiter(clock)
        limiter.update_config(max_per_minute=7)
        assert limiter.get_config().max_per_minute == 7

    def test_get_config_returns_copy(self, clock):
        limiter = make_limiter(clock)
        config = limiter.get_config()
        config.max_per_minute = 99
        assert limiter.get_config().max_per_minute == 2

    def test_negative_cap_rejected(self, clock):
        limiter = make_limiter(clock)
        with pytest.raises(ValueError):
            limiter.configure(max_per_day=-1)
        assert limiter.get_config().max_per_day == 10

    def test_reset_restores_full_caps(self, clock):
        limiter = make_limiter(clock)
        limiter.record_request()
        limiter.record_request()
        assert not limiter.check_limit().allowed

        limiter.reset()
        status = limiter.check_limit()
        assert status.allowed
        assert (status.remaining_minute, status.remaining_hour, status.remaining_day) == (2, 5, 10)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv('FRIENDS_RATE_LIMIT_PER_MINUTE', '4')
        monkeypatch.setenv('FRIENDS_RATE_LIMIT_PER_DAY', '40')
        config = RateLimitConfig.from_env()
        assert config.max_per_minute == 4
        assert config.max_per_hour == 100
        assert config.max_per_day == 40

    def test_zero_cap_blocks_everything(self, clock):
        status = make_limiter(clock, minute=0).check_limit()
        assert not status.allowed
        assert status.retry_after_seconds is None


# =============================================================================
# Concurrency
# =============================================================================

class TestTryAcquire:

    def test_try_acquire_records_only_when_allowed(self, clock):
        limiter = make_limiter(clock)
        assert limiter.try_acquire().allowed
        assert limiter.try_acquire().allowed
        assert not limiter.try_acquire().allowed
        assert limiter.check_limit().remaining_hour == 3

    def test_try_acquire_never_exceeds_cap_across_threads(self, clock):
        limiter = make_limiter(clock, minute=5, hour=50, day=50)
        granted = []

        def worker():
            for _ in range(10):
                if limiter.try_acquire().allowed:
                    granted.append(1)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(granted) == 5

    def test_status_message(self, clock):
        limiter = make_limiter(clock)
        limiter.record_request()
        limiter.record_request()
        assert "1 minute" in limiter.check_limit().get_message()
