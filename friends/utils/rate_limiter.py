"""Extraction rate limiter

Sliding-window throttle in front of the (paid, remote) extraction step:
- independent per-minute / per-hour / per-day caps
- in-memory request log per instance, nothing persisted
- structured status instead of exceptions when blocked

Local reasoning (conflict detection, triage, ambiguity) is never throttled.
"""

from __future__ import annotations

import math
import time
import logging
from threading import Lock
from typing import Callable, Dict, List, Optional

from ..config import RateLimitConfig
from ..models.rate_limit import RateLimitStatus


logger = logging.getLogger(__name__)


MINUTE_SECONDS = 60
HOUR_SECONDS = 60 * MINUTE_SECONDS
DAY_SECONDS = 24 * HOUR_SECONDS


class ExtractionRateLimiter:
    """Sliding-window rate limiter for story extraction

    Usage:
        limiter = ExtractionRateLimiter()

        status = limiter.check_limit()
        if status.allowed:
            limiter.record_request()
            result = extractor(request)
        else:
            show(status.retry_after_seconds)

    check_limit() followed by record_request() is not atomic; hosts that
    submit from several threads should use try_acquire() instead.
    """

    def __init__(
        self,
        config: Optional[RateLimitConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialise the limiter

        Args:
            config: caps to use, defaults to RateLimitConfig.default()
            clock: returns the current time in seconds
        """
        self.config = config or RateLimitConfig.default()
        self._clock = clock
        self._requests: List[float] = []
        self._lock = Lock()

    # =========================================================================
    # Configuration
    # =========================================================================

    def configure(self,
                  max_per_minute: Optional[int] = None,
                  max_per_hour: Optional[int] = None,
                  max_per_day: Optional[int] = None) -> RateLimitConfig:
        """Merge the given caps over the current ones

        Unspecified caps keep their previous value.

        Raises:
            ValueError: a cap is negative or not an integer
        """
        with self._lock:
            self.config = self.config.merged(
                max_per_minute=max_per_minute,
                max_per_hour=max_per_hour,
                max_per_day=max_per_day,
            )
            logger.debug("[RateLimiter] config updated: %s", self.config)
            return self.config

    update_config = configure

    def get_config(self) -> RateLimitConfig:
        """Copy of the current caps"""
        return self.config.merged()

    # =========================================================================
    # Checking and recording
    # =========================================================================

    def check_limit(self) -> RateLimitStatus:
        """Check whether one more request is allowed right now

        Read-only: nothing is recorded and the log is not pruned.
        """
        with self._lock:
            return self._check_locked(self._clock())

    def get_status(self) -> RateLimitStatus:
        """Current status without recording a request"""
        return self.check_limit()

    def record_request(self) -> None:
        """Record a request at the current time"""
        with self._lock:
            now = self._clock()
            self._prune(now)
            self._requests.append(now)

    def try_acquire(self) -> RateLimitStatus:
        """Check and, when allowed, record under one lock

        Returns:
            The status as it was before recording.
        """
        with self._lock:
            now = self._clock()
            self._prune(now)
            status = self._check_locked(now)
            if status.allowed:
                self._requests.append(now)
            return status

    def reset(self) -> None:
        """Forget every recorded request"""
        with self._lock:
            self._requests = []

    # =========================================================================
    # Internals (call with the lock held)
    # =========================================================================

    def _windows(self) -> Dict[str, tuple]:
        return {
            'minute': (MINUTE_SECONDS, self.config.max_per_minute),
            'hour': (HOUR_SECONDS, self.config.max_per_hour),
            'day': (DAY_SECONDS, self.config.max_per_day),
        }

    def _prune(self, now: float) -> None:
        # entries older than the largest window can never be counted again
        cutoff = now - DAY_SECONDS
        self._requests = [t for t in self._requests if t > cutoff]

    def _in_window(self, now: float, window: float) -> List[float]:
        start = now - window
        return [t for t in self._requests if t > start]

    def _check_locked(self, now: float) -> RateLimitStatus:
        remaining: Dict[str, int] = {}
        next_reset: Dict[str, int] = {}
        expiries: List[float] = []

        for name, (window, cap) in self._windows().items():
            in_window = self._in_window(now, window)
            remaining[name] = max(0, cap - len(in_window))
            next_reset[name] = 0
            if remaining[name] > 0 or not in_window:
                continue
            expires_at = min(in_window) + window
            expiries.append(expires_at)
            next_reset[name] = max(0, math.ceil(expires_at - now))

        allowed = all(value > 0 for value in remaining.values())

        retry_after = None
        if not allowed:
            if expiries:
                retry_after = max(0, math.ceil(min(expiries) - now))
            logger.warning(
                "[RateLimiter] extraction blocked: remaining=%s retry_after=%s",
                remaining, retry_after,
            )

        return RateLimitStatus(
            allowed=allowed,
            remaining_minute=remaining['minute'],
            remaining_hour=remaining['hour'],
            remaining_day=remaining['day'],
            retry_after_seconds=retry_after,
            next_window_reset=next_reset,
        )
