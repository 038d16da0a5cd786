"""Rate limit status model"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Any


WINDOWS = ('minute', 'hour', 'day')


@dataclass
class RateLimitStatus:
    """Snapshot of the extraction rate limiter

    retry_after_seconds is only set when the request is not allowed.
    next_window_reset maps minute/hour/day to the seconds until that window
    frees a slot (0 for windows that are not saturated).
    """
    allowed: bool
    remaining_minute: int
    remaining_hour: int
    remaining_day: int
    retry_after_seconds: Optional[int] = None
    next_window_reset: Dict[str, int] = field(
        default_factory=lambda: {w: 0 for w in WINDOWS}
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'allowed': self.allowed,
            'remaining_minute': self.remaining_minute,
            'remaining_hour': self.remaining_hour,
            'remaining_day': self.remaining_day,
            'retry_after_seconds': self.retry_after_seconds,
            'next_window_reset': dict(self.next_window_reset),
        }

    def get_message(self) -> str:
        """Human readable summary shown when a story submission is throttled"""
        if self.allowed:
            return (f"{self.remaining_minute} requests left this minute, "
                    f"{self.remaining_hour} this hour, {self.remaining_day} today")
        seconds = self.retry_after_seconds or 0
        if seconds < 60:
            wait = f"{seconds} second{'s' if seconds != 1 else ''}"
        elif seconds < 3600:
            minutes = -(-seconds // 60)
            wait = f"{minutes} minute{'s' if minutes != 1 else ''}"
        else:
            hours = -(-seconds // 3600)
            wait = f"{hours} hour{'s' if hours != 1 else ''}"
        return f"Rate limit reached. Please wait {wait} before trying again."
