"""friends configuration

Caps and thresholds for the knowledge-consistency core. Each config supports
presets and loading from environment variables.
"""

import os
from dataclasses import dataclass, asdict, replace
from typing import Dict, Any, Optional


# ============================================================================
# Rate limiting
# ============================================================================
@dataclass
class RateLimitConfig:
    """Sliding-window caps for the extraction entry point

    Presets:
    - default(): 10 per minute, 100 per hour, 500 per day
    - strict():  tighter caps for shared or trial installs
    """

    max_per_minute: int = 10
    max_per_hour: int = 100
    max_per_day: int = 500

    def __post_init__(self):
        for name, value in asdict(self).items():
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")

    @classmethod
    def default(cls) -> 'RateLimitConfig':
        """Default caps"""
        return cls()

    @classmethod
    def strict(cls) -> 'RateLimitConfig':
        """Tighter caps"""
        return cls(max_per_minute=3, max_per_hour=20, max_per_day=100)

    @classmethod
    def from_env(cls) -> 'RateLimitConfig':
        """Load caps from environment variables"""
        return cls(
            max_per_minute=int(os.getenv('FRIENDS_RATE_LIMIT_PER_MINUTE', '10')),
            max_per_hour=int(os.getenv('FRIENDS_RATE_LIMIT_PER_HOUR', '100')),
            max_per_day=int(os.getenv('FRIENDS_RATE_LIMIT_PER_DAY', '500')),
        )

    def merged(self,
               max_per_minute: Optional[int] = None,
               max_per_hour: Optional[int] = None,
               max_per_day: Optional[int] = None) -> 'RateLimitConfig':
        """Return a copy with the given caps overridden; None keeps the current value"""
        changes = {
            key: value for key, value in (
                ('max_per_minute', max_per_minute),
                ('max_per_hour', max_per_hour),
                ('max_per_day', max_per_day),
            ) if value is not None
        }
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ============================================================================
# Auto-accept policy
# ============================================================================
@dataclass
class AutoAcceptConfig:
    """Confidence thresholds above which extracted relations skip review

    safe_threshold:      everyday preferences and acquaintance
    sensitive_threshold: fears, struggles and sensitivities
    person_threshold:    caring for / depending on someone
    """

    safe_threshold: float = 0.85
    sensitive_threshold: float = 0.9
    person_threshold: float = 0.95

    @classmethod
    def default(cls) -> 'AutoAcceptConfig':
        return cls()

    @classmethod
    def from_env(cls) -> 'AutoAcceptConfig':
        """Load thresholds from environment variables"""
        return cls(
            safe_threshold=float(os.getenv('FRIENDS_AUTO_ACCEPT_SAFE', '0.85')),
            sensitive_threshold=float(os.getenv('FRIENDS_AUTO_ACCEPT_SENSITIVE', '0.9')),
            person_threshold=float(os.getenv('FRIENDS_AUTO_ACCEPT_PERSON', '0.95')),
        )
