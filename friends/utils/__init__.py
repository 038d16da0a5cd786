"""friends utilities"""

from .rate_limiter import ExtractionRateLimiter

__all__ = [
    'ExtractionRateLimiter',
]
