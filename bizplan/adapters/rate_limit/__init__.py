"""Rate limiting adapters.

Routes depend on the abstract limiter so the in-memory store can be replaced
by a shared one without touching the API layer.
"""

from bizplan.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitResult,
    retry_after_seconds,
)
from bizplan.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "InMemoryFixedWindowRateLimiter",
    "RateLimitResult",
    "retry_after_seconds",
]
