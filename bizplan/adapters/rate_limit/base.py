"""Rate limiter interfaces.

The API depends on this abstraction (not the concrete implementation) so the
in-memory store can later be swapped for a shared backend.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: Epoch milliseconds when the current window ends.
        retry_after: Epoch milliseconds when a blocked caller may retry.
            None when the request was allowed.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after: int | None = None


def retry_after_seconds(retry_after: int, now: int) -> int:
    """Convert an absolute retry timestamp into a relative delay.

    Args:
        retry_after: Epoch milliseconds when the window ends.
        now: Current epoch milliseconds.

    Returns:
        Whole seconds to wait, never less than 1.
    """
    return max(1, math.ceil((retry_after - now) / 1000))


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def check_rate_limit(self, user_id: str, now: int | None = None) -> RateLimitResult:
        """Decide whether a request from ``user_id`` may proceed.

        Args:
            user_id: Authenticated user identifier.
            now: Epoch milliseconds; defaults to the limiter's clock.

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError
