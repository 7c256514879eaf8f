"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: one lock serializes every read-check-increment on the store.
- Bounded: stale windows are swept and an optional capacity evicts the least
  recently seen users.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from bizplan.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


@dataclass
class _WindowState:
    count: int
    reset_at: int


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a fixed window anchored at each user's first request.

    A user's window starts with the first admitted request and lasts
    ``window_ms``. Within it at most ``limit`` requests are admitted; the
    first request after the window ends starts a fresh one with no
    carry-over. Bursts of up to ``2 * limit`` are possible across a window
    boundary.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        limit: int = 5,
        window_ms: int = 60_000,
        clock: Callable[[], int] = _now_ms,
        max_keys: int | None = None,
        sweep_grace_ms: int = 0,
        sweep_interval_ms: int | None = None,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of admitted requests per window.
            window_ms: Window length in milliseconds.
            clock: Time source returning epoch milliseconds.
            max_keys: Maximum tracked users; least recently seen users are
                evicted beyond it. None means unbounded.
            sweep_grace_ms: How long past its end a window is kept before
                ``sweep`` drops it.
            sweep_interval_ms: Run ``sweep`` from ``check_rate_limit`` at most
                once per interval. None disables opportunistic sweeping.

        Raises:
            ValueError: If any argument is out of range.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_ms < 1:
            raise ValueError("window_ms must be >= 1")
        if max_keys is not None and max_keys < 1:
            raise ValueError("max_keys must be >= 1")
        if sweep_grace_ms < 0:
            raise ValueError("sweep_grace_ms must be >= 0")
        if sweep_interval_ms is not None and sweep_interval_ms < 0:
            raise ValueError("sweep_interval_ms must be >= 0")

        self._limit = limit
        self._window_ms = window_ms
        self._clock = clock
        self._max_keys = max_keys
        self._sweep_grace_ms = sweep_grace_ms
        self._sweep_interval_ms = sweep_interval_ms
        self._last_sweep: int | None = None
        self._lock = threading.RLock()
        self._state_by_key: OrderedDict[str, _WindowState] = OrderedDict()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_ms(self) -> int:
        return self._window_ms

    def __len__(self) -> int:
        with self._lock:
            return len(self._state_by_key)

    def _build_allowed_result(self, state: _WindowState) -> RateLimitResult:
        return RateLimitResult(
            allowed=True,
            limit=self._limit,
            remaining=max(0, self._limit - state.count),
            reset_at=state.reset_at,
        )

    def _build_blocked_result(self, state: _WindowState) -> RateLimitResult:
        return RateLimitResult(
            allowed=False,
            limit=self._limit,
            remaining=0,
            reset_at=state.reset_at,
            retry_after=state.reset_at,
        )

    def check_rate_limit(self, user_id: str, now: int | None = None) -> RateLimitResult:
        """Admit or reject one request for ``user_id``.

        Args:
            user_id: Authenticated user identifier.
            now: Epoch milliseconds; defaults to the configured clock.

        Returns:
            RateLimitResult with the decision. When blocked, ``retry_after``
            is the end of the current window and the window is left untouched.
            Any string is a valid key, the empty string included.
        """
        with self._lock:
            if now is None:
                now = self._clock()
            self._maybe_sweep_locked(now)

            state = self._state_by_key.get(user_id)
            if state is None or now > state.reset_at:
                state = _WindowState(count=1, reset_at=now + self._window_ms)
                self._state_by_key[user_id] = state
                self._state_by_key.move_to_end(user_id)
                self._evict_if_over_capacity_locked(now)
                return self._build_allowed_result(state)

            self._state_by_key.move_to_end(user_id)

            if state.count >= self._limit:
                return self._build_blocked_result(state)

            state.count += 1
            return self._build_allowed_result(state)

    def sweep(self, now: int | None = None) -> int:
        """Drop windows that ended more than ``sweep_grace_ms`` ago.

        Args:
            now: Epoch milliseconds; defaults to the configured clock.

        Returns:
            Number of removed users.
        """
        with self._lock:
            if now is None:
                now = self._clock()
            return self._sweep_locked(now)

    def clear(self) -> None:
        """Forget every tracked user."""
        with self._lock:
            self._state_by_key.clear()
            self._last_sweep = None

    def _sweep_locked(self, now: int) -> int:
        cutoff = now - self._sweep_grace_ms
        stale = [key for key, state in self._state_by_key.items() if state.reset_at < cutoff]
        for key in stale:
            del self._state_by_key[key]
        self._last_sweep = now

        if stale:
            logger.debug(
                "rate_limit.swept",
                extra={"removed": len(stale), "tracked": len(self._state_by_key)},
            )
        return len(stale)

    def _maybe_sweep_locked(self, now: int) -> None:
        if self._sweep_interval_ms is None:
            return
        if self._last_sweep is None:
            self._last_sweep = now
            return
        if now - self._last_sweep >= self._sweep_interval_ms:
            self._sweep_locked(now)

    def _evict_if_over_capacity_locked(self, now: int) -> None:
        if self._max_keys is None or len(self._state_by_key) <= self._max_keys:
            return

        # Ended windows would be reset on the next request anyway
        ended = [key for key, state in self._state_by_key.items() if state.reset_at < now]
        for key in ended:
            del self._state_by_key[key]

        while len(self._state_by_key) > self._max_keys:
            # popitem(last=False) removes the least recently seen user
            self._state_by_key.popitem(last=False)
            logger.debug("rate_limit.evicted", extra={"max_keys": self._max_keys})

    def snapshot(self, user_id: str) -> tuple[int, int] | None:
        """Return ``(count, reset_at)`` for a user, or None when untracked."""
        with self._lock:
            state = self._state_by_key.get(user_id)
            if state is None:
                return None
            return state.count, state.reset_at
