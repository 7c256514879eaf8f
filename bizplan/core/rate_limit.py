"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Minimal coupling: API routes depend on a dependency function only.
- Explicit ownership: the limiter is built once by the app factory and kept
  on ``app.state``; tests can swap it without touching module globals.
- The enable switch and header toggle are read from the settings the app was
  built with (``app.state.settings``), the same ones the limiter came from.
- Swap-friendly: storage backend can be replaced behind an abstract interface.

Rate limiting strategy:
- Fixed window per authenticated user id (5 requests / 60 s by default).
- Only the plan generation endpoint is guarded; it is the one that spends
  LLM budget.
"""

from __future__ import annotations

import logging
import time

from fastapi import HTTPException, Request, status

from bizplan.adapters.rate_limit import (
    AbstractRateLimiter,
    InMemoryFixedWindowRateLimiter,
    retry_after_seconds,
)
from bizplan.core.auth import CurrentUser
from bizplan.core.config import AppSettings, settings
from bizplan.core.logging import hash_identifier

logger = logging.getLogger(__name__)


def build_rate_limiter(app_settings: AppSettings | None = None) -> AbstractRateLimiter:
    """Create the limiter described by the application settings.

    Args:
        app_settings: Settings to read; defaults to the global settings.

    Returns:
        AbstractRateLimiter: A fresh limiter with an empty store.
    """
    cfg = app_settings or settings.app
    return InMemoryFixedWindowRateLimiter(
        limit=cfg.rate_limit_requests,
        window_ms=cfg.rate_limit_window_ms,
        max_keys=cfg.rate_limit_max_keys,
        sweep_grace_ms=cfg.rate_limit_sweep_grace_ms,
        sweep_interval_ms=cfg.rate_limit_sweep_interval_ms,
    )


def get_rate_limiter(request: Request) -> AbstractRateLimiter:
    """Return the limiter owned by the running application."""
    return request.app.state.rate_limiter


def get_app_settings(request: Request) -> AppSettings:
    """Return the settings the running application was built with."""
    return request.app.state.settings.app


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


async def enforce_rate_limit(request: Request, user: CurrentUser) -> None:
    """FastAPI dependency enforcing the per-user rate limit.

    When enabled, consumes one admission from the user's window. If the user
    exceeded it, raises HTTP 429 with a Retry-After hint in seconds.

    Args:
        request: FastAPI request.
        user: Authenticated caller.

    Raises:
        HTTPException: 429 Too Many Requests when rate limit is exceeded.
    """

    app_settings = get_app_settings(request)
    if not app_settings.rate_limit_enabled:
        return

    limiter = get_rate_limiter(request)
    key = f"user:{user.id}"
    key_hash = hash_identifier(key)
    now = _now_ms()

    result = limiter.check_rate_limit(key, now)
    if result.allowed:
        logger.info(
            "rate_limit.allowed",
            extra={
                "key_hash": key_hash,
                "limit": result.limit,
                "remaining": result.remaining,
            },
        )
        return

    retry_after = retry_after_seconds(result.retry_after or result.reset_at, now)
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": key_hash,
            "limit": result.limit,
            "remaining": result.remaining,
            "retry_after_s": retry_after,
        },
    )

    headers: dict[str, str] = {}
    if app_settings.rate_limit_include_headers:
        headers["Retry-After"] = str(retry_after)
        headers["X-RateLimit-Limit"] = str(result.limit)
        headers["X-RateLimit-Remaining"] = str(result.remaining)
        headers["X-RateLimit-Reset"] = str(result.reset_at // 1000)

    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Rate limit exceeded. Try again later.",
        headers=headers or None,
    )
