"""Tests for the FastAPI rate limiting dependency."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from fastapi import HTTPException

from bizplan.adapters.rate_limit import InMemoryFixedWindowRateLimiter
from bizplan.core.auth import AuthenticatedUser
from bizplan.core.config import AppSettings
from bizplan.core.rate_limit import build_rate_limiter, enforce_rate_limit

T0 = 1_700_000_000_000


def _request(limiter, **app_settings) -> MagicMock:
    request = MagicMock()
    request.app.state.rate_limiter = limiter
    request.app.state.settings.app = AppSettings(**app_settings)
    return request


def test_build_rate_limiter_reads_settings() -> None:
    limiter = build_rate_limiter(
        AppSettings(rate_limit_requests=3, rate_limit_window_ms=10_000, rate_limit_max_keys=None)
    )

    assert isinstance(limiter, InMemoryFixedWindowRateLimiter)
    assert limiter.limit == 3
    assert limiter.window_ms == 10_000


@pytest.mark.asyncio
async def test_denial_raises_429_with_headers(user: AuthenticatedUser) -> None:
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_ms=60_000)
    request = _request(limiter)

    with patch("bizplan.core.rate_limit._now_ms", return_value=T0):
        await enforce_rate_limit(request, user)

    with patch("bizplan.core.rate_limit._now_ms", return_value=T0 + 15_500):
        with pytest.raises(HTTPException) as exc_info:
            await enforce_rate_limit(request, user)

    exc = exc_info.value
    assert exc.status_code == 429
    assert exc.detail == "Rate limit exceeded. Try again later."
    assert exc.headers == {
        "Retry-After": "45",
        "X-RateLimit-Limit": "1",
        "X-RateLimit-Remaining": "0",
        "X-RateLimit-Reset": str((T0 + 60_000) // 1000),
    }


@pytest.mark.asyncio
async def test_key_is_namespaced_by_user_id(user: AuthenticatedUser) -> None:
    limiter = InMemoryFixedWindowRateLimiter(limit=5, window_ms=60_000)

    with patch("bizplan.core.rate_limit._now_ms", return_value=T0):
        await enforce_rate_limit(_request(limiter), user)

    assert limiter.snapshot("user:user-123") == (1, T0 + 60_000)


@pytest.mark.asyncio
async def test_headers_follow_app_settings(user: AuthenticatedUser) -> None:
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_ms=60_000)
    request = _request(limiter, rate_limit_include_headers=False)

    with patch("bizplan.core.rate_limit._now_ms", return_value=T0):
        await enforce_rate_limit(request, user)
        with pytest.raises(HTTPException) as exc_info:
            await enforce_rate_limit(request, user)

    assert exc_info.value.headers is None


@pytest.mark.asyncio
async def test_disabled_limiter_is_not_consulted(user: AuthenticatedUser) -> None:
    limiter = MagicMock()

    await enforce_rate_limit(_request(limiter, rate_limit_enabled=False), user)

    limiter.check_rate_limit.assert_not_called()
