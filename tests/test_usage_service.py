"""Tests for the monthly quota service."""

from unittest.mock import AsyncMock

import pytest

from bizplan.adapters.supabase import SupabaseClient
from bizplan.core.auth import AuthenticatedUser
from bizplan.core.errors import DatabaseAppError
from bizplan.services.usage_service import Profile, UsageService


@pytest.fixture
def db() -> AsyncMock:
    return AsyncMock(spec=SupabaseClient)


@pytest.fixture
def service(db: AsyncMock) -> UsageService:
    return UsageService(db, default_monthly_limit=10)


class TestProfile:
    def test_exhausted_at_limit(self) -> None:
        assert Profile(id=1, plan_usage=10, monthly_limit=10).exhausted

    def test_not_exhausted_below_limit(self) -> None:
        assert not Profile(id=1, plan_usage=9, monthly_limit=10).exhausted


class TestGetOrCreateProfile:
    @pytest.mark.asyncio
    async def test_returns_existing_profile(
        self, service: UsageService, db: AsyncMock, user: AuthenticatedUser
    ) -> None:
        db.select.return_value = [{"id": 4, "plan_usage": 3, "monthly_limit": 20}]

        profile = await service.get_or_create_profile(user)

        assert profile == Profile(id=4, plan_usage=3, monthly_limit=20)
        db.insert.assert_not_called()
        _, kwargs = db.select.call_args
        assert kwargs["filters"] == {"user_id": "eq.user-123"}
        assert kwargs["access_token"] == user.access_token

    @pytest.mark.asyncio
    async def test_first_duplicate_wins(
        self, service: UsageService, db: AsyncMock, user: AuthenticatedUser
    ) -> None:
        db.select.return_value = [
            {"id": 1, "plan_usage": 2, "monthly_limit": 10},
            {"id": 2, "plan_usage": 9, "monthly_limit": 10},
        ]

        profile = await service.get_or_create_profile(user)

        assert profile.id == 1
        assert profile.plan_usage == 2

    @pytest.mark.asyncio
    async def test_creates_profile_on_first_use(
        self, service: UsageService, db: AsyncMock, user: AuthenticatedUser
    ) -> None:
        db.select.return_value = []
        db.insert.return_value = [{"id": 8, "plan_usage": 0, "monthly_limit": 10}]

        profile = await service.get_or_create_profile(user)

        assert profile == Profile(id=8, plan_usage=0, monthly_limit=10)
        args, kwargs = db.insert.call_args
        assert args == (
            "profiles",
            {"user_id": "user-123", "plan_usage": 0, "monthly_limit": 10},
        )
        assert kwargs["returning"] == "id,plan_usage,monthly_limit"

    @pytest.mark.asyncio
    async def test_empty_insert_result_raises(
        self, service: UsageService, db: AsyncMock, user: AuthenticatedUser
    ) -> None:
        db.select.return_value = []
        db.insert.return_value = []

        with pytest.raises(DatabaseAppError) as exc_info:
            await service.get_or_create_profile(user)

        assert exc_info.value.code == "profile_create_failed"

    @pytest.mark.asyncio
    async def test_missing_limit_falls_back_to_default(
        self, service: UsageService, db: AsyncMock, user: AuthenticatedUser
    ) -> None:
        db.select.return_value = [{"id": 4, "plan_usage": None, "monthly_limit": None}]

        profile = await service.get_or_create_profile(user)

        assert profile.plan_usage == 0
        assert profile.monthly_limit == 10


class TestIncrementUsage:
    @pytest.mark.asyncio
    async def test_updates_profile_row(
        self, service: UsageService, db: AsyncMock, user: AuthenticatedUser
    ) -> None:
        ok = await service.increment_usage(user, Profile(id=4, plan_usage=3, monthly_limit=10))

        assert ok is True
        args, kwargs = db.update.call_args
        assert args == ("profiles", {"plan_usage": 4})
        assert kwargs["filters"] == {"id": "eq.4"}

    @pytest.mark.asyncio
    async def test_failed_update_is_reported_not_raised(
        self, service: UsageService, db: AsyncMock, user: AuthenticatedUser
    ) -> None:
        db.update.side_effect = DatabaseAppError(code="database_error", message="boom")

        ok = await service.increment_usage(user, Profile(id=4, plan_usage=3, monthly_limit=10))

        assert ok is False


class TestGetUsage:
    @pytest.mark.asyncio
    async def test_without_profile_reports_defaults(
        self, service: UsageService, db: AsyncMock, user: AuthenticatedUser
    ) -> None:
        db.select.return_value = []

        usage = await service.get_usage(user)

        assert usage.email == "owner@example.com"
        assert usage.current == 0
        assert usage.limit == 10
        assert usage.remaining == 10
        assert usage.percentage == 0
        assert not usage.near_limit
        assert not usage.at_limit
        db.insert.assert_not_called()

    @pytest.mark.asyncio
    async def test_near_limit_at_eighty_percent(
        self, service: UsageService, db: AsyncMock, user: AuthenticatedUser
    ) -> None:
        db.select.return_value = [{"id": 1, "plan_usage": 8, "monthly_limit": 10}]

        usage = await service.get_usage(user)

        assert usage.percentage == 80.0
        assert usage.near_limit
        assert not usage.at_limit
        assert usage.remaining == 2

    @pytest.mark.asyncio
    async def test_over_limit_is_capped(
        self, service: UsageService, db: AsyncMock, user: AuthenticatedUser
    ) -> None:
        db.select.return_value = [{"id": 1, "plan_usage": 12, "monthly_limit": 10}]

        usage = await service.get_usage(user)

        assert usage.percentage == 100.0
        assert usage.at_limit
        assert usage.remaining == 0

    @pytest.mark.asyncio
    async def test_percentage_is_rounded(
        self, service: UsageService, db: AsyncMock, user: AuthenticatedUser
    ) -> None:
        db.select.return_value = [{"id": 1, "plan_usage": 1, "monthly_limit": 3}]

        usage = await service.get_usage(user)

        assert usage.percentage == 33.33
