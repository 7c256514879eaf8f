"""Monthly plan quota stored on the user's profile row."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from bizplan.adapters.supabase import SupabaseClient, eq
from bizplan.core.auth import AuthenticatedUser
from bizplan.core.errors import DatabaseAppError
from bizplan.schemas.usage import UsageResponse

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = "id,plan_usage,monthly_limit"
NEAR_LIMIT_PERCENT = 80.0


@dataclass(frozen=True)
class Profile:
    """Quota state of one user."""

    id: Any
    plan_usage: int
    monthly_limit: int

    @property
    def exhausted(self) -> bool:
        return self.plan_usage >= self.monthly_limit


class UsageService:
    """Read, create and increment quota profiles.

    Attributes:
        db: Supabase client used for the ``profiles`` table.
        default_monthly_limit: Quota assigned to new profiles and used when a
            stored limit is missing.
    """

    def __init__(self, db: SupabaseClient, *, default_monthly_limit: int = 10) -> None:
        self.db = db
        self.default_monthly_limit = default_monthly_limit

    def _to_profile(self, row: dict[str, Any]) -> Profile:
        return Profile(
            id=row.get("id"),
            plan_usage=int(row.get("plan_usage") or 0),
            monthly_limit=int(row.get("monthly_limit") or self.default_monthly_limit),
        )

    async def find_profile(self, user: AuthenticatedUser) -> Profile | None:
        """Return the user's profile, or None if they have none yet.

        Duplicate rows are tolerated: the first one wins and a warning is
        logged.
        """
        rows = await self.db.select(
            "profiles",
            columns=PROFILE_COLUMNS,
            filters={"user_id": eq(user.id)},
            access_token=user.access_token,
        )
        if not rows:
            return None

        if len(rows) > 1:
            logger.warning(
                "usage.duplicate_profiles",
                extra={"profile_count": len(rows), "profile_id": rows[0].get("id")},
            )
        return self._to_profile(rows[0])

    async def get_or_create_profile(self, user: AuthenticatedUser) -> Profile:
        """Return the user's profile, creating an empty one on first use.

        Raises:
            DatabaseAppError: If the profile cannot be read or created.
        """
        profile = await self.find_profile(user)
        if profile is not None:
            return profile

        logger.info("usage.profile_created", extra={"monthly_limit": self.default_monthly_limit})
        created = await self.db.insert(
            "profiles",
            {
                "user_id": user.id,
                "plan_usage": 0,
                "monthly_limit": self.default_monthly_limit,
            },
            returning=PROFILE_COLUMNS,
            access_token=user.access_token,
        )
        if not created:
            raise DatabaseAppError(
                code="profile_create_failed",
                message="Failed to create user profile",
                details={"table": "profiles"},
            )
        return self._to_profile(created[0])

    async def increment_usage(self, user: AuthenticatedUser, profile: Profile) -> bool:
        """Record one generated plan against the profile.

        A failed update is logged and reported as False; the plan has already
        been produced, so the request is not failed for it.
        """
        new_usage = profile.plan_usage + 1
        try:
            await self.db.update(
                "profiles",
                {"plan_usage": new_usage},
                filters={"id": eq(profile.id)},
                access_token=user.access_token,
            )
        except DatabaseAppError as exc:
            logger.error(
                "usage.increment_failed",
                extra={"profile_id": profile.id, "error_code": exc.code},
            )
            return False

        logger.info(
            "usage.incremented",
            extra={"profile_id": profile.id, "plan_usage": new_usage},
        )
        return True

    async def get_usage(self, user: AuthenticatedUser) -> UsageResponse:
        """Summarize the user's quota without creating a profile."""
        profile = await self.find_profile(user)
        current = profile.plan_usage if profile else 0
        limit = profile.monthly_limit if profile else self.default_monthly_limit

        percentage = min(current / limit * 100, 100.0)
        return UsageResponse(
            email=user.email,
            current=current,
            limit=limit,
            remaining=max(0, limit - current),
            percentage=round(percentage, 2),
            near_limit=percentage >= NEAR_LIMIT_PERCENT,
            at_limit=percentage >= 100.0,
        )
