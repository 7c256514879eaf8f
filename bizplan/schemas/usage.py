"""Pydantic schemas for usage reporting."""

from __future__ import annotations

from pydantic import Field

from bizplan.schemas.common import CamelModel


class UsageResponse(CamelModel):
    """Monthly plan usage for the authenticated user."""

    email: str | None = Field(default=None, description="Account email, when known.")
    current: int = Field(..., ge=0, description="Plans generated this month.")
    limit: int = Field(..., ge=1, description="Monthly plan quota.")
    remaining: int = Field(..., ge=0, description="Plans left this month.")
    percentage: float = Field(
        ...,
        ge=0,
        le=100,
        description="Share of the quota used, capped at 100.",
    )
    near_limit: bool = Field(..., description="True from 80% of the quota.")
    at_limit: bool = Field(..., description="True once the quota is used up.")
