"""Pydantic schemas for marketing plan generation."""

from __future__ import annotations

import json
from typing import Any

from pydantic import Field, field_validator

from bizplan.schemas.common import CamelModel, text_or_none


class PlanRequest(CamelModel):
    """Inputs describing the business the plan is generated for."""

    niche: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Business niche (e.g., 'vegan bakery').",
    )
    audience: str | None = Field(
        default=None,
        max_length=500,
        description="Target audience; 'General public' is assumed when omitted.",
    )
    platform: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Social platform the plan targets (e.g., 'Instagram').",
    )
    goal: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Marketing goal (e.g., 'grow followers', 'drive sales').",
    )

    @field_validator("audience", mode="before")
    @classmethod
    def _blank_audience_is_none(cls, value: Any) -> str | None:
        return text_or_none(value)


def _schedule_item_to_text(item: Any) -> str:
    if isinstance(item, dict):
        if item.get("day") and item.get("task"):
            return f"{item['day']}: {item['task']}"
        return json.dumps(item)
    if isinstance(item, list):
        return json.dumps(item)
    return str(item)


class MarketingPlan(CamelModel):
    """A generated 7-day social media plan.

    Models do not always follow the requested shape, so fields are coerced:
    schedule entries become plain strings and a hashtag list becomes a
    space-separated string.
    """

    strategy: str = Field(
        default="",
        description="Strategy summary for the audience on the platform.",
    )
    schedule: list[str] = Field(
        default_factory=list,
        description="One actionable entry per day, e.g. 'Day 1: Post about X'.",
    )
    pro_tip: str = Field(
        default="",
        description="One insider tip for this niche on this platform.",
    )
    best_post_time: str = Field(
        default="",
        description="Suggested posting time slot (e.g., '7 PM - 9 PM').",
    )
    hashtags: str = Field(
        default="",
        description="5-10 relevant hashtags separated by spaces.",
    )

    @field_validator("schedule", mode="before")
    @classmethod
    def _normalize_schedule(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        if not isinstance(value, (list, tuple)):
            return [_schedule_item_to_text(value)]
        return [_schedule_item_to_text(item) for item in value]

    @field_validator("hashtags", mode="before")
    @classmethod
    def _normalize_hashtags(cls, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, (list, tuple)):
            return " ".join(str(tag) for tag in value)
        return str(value)

    @field_validator("strategy", "pro_tip", "best_post_time", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        return str(value)
