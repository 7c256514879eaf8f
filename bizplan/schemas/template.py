"""Pydantic schemas for saved plan templates."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from bizplan.schemas.common import CamelModel, text_or_empty


class TemplateCreateRequest(CamelModel):
    """A generated plan the user wants to keep under a name.

    Non-string values are treated as empty rather than rejected; the service
    enforces the name rules.
    """

    name: str = ""
    description: str = ""
    platform: str = ""
    niche: str = ""
    audience: str = ""
    goal: str = ""
    strategy: str = ""
    pro_tip: str = ""
    best_post_time: str = ""
    schedule: list[str] = Field(default_factory=list)
    hashtags: str = ""

    @field_validator(
        "name",
        "description",
        "platform",
        "niche",
        "audience",
        "goal",
        "strategy",
        "pro_tip",
        "best_post_time",
        "hashtags",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return text_or_empty(value)

    @field_validator("schedule", mode="before")
    @classmethod
    def _coerce_schedule(cls, value: Any) -> list[str]:
        if not isinstance(value, (list, tuple)):
            return []
        return [str(item) for item in value]


class TemplateCreateResponse(CamelModel):
    """Identifiers of a newly saved template."""

    success: bool = True
    template_id: str | int = Field(..., description="Identifier of the saved template.")
    created_at: str | None = Field(default=None, description="Creation timestamp.")
