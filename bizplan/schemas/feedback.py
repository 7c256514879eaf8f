"""Pydantic schemas for user feedback."""

from __future__ import annotations

from typing import Any

from pydantic import field_validator

from bizplan.schemas.common import CamelModel, text_or_empty, text_or_none


class FeedbackRequest(CamelModel):
    """Free-text feedback, optionally tied to the plan context it was written in."""

    feedback_text: str = ""
    niche: str | None = None
    platform: str | None = None

    @field_validator("feedback_text", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return text_or_empty(value)

    @field_validator("niche", "platform", mode="before")
    @classmethod
    def _coerce_optional(cls, value: Any) -> str | None:
        return text_or_none(value)


class FeedbackResponse(CamelModel):
    success: bool = True
