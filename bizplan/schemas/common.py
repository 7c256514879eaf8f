"""Shared base model for API payloads."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Model exchanged with the dashboard as camelCase JSON.

    Python code uses snake_case attribute names; either spelling is accepted
    on input and responses are serialized with the camelCase aliases.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


def text_or_empty(value: Any) -> str:
    """Keep strings (trimmed); anything else becomes an empty string."""
    return value.strip() if isinstance(value, str) else ""


def text_or_none(value: Any) -> str | None:
    """Keep non-blank strings (trimmed); anything else becomes None."""
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
