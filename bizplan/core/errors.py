"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    code: str
    message: str
    hint: str
    max_value: int
    actual_value: int
    http_status: int
    retry_after: float
    current_usage: int
    monthly_limit: int
    table: str
    field: str
    model: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class AuthenticationAppError(AppError):
    """Raised when the caller cannot be authenticated."""


class ConflictAppError(AppError):
    """Raised when a write would duplicate an existing resource."""


class QuotaExceededAppError(AppError):
    """Raised when the user's monthly plan quota is exhausted."""


class LLMAppError(AppError):
    """Raised when LLM provider/client operations fail."""


class DatabaseAppError(AppError):
    """Raised when the persistence backend rejects or fails a request."""


class EmailAppError(AppError):
    """Raised when the email provider rejects or fails a send."""
