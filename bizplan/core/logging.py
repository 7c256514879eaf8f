"""Logging utilities with JSON formatting, scrubbing, and request correlation.

This module centralizes logging configuration, including:
- Context-aware request_id propagation via contextvars
- Scrubbing of log records: credentials and user content are redacted,
  user and profile identifiers are replaced by a short stable hash so events
  of one user can still be correlated
- JSON formatter for machine-friendly logs
- Configurable stdout/file handlers with rotation support
"""

from __future__ import annotations

import hashlib
import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging import LogRecord
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Mapping

from bizplan.core.config import LogSettings, settings

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

REDACTED = "[REDACTED]"

# Credentials and user-authored content: never logged
SENSITIVE_KEYS_DEFAULT: frozenset[str] = frozenset(
    {
        "api_key",
        "authorization",
        "token",
        "access_token",
        "anon_key",
        "resend_api_key",
        "llm_api_key",
        "secret",
        "password",
        "cookie",
        "set-cookie",
        "email",
        "user_email",
        "feedback_text",
        "prompt",
        "completion",
        "base_url",
    }
)

# Identifiers of people: logged as hash_identifier(value)
HASHED_KEYS_DEFAULT: frozenset[str] = frozenset({"user_id", "profile_id"})

# Set on records already scrubbed by ScrubbingFilter so the formatter does not
# hash identifiers twice
_SCRUBBED_FLAG = "_bizplan_scrubbed"

# Logging fields we intentionally exclude from extra payload capture
_EXCLUDED_ATTRS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "stack",
    "taskName",
}


def set_request_id(request_id: str | None) -> None:
    """Store the current request id in a context variable."""

    _request_id_var.set(request_id)


def get_request_id() -> str | None:
    """Fetch the current request id from context."""

    return _request_id_var.get()


def clear_request_id() -> None:
    """Clear any stored request id from context."""

    _request_id_var.set(None)


def hash_identifier(value: Any) -> str:
    """Short, stable, non-reversible fingerprint of an identifier.

    Examples:
        >>> hash_identifier("user-123") == hash_identifier("user-123")
        True
        >>> len(hash_identifier(42))
        16
    """

    return hashlib.sha256(str(value).encode()).hexdigest()[:16]


class RecordScrubber:
    """Redact or hash fields of log extras, recursing into dicts and lists.

    Keys are matched case-insensitively; a dash and an underscore are treated
    alike, so ``X-Api-Key`` matches ``x_api_key``.
    """

    def __init__(
        self,
        sensitive_keys: Iterable[str] | None = None,
        hashed_keys: Iterable[str] | None = None,
    ) -> None:
        self.sensitive_keys = {
            self._normalize(k) for k in (sensitive_keys or SENSITIVE_KEYS_DEFAULT)
        }
        self.hashed_keys = {self._normalize(k) for k in (hashed_keys or HASHED_KEYS_DEFAULT)}

    @staticmethod
    def _normalize(key: str) -> str:
        return key.lower().replace("-", "_")

    def _is_sensitive(self, key: str) -> bool:
        normalized = self._normalize(key)
        return normalized in self.sensitive_keys or normalized.endswith("_api_key")

    def scrub_field(self, key: str, value: Any) -> Any:
        """Return the loggable form of one field."""
        if self._is_sensitive(key):
            return REDACTED
        if self._normalize(key) in self.hashed_keys and value is not None:
            return hash_identifier(value)
        return self.scrub_value(value)

    def scrub_value(self, value: Any) -> Any:
        if isinstance(value, Mapping):
            return {k: self.scrub_field(str(k), v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return type(value)(self.scrub_value(v) for v in value)
        return value

    def record_extras(self, record: LogRecord, *, scrub: bool = True) -> dict[str, Any]:
        """Collect the ``extra`` fields of a record, scrubbed unless told otherwise."""
        data: dict[str, Any] = {}
        for key, value in record.__dict__.items():
            if key in _EXCLUDED_ATTRS or key.startswith("_"):
                continue
            data[key] = self.scrub_field(key, value) if scrub else value
        return data


def _default_timestamp() -> str:
    """Generate an ISO-8601 UTC timestamp string."""

    return datetime.now(timezone.utc).isoformat()


class RequestIdFilter(logging.Filter):
    """Attach request_id from context when absent on the record."""

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        if getattr(record, "request_id", None) is None:
            request_id = get_request_id()
            if request_id:
                record.request_id = request_id
        return True


class ScrubbingFilter(logging.Filter):
    """Scrub the record in place so every formatter sees safe values."""

    def __init__(self, scrubber: RecordScrubber | None = None) -> None:
        super().__init__()
        self.scrubber = scrubber or RecordScrubber()

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        if getattr(record, _SCRUBBED_FLAG, False):
            return True
        for key, value in self.scrubber.record_extras(record).items():
            setattr(record, key, value)
        setattr(record, _SCRUBBED_FLAG, True)
        return True


class JsonFormatter(logging.Formatter):
    """Format LogRecord as JSON; scrubs records that bypassed ScrubbingFilter."""

    def __init__(
        self,
        *,
        scrubber: RecordScrubber | None = None,
        ensure_ascii: bool = True,
    ) -> None:
        super().__init__()
        self.scrubber = scrubber or RecordScrubber()
        self.ensure_ascii = ensure_ascii

    def format(self, record: LogRecord) -> str:  # noqa: D401
        record_data = {
            "timestamp": _default_timestamp(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", None) or get_request_id()
        if request_id:
            record_data["request_id"] = request_id

        already_scrubbed = getattr(record, _SCRUBBED_FLAG, False)
        record_data.update(self.scrubber.record_extras(record, scrub=not already_scrubbed))

        if record.exc_info:
            record_data["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(record_data, default=str, ensure_ascii=self.ensure_ascii)


def _build_handler(log_settings: LogSettings) -> logging.Handler:
    """Construct the logging handler based on configuration.

    Args:
        log_settings: Resolved logging settings from environment.

    Returns:
        Configured logging handler (stdout or rotating file).
    """

    if log_settings.output.lower() == "file":
        file_path = Path(log_settings.file_path or "logs/bizplan.log")
        file_path.parent.mkdir(parents=True, exist_ok=True)
        if log_settings.max_bytes:
            return RotatingFileHandler(
                file_path,
                maxBytes=log_settings.max_bytes,
                backupCount=log_settings.backup_count,
                encoding="utf-8",
            )
        return logging.FileHandler(file_path, encoding="utf-8")

    return logging.StreamHandler(sys.stdout)


def configure_logging(log_settings: LogSettings | None = None) -> None:
    """Configure root logger with JSON formatter and scrubbing.

    Args:
        log_settings: Optional log settings; defaults to global settings if omitted.
    """

    cfg = log_settings or settings.log

    level = getattr(logging, cfg.level.upper(), logging.INFO)
    handler = _build_handler(cfg)
    scrubber = RecordScrubber()

    handler.addFilter(RequestIdFilter())
    handler.addFilter(ScrubbingFilter(scrubber))

    if cfg.format.lower() == "plain":
        formatter: logging.Formatter = logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s"
        )
    else:
        formatter = JsonFormatter(scrubber=scrubber)

    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Avoid double logging from uvicorn if it gets re-configured
    logging.getLogger("uvicorn").propagate = False
    logging.getLogger("uvicorn.access").propagate = False

    # httpx logs full request URLs at INFO, which include PostgREST filters on user ids
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
