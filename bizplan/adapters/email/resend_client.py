"""Resend email client over httpx."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from bizplan.core.config import EmailSettings
from bizplan.core.errors import EmailAppError

logger = logging.getLogger(__name__)


class ResendClient:
    """Send transactional email through the Resend HTTP API."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://api.resend.com",
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            },
            timeout=timeout_seconds,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, cfg: EmailSettings) -> "ResendClient | None":
        """Build a client, or None when no API key is configured."""
        if not cfg.resend_api_key:
            return None
        return cls(
            api_key=cfg.resend_api_key,
            base_url=cfg.resend_base_url,
            timeout_seconds=cfg.timeout_seconds,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def send(
        self,
        *,
        sender: str,
        to: list[str],
        subject: str,
        html: str,
        text: str | None = None,
    ) -> str | None:
        """Send one email.

        Args:
            sender: ``From`` address, optionally with a display name.
            to: Recipient addresses.
            subject: Subject line.
            html: HTML body.
            text: Optional plain-text body.

        Returns:
            The provider's message id, when returned.

        Raises:
            EmailAppError: If the request fails or Resend rejects it.
        """
        payload: dict[str, Any] = {
            "from": sender,
            "to": to,
            "subject": subject,
            "html": html,
        }
        if text is not None:
            payload["text"] = text

        try:
            response = await self._client.post("/emails", json=payload)
        except httpx.HTTPError as exc:
            raise EmailAppError(
                code="email_unavailable",
                message=f"Email provider request failed: {type(exc).__name__}",
            ) from exc

        if response.status_code >= 400:
            raise EmailAppError(
                code="email_rejected",
                message="Email provider rejected the message",
                details={"http_status": response.status_code},
            )

        body = response.json() if response.content else {}
        message_id = body.get("id") if isinstance(body, dict) else None
        logger.info(
            "email.sent",
            extra={"recipients": len(to), "message_id": message_id},
        )
        return message_id
