"""User feedback: store it, then notify the team by email."""

from __future__ import annotations

import html
import logging
from datetime import datetime, timezone

from bizplan.adapters.email import ResendClient
from bizplan.adapters.supabase import SupabaseClient
from bizplan.core.auth import AuthenticatedUser
from bizplan.core.errors import DatabaseAppError, EmailAppError, ValidationAppError
from bizplan.schemas.feedback import FeedbackRequest

logger = logging.getLogger(__name__)

NOT_SPECIFIED = "Not specified"


def parse_recipients(raw: str | None) -> list[str]:
    """Parse a comma-separated recipient list.

    Examples:
        >>> parse_recipients("a@x.io, b@x.io,,a@x.io")
        ['a@x.io', 'b@x.io']
        >>> parse_recipients(None)
        []
    """
    if not raw:
        return []

    recipients: list[str] = []
    for address in raw.split(","):
        address = address.strip()
        if address and address not in recipients:
            recipients.append(address)
    return recipients


def build_feedback_email(
    user: AuthenticatedUser,
    request: FeedbackRequest,
) -> tuple[str, str, str]:
    """Render the notification for one feedback entry.

    Every user-controlled value is HTML-escaped in the HTML body.

    Returns:
        Tuple of (subject, html_body, text_body).
    """
    subject = f"New Feedback: {request.niche or 'Unknown Niche'}"

    safe_text = html.escape(request.feedback_text)
    safe_niche = html.escape(request.niche) if request.niche else NOT_SPECIFIED
    safe_platform = html.escape(request.platform) if request.platform else NOT_SPECIFIED
    safe_email = html.escape(user.email) if user.email else "Not provided"
    safe_user_id = html.escape(user.id)

    html_body = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2>New BizPlan AI Feedback</h2>
  <p><strong>User ID:</strong> {safe_user_id}</p>
  <p><strong>Email:</strong> {safe_email}</p>
  <p><strong>Niche:</strong> {safe_niche}</p>
  <p><strong>Platform:</strong> {safe_platform}</p>
  <hr />
  <p><strong>Feedback:</strong></p>
  <p style="white-space: pre-wrap;">{safe_text}</p>
</div>
""".strip()

    text_body = (
        "New feedback received\n\n"
        f"User: {user.id} ({user.email or 'no email'})\n"
        f"Niche: {request.niche or NOT_SPECIFIED}\n"
        f"Platform: {request.platform or NOT_SPECIFIED}\n\n"
        f"Feedback:\n{request.feedback_text}"
    )
    return subject, html_body, text_body


class FeedbackService:
    """Validate, persist and forward user feedback.

    Attributes:
        db: Supabase client for the ``feedback`` table.
        mailer: Resend client, or None when email is not configured.
        sender: ``From`` address of notifications.
        recipients: Notification recipients; no email is sent when empty.
        max_chars: Maximum feedback length.
    """

    def __init__(
        self,
        db: SupabaseClient,
        mailer: ResendClient | None,
        *,
        sender: str,
        recipients: list[str],
        max_chars: int = 2000,
    ) -> None:
        self.db = db
        self.mailer = mailer
        self.sender = sender
        self.recipients = recipients
        self.max_chars = max_chars

    def _validate(self, request: FeedbackRequest) -> None:
        if not request.feedback_text:
            raise ValidationAppError(
                code="feedback_text_required",
                message="Missing required field: feedbackText",
            )
        if len(request.feedback_text) > self.max_chars:
            raise ValidationAppError(
                code="feedback_too_long",
                message="Feedback is too long",
                details={"max_value": self.max_chars, "actual_value": len(request.feedback_text)},
            )

    async def _notify(self, user: AuthenticatedUser, request: FeedbackRequest) -> bool:
        if self.mailer is None or not self.recipients:
            logger.debug("feedback.notification_skipped", extra={"reason": "email_not_configured"})
            return False

        subject, html_body, text_body = build_feedback_email(user, request)
        try:
            await self.mailer.send(
                sender=self.sender,
                to=self.recipients,
                subject=subject,
                html=html_body,
                text=text_body,
            )
        except EmailAppError as exc:
            logger.error(
                "feedback.notification_failed",
                extra={"error_code": exc.code, "error_message": exc.message},
            )
            return False
        return True

    async def submit_feedback(self, user: AuthenticatedUser, request: FeedbackRequest) -> bool:
        """Store feedback and send the notification email.

        Returns:
            Whether a notification email was sent.

        Raises:
            ValidationAppError: If the text is empty or too long.
            DatabaseAppError: If the feedback cannot be stored.
        """
        self._validate(request)

        try:
            await self.db.insert(
                "feedback",
                {
                    "user_id": user.id,
                    "user_email": user.email,
                    "feedback_text": request.feedback_text,
                    "niche": request.niche,
                    "platform": request.platform,
                    "created_at": datetime.now(timezone.utc).isoformat(),
                },
                access_token=user.access_token,
            )
        except DatabaseAppError as exc:
            raise DatabaseAppError(
                code="feedback_save_failed",
                message="Failed to save feedback",
                details=exc.details,
            ) from exc

        logger.info(
            "feedback.stored",
            extra={"chars": len(request.feedback_text), "has_niche": bool(request.niche)},
        )
        return await self._notify(user, request)
