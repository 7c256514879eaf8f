"""Saved plan templates."""

from __future__ import annotations

import logging

from bizplan.adapters.supabase import SupabaseClient, eq
from bizplan.core.auth import AuthenticatedUser
from bizplan.core.errors import ConflictAppError, DatabaseAppError, ValidationAppError
from bizplan.schemas.template import TemplateCreateRequest, TemplateCreateResponse

logger = logging.getLogger(__name__)


class TemplateService:
    """Persist generated plans under user-chosen, per-user unique names."""

    def __init__(self, db: SupabaseClient, *, max_name_chars: int = 255) -> None:
        self.db = db
        self.max_name_chars = max_name_chars

    def _validate_name(self, name: str) -> None:
        if not name:
            raise ValidationAppError(
                code="template_name_required",
                message="Template name is required",
            )
        if len(name) > self.max_name_chars:
            raise ValidationAppError(
                code="template_name_too_long",
                message=f"Template name must be {self.max_name_chars} characters or less",
                details={"max_value": self.max_name_chars, "actual_value": len(name)},
            )

    async def _name_taken(self, user: AuthenticatedUser, name: str) -> bool:
        rows = await self.db.select(
            "templates",
            columns="id",
            filters={"user_id": eq(user.id), "name": eq(name)},
            limit=1,
            access_token=user.access_token,
        )
        return bool(rows)

    async def create_template(
        self,
        user: AuthenticatedUser,
        request: TemplateCreateRequest,
    ) -> TemplateCreateResponse:
        """Save a template for the user.

        Raises:
            ValidationAppError: If the name is empty or too long.
            ConflictAppError: If the user already has a template with this name.
            DatabaseAppError: If the lookup or insert fails.
        """
        self._validate_name(request.name)

        if await self._name_taken(user, request.name):
            raise ConflictAppError(
                code="template_name_taken",
                message="A template with this name already exists",
            )

        row = {
            "user_id": user.id,
            "name": request.name,
            "description": request.description or None,
            "platform": request.platform,
            "niche": request.niche,
            "audience": request.audience or None,
            "goal": request.goal or None,
            "strategy": request.strategy,
            "pro_tip": request.pro_tip or None,
            "best_post_time": request.best_post_time or None,
            "schedule": request.schedule,
            "hashtags": request.hashtags or None,
        }

        try:
            created = await self.db.insert(
                "templates",
                row,
                returning="id,created_at",
                access_token=user.access_token,
            )
        except DatabaseAppError as exc:
            raise DatabaseAppError(
                code="template_save_failed",
                message="Failed to save template",
                details=exc.details,
            ) from exc

        if not created:
            raise DatabaseAppError(
                code="template_save_failed",
                message="Failed to save template",
                details={"table": "templates"},
            )

        template = created[0]
        logger.info(
            "template.created",
            extra={"template_id": template.get("id"), "schedule_items": len(request.schedule)},
        )
        return TemplateCreateResponse(
            template_id=template["id"],
            created_at=template.get("created_at"),
        )
