from fastapi import APIRouter

from bizplan.api.dependencies import TemplateServiceDep
from bizplan.core.auth import CurrentUser
from bizplan.schemas.template import TemplateCreateRequest, TemplateCreateResponse

router = APIRouter(tags=["Templates"])


@router.post("/templates", response_model=TemplateCreateResponse)
async def create_template(
    payload: TemplateCreateRequest,
    user: CurrentUser,
    template_service: TemplateServiceDep,
) -> TemplateCreateResponse:
    """Save a generated plan as a named template.

    Raises:
        ValidationAppError: 400 when the name is missing or too long.
        ConflictAppError: 409 when the name is already used by this user.
    """
    return await template_service.create_template(user, payload)
