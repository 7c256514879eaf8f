from fastapi import APIRouter

from bizplan.api.dependencies import UsageServiceDep
from bizplan.core.auth import CurrentUser
from bizplan.schemas.usage import UsageResponse

router = APIRouter(tags=["Usage"])


@router.get("/usage", response_model=UsageResponse)
async def get_usage(user: CurrentUser, usage_service: UsageServiceDep) -> UsageResponse:
    """Report plans generated this month against the user's quota."""
    return await usage_service.get_usage(user)
