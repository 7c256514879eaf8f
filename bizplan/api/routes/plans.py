from fastapi import APIRouter, Depends

from bizplan.api.dependencies import PlanServiceDep
from bizplan.core.auth import CurrentUser
from bizplan.core.rate_limit import enforce_rate_limit
from bizplan.schemas.plan import MarketingPlan, PlanRequest

router = APIRouter(tags=["Plans"])


@router.post(
    "/plans/generate",
    response_model=MarketingPlan,
    dependencies=[Depends(enforce_rate_limit)],
)
async def generate_plan(
    payload: PlanRequest,
    user: CurrentUser,
    plan_service: PlanServiceDep,
) -> MarketingPlan:
    """Generate a 7-day social media plan.

    Rate limited per user and counted against the monthly quota.

    Args:
        payload: Niche, audience, platform and goal.
        user: Authenticated caller.
        plan_service: Plan generation service.

    Returns:
        MarketingPlan: strategy, schedule, pro tip, best post time and hashtags.

    Raises:
        HTTPException: 429 when the per-minute rate limit is exceeded.
        QuotaExceededAppError: 429 when the monthly quota is used up.
        LLMAppError: 500 when the model fails or answers with an unusable plan.
    """
    return await plan_service.generate_plan(user, payload)
