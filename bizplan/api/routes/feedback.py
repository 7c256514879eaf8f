from fastapi import APIRouter

from bizplan.api.dependencies import FeedbackServiceDep
from bizplan.core.auth import CurrentUser
from bizplan.schemas.feedback import FeedbackRequest, FeedbackResponse

router = APIRouter(tags=["Feedback"])


@router.post("/feedback", response_model=FeedbackResponse)
async def submit_feedback(
    payload: FeedbackRequest,
    user: CurrentUser,
    feedback_service: FeedbackServiceDep,
) -> FeedbackResponse:
    """Store feedback and forward it to the team by email.

    Email delivery problems are logged and do not fail the request.
    """
    await feedback_service.submit_feedback(user, payload)
    return FeedbackResponse()
