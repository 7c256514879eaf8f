"""Shared API dependencies.

Services are built once by the app factory and kept on ``app.state``; these
providers hand them to routes so tests can replace them with
``app.dependency_overrides``.
"""

from typing import Annotated

from fastapi import Depends, Request

from bizplan.services.feedback_service import FeedbackService
from bizplan.services.plan_service import PlanService
from bizplan.services.template_service import TemplateService
from bizplan.services.usage_service import UsageService


def get_plan_service(request: Request) -> PlanService:
    return request.app.state.plan_service


def get_usage_service(request: Request) -> UsageService:
    return request.app.state.usage_service


def get_template_service(request: Request) -> TemplateService:
    return request.app.state.template_service


def get_feedback_service(request: Request) -> FeedbackService:
    return request.app.state.feedback_service


PlanServiceDep = Annotated[PlanService, Depends(get_plan_service)]
UsageServiceDep = Annotated[UsageService, Depends(get_usage_service)]
TemplateServiceDep = Annotated[TemplateService, Depends(get_template_service)]
FeedbackServiceDep = Annotated[FeedbackService, Depends(get_feedback_service)]
