from __future__ import annotations

from bizplan.api.routes.feedback import router as feedback_router
from bizplan.api.routes.health import router as health_router
from bizplan.api.routes.plans import router as plans_router
from bizplan.api.routes.templates import router as templates_router
from bizplan.api.routes.usage import router as usage_router

__all__ = [
    "feedback_router",
    "health_router",
    "plans_router",
    "templates_router",
    "usage_router",
]
