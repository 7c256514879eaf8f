"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) and
owns the lifetime of shared resources: the rate limiter, the outbound HTTP
clients and the services built on them. Everything is kept on ``app.state``
and closed when the application shuts down.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from bizplan.adapters.email import ResendClient
from bizplan.adapters.llm.factory import create_llm_client
from bizplan.adapters.supabase import SupabaseClient
from bizplan.api.routes import (
    feedback_router,
    health_router,
    plans_router,
    templates_router,
    usage_router,
)
from bizplan.core.config import Settings, settings as default_settings
from bizplan.core.exception_handlers import setup_exception_handlers
from bizplan.core.logging import configure_logging
from bizplan.core.middleware import request_id_middleware
from bizplan.core.openapi import apply_openapi_customizations
from bizplan.core.rate_limit import build_rate_limiter
from bizplan.services.feedback_service import FeedbackService, parse_recipients
from bizplan.services.plan_service import PlanService
from bizplan.services.template_service import TemplateService
from bizplan.services.usage_service import UsageService

logger = logging.getLogger(__name__)


def _init_state(app: FastAPI, cfg: Settings) -> None:
    """Build shared clients and services onto ``app.state``."""
    app.state.settings = cfg
    app.state.rate_limiter = build_rate_limiter(cfg.app)

    app.state.supabase = SupabaseClient.from_settings(cfg.supabase)
    app.state.llm = create_llm_client(cfg.llm)
    app.state.mailer = ResendClient.from_settings(cfg.email)

    app.state.usage_service = UsageService(
        app.state.supabase,
        default_monthly_limit=cfg.app.default_monthly_limit,
    )
    app.state.plan_service = PlanService(app.state.llm, app.state.usage_service)
    app.state.template_service = TemplateService(
        app.state.supabase,
        max_name_chars=cfg.app.max_template_name_chars,
    )
    app.state.feedback_service = FeedbackService(
        app.state.supabase,
        app.state.mailer,
        sender=cfg.email.resend_from,
        recipients=parse_recipients(cfg.email.feedback_to_emails),
        max_chars=cfg.app.max_feedback_chars,
    )


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("app.startup", extra={"app_env": app.state.settings.app_env})
    try:
        yield
    finally:
        await app.state.supabase.close()
        await app.state.llm.close()
        if app.state.mailer is not None:
            await app.state.mailer.close()
        logger.info("app.shutdown")


def create_app(cfg: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        cfg: Settings to build from; defaults to the global settings.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    cfg = cfg or default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    app = FastAPI(
        title="BizPlan AI API",
        description=(
            "Generates 7-day social media marketing plans with an LLM, tracks "
            "each user's monthly quota, saves plans as templates and collects "
            "feedback. Requires a Supabase access token as a bearer token; plan "
            "generation is rate limited per user."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
        lifespan=_lifespan,
    )

    _init_state(app, cfg)

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(plans_router, prefix="/v1")
    app.include_router(usage_router, prefix="/v1")
    app.include_router(templates_router, prefix="/v1")
    app.include_router(feedback_router, prefix="/v1")
    app.include_router(health_router)

    # OpenAPI customizations (security scheme, tags, exemptions)
    apply_openapi_customizations(app)

    return app
