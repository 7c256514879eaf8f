"""Marketing plan generation: quota, prompt, LLM call, normalization.

The pipeline for one request:
- Load (or create) the caller's quota profile and refuse when it is used up
- Build the prompt and ask the LLM for a JSON plan
- Validate and normalize the plan into MarketingPlan
- Count the generation against the quota
"""

import logging
from typing import Any

from pydantic import ValidationError

from bizplan.adapters.llm.base import AbstractLLMClient
from bizplan.core.auth import AuthenticatedUser
from bizplan.core.errors import LLMAppError, QuotaExceededAppError
from bizplan.schemas.plan import MarketingPlan, PlanRequest
from bizplan.services.usage_service import UsageService

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a senior social media marketing strategist."
DEFAULT_AUDIENCE = "General public"


def build_prompt(request: PlanRequest) -> str:
    """Build the user prompt for a 7-day plan.

    Args:
        request: Validated plan inputs.

    Returns:
        Prompt string asking for a JSON object with the MarketingPlan keys.
    """
    audience = request.audience or DEFAULT_AUDIENCE
    audience_hint = request.audience or "audience"
    audience_slot = request.audience or "your audience"

    return f"""
Niche: {request.niche}
Target Audience: {audience}
Platform: {request.platform}
Goal: {request.goal}

TASK: Create a 7-Day Social Media Plan.

Output Sections:
1. Strategy Summary:
   - Focus on how to appeal to this {audience_hint} on {request.platform}.

2. Weekly Schedule (7 Days):
   - Each day must be actionable.
   - Provide as a simple array of strings, not objects.
   - Example: ["Day 1: Post about X", "Day 2: Create Y"]
   - DO NOT use objects with day/task keys.

3. Pro Tip:
   - Give ONE specific insider secret or psychology hack for this niche on this platform.

4. Best Time to Post:
   - Suggest ideal time slot to post on {request.platform} for {audience_slot} to achieve goal {request.goal}.
   - Example format: "7 PM - 9 PM" or "Weekdays 9 AM".

5. Viral Hashtags:
   - 5-10 relevant hashtags.

Return ONLY raw JSON with this EXACT structure:
{{
  "strategy": "Summary text...",
  "schedule": ["Day 1: task...", "Day 2: task..."],
  "proTip": "Secret tip here...",
  "bestPostTime": "Time slot here...",
  "hashtags": "#tag1 #tag2"
}}
""".strip()


class PlanService:
    """Service generating marketing plans within the user's monthly quota.

    Attributes:
        llm: LLM client adapter for generating structured JSON.
        usage: Quota service backed by the profiles table.
    """

    def __init__(self, llm: AbstractLLMClient, usage: UsageService) -> None:
        self.llm = llm
        self.usage = usage

    async def _generate(self, request: PlanRequest) -> MarketingPlan:
        """Call the LLM and validate its answer.

        Raises:
            LLMAppError: If the call fails or the answer is not a usable plan.
        """
        prompt = build_prompt(request)
        schema: dict[str, Any] = MarketingPlan.model_json_schema(by_alias=True)

        try:
            raw_response = await self.llm.generate_json(
                prompt,
                system_prompt=SYSTEM_PROMPT,
                schema=schema,
            )
        except RuntimeError as exc:
            logger.error(
                "plan.llm_failed",
                extra={"error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            raise LLMAppError(code="invalid_ai_response", message="Invalid AI Response") from exc

        try:
            return MarketingPlan.model_validate(raw_response)
        except ValidationError as exc:
            logger.error(
                "plan.invalid_shape",
                extra={"error_count": exc.error_count()},
            )
            raise LLMAppError(code="invalid_ai_response", message="Invalid AI Response") from exc

    async def generate_plan(
        self,
        user: AuthenticatedUser,
        request: PlanRequest,
    ) -> MarketingPlan:
        """Generate a plan for the user and count it against their quota.

        Args:
            user: Authenticated caller.
            request: Validated plan inputs.

        Returns:
            The normalized plan.

        Raises:
            QuotaExceededAppError: If the monthly quota is used up.
            LLMAppError: If the LLM call fails or returns an unusable plan.
            DatabaseAppError: If the profile cannot be read or created.
        """
        profile = await self.usage.get_or_create_profile(user)

        if profile.exhausted:
            logger.info(
                "plan.quota_exhausted",
                extra={"plan_usage": profile.plan_usage, "monthly_limit": profile.monthly_limit},
            )
            raise QuotaExceededAppError(
                code="monthly_limit_reached",
                message="Monthly limit reached. Upgrade to Pro for more.",
                details={
                    "current_usage": profile.plan_usage,
                    "monthly_limit": profile.monthly_limit,
                },
            )

        plan = await self._generate(request)
        await self.usage.increment_usage(user, profile)

        logger.info(
            "plan.generated",
            extra={
                "platform": request.platform,
                "schedule_items": len(plan.schedule),
            },
        )
        return plan
