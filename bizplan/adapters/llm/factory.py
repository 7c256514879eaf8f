"""Factory pattern for creating LLM client instances."""

from bizplan.adapters.llm.base import AbstractLLMClient
from bizplan.adapters.llm.openai_client import OpenAIClient
from bizplan.core.config import LLMSettings, settings
from bizplan.core.errors import ValidationAppError

GROQ_BASE_URL = "https://api.groq.com/openai/v1"

# Providers speaking the OpenAI chat completions protocol, with their default endpoint
_OPENAI_COMPATIBLE: dict[str, str | None] = {
    "openai": None,
    "groq": GROQ_BASE_URL,
}


def create_llm_client(llm_settings: LLMSettings | None = None) -> AbstractLLMClient:
    """Factory function to instantiate LLM clients based on provider.

    Reads configuration from bizplan.core.config.settings unless explicit
    settings are passed. Validates provider-specific requirements and routes
    to the appropriate client.

    Returns:
        AbstractLLMClient: Configured LLM client instance.

    Raises:
        ValidationAppError: If provider-specific requirements are not met.
    """
    cfg = llm_settings or settings.llm
    provider = cfg.provider.lower()

    if provider in _OPENAI_COMPATIBLE:
        if not cfg.api_key:
            raise ValidationAppError(
                code="llm_missing_api_key",
                message=f"{provider} provider requires LLM_API_KEY environment variable",
            )
        return OpenAIClient(
            api_key=cfg.api_key,
            model=cfg.model,
            base_url=cfg.base_url or _OPENAI_COMPATIBLE[provider],
            timeout_seconds=cfg.timeout_seconds,
            temperature=cfg.temperature,
        )

    supported = ", ".join(sorted(_OPENAI_COMPATIBLE))
    raise ValidationAppError(
        code="llm_unknown_provider",
        message=(
            f"Unknown LLM provider: '{provider}'. Supported providers: {supported}"
        ),
    )
