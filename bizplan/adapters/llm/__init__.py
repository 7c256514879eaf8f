"""LLM adapter layer - abstracts over multiple LLM providers."""

from bizplan.adapters.llm.base import AbstractLLMClient
from bizplan.adapters.llm.factory import create_llm_client
from bizplan.adapters.llm.openai_client import OpenAIClient

__all__ = [
    "AbstractLLMClient",
    "OpenAIClient",
    "create_llm_client",
]
