"""OpenAI-compatible LLM client adapter (OpenAI, Groq)."""

import json
from typing import Any

from openai import AsyncOpenAI

from bizplan.adapters.llm.base import AbstractLLMClient

DEFAULT_SYSTEM_PROMPT = "Output JSON only. No extra text or markdown formatting."


class OpenAIClient(AbstractLLMClient):
    """Client for calling chat completions and returning JSON.

    Uses the official OpenAI Python SDK with async support. Any provider that
    implements the OpenAI chat completions API (e.g. Groq) works by pointing
    ``base_url`` at it.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout_seconds: float = 45.0,
        temperature: float = 1.0,
    ) -> None:
        """Initialize the async client.

        Args:
            api_key: Provider API key.
            model: Model name (e.g., "llama-3.1-8b-instant", "gpt-4o-mini").
            base_url: Optional custom base URL.
            timeout_seconds: Timeout for requests in seconds.
            temperature: Default sampling temperature.
        """
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
        )
        self.model = model
        self.temperature = temperature

    async def close(self) -> None:
        await self.client.close()

    async def generate_json(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        schema: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Generate structured JSON using chat completions.

        Args:
            prompt: User prompt to send to the model.
            system_prompt: System message; defaults to a JSON-only instruction.
            schema: Optional JSON schema (switches on json_object mode).
            **kwargs: Provider options (temperature, max_tokens, top_p, etc.).

        Returns:
            dict[str, Any]: Parsed JSON object from the LLM response.

        Raises:
            RuntimeError: If the API call fails or the response is not a JSON object.
        """
        messages = [
            {
                "role": "system",
                "content": system_prompt or DEFAULT_SYSTEM_PROMPT,
            },
            {"role": "user", "content": prompt},
        ]

        temperature = kwargs.pop("temperature", self.temperature)

        request_params: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "stream": False,
        }

        if schema is not None:
            request_params["response_format"] = {"type": "json_object"}

        allowed_params = {
            "max_tokens",
            "top_p",
            "frequency_penalty",
            "presence_penalty",
            "seed",
        }
        for param in allowed_params:
            if param in kwargs:
                request_params[param] = kwargs[param]

        try:
            response = await self.client.chat.completions.create(**request_params)
            content = response.choices[0].message.content

            if content is None:
                raise RuntimeError("LLM returned empty response")

            content = content.strip()

        except Exception as exc:
            raise RuntimeError(f"LLM API error: {str(exc)}") from exc

        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as exc:
            raise RuntimeError(
                f"LLM returned invalid JSON: {str(exc)}; "
                "consider using stricter prompts or schema enforcement"
            ) from exc

        if not isinstance(parsed, dict):
            raise RuntimeError("LLM returned JSON that is not an object")
        return parsed
