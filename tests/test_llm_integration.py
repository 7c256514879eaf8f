"""Integration tests for LLM adapter layer."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from bizplan.adapters.llm import OpenAIClient, create_llm_client
from bizplan.adapters.llm.factory import GROQ_BASE_URL
from bizplan.core.config import LLMSettings, settings
from bizplan.core.errors import ValidationAppError


class TestOpenAIClientIntegration:
    """Test OpenAI client integration with mocked API calls."""

    @pytest.mark.asyncio
    async def test_generate_json_success(self) -> None:
        """Test successful JSON generation from OpenAI client.
        
        Validates that the client correctly calls the API and parses JSON response.
        """
        # Mock response data
        mock_response = MagicMock()
        mock_response.choices = [
            MagicMock(
                message=MagicMock(
                    content='{"status": "success", "data": {"key": "value"}}'
                )
            )
        ]

        # Create client and patch the API call
        client = OpenAIClient(
            api_key="test-key-123",
            model="gpt-4o",
        )

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=mock_response,
        ):
            result = await client.generate_json(
                prompt="Generate test JSON",
                schema={"type": "object"},
                temperature=0.1,
            )

        # Assertions
        assert isinstance(result, dict)
        assert result["status"] == "success"
        assert result["data"]["key"] == "value"

    @pytest.mark.asyncio
    async def test_generate_json_with_schema_enforces_json_mode(self) -> None:
        """Test that providing schema enables JSON response format.
        
        Ensures response_format is set when schema parameter is provided.
        """
        mock_response = MagicMock()
        mock_response.choices = [
            MagicMock(message=MagicMock(content='{"result": "ok"}'))
        ]

        client = OpenAIClient(api_key="test-key", model="gpt-4o")

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=mock_response,
        ) as mock_create:
            await client.generate_json(
                prompt="Test",
                schema={"type": "object"},
            )

            # Verify response_format was set
            call_kwargs = mock_create.call_args.kwargs
            assert "response_format" in call_kwargs
            assert call_kwargs["response_format"] == {"type": "json_object"}

    @pytest.mark.asyncio
    async def test_generate_json_invalid_json_raises_error(self) -> None:
        """Test that invalid JSON response raises RuntimeError.
        
        Validates error handling when LLM returns malformed JSON.
        """
        mock_response = MagicMock()
        mock_response.choices = [
            MagicMock(message=MagicMock(content="This is not JSON"))
        ]

        client = OpenAIClient(api_key="test-key", model="gpt-4o")

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=mock_response,
        ):
            with pytest.raises(RuntimeError, match="invalid JSON"):
                await client.generate_json(prompt="Test")


    @pytest.mark.asyncio
    async def test_generate_json_sends_system_prompt(self) -> None:
        """Test that a custom system prompt replaces the JSON-only default."""
        mock_response = MagicMock()
        mock_response.choices = [MagicMock(message=MagicMock(content='{"ok": true}'))]

        client = OpenAIClient(api_key="test-key", model="llama-3.1-8b-instant", temperature=1.0)

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=mock_response,
        ) as mock_create:
            await client.generate_json(prompt="Plan", system_prompt="You are a strategist.")

            call_kwargs = mock_create.call_args.kwargs
            assert call_kwargs["messages"][0] == {"role": "system", "content": "You are a strategist."}
            assert call_kwargs["messages"][1] == {"role": "user", "content": "Plan"}
            assert call_kwargs["temperature"] == 1.0
            assert call_kwargs["stream"] is False
            assert "response_format" not in call_kwargs

    @pytest.mark.asyncio
    async def test_generate_json_non_object_raises_error(self) -> None:
        """Test that a JSON array is rejected; plans must be objects."""
        mock_response = MagicMock()
        mock_response.choices = [MagicMock(message=MagicMock(content='["a", "b"]'))]

        client = OpenAIClient(api_key="test-key", model="gpt-4o")

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=mock_response,
        ):
            with pytest.raises(RuntimeError, match="not an object"):
                await client.generate_json(prompt="Test")

    @pytest.mark.asyncio
    async def test_api_failure_raises_runtime_error(self) -> None:
        """Test that SDK exceptions are wrapped in RuntimeError."""
        client = OpenAIClient(api_key="test-key", model="gpt-4o")

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            side_effect=ConnectionError("network down"),
        ):
            with pytest.raises(RuntimeError, match="LLM API error"):
                await client.generate_json(prompt="Test")


class TestLLMFactory:
    """Test LLM client factory pattern."""

    def test_create_openai_client(self) -> None:
        """Test factory creates an OpenAI client from explicit settings."""
        client = create_llm_client(
            LLMSettings(
                provider="openai",
                api_key="test-key",
                model="gpt-4o-mini",
                base_url=None,
                timeout_seconds=30.0,
            )
        )

        assert isinstance(client, OpenAIClient)
        assert client.model == "gpt-4o-mini"

    def test_create_groq_client_uses_groq_endpoint(self) -> None:
        """Test that the groq provider points the OpenAI SDK at Groq."""
        client = create_llm_client(
            LLMSettings(provider="Groq", api_key="gsk-test", model="llama-3.1-8b-instant", base_url=None)
        )

        assert isinstance(client, OpenAIClient)
        assert str(client.client.base_url).rstrip("/") == GROQ_BASE_URL

    def test_explicit_base_url_wins(self) -> None:
        """Test that LLM_BASE_URL overrides the provider default."""
        client = create_llm_client(
            LLMSettings(
                provider="groq",
                api_key="gsk-test",
                model="llama-3.1-8b-instant",
                base_url="https://proxy.example.com/v1",
            )
        )

        assert str(client.client.base_url).rstrip("/") == "https://proxy.example.com/v1"

    def test_create_llm_client_missing_api_key_raises_error(self) -> None:
        """Test factory raises error when API key is missing."""
        with pytest.raises(ValidationAppError, match="requires LLM_API_KEY") as exc:
            create_llm_client(
                LLMSettings(provider="openai", api_key=None, model="gpt-4o", base_url=None)
            )
        assert exc.value.code == "llm_missing_api_key"

    def test_create_llm_client_unknown_provider_raises_error(self) -> None:
        """Test factory raises error for unknown provider."""
        with pytest.raises(ValidationAppError, match="Unknown LLM provider") as exc:
            create_llm_client(
                LLMSettings(provider="unknown-provider", api_key="test-key", model="gpt-4o")
            )
        assert exc.value.code == "llm_unknown_provider"

    def test_defaults_to_global_settings(self) -> None:
        """Test factory falls back to the process-wide settings."""
        client = create_llm_client()

        assert isinstance(client, OpenAIClient)
        assert client.model == settings.llm.model
