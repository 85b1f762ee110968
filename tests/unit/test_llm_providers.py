"""Unit tests for the OpenAI-compatible text model adapter."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from grantdesk.config.settings import Settings
from grantdesk.providers.llm.openai_text_model import OpenAITextModel, build_client
from grantdesk.utils.errors import ModelInvocationError, RateLimitError


def _settings(**overrides) -> Settings:
    defaults = {"gemini_api_key": "test-key"}
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


def _completion(content: str | None) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    response.usage = MagicMock(total_tokens=120)
    return response


class TestBuildClient:
    def test_uses_configured_endpoint(self) -> None:
        with patch("grantdesk.providers.llm.openai_text_model.openai.AsyncOpenAI") as mock_cls:
            build_client(_settings(llm_base_url="http://localhost:8080/v1"))

        kwargs = mock_cls.call_args.kwargs
        assert kwargs["base_url"] == "http://localhost:8080/v1"
        assert kwargs["api_key"] == "test-key"
        assert kwargs["max_retries"] == 0


class TestOpenAITextModel:
    @pytest.mark.asyncio
    async def test_invoke_returns_content(self) -> None:
        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_completion('{"title": "x"}'))

        model = OpenAITextModel(_settings(), "gemini-2.5-flash", client=mock_client)
        reply = await model.invoke("분석해 주세요")

        assert reply == '{"title": "x"}'
        call_kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert call_kwargs["model"] == "gemini-2.5-flash"
        assert call_kwargs["messages"] == [{"role": "user", "content": "분석해 주세요"}]

    @pytest.mark.asyncio
    async def test_rate_limit_is_mapped(self) -> None:
        request = httpx.Request("POST", "https://example.invalid/chat/completions")
        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(
            side_effect=openai.RateLimitError(
                message="quota", response=httpx.Response(429, request=request), body=None
            )
        )

        model = OpenAITextModel(_settings(), "gemini-2.5-flash", client=mock_client)
        with pytest.raises(RateLimitError):
            await model.invoke("prompt")

    @pytest.mark.asyncio
    async def test_api_error_is_mapped(self) -> None:
        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(
            side_effect=openai.APIError(message="server error", request=MagicMock(), body=None)
        )

        model = OpenAITextModel(_settings(), "gemini-1.5-flash", client=mock_client)
        with pytest.raises(ModelInvocationError, match="gemini-1.5-flash"):
            await model.invoke("prompt")

    @pytest.mark.asyncio
    async def test_empty_content_is_an_error(self) -> None:
        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_completion(""))

        model = OpenAITextModel(_settings(), "gemini-2.5-flash", client=mock_client)
        with pytest.raises(ModelInvocationError):
            await model.invoke("prompt")

    def test_metadata(self) -> None:
        model = OpenAITextModel(_settings(), "gemini-2.5-flash", client=AsyncMock())
        assert model.model_name == "gemini-2.5-flash"
        assert model.get_provider_name() == "gemini"
        assert model.is_available() is True

    def test_unavailable_without_key(self) -> None:
        model = OpenAITextModel(_settings(gemini_api_key=""), "gemini-2.5-flash", client=AsyncMock())
        assert model.is_available() is False
