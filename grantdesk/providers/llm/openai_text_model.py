"""OpenAI-compatible text model adapter.

Wraps the ``openai`` async client to implement :class:`ITextAnalysisModel`
for one named model.  Gemini publishes an OpenAI-compatible chat endpoint,
so the same adapter serves ``gemini-2.5-flash`` and ``gemini-1.5-flash``
(one instance per model) as well as any other compatible server.

The rest of the app never imports ``openai``: SDK exceptions are mapped to
:class:`RateLimitError` (HTTP 429) and :class:`ModelInvocationError`
(everything else) here.
"""

from __future__ import annotations

import openai
import structlog

from grantdesk.config.settings import Settings
from grantdesk.interfaces.text_model import ITextAnalysisModel
from grantdesk.utils.errors import ModelInvocationError, RateLimitError

logger = structlog.get_logger(logger_name=__name__)


def build_client(settings: Settings) -> openai.AsyncOpenAI:
    """Create the shared async client for every configured text model."""
    client_kwargs: dict = {
        "api_key": settings.gemini_api_key or "unset",
        "timeout": openai.Timeout(settings.llm_timeout_s, connect=5.0),
        # Rate-limit retries are owned by AnalysisClient.
        "max_retries": 0,
    }
    if settings.llm_base_url:
        client_kwargs["base_url"] = settings.llm_base_url
    return openai.AsyncOpenAI(**client_kwargs)


class OpenAITextModel(ITextAnalysisModel):
    """A single chat-completions model behind ``invoke(prompt) -> text``.

    Parameters
    ----------
    settings:
        Supplies the API key, endpoint and timeout.
    model_name:
        Model identifier sent with every request.
    client:
        Optional pre-built client, shared between models of one endpoint.
    temperature:
        Sampling temperature; low by default because analysis output must
        be valid JSON.
    """

    def __init__(
        self,
        settings: Settings,
        model_name: str,
        client: openai.AsyncOpenAI | None = None,
        temperature: float = 0.2,
    ) -> None:
        self._api_key = settings.gemini_api_key
        self._client = client or build_client(settings)
        self._model = model_name
        self._temperature = temperature
        self._provider_label = "gemini" if "googleapis" in settings.llm_base_url else "openai-compatible"

    # ------------------------------------------------------------------
    # ITextAnalysisModel implementation
    # ------------------------------------------------------------------

    async def invoke(self, prompt: str) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self._temperature,
            )
        except openai.RateLimitError as exc:
            raise RateLimitError(
                message=f"{self._model} rate limited: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APITimeoutError as exc:
            raise ModelInvocationError(
                message=f"{self._model} timed out",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise ModelInvocationError(
                message=f"{self._model} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ModelInvocationError(
                message=f"{self._model} returned an empty response",
                provider_name=self.get_provider_name(),
            )

        logger.info(
            "text_model_completion",
            model=self._model,
            provider=self._provider_label,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    @property
    def model_name(self) -> str:
        return self._model

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        return bool(self._api_key)
