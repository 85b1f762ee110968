"""OpenAI-compatible embedding provider adapter.

Wraps the ``openai`` async client to implement :class:`IEmbeddingProvider`.
By default the client points at Gemini's OpenAI-compatible endpoint and
uses ``text-embedding-004`` (768 dims); any other compatible server works
by changing ``LLM_BASE_URL`` / ``EMBEDDING_MODEL``.

HTTP 429 is surfaced as :class:`RateLimitError` so the caller's retry
policy can absorb it; every other API failure becomes
:class:`EmbeddingError`.
"""

from __future__ import annotations

import openai
import structlog

from grantdesk.config.settings import Settings
from grantdesk.interfaces.embedding_provider import IEmbeddingProvider
from grantdesk.utils.errors import EmbeddingError, RateLimitError

logger = structlog.get_logger(logger_name=__name__)

# Known embedding model dimensions; anything else uses the configured value.
_MODEL_DIMENSIONS: dict[str, int] = {
    "text-embedding-004": 768,
    "gemini-embedding-001": 3072,
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
}


class OpenAIEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by an OpenAI-compatible embeddings API."""

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.effective_embedding_api_key

        client_kwargs: dict = {
            "api_key": self._api_key or "unset",
            "timeout": openai.Timeout(settings.llm_timeout_s, connect=5.0),
            # Retries are owned by EmbeddingClient; the SDK's own retry
            # loop would hide 429s from it.
            "max_retries": 0,
        }
        if settings.llm_base_url:
            client_kwargs["base_url"] = settings.llm_base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._model = settings.embedding_model
        self._dimension = _MODEL_DIMENSIONS.get(self._model, settings.embedding_dimension)
        self._provider_label = "gemini_embedding" if "googleapis" in settings.llm_base_url else "openai_embedding"

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for one text."""
        try:
            response = await self._client.embeddings.create(input=[text], model=self._model)
        except openai.RateLimitError as exc:
            raise RateLimitError(
                message=f"{self._provider_label} rate limited: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise EmbeddingError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.data:
            raise EmbeddingError(
                message=f"{self._provider_label} returned no embedding",
                provider_name=self.get_provider_name(),
            )

        logger.debug(
            "embedding_generated",
            model=self._model,
            provider=self._provider_label,
            chars=len(text),
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return list(response.data[0].embedding)

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)
