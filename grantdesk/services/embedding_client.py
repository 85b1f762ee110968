"""Rate-limit-resilient embedding generation.

Wraps an :class:`IEmbeddingProvider` with the shared retry policy: a 429
from the provider is retried up to three attempts in total with
``attempt * 2 s`` backoff; any other error fails immediately.  Batches are
embedded strictly one text at a time, in order.  Sequential calls keep the
request rate predictable under the provider's per-minute quota at the cost
of ingestion time growing linearly with chunk count.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence

import structlog

from grantdesk.interfaces.embedding_provider import IEmbeddingProvider
from grantdesk.utils.cancellation import CancellationToken
from grantdesk.utils.errors import EmbeddingError, RateLimitError
from grantdesk.utils.logging import get_logger
from grantdesk.utils.retry import DEFAULT_BACKOFF_S, DEFAULT_MAX_ATTEMPTS, retry_on_rate_limit
from grantdesk.utils.vectors import cosine_similarity, ensure_uniform_dimension


class EmbeddingClient:
    """Embeds single texts and ordered batches.

    Parameters
    ----------
    provider:
        The underlying embedding adapter.
    max_attempts:
        Total attempts per text when rate-limited.
    backoff_s:
        Base backoff; attempt *n* waits ``n * backoff_s``.
    sleep:
        Awaitable sleep, injectable for tests.
    """

    def __init__(
        self,
        provider: IEmbeddingProvider,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_s: float = DEFAULT_BACKOFF_S,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._provider = provider
        self._max_attempts = max_attempts
        self._backoff_s = backoff_s
        self._sleep = sleep
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def provider_name(self) -> str:
        return self._provider.get_provider_name()

    @property
    def dimension(self) -> int:
        return self._provider.get_dimension()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def embed(self, text: str, token: CancellationToken | None = None) -> list[float]:
        """Embed one text.

        Raises
        ------
        EmbeddingError
            The provider failed for a non-rate-limit reason, or every
            attempt was rate-limited (``"exhausted retries"``).
        OperationCancelledError
            *token* tripped before or between attempts.
        """
        provider_name = self._provider.get_provider_name()

        def _exhausted(exc: RateLimitError) -> EmbeddingError:
            return EmbeddingError(
                message=f"exhausted retries after {self._max_attempts} rate-limited attempts",
                provider_name=provider_name,
            )

        return await retry_on_rate_limit(
            lambda: self._provider.embed_single(text),
            operation="embedding",
            on_exhausted=_exhausted,
            max_attempts=self._max_attempts,
            backoff_s=self._backoff_s,
            sleep=self._sleep,
            token=token,
        )

    async def embed_batch(
        self,
        texts: Sequence[str],
        token: CancellationToken | None = None,
    ) -> list[list[float]]:
        """Embed *texts* sequentially, preserving order.

        Raises
        ------
        VectorLengthMismatchError
            The provider returned vectors of differing dimensionality.
        """
        vectors: list[list[float]] = []
        for index, text in enumerate(texts):
            vectors.append(await self.embed(text, token=token))
            self._logger.debug("chunk_embedded", index=index, total=len(texts))

        ensure_uniform_dimension(vectors)
        self._logger.info(
            "embedding_batch_complete",
            provider=self._provider.get_provider_name(),
            count=len(vectors),
            dimension=len(vectors[0]) if vectors else None,
        )
        return vectors

    @staticmethod
    def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
        """See :func:`grantdesk.utils.vectors.cosine_similarity`."""
        return cosine_similarity(a, b)
