"""Abstract base class for text-embedding service providers.

Defines the contract for turning one text into one fixed-length vector.
Rate-limit handling is NOT part of the contract: implementations raise
:class:`~grantdesk.utils.errors.RateLimitError` on HTTP 429 and the
:class:`~grantdesk.services.embedding_client.EmbeddingClient` retries.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   OpenAIEmbeddingProvider - any OpenAI-compatible embeddings endpoint
#                             (Gemini text-embedding-004 by default)
# Located in: grantdesk/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for embedding services used by ingestion and retrieval."""

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for one text.

        Parameters
        ----------
        text:
            The text to embed (a chunk or a user question).

        Returns
        -------
        list[float]
            The embedding vector.  Its length should equal
            :meth:`get_dimension`.

        Raises
        ------
        grantdesk.utils.errors.RateLimitError
            The provider answered with a rate-limit signal.
        grantdesk.utils.errors.EmbeddingError
            Any other failure.
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the expected dimensionality of the vectors.

        Example values: ``768`` (``text-embedding-004``), ``1536``
        (``text-embedding-3-small``).
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"gemini_embedding"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are configured."""
