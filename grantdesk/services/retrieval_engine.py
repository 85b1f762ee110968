"""Context retrieval for grant chat.

Given a grant and a question, picks the text the answer model should see:

  1. chunks stored  -> embed the question, rank chunks by cosine similarity
                       (stable, so ties keep chunk order), join the top 3
                       with a blank line.
  2. no chunks      -> first 4000 characters of ``raw_content``
  3. no raw content -> ``description``
  4. neither        -> a three-line summary (title / amount / period)

Question embeddings are cached by SHA-256 of the question text, so asking
the same thing about several grants costs one embedding call.
"""

from __future__ import annotations

import hashlib

import structlog

from grantdesk.interfaces.cache_provider import ICacheProvider
from grantdesk.models.grant import GrantRecord
from grantdesk.services.embedding_client import EmbeddingClient
from grantdesk.services.persistence_gateway import PersistenceGateway
from grantdesk.utils.cancellation import CancellationToken, check
from grantdesk.utils.errors import GrantNotFoundError
from grantdesk.utils.logging import get_logger
from grantdesk.utils.vectors import rank_by_similarity

logger: structlog.BoundLogger = get_logger(__name__)

_CONTEXT_SEPARATOR = "\n\n"


class RetrievalEngine:
    """Builds the answer context for a question about one grant.

    Parameters
    ----------
    gateway:
        Source of grant records and stored chunks.
    embedding_client:
        Embeds the question.
    top_k:
        Number of chunks joined into the context.
    fallback_chars:
        Prefix length of ``raw_content`` used when no chunks exist.
    cache:
        Optional cache for question embeddings.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        embedding_client: EmbeddingClient,
        top_k: int = 3,
        fallback_chars: int = 4000,
        cache: ICacheProvider | None = None,
    ) -> None:
        self._gateway = gateway
        self._embedding_client = embedding_client
        self._top_k = top_k
        self._fallback_chars = fallback_chars
        self._cache = cache

    async def retrieve_context(
        self,
        grant_id: str,
        question: str,
        grant: GrantRecord | None = None,
        token: CancellationToken | None = None,
    ) -> str:
        """Return the context string for *question* about *grant_id*.

        *grant* may be passed when the caller already loaded the record.

        Raises
        ------
        GrantNotFoundError
            *grant* was not given and no store holds *grant_id*.
        EmbeddingError
            The question could not be embedded.
        """
        chunks = await self._gateway.get_embeddings(grant_id, token=token)
        if chunks:
            query = await self._embed_question(question, token)
            ranked = rank_by_similarity(
                query,
                [(chunk, chunk.embedding) for chunk in chunks],
                top_k=self._top_k,
            )
            logger.info(
                "context_retrieved",
                grant_id=grant_id,
                source="chunks",
                chunks=len(chunks),
                selected=[chunk.chunk_index for chunk, _ in ranked],
                top_score=round(ranked[0][1], 4),
            )
            return _CONTEXT_SEPARATOR.join(chunk.content for chunk, _ in ranked)

        if grant is None:
            grant = await self._gateway.get_grant(grant_id, token=token)
            if grant is None:
                raise GrantNotFoundError(message=f"Grant {grant_id} not found")
        return self._fallback_context(grant)

    def _fallback_context(self, grant: GrantRecord) -> str:
        if grant.raw_content:
            source, context = "raw_content", grant.raw_content[: self._fallback_chars]
        elif grant.description:
            source, context = "description", grant.description
        else:
            source, context = "summary", grant.summary_line()
        logger.info("context_retrieved", grant_id=grant.id, source=source, chars=len(context))
        return context

    async def _embed_question(self, question: str, token: CancellationToken | None) -> list[float]:
        key = "question:" + hashlib.sha256(question.encode("utf-8")).hexdigest()
        if self._cache is not None:
            cached = await self._cache.get(key)
            if cached is not None:
                check(token)
                return cached

        vector = await self._embedding_client.embed(question, token=token)
        if self._cache is not None:
            await self._cache.set(key, vector)
        return vector
