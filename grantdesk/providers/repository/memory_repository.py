"""Process-local grant repository.

Backs the app when no remote store is configured and catches writes the
remote store rejects.  Both collections (grants and their chunk lists)
are guarded by one ``asyncio.Lock`` so a concurrent reader never sees a
half-applied cascade delete, and ordering of the grant list follows
insertion time, newest first, like the remote store's
``created_at desc``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import structlog

from grantdesk.interfaces.grant_repository import IGrantRepository
from grantdesk.models.grant import GrantRecord, StoredChunk

logger = structlog.get_logger(logger_name=__name__)


class InMemoryRepository(IGrantRepository):
    """Grant and embedding storage in two dicts."""

    def __init__(self) -> None:
        self._grants: dict[str, GrantRecord] = {}
        self._chunks: dict[str, list[StoredChunk]] = {}
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def save_grant(self, record: GrantRecord) -> None:
        async with self._lock:
            self._grants[record.id] = record
        logger.debug("memory_grant_saved", grant_id=record.id)

    async def save_embeddings(
        self,
        grant_id: str,
        chunks: Sequence[str],
        vectors: Sequence[Sequence[float]],
    ) -> None:
        if len(chunks) != len(vectors):
            raise ValueError(
                f"chunks ({len(chunks)}) and vectors ({len(vectors)}) must have the same length"
            )
        rows = [
            StoredChunk(grant_id=grant_id, chunk_index=index, content=content, embedding=list(vector))
            for index, (content, vector) in enumerate(zip(chunks, vectors))
        ]
        async with self._lock:
            self._chunks[grant_id] = rows
        logger.debug("memory_embeddings_saved", grant_id=grant_id, chunks=len(rows))

    async def delete_grant(self, grant_id: str) -> bool:
        async with self._lock:
            self._chunks.pop(grant_id, None)
            removed = self._grants.pop(grant_id, None)
        return removed is not None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_grants(self) -> list[GrantRecord]:
        async with self._lock:
            records = list(self._grants.values())
        # Stable sort: records sharing a timestamp keep newest-inserted first.
        records.reverse()
        records.sort(key=lambda record: record.created_at, reverse=True)
        return records

    async def get_grant(self, grant_id: str) -> GrantRecord | None:
        return self._grants.get(grant_id)

    async def get_embeddings(self, grant_id: str) -> list[StoredChunk]:
        return list(self._chunks.get(grant_id, ()))

    async def count_grants(self) -> int:
        return len(self._grants)

    async def sample_embedding_dimension(self) -> int | None:
        for rows in self._chunks.values():
            if rows:
                return len(rows[0].embedding)
        return None

    def get_repository_name(self) -> str:
        return "memory"

    def is_available(self) -> bool:
        return True
