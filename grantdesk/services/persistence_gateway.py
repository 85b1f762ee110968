"""Dual-store persistence with explicit degradation results.

The gateway fronts an optional remote repository (Supabase) and an
always-present :class:`InMemoryRepository`:

    writes  remote ──fail──> memory      -> WriteResult(DEGRADED, "memory")
            memory ──fail──>             -> WriteResult(FAILED)
    reads   remote ──error / miss / no chunks──> memory
    lists   remote rows + memory-only rows, newest first

Without a remote store the memory repository is the primary store and its
writes report ``SUCCESS``.

Every :class:`GrantRecord` leaving the gateway has ``status`` recomputed
by :func:`derive_status`; whatever status a store holds is ignored.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from datetime import date

import structlog

from grantdesk.interfaces.grant_repository import IGrantRepository
from grantdesk.models.grant import GrantRecord, StoredChunk
from grantdesk.models.persistence import WriteResult
from grantdesk.providers.repository.memory_repository import InMemoryRepository
from grantdesk.utils.cancellation import CancellationToken, check
from grantdesk.utils.errors import (
    GrantDeskError,
    PersistenceReadError,
    PersistenceWriteError,
)
from grantdesk.utils.grant_status import derive_status
from grantdesk.utils.logging import get_logger
from grantdesk.utils.vectors import ensure_uniform_dimension

logger: structlog.BoundLogger = get_logger(__name__)

# One repository write, applied to the remote store and then the fallback.
_RepositoryWrite = Callable[[IGrantRepository], Awaitable[None]]


class PersistenceGateway:
    """Routes grant reads and writes between the remote and fallback stores.

    Parameters
    ----------
    fallback:
        The in-memory store.  Always present.
    remote:
        Remote repository, or ``None`` when none is configured.
    expected_dimension:
        Embedding dimensionality every stored vector must have.  ``None``
        only requires vectors within one write to agree.
    today_provider:
        Returns the reference date for status derivation.
    """

    def __init__(
        self,
        fallback: InMemoryRepository,
        remote: IGrantRepository | None = None,
        expected_dimension: int | None = None,
        today_provider: Callable[[], date] = date.today,
    ) -> None:
        self._fallback = fallback
        self._remote = remote
        self._expected_dimension = expected_dimension
        self._today = today_provider

    @property
    def has_remote(self) -> bool:
        return self._remote is not None

    @property
    def remote(self) -> IGrantRepository | None:
        return self._remote

    @property
    def fallback(self) -> InMemoryRepository:
        return self._fallback

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def save_grant(
        self,
        record: GrantRecord,
        token: CancellationToken | None = None,
    ) -> WriteResult:
        check(token)
        return await self._write(
            "save_grant",
            record.id,
            lambda repo: repo.save_grant(record),
        )

    async def save_embeddings(
        self,
        grant_id: str,
        chunks: Sequence[str],
        vectors: Sequence[Sequence[float]],
        token: CancellationToken | None = None,
    ) -> WriteResult:
        """Persist *chunks* with their *vectors*, index-aligned.

        Raises
        ------
        ValueError
            ``len(chunks) != len(vectors)``.
        VectorLengthMismatchError
            A vector does not have the expected dimensionality.  This is a
            data-integrity error and is never recovered by the fallback.
        """
        if len(chunks) != len(vectors):
            raise ValueError(
                f"chunks ({len(chunks)}) and vectors ({len(vectors)}) must have the same length"
            )
        ensure_uniform_dimension(vectors, expected=self._expected_dimension)
        check(token)
        return await self._write(
            "save_embeddings",
            grant_id,
            lambda repo: repo.save_embeddings(grant_id, chunks, vectors),
        )

    async def delete_grant(self, grant_id: str) -> bool:
        """Remove the grant and its chunks from every store.

        Returns ``True`` when at least one store held the grant.
        """
        removed = False
        if self._remote is not None:
            removed = await self._remote.delete_grant(grant_id)
        removed = await self._fallback.delete_grant(grant_id) or removed
        logger.info("grant_deleted", grant_id=grant_id, removed=removed)
        return removed

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_grants(self, token: CancellationToken | None = None) -> list[GrantRecord]:
        check(token)
        local = await self._fallback.list_grants()
        if self._remote is None:
            return [self.with_derived_status(record) for record in local]

        try:
            remote = await self._remote.list_grants()
        except PersistenceReadError as exc:
            logger.warning("persistence_read_fallback", operation="list_grants", error=str(exc))
            return [self.with_derived_status(record) for record in local]

        remote_ids = {record.id for record in remote}
        merged = remote + [record for record in local if record.id not in remote_ids]
        merged.sort(key=lambda record: record.created_at, reverse=True)
        return [self.with_derived_status(record) for record in merged]

    async def get_grant(
        self,
        grant_id: str,
        token: CancellationToken | None = None,
    ) -> GrantRecord | None:
        check(token)
        record: GrantRecord | None = None
        if self._remote is not None:
            try:
                record = await self._remote.get_grant(grant_id)
            except PersistenceReadError as exc:
                logger.warning(
                    "persistence_read_fallback",
                    operation="get_grant",
                    grant_id=grant_id,
                    error=str(exc),
                )
        if record is None:
            record = await self._fallback.get_grant(grant_id)
        return self.with_derived_status(record) if record is not None else None

    async def get_embeddings(
        self,
        grant_id: str,
        token: CancellationToken | None = None,
    ) -> list[StoredChunk]:
        """Return the grant's chunks ordered by ``chunk_index``.

        Raises
        ------
        VectorLengthMismatchError
            A stored vector disagrees with the expected dimensionality.
        """
        check(token)
        chunks: list[StoredChunk] = []
        if self._remote is not None:
            try:
                chunks = await self._remote.get_embeddings(grant_id)
            except PersistenceReadError as exc:
                logger.warning(
                    "persistence_read_fallback",
                    operation="get_embeddings",
                    grant_id=grant_id,
                    error=str(exc),
                )
        if not chunks:
            chunks = await self._fallback.get_embeddings(grant_id)

        chunks = sorted(chunks, key=lambda chunk: chunk.chunk_index)
        ensure_uniform_dimension([chunk.embedding for chunk in chunks], expected=self._expected_dimension)
        return chunks

    async def count_grants(self) -> int:
        return len(await self.list_grants())

    async def sample_embedding_dimension(self) -> int | None:
        """Dimension of any stored vector, remote store first."""
        if self._remote is not None:
            dimension = await self._remote.sample_embedding_dimension()
            if dimension is not None:
                return dimension
        return await self._fallback.sample_embedding_dimension()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def with_derived_status(self, record: GrantRecord) -> GrantRecord:
        status = derive_status(record.period, record.deadline, today=self._today())
        if status is record.status:
            return record
        return record.model_copy(update={"status": status})

    async def _write(self, operation: str, grant_id: str, action: _RepositoryWrite) -> WriteResult:
        if self._remote is None:
            return await self._write_fallback(operation, grant_id, action, remote_error=None)

        try:
            await action(self._remote)
        except PersistenceWriteError as exc:
            logger.warning(
                "persistence_write_degraded",
                operation=operation,
                grant_id=grant_id,
                store=self._remote.get_repository_name(),
                error=str(exc),
            )
            return await self._write_fallback(operation, grant_id, action, remote_error=exc)
        return WriteResult.success(self._remote.get_repository_name())

    async def _write_fallback(
        self,
        operation: str,
        grant_id: str,
        action: _RepositoryWrite,
        remote_error: PersistenceWriteError | None,
    ) -> WriteResult:
        store = self._fallback.get_repository_name()
        try:
            await action(self._fallback)
        except GrantDeskError as exc:
            logger.error(
                "persistence_write_failed",
                operation=operation,
                grant_id=grant_id,
                error=str(exc),
                remote_error=str(remote_error) if remote_error else None,
            )
            message = f"{remote_error}; fallback: {exc}" if remote_error else str(exc)
            return WriteResult.failed(message)

        if remote_error is None:
            return WriteResult.success(store)
        return WriteResult.degraded(store, str(remote_error))
