"""Abstract base class for grant storage backends.

A repository stores grant records and their ordered chunk embeddings.  It
is a plain store: it does not fall back to another store and does not
compute derived fields.  Both concerns belong to
:class:`~grantdesk.services.persistence_gateway.PersistenceGateway`, which
composes a remote repository with an in-memory one.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from grantdesk.models.grant import GrantRecord, StoredChunk


# Concrete implementations:
#   SupabaseRepository  - Supabase / PostgREST over httpx (remote)
#   InMemoryRepository  - process-local dicts (fallback, tests, CLI demos)
# Located in: grantdesk/providers/repository/
class IGrantRepository(ABC):
    """Contract for grant + embedding storage."""

    @abstractmethod
    async def save_grant(self, record: GrantRecord) -> None:
        """Insert a new grant record.

        Raises
        ------
        grantdesk.utils.errors.PersistenceWriteError
            The write did not succeed.
        """

    @abstractmethod
    async def save_embeddings(
        self,
        grant_id: str,
        chunks: Sequence[str],
        vectors: Sequence[Sequence[float]],
    ) -> None:
        """Store the chunk sequence of a grant with one vector per chunk.

        ``chunks[i]`` is stored with ``chunk_index = i`` and ``vectors[i]``.

        Raises
        ------
        ValueError
            ``len(chunks) != len(vectors)``.
        grantdesk.utils.errors.PersistenceWriteError
            The write did not succeed.
        """

    @abstractmethod
    async def list_grants(self) -> list[GrantRecord]:
        """Return all grants, newest first."""

    @abstractmethod
    async def get_grant(self, grant_id: str) -> GrantRecord | None:
        """Return one grant, or ``None`` when the id is unknown."""

    @abstractmethod
    async def get_embeddings(self, grant_id: str) -> list[StoredChunk]:
        """Return the grant's chunks ordered by ``chunk_index`` ascending."""

    @abstractmethod
    async def delete_grant(self, grant_id: str) -> bool:
        """Delete a grant and, first, all of its chunks and embeddings.

        Returns ``True`` if a grant record was removed.
        """

    @abstractmethod
    async def count_grants(self) -> int:
        """Return the number of stored grants."""

    @abstractmethod
    async def sample_embedding_dimension(self) -> int | None:
        """Return the length of any one stored vector, ``None`` if empty."""

    @abstractmethod
    def get_repository_name(self) -> str:
        """Short store label used in logs and write results."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the store is configured."""
