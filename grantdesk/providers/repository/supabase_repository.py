"""Supabase (PostgREST) grant repository over httpx.

Talks to the two tables directly through Supabase's REST interface:

    grants            id (pk), title, support_amount, period, deadline,
                      description, region, industry, status, grant_type,
                      raw_content, created_at (db default)
    grant_embeddings  grant_id (fk), chunk_index, content, embedding (vector)

pgvector columns come back as text (``"[0.1,0.2,...]"``) and are decoded
here.  Every transport or HTTP error is wrapped into
:class:`PersistenceWriteError` / :class:`PersistenceReadError` so the
persistence gateway can fall back without knowing about httpx.
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from typing import Any

import httpx
import structlog

from grantdesk.config.settings import Settings
from grantdesk.interfaces.grant_repository import IGrantRepository
from grantdesk.models.grant import GrantRecord, StoredChunk
from grantdesk.utils.errors import PersistenceReadError, PersistenceWriteError

logger = structlog.get_logger(logger_name=__name__)

_GRANTS_TABLE = "grants"
_EMBEDDINGS_TABLE = "grant_embeddings"

# Content-Range: 0-0/42  or  */0
_CONTENT_RANGE_TOTAL_RE = re.compile(r"/(\d+)$")


class SupabaseRepository(IGrantRepository):
    """Remote grant storage through the Supabase REST API.

    Parameters
    ----------
    settings:
        Supplies ``supabase_url``, ``supabase_anon_key`` and the timeout.
    http_client:
        Shared ``httpx.AsyncClient``.  When omitted the repository creates
        its own and closes it in :meth:`aclose`.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None) -> None:
        self._base_url = settings.supabase_url.rstrip("/") + "/rest/v1"
        self._api_key = settings.supabase_anon_key
        self._timeout = settings.supabase_timeout_s
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def save_grant(self, record: GrantRecord) -> None:
        await self._write("POST", _GRANTS_TABLE, json_body=self._to_row(record))
        logger.info("supabase_grant_saved", grant_id=record.id)

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
        if not chunks:
            return
        rows = [
            {
                "grant_id": grant_id,
                "chunk_index": index,
                "content": content,
                "embedding": list(vector),
            }
            for index, (content, vector) in enumerate(zip(chunks, vectors))
        ]
        await self._write("POST", _EMBEDDINGS_TABLE, json_body=rows)
        logger.info("supabase_embeddings_saved", grant_id=grant_id, chunks=len(rows))

    async def delete_grant(self, grant_id: str) -> bool:
        # Children first so a failure half-way never leaves orphaned chunks.
        await self._write("DELETE", _EMBEDDINGS_TABLE, params={"grant_id": f"eq.{grant_id}"})
        response = await self._write(
            "DELETE",
            _GRANTS_TABLE,
            params={"id": f"eq.{grant_id}"},
            prefer="return=representation",
        )
        removed = bool(response.json()) if response.content else False
        logger.info("supabase_grant_deleted", grant_id=grant_id, removed=removed)
        return removed

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_grants(self) -> list[GrantRecord]:
        response = await self._read(
            _GRANTS_TABLE, params={"select": "*", "order": "created_at.desc"}
        )
        return [self._from_row(row) for row in response.json()]

    async def get_grant(self, grant_id: str) -> GrantRecord | None:
        response = await self._read(
            _GRANTS_TABLE, params={"select": "*", "id": f"eq.{grant_id}", "limit": "1"}
        )
        rows = response.json()
        return self._from_row(rows[0]) if rows else None

    async def get_embeddings(self, grant_id: str) -> list[StoredChunk]:
        response = await self._read(
            _EMBEDDINGS_TABLE,
            params={
                "select": "chunk_index,content,embedding",
                "grant_id": f"eq.{grant_id}",
                "order": "chunk_index.asc",
            },
        )
        return [
            StoredChunk(
                grant_id=grant_id,
                chunk_index=row["chunk_index"],
                content=row["content"],
                embedding=self._decode_vector(row["embedding"]),
            )
            for row in response.json()
        ]

    async def count_grants(self) -> int:
        response = await self._read(
            _GRANTS_TABLE,
            params={"select": "id", "limit": "1"},
            prefer="count=exact",
        )
        match = _CONTENT_RANGE_TOTAL_RE.search(response.headers.get("content-range", ""))
        return int(match.group(1)) if match else len(response.json())

    async def sample_embedding_dimension(self) -> int | None:
        response = await self._read(_EMBEDDINGS_TABLE, params={"select": "embedding", "limit": "1"})
        rows = response.json()
        if not rows:
            return None
        return len(self._decode_vector(rows[0]["embedding"]))

    def get_repository_name(self) -> str:
        return "supabase"

    def is_available(self) -> bool:
        return bool(self._base_url and self._api_key)

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    def _headers(self, prefer: str) -> dict[str, str]:
        return {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "Prefer": prefer,
        }

    async def _write(
        self,
        method: str,
        table: str,
        json_body: Any = None,
        params: dict[str, str] | None = None,
        prefer: str = "return=minimal",
    ) -> httpx.Response:
        try:
            response = await self._client.request(
                method,
                f"{self._base_url}/{table}",
                json=json_body,
                params=params,
                headers=self._headers(prefer),
                timeout=self._timeout,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise PersistenceWriteError(
                message=f"{method} {table} failed ({exc.response.status_code}): "
                f"{self._error_detail(exc.response)}",
                provider_name="supabase",
            ) from exc
        except httpx.HTTPError as exc:
            raise PersistenceWriteError(
                message=f"{method} {table} failed: {exc}",
                provider_name="supabase",
            ) from exc
        return response

    async def _read(
        self,
        table: str,
        params: dict[str, str],
        prefer: str = "return=representation",
    ) -> httpx.Response:
        try:
            response = await self._client.get(
                f"{self._base_url}/{table}",
                params=params,
                headers=self._headers(prefer),
                timeout=self._timeout,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise PersistenceReadError(
                message=f"GET {table} failed ({exc.response.status_code}): "
                f"{self._error_detail(exc.response)}",
                provider_name="supabase",
            ) from exc
        except httpx.HTTPError as exc:
            raise PersistenceReadError(
                message=f"GET {table} failed: {exc}",
                provider_name="supabase",
            ) from exc
        return response

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        """PostgREST errors are JSON with ``message`` (and ``code``)."""
        try:
            body = response.json()
        except ValueError:
            return response.text[:200]
        if isinstance(body, dict):
            code = body.get("code")
            message = body.get("message") or body.get("hint") or str(body)
            return f"{code}: {message}" if code else message
        return str(body)[:200]

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------

    @staticmethod
    def _to_row(record: GrantRecord) -> dict[str, Any]:
        return {
            "id": record.id,
            "title": record.title,
            "support_amount": record.support_amount,
            "period": record.period,
            "deadline": record.deadline,
            "description": record.description,
            "region": record.region,
            "industry": record.industry,
            "status": record.status.value,
            "grant_type": record.grant_type,
            "raw_content": record.raw_content,
        }

    @staticmethod
    def _from_row(row: dict[str, Any]) -> GrantRecord:
        fields: dict[str, Any] = {
            "id": row["id"],
            "title": row.get("title"),
            "support_amount": row.get("support_amount"),
            "period": row.get("period"),
            "deadline": row.get("deadline"),
            "description": row.get("description"),
            "region": row.get("region"),
            "industry": row.get("industry"),
            "grant_type": row.get("grant_type"),
            "raw_content": row.get("raw_content") or "",
            "eligibility": row.get("eligibility"),
            "required_documents": row.get("required_documents"),
        }
        if row.get("created_at"):
            fields["created_at"] = row["created_at"]
        return GrantRecord(**fields)

    @staticmethod
    def _decode_vector(value: Any) -> list[float]:
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError as exc:
                raise PersistenceReadError(
                    message=f"Stored embedding is not a vector literal: {value[:40]!r}",
                    provider_name="supabase",
                ) from exc
        return [float(component) for component in value]
