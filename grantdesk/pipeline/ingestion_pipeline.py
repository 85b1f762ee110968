"""Upload-to-storage ingestion state machine.

ARCHITECTURE NOTE:
    One call to :meth:`IngestionPipeline.ingest` takes the bytes of one
    uploaded announcement through four strictly sequential steps:

        parsing (10) -> analyzing (30) -> embedding (50) -> saving (80) -> complete (100)
                  \\___________\\____________\\____________\\____> error (0)

    On entry to each step a :class:`ProcessingStatus` is pushed to the
    ``on_status`` observer.  Any failure pushes ``error`` with progress 0
    and the failure's message, then re-raises; nothing is swallowed.

    Persistence degradation (remote store down, record kept in memory) is
    NOT a failure: the run completes and the returned
    :class:`IngestionOutcome` reports ``is_degraded``.  Only a write that
    failed in both stores aborts the run.

    The whole run is bounded by ``timeout_s`` and every step checks the
    optional :class:`CancellationToken`.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Callable
from typing import Any

import structlog

from grantdesk.models.document import DocumentFormat
from grantdesk.models.grant import GrantRecord
from grantdesk.models.persistence import WriteResult
from grantdesk.models.pipeline import IngestionOutcome, PipelineStep, ProcessingStatus
from grantdesk.services.analysis_client import AnalysisClient
from grantdesk.services.embedding_client import EmbeddingClient
from grantdesk.services.ingestion.chunker import TextChunker
from grantdesk.services.ingestion.text_extractor import TextExtractor
from grantdesk.services.persistence_gateway import PersistenceGateway
from grantdesk.utils.cancellation import CancellationToken, check
from grantdesk.utils.errors import GrantDeskError, OperationCancelledError, PersistenceWriteError
from grantdesk.utils.logging import get_logger

StatusObserver = Callable[[ProcessingStatus], Any]

DEFAULT_TIMEOUT_S = 300.0


class GrantIdGenerator:
    """Issues ``GRANT-<epoch ms>`` ids, never repeating within the process.

    Two uploads landing in the same millisecond get consecutive values.
    """

    def __init__(self, clock_ms: Callable[[], int] = lambda: time.time_ns() // 1_000_000) -> None:
        self._clock_ms = clock_ms
        self._last = 0

    def __call__(self) -> str:
        value = max(self._clock_ms(), self._last + 1)
        self._last = value
        return f"GRANT-{value}"


_default_id_generator = GrantIdGenerator()


class IngestionPipeline:
    """Parses, analyzes, embeds and stores one grant announcement.

    Parameters
    ----------
    extractor:
        Format-dispatching text extractor.
    analysis_client:
        Produces the structured metadata.
    chunker:
        Splits the extracted text for embedding.
    embedding_client:
        Embeds the chunks sequentially.
    gateway:
        Persists the record and its chunks.
    timeout_s:
        Wall-clock bound for one ingestion.
    id_generator:
        Grant id factory.
    """

    def __init__(
        self,
        extractor: TextExtractor,
        analysis_client: AnalysisClient,
        chunker: TextChunker,
        embedding_client: EmbeddingClient,
        gateway: PersistenceGateway,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        id_generator: Callable[[], str] | None = None,
    ) -> None:
        self._extractor = extractor
        self._analysis_client = analysis_client
        self._chunker = chunker
        self._embedding_client = embedding_client
        self._gateway = gateway
        self._timeout_s = timeout_s
        self._new_id = id_generator or _default_id_generator
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ingest(
        self,
        data: bytes,
        filename: str,
        on_status: StatusObserver | None = None,
        declared_format: str | None = None,
        token: CancellationToken | None = None,
    ) -> IngestionOutcome:
        """Run the full pipeline for one uploaded file.

        Parameters
        ----------
        data:
            Raw file bytes.
        filename:
            Original file name; its extension selects the format unless
            *declared_format* is given.
        on_status:
            Sync or async callable receiving each :class:`ProcessingStatus`.
        declared_format:
            Optional explicit format hint (``"pdf"``, ``"hwpx"`` or a MIME type).
        token:
            Optional cancellation token.

        Raises
        ------
        GrantDeskError
            Whatever stopped the run: unsupported format, empty extraction,
            analysis or embedding failure, a write that failed in both
            stores, or :class:`OperationCancelledError` on cancellation or
            timeout.
        """
        started = time.monotonic()
        try:
            return await asyncio.wait_for(
                self._run(data, filename, on_status, declared_format, token, started),
                timeout=self._timeout_s,
            )
        except asyncio.TimeoutError as exc:
            error = OperationCancelledError(
                message=f"ingestion timed out after {self._timeout_s:g}s"
            )
            self._logger.error("ingestion_failed", filename=filename, error=str(error))
            await self._emit(on_status, PipelineStep.ERROR, error.message)
            raise error from exc

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _run(
        self,
        data: bytes,
        filename: str,
        on_status: StatusObserver | None,
        declared_format: str | None,
        token: CancellationToken | None,
        started: float,
    ) -> IngestionOutcome:
        log = self._logger.bind(filename=filename)
        try:
            # -- parsing --------------------------------------------------
            await self._emit(on_status, PipelineStep.PARSING)
            document_format = DocumentFormat.resolve(filename, declared_format)
            extracted = await self._extractor.extract(data, document_format, token=token)
            text = extracted.text

            # -- analyzing ------------------------------------------------
            check(token)
            await self._emit(on_status, PipelineStep.ANALYZING)
            analysis = await self._analysis_client.analyze(text, token=token)

            # -- embedding ------------------------------------------------
            check(token)
            await self._emit(on_status, PipelineStep.EMBEDDING)
            chunks = self._chunker.chunk(text)
            vectors = await self._embedding_client.embed_batch(chunks, token=token)

            # -- saving ---------------------------------------------------
            check(token)
            await self._emit(on_status, PipelineStep.SAVING)
            record = GrantRecord.from_analysis(self._new_id(), analysis, raw_content=text)
            grant_write = _require_ok(await self._gateway.save_grant(record, token=token))
            embeddings_write = _require_ok(
                await self._gateway.save_embeddings(record.id, chunks, vectors, token=token)
            )
        except Exception as exc:
            message = exc.message if isinstance(exc, GrantDeskError) else str(exc)
            log.error("ingestion_failed", error=str(exc), error_type=type(exc).__name__)
            await self._emit(on_status, PipelineStep.ERROR, message)
            raise

        outcome = IngestionOutcome(
            grant=self._gateway.with_derived_status(record),
            chunk_count=len(chunks),
            unit_count=extracted.unit_count,
            grant_write=grant_write,
            embeddings_write=embeddings_write,
            elapsed_s=round(time.monotonic() - started, 3),
        )
        await self._emit(on_status, PipelineStep.COMPLETE)
        log.info(
            "ingestion_complete",
            grant_id=record.id,
            format=document_format.value,
            chunks=outcome.chunk_count,
            units=outcome.unit_count,
            degraded=outcome.is_degraded,
            elapsed_s=outcome.elapsed_s,
        )
        return outcome

    async def _emit(
        self,
        on_status: StatusObserver | None,
        step: PipelineStep,
        message: str | None = None,
    ) -> None:
        if on_status is None:
            return
        status = ProcessingStatus.for_step(step, message)
        try:
            result = on_status(status)
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            self._logger.warning("status_observer_error", step=step.value, error=str(exc))


def _require_ok(result: WriteResult) -> WriteResult:
    if not result.ok:
        raise PersistenceWriteError(message=f"Grant could not be stored: {result.error}")
    return result
