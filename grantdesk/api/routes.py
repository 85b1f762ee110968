"""FastAPI routes for grant upload, browsing and chat.

Service dependencies are resolved from ``app.state`` (populated in
``main.py``'s ``_build_all``) through ``Annotated[..., Depends(...)]``.

# Endpoint                               Method  Description
# ──────────────────────────────────────────────────────────────────────
# /api/v1/grants/upload                  POST    Upload PDF/HWPX -> background ingestion
# /api/v1/uploads/{upload_id}/status     GET     Latest ingestion status
# /api/v1/grants                         GET     All grants, status derived
# /api/v1/grants/{grant_id}              GET     One grant
# /api/v1/grants/{grant_id}              DELETE  Cascade delete
# /api/v1/grants/{grant_id}/chat         POST    One chat turn (RAG)
# /api/v1/health                         GET     Store / model availability
# /ws/progress/{upload_id}               WS      Live ingestion progress (websocket.py)
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, MutableMapping
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, UploadFile

from grantdesk.api.schemas import (
    ChatRequest,
    ChatResponse,
    DeleteGrantResponse,
    ErrorResponse,
    GrantDetailResponse,
    GrantListResponse,
    GrantSummaryResponse,
    GrantUploadResponse,
    HealthResponse,
    UploadStatusResponse,
)
from grantdesk.config.settings import Settings
from grantdesk.models.document import DocumentFormat
from grantdesk.models.pipeline import PipelineStep, ProcessingStatus
from grantdesk.pipeline.ingestion_pipeline import IngestionPipeline
from grantdesk.pipeline.progress_tracker import ProgressTracker
from grantdesk.services.chat_orchestrator import ChatOrchestrator
from grantdesk.services.persistence_gateway import PersistenceGateway
from grantdesk.utils.cancellation import CancellationToken
from grantdesk.utils.errors import GrantNotFoundError
from grantdesk.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_UPLOAD_CHUNK_SIZE = 64 * 1024

_QUEUED_MESSAGE = "업로드 대기 중..."


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _get_gateway(request: Request) -> PersistenceGateway:
    return request.app.state.gateway


def _get_pipeline(request: Request) -> IngestionPipeline:
    return request.app.state.pipeline


def _get_progress_tracker(request: Request) -> ProgressTracker:
    return request.app.state.progress_tracker


def _get_uploads(request: Request) -> MutableMapping[str, dict[str, Any]]:
    """Upload id -> result summary (empty until the run finishes)."""
    return request.app.state.uploads


def _get_chat_sessions(request: Request) -> MutableMapping[str, ChatOrchestrator]:
    return request.app.state.chat_sessions


def _get_chat_factory(request: Request) -> Callable[[], ChatOrchestrator]:
    return request.app.state.chat_factory


SettingsDep = Annotated[Settings, Depends(_get_settings)]
GatewayDep = Annotated[PersistenceGateway, Depends(_get_gateway)]
PipelineDep = Annotated[IngestionPipeline, Depends(_get_pipeline)]
TrackerDep = Annotated[ProgressTracker, Depends(_get_progress_tracker)]
UploadsDep = Annotated[MutableMapping[str, dict[str, Any]], Depends(_get_uploads)]
ChatSessionsDep = Annotated[MutableMapping[str, ChatOrchestrator], Depends(_get_chat_sessions)]
ChatFactoryDep = Annotated[Callable[[], ChatOrchestrator], Depends(_get_chat_factory)]


# ---------------------------------------------------------------------------
# Background ingestion
# ---------------------------------------------------------------------------


async def _run_ingestion(
    pipeline: IngestionPipeline,
    tracker: ProgressTracker,
    uploads: MutableMapping[str, dict[str, Any]],
    upload_id: str,
    data: bytes,
    filename: str,
    declared_format: str,
    timeout_s: float,
) -> None:
    """Runs after the upload response is sent; progress goes through the tracker."""
    try:
        outcome = await pipeline.ingest(
            data,
            filename,
            on_status=tracker.observer_for(upload_id),
            declared_format=declared_format,
            token=CancellationToken(deadline_s=timeout_s),
        )
    except Exception as exc:
        # The pipeline already published the error status.
        _logger.error("background_ingestion_failed", upload_id=upload_id, error=str(exc))
        uploads[upload_id] = {"error": str(exc)}
        return

    uploads[upload_id] = {"grant_id": outcome.grant.id, "degraded": outcome.is_degraded}


# ---------------------------------------------------------------------------
# Upload endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/grants/upload",
    response_model=GrantUploadResponse,
    status_code=202,
    responses={413: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
    summary="Upload a PDF or HWPX announcement for ingestion",
)
async def upload_grant(
    file: UploadFile,
    background_tasks: BackgroundTasks,
    settings: SettingsDep,
    pipeline: PipelineDep,
    tracker: TrackerDep,
    uploads: UploadsDep,
) -> GrantUploadResponse:
    filename = file.filename or ""
    # Raises UnsupportedFormatError (422) before any bytes are buffered.
    document_format = DocumentFormat.resolve(filename, file.content_type)

    chunks: list[bytes] = []
    total_size = 0
    while True:
        chunk = await file.read(_UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > settings.max_upload_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"File too large: maximum is {settings.max_upload_bytes} bytes.",
            )
        chunks.append(chunk)
    data = b"".join(chunks)

    upload_id = str(uuid.uuid4())
    uploads[upload_id] = {}
    background_tasks.add_task(
        _run_ingestion,
        pipeline,
        tracker,
        uploads,
        upload_id,
        data,
        filename,
        document_format.value,
        settings.ingestion_timeout_s,
    )
    _logger.info(
        "upload_accepted",
        upload_id=upload_id,
        filename=filename,
        format=document_format.value,
        size_bytes=total_size,
    )
    return GrantUploadResponse(upload_id=upload_id, filename=filename, size_bytes=total_size)


@router.get(
    "/uploads/{upload_id}/status",
    response_model=UploadStatusResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_upload_status(upload_id: str, tracker: TrackerDep, uploads: UploadsDep) -> UploadStatusResponse:
    if upload_id not in uploads:
        raise HTTPException(status_code=404, detail=f"Unknown upload: {upload_id}")
    status = tracker.get_status(upload_id) or ProcessingStatus(
        step=PipelineStep.PARSING, message=_QUEUED_MESSAGE, progress=0
    )
    return UploadStatusResponse.from_status(upload_id, status, uploads.get(upload_id))


# ---------------------------------------------------------------------------
# Grant endpoints
# ---------------------------------------------------------------------------


@router.get("/grants", response_model=GrantListResponse)
async def list_grants(gateway: GatewayDep) -> GrantListResponse:
    records = await gateway.list_grants()
    return GrantListResponse(
        grants=[GrantSummaryResponse.from_record(record) for record in records],
        total=len(records),
    )


@router.get(
    "/grants/{grant_id}",
    response_model=GrantDetailResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_grant(grant_id: str, gateway: GatewayDep) -> GrantDetailResponse:
    record = await gateway.get_grant(grant_id)
    if record is None:
        raise GrantNotFoundError(message=f"Grant {grant_id} not found")
    return GrantDetailResponse.from_record(record)


@router.delete(
    "/grants/{grant_id}",
    response_model=DeleteGrantResponse,
    responses={404: {"model": ErrorResponse}},
)
async def delete_grant(grant_id: str, gateway: GatewayDep) -> DeleteGrantResponse:
    if not await gateway.delete_grant(grant_id):
        raise GrantNotFoundError(message=f"Grant {grant_id} not found")
    return DeleteGrantResponse(grant_id=grant_id, deleted=True)


@router.post("/grants/{grant_id}/chat", response_model=ChatResponse)
async def chat(
    grant_id: str,
    body: ChatRequest,
    sessions: ChatSessionsDep,
    chat_factory: ChatFactoryDep,
) -> ChatResponse:
    """One conversation turn.  Errors come back as an apology message, not a 5xx."""
    session_id = body.session_id or str(uuid.uuid4())
    orchestrator = sessions.get(session_id)
    if orchestrator is None:
        orchestrator = chat_factory()
        sessions[session_id] = orchestrator

    reply = await orchestrator.send(grant_id, body.question)
    return ChatResponse(
        session_id=session_id,
        grant_id=grant_id,
        message=reply,
        history=list(orchestrator.history),
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse)
async def health(request: Request, settings: SettingsDep, gateway: GatewayDep) -> HealthResponse:
    analysis_client = request.app.state.analysis_client
    embedding_client = request.app.state.embedding_client

    remote = gateway.remote
    providers: dict[str, Any] = {
        "remote_store": {
            "name": remote.get_repository_name() if remote else None,
            "available": remote.is_available() if remote else False,
        },
        "fallback_store": {"name": gateway.fallback.get_repository_name(), "available": True},
        "analysis_models": [
            {"model": model.model_name, "available": model.is_available()}
            for model in analysis_client.models
        ],
        "embedding": {
            "provider": embedding_client.provider_name,
            "dimension": embedding_client.dimension,
        },
    }
    models_ready = any(entry["available"] for entry in providers["analysis_models"])
    return HealthResponse(
        status="ok" if models_ready else "degraded",
        version=request.app.version,
        providers=providers,
    )
