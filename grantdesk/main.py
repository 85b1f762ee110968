"""GrantDesk FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and configures
structured logging.

Also exposes :func:`build_services` so the CLI can assemble the same
components outside the web server.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from cachetools import TTLCache
from fastapi import FastAPI, WebSocket

from grantdesk.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from grantdesk.api.routes import router as api_router
from grantdesk.api.websocket import websocket_progress
from grantdesk.config.loader import load_config
from grantdesk.config.settings import Settings
from grantdesk.interfaces.grant_repository import IGrantRepository
from grantdesk.pipeline.ingestion_pipeline import IngestionPipeline
from grantdesk.pipeline.progress_tracker import ProgressTracker
from grantdesk.providers.cache.memory_cache import MemoryCacheProvider
from grantdesk.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from grantdesk.providers.llm.openai_text_model import OpenAITextModel, build_client
from grantdesk.providers.repository.memory_repository import InMemoryRepository
from grantdesk.providers.repository.supabase_repository import SupabaseRepository
from grantdesk.services.analysis_client import AnalysisClient
from grantdesk.services.chat_orchestrator import ChatOrchestrator
from grantdesk.services.embedding_client import EmbeddingClient
from grantdesk.services.ingestion.chunker import TextChunker
from grantdesk.services.ingestion.text_extractor import TextExtractor
from grantdesk.services.persistence_gateway import PersistenceGateway
from grantdesk.services.retrieval_engine import RetrievalEngine
from grantdesk.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production" or bool(config.get("logging", {}).get("json"))),
)
_logger: structlog.BoundLogger = get_logger(__name__)

_CHAT_SESSION_LIMIT = 1000


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    # -- Shared resources --
    http_client = httpx.AsyncClient(timeout=app_settings.supabase_timeout_s)

    # -- Persistence --
    fallback_store = InMemoryRepository()
    remote_store: IGrantRepository | None = None
    if app_settings.is_remote_store_configured():
        remote_store = SupabaseRepository(app_settings, http_client=http_client)
    else:
        _logger.warning("remote_store_not_configured", fallback="memory")

    # -- Embeddings --
    embedding_provider = OpenAIEmbeddingProvider(settings=app_settings)
    embedding_client = EmbeddingClient(
        embedding_provider,
        max_attempts=app_settings.rate_limit_max_attempts,
        backoff_s=app_settings.rate_limit_backoff_s,
    )

    gateway = PersistenceGateway(
        fallback=fallback_store,
        remote=remote_store,
        expected_dimension=embedding_provider.get_dimension(),
    )

    # -- Text models (one shared client, one adapter per model name) --
    llm_client = build_client(app_settings)
    text_models = [
        OpenAITextModel(app_settings, model_name, client=llm_client)
        for model_name in app_settings.analysis_models
    ]
    analysis_client = AnalysisClient(
        text_models,
        max_attempts=app_settings.rate_limit_max_attempts,
        backoff_s=app_settings.rate_limit_backoff_s,
    )

    # -- Retrieval / chat --
    question_cache = MemoryCacheProvider(ttl=app_settings.query_cache_ttl_s)
    retrieval = RetrievalEngine(
        gateway,
        embedding_client,
        top_k=app_settings.retrieval_top_k,
        fallback_chars=app_settings.retrieval_fallback_chars,
        cache=question_cache,
    )

    def chat_factory() -> ChatOrchestrator:
        return ChatOrchestrator(gateway, retrieval, analysis_client)

    # -- Ingestion --
    pipeline = IngestionPipeline(
        extractor=TextExtractor(),
        analysis_client=analysis_client,
        chunker=TextChunker(app_settings.chunk_size, app_settings.chunk_overlap),
        embedding_client=embedding_client,
        gateway=gateway,
        timeout_s=app_settings.ingestion_timeout_s,
    )

    return {
        "settings": app_settings,
        "http_client": http_client,
        "llm_client": llm_client,
        "gateway": gateway,
        "embedding_client": embedding_client,
        "analysis_client": analysis_client,
        "retrieval": retrieval,
        "pipeline": pipeline,
        "progress_tracker": ProgressTracker(
            max_tracked=app_settings.max_tracked_uploads,
            retention_s=app_settings.upload_retention_s,
        ),
        "chat_factory": chat_factory,
        "chat_sessions": TTLCache(maxsize=_CHAT_SESSION_LIMIT, ttl=app_settings.query_cache_ttl_s),
        "uploads": TTLCache(maxsize=app_settings.max_tracked_uploads, ttl=app_settings.upload_retention_s),
    }


def build_services(custom_settings: Settings | None = None) -> dict[str, Any]:
    """Assemble the application components for scripting and CLI usage."""
    return _build_all(custom_settings or settings)


async def close_services(components: dict[str, Any]) -> None:
    """Release the network clients created by :func:`_build_all`."""
    await components["http_client"].aclose()
    await components["llm_client"].close()


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = _build_all(settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    gateway: PersistenceGateway = components["gateway"]
    _logger.info(
        "app_startup",
        version=application.version,
        environment=settings.app_env,
        remote_store=gateway.remote.get_repository_name() if gateway.remote else None,
        analysis_models=components["analysis_client"].model_names,
    )

    yield

    await close_services(components)
    _logger.info("app_shutdown", message="HTTP clients closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    app_config = config.get("app", {})
    application = FastAPI(
        title="GrantDesk API",
        version=str(app_config.get("version", "0.1.0")),
        description=(
            "Upload government grant announcements (PDF / HWPX), extract "
            "structured metadata with an LLM, and chat with each announcement "
            "through retrieval-augmented generation."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=app_config.get("cors_origins"))

    # -- API routes --
    application.include_router(api_router)

    # -- WebSocket --
    @application.websocket("/ws/progress/{upload_id}")
    async def ws_progress(websocket: WebSocket, upload_id: str) -> None:
        await websocket_progress(websocket, upload_id)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "grantdesk.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
