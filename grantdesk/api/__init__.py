"""GrantDesk API layer: routes, schemas, WebSocket, and middleware."""

from grantdesk.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from grantdesk.api.routes import router
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
from grantdesk.api.websocket import websocket_progress

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "websocket_progress",
    "ChatRequest",
    "ChatResponse",
    "DeleteGrantResponse",
    "ErrorResponse",
    "GrantDetailResponse",
    "GrantListResponse",
    "GrantSummaryResponse",
    "GrantUploadResponse",
    "HealthResponse",
    "UploadStatusResponse",
]
