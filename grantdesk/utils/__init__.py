"""Utility modules for GrantDesk.

- **errors** -- exception hierarchy rooted at GrantDeskError; each pipeline
  stage raises its own subclass so callers can react precisely.
- **logging** -- structlog setup with console output in development and
  JSON in production.
- **cancellation** -- cooperative cancellation token with an optional
  wall-clock deadline.
- **retry** -- linear-backoff retry for rate-limited provider calls.
- **vectors** -- cosine similarity and stable top-k ranking.
- **json_object** -- balanced-brace JSON object extraction from model output.
- **grant_status** (not re-exported here) -- date-based status derivation;
  imports the models package, so it is imported directly where needed.
"""

from grantdesk.utils.cancellation import CancellationToken
from grantdesk.utils.errors import (
    AnalysisError,
    AnalysisParseError,
    ConfigurationError,
    DocumentParseError,
    EmbeddingError,
    EmptyExtractionError,
    GrantDeskError,
    GrantNotFoundError,
    ModelInvocationError,
    OperationCancelledError,
    PersistenceReadError,
    PersistenceWriteError,
    RateLimitError,
    UnsupportedFormatError,
    VectorLengthMismatchError,
)
from grantdesk.utils.json_object import extract_json_object
from grantdesk.utils.logging import configure_logging, get_logger
from grantdesk.utils.retry import retry_on_rate_limit
from grantdesk.utils.vectors import cosine_similarity, rank_by_similarity

__all__ = [
    "AnalysisError",
    "AnalysisParseError",
    "CancellationToken",
    "ConfigurationError",
    "DocumentParseError",
    "EmbeddingError",
    "EmptyExtractionError",
    "GrantDeskError",
    "GrantNotFoundError",
    "ModelInvocationError",
    "OperationCancelledError",
    "PersistenceReadError",
    "PersistenceWriteError",
    "RateLimitError",
    "UnsupportedFormatError",
    "VectorLengthMismatchError",
    "configure_logging",
    "cosine_similarity",
    "extract_json_object",
    "get_logger",
    "rank_by_similarity",
    "retry_on_rate_limit",
]
