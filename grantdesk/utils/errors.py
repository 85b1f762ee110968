"""Custom exception hierarchy for GrantDesk.

All application exceptions inherit from :class:`GrantDeskError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "gemini", "supabase", "pymupdf") caused the failure.

The hierarchy is organized by pipeline stage:

    GrantDeskError  (base -- catch-all for any grantdesk error)
    +-- UnsupportedFormatError    (upload: unknown document format)
    +-- DocumentParseError        (parsing: container could not be read)
    +-- EmptyExtractionError      (parsing: no usable text)
    +-- AnalysisParseError        (analyzing: no JSON object in model output)
    +-- AnalysisError             (analyzing: every model exhausted)
    +-- ModelInvocationError      (one text-model call failed)
    +-- RateLimitError            (provider rate-limit exceeded, retried)
    +-- EmbeddingError            (embedding: retries exhausted / API error)
    +-- VectorLengthMismatchError (data integrity: dimension mismatch)
    +-- PersistenceWriteError     (saving: a repository write failed)
    +-- PersistenceReadError      (reading: a repository read failed)
    +-- GrantNotFoundError        (no record for the requested id)
    +-- OperationCancelledError   (cancellation token or deadline tripped)
    +-- ConfigurationError        (startup / missing config)

Callers handle errors at exactly the right level -- retry on
RateLimitError, fall back to the in-memory store on PersistenceWriteError,
or abort the ingestion on EmptyExtractionError.
"""


class GrantDeskError(Exception):
    """Base exception for all GrantDesk errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  ``__str__`` prefixes the provider name in brackets for log
    output, e.g. ``[gemini] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Parsing errors
# ---------------------------------------------------------------------------

class UnsupportedFormatError(GrantDeskError):
    """Raised when an uploaded document is neither PDF nor HWPX."""

    def __init__(
        self,
        message: str = "Unsupported document format",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DocumentParseError(GrantDeskError):
    """Raised when a PDF or HWPX container cannot be opened or parsed."""

    def __init__(
        self,
        message: str = "Document could not be parsed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmptyExtractionError(GrantDeskError):
    """Raised when extraction yields too little text to be useful.

    Usually an image-only (scanned) document or a corrupt file.
    """

    def __init__(
        self,
        message: str = "No text could be extracted from the document",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Model errors
# ---------------------------------------------------------------------------

class RateLimitError(GrantDeskError):
    """Raised by provider adapters when the remote API answers HTTP 429.

    Absorbed by :func:`~grantdesk.utils.retry.retry_on_rate_limit`; never
    surfaced to end users directly.
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ModelInvocationError(GrantDeskError):
    """Raised when a single text-model call fails for a non-rate-limit reason."""

    def __init__(
        self,
        message: str = "Text model call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class AnalysisParseError(GrantDeskError):
    """Raised when model output does not contain a parseable JSON object."""

    def __init__(
        self,
        message: str = "Could not parse a JSON object from the model response",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class AnalysisError(GrantDeskError):
    """Raised when every configured analysis model has failed.

    ``last_error`` holds the failure of the final model tried.
    """

    def __init__(
        self,
        message: str = "All analysis models failed",
        provider_name: str | None = None,
        last_error: BaseException | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._last_error = last_error

    @property
    def last_error(self) -> BaseException | None:
        return self._last_error


class EmbeddingError(GrantDeskError):
    """Raised when an embedding cannot be generated."""

    def __init__(
        self,
        message: str = "Embedding generation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class VectorLengthMismatchError(GrantDeskError):
    """Raised when two vectors of different dimensionality meet.

    A mismatch means the embedding model changed between writes; comparing
    such vectors would produce meaningless similarity scores.
    """

    def __init__(
        self,
        message: str = "Vector dimensions do not match",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Persistence errors
# ---------------------------------------------------------------------------

class PersistenceWriteError(GrantDeskError):
    """Raised by a repository when a write fails."""

    def __init__(
        self,
        message: str = "Persistence write failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PersistenceReadError(GrantDeskError):
    """Raised by a repository when a read fails."""

    def __init__(
        self,
        message: str = "Persistence read failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class GrantNotFoundError(GrantDeskError):
    """Raised when no store holds a grant with the requested id."""

    def __init__(
        self,
        message: str = "Grant not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Orchestration / configuration errors
# ---------------------------------------------------------------------------

class OperationCancelledError(GrantDeskError):
    """Raised at a suspension point once a cancellation token has tripped."""

    def __init__(
        self,
        message: str = "Operation was cancelled",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(GrantDeskError):
    """Raised when required configuration is missing or invalid at startup."""

    def __init__(
        self,
        message: str = "Configuration error",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
