"""Linear-backoff retry for rate-limited provider calls.

Both the embedding and the text-model adapters translate an HTTP 429 into
:class:`~grantdesk.utils.errors.RateLimitError`.  This helper absorbs those
errors: attempt *n* that hits the limit waits ``n * backoff_s`` seconds and
tries again, up to ``max_attempts`` attempts in total.  Any other exception
propagates immediately on the first occurrence.

With the defaults (3 attempts, 2 s) a call that is rate-limited every time
waits 2 s + 4 s and then fails; there is no sleep after the final attempt.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog

from grantdesk.utils.cancellation import CancellationToken, check
from grantdesk.utils.errors import GrantDeskError, RateLimitError
from grantdesk.utils.logging import get_logger

_T = TypeVar("_T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_S = 2.0

_logger: structlog.BoundLogger = get_logger(__name__)


async def retry_on_rate_limit(
    call: Callable[[], Awaitable[_T]],
    *,
    operation: str,
    on_exhausted: Callable[[RateLimitError], GrantDeskError],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    backoff_s: float = DEFAULT_BACKOFF_S,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    token: CancellationToken | None = None,
) -> _T:
    """Invoke *call* until it succeeds or the attempt budget is spent.

    Parameters
    ----------
    call:
        Zero-argument coroutine factory; invoked once per attempt.
    operation:
        Short label used in log events (e.g. ``"embedding"``).
    on_exhausted:
        Builds the error raised after the last rate-limited attempt.
    max_attempts:
        Total number of attempts, including the first.
    backoff_s:
        Base delay; attempt *n* waits ``n * backoff_s`` before retrying.
    sleep:
        Awaitable sleep function, injectable for tests.
    token:
        Optional cancellation token checked before every attempt and after
        every backoff.

    Raises
    ------
    GrantDeskError
        Whatever *on_exhausted* returns, chained to the last rate-limit error.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    last_error: RateLimitError | None = None
    for attempt in range(1, max_attempts + 1):
        check(token)
        try:
            return await call()
        except RateLimitError as exc:
            last_error = exc
            if attempt == max_attempts:
                break
            backoff = backoff_s * attempt
            _logger.warning(
                "rate_limited",
                operation=operation,
                attempt=attempt,
                max_attempts=max_attempts,
                backoff_s=backoff,
            )
            await sleep(backoff)

    _logger.error("rate_limit_retries_exhausted", operation=operation, attempts=max_attempts)
    assert last_error is not None
    raise on_exhausted(last_error) from last_error
