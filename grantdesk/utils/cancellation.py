"""Cooperative cancellation for long-running ingestion and chat calls.

A :class:`CancellationToken` is created per operation and handed down to
every component that suspends on I/O (extraction, each embedding call, each
model call, each persistence call).  Components call
:meth:`CancellationToken.raise_if_cancelled` at their suspension points, so
a cancelled or expired operation stops at the next boundary instead of
running to completion.

The token is deliberately not tied to an ``asyncio.Task``: the same token
can be cancelled from an HTTP handler, a CLI signal handler or a test.
"""

from __future__ import annotations

import time
from collections.abc import Callable

from grantdesk.utils.errors import OperationCancelledError


class CancellationToken:
    """Explicit cancel flag plus an optional wall-clock deadline.

    Parameters
    ----------
    deadline_s:
        Seconds from construction after which the token counts as
        cancelled.  ``None`` means no deadline.
    clock:
        Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        deadline_s: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        self._deadline = clock() + deadline_s if deadline_s is not None else None
        self._reason: str | None = None

    def cancel(self, reason: str = "Operation was cancelled") -> None:
        """Trip the token.  The first reason wins."""
        if self._reason is None:
            self._reason = reason

    @property
    def cancelled(self) -> bool:
        if self._reason is not None:
            return True
        return self._deadline is not None and self._clock() >= self._deadline

    @property
    def reason(self) -> str | None:
        if self._reason is not None:
            return self._reason
        if self.cancelled:
            return "Deadline exceeded"
        return None

    def remaining(self) -> float | None:
        """Seconds left before the deadline, ``None`` when unbounded."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())

    def raise_if_cancelled(self) -> None:
        """Raise :class:`OperationCancelledError` if the token has tripped."""
        if self.cancelled:
            raise OperationCancelledError(message=self.reason or "Operation was cancelled")


def check(token: CancellationToken | None) -> None:
    """Shorthand for components that accept an optional token."""
    if token is not None:
        token.raise_if_cancelled()
