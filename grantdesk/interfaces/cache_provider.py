"""Abstract base class for key-value cache providers.

Used by retrieval to remember question embeddings, so a user who repeats
a question (or several sessions asking the same thing) does not spend an
embedding call each time.  Backends can be swapped without touching the
retrieval code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ICacheProvider(ABC):
    """Contract for key-value cache services.

    Operations are async so a network-backed store (e.g. Redis) fits the
    same interface.
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the value stored under *key*, or ``None`` if missing/expired."""

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store *value* under *key* using the backend's default time-to-live."""
