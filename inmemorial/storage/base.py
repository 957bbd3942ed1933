"""
Storage abstraction layer.

All persistence goes through MetadataStorage. This allows swapping
implementations (in-memory → JSON files → a document database)
without changing the services.

Each call is a single-document read or write; services rely on that
being atomic and do no locking of their own.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


# =============================================================================
# Storage Interface
# =============================================================================


class MetadataStorage(ABC):
    """
    Storage for structured documents (users, memorials).

    Filters are exact-match on top-level keys.
    """

    @abstractmethod
    async def save(self, collection: str, id: str, data: dict[str, Any]) -> None:
        """Save (insert or replace) a document in a collection."""
        pass

    @abstractmethod
    async def get(self, collection: str, id: str) -> dict[str, Any] | None:
        """Get a document by ID."""
        pass

    @abstractmethod
    async def delete(self, collection: str, id: str) -> bool:
        """Delete a document."""
        pass

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        limit: int | None = 100,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """Query documents with optional filters. ``limit=None`` returns all."""
        pass

    @abstractmethod
    async def update(self, collection: str, id: str, updates: dict[str, Any]) -> bool:
        """Partial update of a document."""
        pass

    @abstractmethod
    async def count(self, collection: str, filters: dict[str, Any] | None = None) -> int:
        """Number of documents matching the filters."""
        pass

    async def find_one(
        self,
        collection: str,
        filters: dict[str, Any],
    ) -> dict[str, Any] | None:
        """First document matching the filters, if any."""
        results = await self.query(collection, filters, limit=1)
        return results[0] if results else None


# =============================================================================
# Collection Names
# =============================================================================


class Collections:
    """Standard collection/table names."""

    USERS = "users"
    MEMORIALS = "memorials"
    TRIBUTES = "tributes"
