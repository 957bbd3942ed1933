"""
Local storage implementations for development.

These are in-memory or filesystem-based implementations
that work without any external services.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any
from datetime import datetime, timezone

from inmemorial.storage.base import MetadataStorage

logger = logging.getLogger(__name__)


def _matches(doc: dict[str, Any], filters: dict[str, Any] | None) -> bool:
    if not filters:
        return True
    return all(doc.get(key) == value for key, value in filters.items())


# =============================================================================
# In-Memory Metadata Storage
# =============================================================================


class InMemoryMetadataStorage(MetadataStorage):
    """In-memory document storage for development and tests."""

    def __init__(self):
        self._data: dict[str, dict[str, dict[str, Any]]] = {}

    async def save(self, collection: str, id: str, data: dict[str, Any]) -> None:
        if collection not in self._data:
            self._data[collection] = {}
        self._data[collection][id] = {
            **data,
            "_id": id,
            "_updated_at": datetime.now(timezone.utc).isoformat(),
        }
        self._persist(collection)

    async def get(self, collection: str, id: str) -> dict[str, Any] | None:
        doc = self._data.get(collection, {}).get(id)
        return dict(doc) if doc is not None else None

    async def delete(self, collection: str, id: str) -> bool:
        if collection in self._data and id in self._data[collection]:
            del self._data[collection][id]
            self._persist(collection)
            return True
        return False

    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        limit: int | None = 100,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        if collection not in self._data:
            return []

        results = [
            dict(doc) for doc in self._data[collection].values()
            if _matches(doc, filters)
        ]

        # Apply pagination
        if limit is None:
            return results[offset:]
        return results[offset:offset + limit]

    async def update(self, collection: str, id: str, updates: dict[str, Any]) -> bool:
        if collection in self._data and id in self._data[collection]:
            self._data[collection][id].update(updates)
            self._data[collection][id]["_updated_at"] = datetime.now(timezone.utc).isoformat()
            self._persist(collection)
            return True
        return False

    async def count(self, collection: str, filters: dict[str, Any] | None = None) -> int:
        return sum(
            1 for doc in self._data.get(collection, {}).values()
            if _matches(doc, filters)
        )

    def _persist(self, collection: str) -> None:
        """Hook for subclasses that keep a durable copy."""
        pass


# =============================================================================
# JSON File Metadata Storage
# =============================================================================


class JsonFileMetadataStorage(InMemoryMetadataStorage):
    """
    In-memory storage mirrored to one JSON file per collection.

    Good enough for a single-process dev server that should survive
    restarts. Every write rewrites the whole collection file.
    """

    def __init__(self, base_path: str = "./data"):
        super().__init__()
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self._load()

    def _collection_path(self, collection: str) -> Path:
        return self.base_path / f"{collection}.json"

    def _load(self) -> None:
        for path in self.base_path.glob("*.json"):
            with open(path, encoding="utf-8") as f:
                self._data[path.stem] = json.load(f)
            logger.info(f"Loaded {len(self._data[path.stem])} documents from {path}")

    def _persist(self, collection: str) -> None:
        path = self._collection_path(collection)
        tmp_path = path.with_suffix(".json.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self._data.get(collection, {}), f, indent=2)
        tmp_path.replace(path)


# =============================================================================
# Factory
# =============================================================================


def create_local_storage(data_dir: str = "") -> MetadataStorage:
    """Create a local MetadataStorage; file-backed when data_dir is given."""
    if data_dir:
        return JsonFileMetadataStorage(data_dir)
    return InMemoryMetadataStorage()
