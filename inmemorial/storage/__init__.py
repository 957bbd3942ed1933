"""
Storage abstractions.

MetadataStorage holds the user and memorial documents; local
implementations cover development and tests.
"""

from inmemorial.storage.base import (
    MetadataStorage,
    Collections,
)
from inmemorial.storage.local import (
    InMemoryMetadataStorage,
    JsonFileMetadataStorage,
    create_local_storage,
)

__all__ = [
    "MetadataStorage",
    "Collections",
    "InMemoryMetadataStorage",
    "JsonFileMetadataStorage",
    "create_local_storage",
]
