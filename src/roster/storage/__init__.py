"""Storage backends for the registry."""

from __future__ import annotations

from typing import TYPE_CHECKING

from roster.storage.base import (
    CONTAINS,
    FindOptions,
    Predicate,
    Record,
    StoragePort,
)
from roster.storage.document import DocumentStorage
from roster.storage.sql import SQLStorage

if TYPE_CHECKING:
    from roster.config.models import StorageConfig


def create_storage(config: StorageConfig) -> StoragePort:
    """Create the storage backend selected by configuration."""
    if config.backend == "document":
        return DocumentStorage(config.documents_path)

    from roster.db.engine import Database

    if config.database_url:
        database = Database(database_url=config.database_url)
    else:
        database = Database(database_path=config.database_path)
    return SQLStorage(database)


__all__ = [
    "CONTAINS",
    "DocumentStorage",
    "FindOptions",
    "Predicate",
    "Record",
    "SQLStorage",
    "StoragePort",
    "create_storage",
]
