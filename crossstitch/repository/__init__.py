"""Repository layer: catalog/feedback store implementations.

The web layer only talks to CatalogFeedbackStore; SQL stays in here.
"""
from __future__ import annotations

from ..config import Settings
from .base import (
    SEED_ITEMS,
    CatalogFeedbackStore,
    SchemaError,
    StoreError,
    StoreReadError,
    StoreWriteError,
)


def build_store(settings: Settings) -> CatalogFeedbackStore:
    if settings.db_backend == "postgres":
        from ..db import create_pg_pool
        from .postgres_store import PostgresCatalogFeedbackStore
        return PostgresCatalogFeedbackStore(create_pg_pool(settings))
    from .sqlite_store import SqliteCatalogFeedbackStore
    return SqliteCatalogFeedbackStore(settings.db_path)


__all__ = [
    "SEED_ITEMS",
    "CatalogFeedbackStore",
    "SchemaError",
    "StoreError",
    "StoreReadError",
    "StoreWriteError",
    "build_store",
]
