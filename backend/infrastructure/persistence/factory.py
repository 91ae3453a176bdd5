"""Watchlist storage factory.

Reads the storage location and quota from infrastructure settings so callers
outside this layer never touch env configuration directly.
"""

from __future__ import annotations

from application.ports.key_value_storage_port import KeyValueStoragePort
from infrastructure.config.settings import (
    WATCHLIST_STORAGE_PATH,
    WATCHLIST_STORAGE_QUOTA_BYTES,
)
from infrastructure.persistence.local_storage import create_local_storage


def create_watchlist_storage() -> KeyValueStoragePort:
    """File-backed storage when WATCHLIST_STORAGE_PATH is set, otherwise process memory."""
    return create_local_storage(WATCHLIST_STORAGE_PATH, quota_bytes=WATCHLIST_STORAGE_QUOTA_BYTES)


__all__ = ["create_watchlist_storage"]
