from __future__ import annotations

import json
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Optional

from application.ports.key_value_storage_port import KeyValueStoragePort, entry_size
from domain.watchlist import WATCHLIST_STORAGE_KEY, sanitize_watchlist

logger = logging.getLogger(__name__)

STORAGE_NEAR_CAPACITY_RATIO = 0.8
_CHECK_KEY = "__watchlist_test__"
_CHECK_VALUE = "test"

_TRAILING_COMMA_OBJECT_RE = re.compile(r",\s*}")
_TRAILING_COMMA_ARRAY_RE = re.compile(r",\s*]")


@dataclass(frozen=True)
class RecoveryResult:
    success: bool
    message: str
    data: Any = None


@dataclass(frozen=True)
class StorageInfo:
    available: bool
    used_bytes: int
    watchlist_bytes: int
    quota_bytes: int
    percentage: int
    error: Optional[str] = None

    def to_dict(self) -> dict:
        payload = {
            "available": self.available,
            "used_bytes": self.used_bytes,
            "watchlist_bytes": self.watchlist_bytes,
            "quota_bytes": self.quota_bytes,
            "percentage": self.percentage,
        }
        if self.error:
            payload["error"] = self.error
        return payload


def check_storage_available(storage: KeyValueStoragePort) -> RecoveryResult:
    """Write, read back and remove a check key."""
    try:
        storage.set_item(_CHECK_KEY, _CHECK_VALUE)
        retrieved = storage.get_item(_CHECK_KEY)
        storage.remove_item(_CHECK_KEY)
    except Exception as exc:
        logger.warning("storage check failed error=%s", exc)
        return RecoveryResult(False, f"Storage error: {exc}")
    if retrieved != _CHECK_VALUE:
        return RecoveryResult(False, "Storage is not functioning correctly")
    return RecoveryResult(True, "Storage is working correctly")


def _forgiving_parse(stored: str) -> Any:
    try:
        return json.loads(stored)
    except ValueError:
        fixed = _TRAILING_COMMA_OBJECT_RE.sub("}", stored)
        fixed = _TRAILING_COMMA_ARRAY_RE.sub("]", fixed)
        fixed = fixed.replace("'", '"')
        return json.loads(fixed)


def _is_plausible_entry(item: Any) -> bool:
    return (
        isinstance(item, dict)
        and isinstance(item.get("id"), str)
        and isinstance(item.get("displayTitle"), str)
        and item.get("mediaType") in ("movie", "tv")
    )


def attempt_data_recovery(
    storage: KeyValueStoragePort,
    *,
    key: str = WATCHLIST_STORAGE_KEY,
) -> RecoveryResult:
    """Re-read persisted data as forgivingly as possible; `data` holds the recovered items."""
    try:
        stored = storage.get_item(key)
    except Exception as exc:
        return RecoveryResult(False, f"Data recovery failed: {exc}")

    if not stored:
        return RecoveryResult(True, "No stored data to recover", [])

    try:
        data = _forgiving_parse(stored)
    except (ValueError, RecursionError):
        return RecoveryResult(False, "Unable to parse watchlist data - data may be corrupted")

    if not isinstance(data, list):
        return RecoveryResult(False, "Watchlist data is not in the expected format")

    plausible = [item for item in data if _is_plausible_entry(item)]
    recovered = sanitize_watchlist(plausible)
    logger.info("watchlist recovery total=%s plausible=%s recovered=%s", len(data), len(plausible), len(recovered))
    return RecoveryResult(
        True,
        f"Recovered {len(recovered)} valid items from {len(data)} total items",
        recovered,
    )


def create_backup(
    storage: KeyValueStoragePort,
    *,
    key: str = WATCHLIST_STORAGE_KEY,
    now_ms: Optional[int] = None,
) -> RecoveryResult:
    try:
        stored = storage.get_item(key)
        if not stored:
            return RecoveryResult(True, "No data to backup", None)
        backup_key = f"{key}_backup_{now_ms if now_ms is not None else int(time.time() * 1000)}"
        storage.set_item(backup_key, stored)
    except Exception as exc:
        logger.error("watchlist backup failed error=%s", exc)
        return RecoveryResult(False, f"Backup failed: {exc}")
    return RecoveryResult(True, f"Backup created with key: {backup_key}", backup_key)


def clear_all_watchlist_data(
    storage: KeyValueStoragePort,
    *,
    key: str = WATCHLIST_STORAGE_KEY,
) -> RecoveryResult:
    """Remove the watchlist and every backup taken of it."""
    try:
        keys_to_remove = [k for k in storage.keys() if k.startswith(key)]
        for k in keys_to_remove:
            storage.remove_item(k)
    except Exception as exc:
        return RecoveryResult(False, f"Clear operation failed: {exc}")
    return RecoveryResult(True, f"Cleared {len(keys_to_remove)} watchlist-related items", keys_to_remove)


def get_storage_info(
    storage: KeyValueStoragePort,
    *,
    key: str = WATCHLIST_STORAGE_KEY,
) -> StorageInfo:
    quota = int(getattr(storage, "quota_bytes", 0) or 0)
    try:
        used = 0
        watchlist_used = 0
        for k in storage.keys():
            size = entry_size(k, storage.get_item(k) or "")
            used += size
            if k.startswith(key):
                watchlist_used += size
    except Exception as exc:
        return StorageInfo(False, 0, 0, quota, 0, error=str(exc))
    percentage = int(round(used / quota * 100)) if quota > 0 else 0
    return StorageInfo(True, used, watchlist_used, quota, percentage)


def is_storage_near_capacity(
    storage: KeyValueStoragePort,
    *,
    ratio: float = STORAGE_NEAR_CAPACITY_RATIO,
) -> bool:
    info = get_storage_info(storage)
    if not info.available or info.quota_bytes <= 0:
        return False
    return info.used_bytes / info.quota_bytes > ratio


__all__ = [
    "RecoveryResult",
    "StorageInfo",
    "STORAGE_NEAR_CAPACITY_RATIO",
    "check_storage_available",
    "attempt_data_recovery",
    "create_backup",
    "clear_all_watchlist_data",
    "get_storage_info",
    "is_storage_near_capacity",
]
