from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Tuple

from application.ports.key_value_storage_port import KeyValueStoragePort
from application.watchlist.recovery import is_storage_near_capacity
from domain.watchlist import (
    WATCHLIST_MAX_ITEMS,
    WATCHLIST_STORAGE_KEY,
    WatchlistError,
    WatchlistErrorType,
    WatchlistItem,
    WatchStatus,
    safe_storage_operation,
    sanitize_watchlist,
    validate_add_to_watchlist,
    validate_watch_status,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WatchlistResult:
    success: bool
    items: Tuple[WatchlistItem, ...] = field(default_factory=tuple)
    error: Optional[WatchlistError] = None
    warning: Optional[str] = None

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {
            "success": self.success,
            "items": [item.to_dict() for item in self.items],
        }
        if self.error is not None:
            payload["error"] = self.error.to_dict()
        if self.warning:
            payload["warning"] = self.warning
        return payload


def serialize_watchlist(items: Sequence[WatchlistItem]) -> str:
    return json.dumps([item.to_dict() for item in items[:WATCHLIST_MAX_ITEMS]], ensure_ascii=False)


def load_watchlist(storage: KeyValueStoragePort, *, key: str = WATCHLIST_STORAGE_KEY) -> WatchlistResult:
    """Read and sanitize the persisted list. Corrupt data yields `INVALID_DATA`, never an exception."""
    stored, error = safe_storage_operation(lambda: storage.get_item(key), None, "load_watchlist")
    if error is not None:
        return WatchlistResult(False, (), error)
    if not stored:
        return WatchlistResult(True, ())

    try:
        raw = json.loads(stored)
    except (ValueError, RecursionError) as exc:
        logger.warning("watchlist data unreadable key=%s error=%s", key, exc.__class__.__name__)
        detail = str(exc) or exc.__class__.__name__
        error = WatchlistError(WatchlistErrorType.INVALID_DATA, f"Stored watchlist is unreadable: {detail}")
        return WatchlistResult(False, (), error)

    items = sanitize_watchlist(raw)
    warning = None
    dropped = len(raw) - len(items) if isinstance(raw, list) else 0
    if not isinstance(raw, list):
        warning = "Stored watchlist was not a list and has been ignored"
    elif dropped > 0:
        warning = f"Dropped {dropped} invalid watchlist entries"
    if warning:
        logger.warning("watchlist sanitized on load key=%s detail=%s", key, warning)
    return WatchlistResult(True, tuple(items), warning=warning)


def save_watchlist(
    storage: KeyValueStoragePort,
    items: Sequence[WatchlistItem],
    *,
    key: str = WATCHLIST_STORAGE_KEY,
    context: str = "save_watchlist",
) -> Optional[WatchlistError]:
    payload = serialize_watchlist(items)
    _, error = safe_storage_operation(lambda: storage.set_item(key, payload), None, context)
    return error


def add_to_watchlist(
    storage: KeyValueStoragePort,
    items: Sequence[WatchlistItem],
    media: Any,
    watch_status: WatchStatus = WatchStatus.PLAN_TO_WATCH,
    *,
    key: str = WATCHLIST_STORAGE_KEY,
    now: Optional[str] = None,
) -> WatchlistResult:
    """Prepend a new entry built from `media` and persist; the input list is never modified."""
    current = tuple(items)
    status_check = validate_watch_status(watch_status)
    if not status_check.is_valid:
        return WatchlistResult(
            False,
            current,
            WatchlistError(WatchlistErrorType.INVALID_DATA, status_check.error, status_check.error, False),
        )

    validation = validate_add_to_watchlist(
        current,
        media,
        storage_near_capacity=is_storage_near_capacity(storage),
    )
    if not validation.is_valid:
        error_type = validation.error_type or WatchlistErrorType.INVALID_DATA
        user_message = validation.error if error_type == WatchlistErrorType.INVALID_DATA else None
        recoverable = False if error_type == WatchlistErrorType.INVALID_DATA else None
        return WatchlistResult(
            False,
            current,
            WatchlistError(error_type, validation.error or "Failed to add item", user_message, recoverable),
        )

    new_item = WatchlistItem.from_media(media, WatchStatus(watch_status), now=now)
    updated = (new_item,) + current
    error = save_watchlist(storage, updated, key=key, context="add_item")
    if error is not None:
        return WatchlistResult(False, current, error)
    logger.info("watchlist add id=%s media_type=%s size=%s", new_item.id, new_item.media_type.value, len(updated))
    return WatchlistResult(True, updated, warning=validation.warning)


def remove_from_watchlist(
    storage: KeyValueStoragePort,
    items: Sequence[WatchlistItem],
    item_id: str,
    *,
    key: str = WATCHLIST_STORAGE_KEY,
) -> WatchlistResult:
    current = tuple(items)
    if not any(item.id == item_id for item in current):
        return WatchlistResult(
            False,
            current,
            WatchlistError(
                WatchlistErrorType.ITEM_NOT_FOUND,
                f"Item {item_id!r} is not in the watchlist",
                "The item you're trying to remove was not found in your watchlist",
            ),
        )

    updated = tuple(item for item in current if item.id != item_id)
    error = save_watchlist(storage, updated, key=key, context="remove_item")
    if error is not None:
        return WatchlistResult(False, current, error)
    return WatchlistResult(True, updated)


def update_watch_status(
    storage: KeyValueStoragePort,
    items: Sequence[WatchlistItem],
    item_id: str,
    new_status: WatchStatus,
    *,
    key: str = WATCHLIST_STORAGE_KEY,
    now: Optional[str] = None,
) -> WatchlistResult:
    """Set the status in place. Moving to `watched` stamps `date_watched`; any other status clears it."""
    current = tuple(items)
    status_check = validate_watch_status(new_status)
    if not status_check.is_valid:
        return WatchlistResult(
            False,
            current,
            WatchlistError(WatchlistErrorType.INVALID_DATA, status_check.error, status_check.error, False),
        )
    if not any(item.id == item_id for item in current):
        return WatchlistResult(
            False,
            current,
            WatchlistError(
                WatchlistErrorType.ITEM_NOT_FOUND,
                f"Item {item_id!r} is not in the watchlist",
                "The item you're trying to update was not found in your watchlist",
            ),
        )

    status = WatchStatus(new_status)
    updated = tuple(item.with_status(status, now=now) if item.id == item_id else item for item in current)
    error = save_watchlist(storage, updated, key=key, context="update_status")
    if error is not None:
        return WatchlistResult(False, current, error)
    return WatchlistResult(True, updated)


def clear_watchlist(storage: KeyValueStoragePort, *, key: str = WATCHLIST_STORAGE_KEY) -> WatchlistResult:
    _, error = safe_storage_operation(lambda: storage.remove_item(key), None, "clear_watchlist")
    if error is not None:
        return WatchlistResult(False, (), error)
    return WatchlistResult(True, ())


__all__ = [
    "WatchlistResult",
    "serialize_watchlist",
    "load_watchlist",
    "save_watchlist",
    "add_to_watchlist",
    "remove_from_watchlist",
    "update_watch_status",
    "clear_watchlist",
]
