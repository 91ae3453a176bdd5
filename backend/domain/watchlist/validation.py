from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence

from domain.watchlist.errors import WatchlistErrorType
from domain.watchlist.watchlist_item import (
    WATCHLIST_MAX_ITEMS,
    WATCHLIST_WARNING_THRESHOLD,
    MediaType,
    WatchlistItem,
    WatchStatus,
    parse_iso_datetime,
)

_VALID_MEDIA_TYPES = frozenset(m.value for m in MediaType)
_VALID_STATUSES = frozenset(s.value for s in WatchStatus)


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    error: Optional[str] = None
    warning: Optional[str] = None
    error_type: Optional[WatchlistErrorType] = None


@dataclass(frozen=True)
class WatchlistCapacity:
    current: int
    max: int
    remaining: int
    percentage: int
    is_full: bool
    is_near_full: bool

    def to_dict(self) -> dict:
        return {
            "current": self.current,
            "max": self.max,
            "remaining": self.remaining,
            "percentage": self.percentage,
            "is_full": self.is_full,
            "is_near_full": self.is_near_full,
        }


def _invalid(error: str, error_type: WatchlistErrorType = WatchlistErrorType.INVALID_DATA) -> ValidationResult:
    return ValidationResult(is_valid=False, error=error, error_type=error_type)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_rating(value: Any) -> bool:
    # Compared without float conversion: JSON integers may exceed the float range. NaN fails both bounds.
    return _is_number(value) and 0 <= value <= 10


def _is_finite_number(value: Any) -> bool:
    return _is_number(value) and (isinstance(value, int) or math.isfinite(value))


def _is_one_of(value: Any, allowed: frozenset) -> bool:
    return isinstance(value, str) and value in allowed


def validate_media_item(item: Any) -> ValidationResult:
    if item is None:
        return _invalid("Invalid item: Item is null or undefined")
    item_id = getattr(item, "id", None)
    if not isinstance(item_id, str) or not item_id.strip():
        return _invalid("Invalid item: Missing or invalid ID")
    rating = getattr(item, "vote_average", None)
    if not _is_rating(rating):
        return _invalid("Invalid item: Invalid rating")
    title = getattr(item, "display_title", None)
    if not isinstance(title, str) or not title.strip():
        return _invalid("Invalid item: Missing title")
    return ValidationResult(is_valid=True)


def validate_add_to_watchlist(
    current_items: Sequence[WatchlistItem],
    new_item: Any,
    *,
    storage_near_capacity: bool = False,
) -> ValidationResult:
    """Check whether `new_item` may be added; a valid result may still carry a warning."""
    item_validation = validate_media_item(new_item)
    if not item_validation.is_valid:
        return item_validation

    if any(item.id == new_item.id for item in current_items):
        return _invalid("This item is already in your watchlist", WatchlistErrorType.DUPLICATE_ITEM)

    if len(current_items) >= WATCHLIST_MAX_ITEMS:
        return _invalid(
            f"Your watchlist is full (maximum {WATCHLIST_MAX_ITEMS} items). Please remove some items first.",
            WatchlistErrorType.CAPACITY_EXCEEDED,
        )

    if storage_near_capacity:
        return _invalid(
            "Storage is nearly full. Please clear some data or export your watchlist.",
            WatchlistErrorType.STORAGE_QUOTA_EXCEEDED,
        )

    warning = None
    if len(current_items) >= WATCHLIST_WARNING_THRESHOLD:
        warning = (
            f"You're approaching the watchlist limit ({len(current_items)}/{WATCHLIST_MAX_ITEMS} items)"
        )
    return ValidationResult(is_valid=True, warning=warning)


def validate_watchlist_item(item: Any) -> ValidationResult:
    """Structural check of one persisted (camelCase) entry."""
    if not isinstance(item, Mapping):
        return _invalid("Invalid watchlist item: Not an object")

    for field in ("id", "displayTitle", "dateAdded"):
        value = item.get(field)
        if not isinstance(value, str) or not value.strip():
            return _invalid(f"Invalid watchlist item: Missing or invalid {field}")

    average = item.get("average")
    if not _is_rating(average):
        return _invalid("Invalid watchlist item: Invalid average rating")

    if not _is_one_of(item.get("mediaType"), _VALID_MEDIA_TYPES):
        return _invalid("Invalid watchlist item: Invalid media type")

    if not _is_one_of(item.get("watchStatus"), _VALID_STATUSES):
        return _invalid("Invalid watchlist item: Invalid watch status")

    poster_path = item.get("posterPath")
    if poster_path is not None and not isinstance(poster_path, str):
        return _invalid("Invalid watchlist item: Invalid poster path")

    date_watched = item.get("dateWatched")
    if date_watched and not isinstance(date_watched, str):
        return _invalid("Invalid watchlist item: Invalid date watched")

    if parse_iso_datetime(item.get("dateAdded")) is None:
        return _invalid("Invalid watchlist item: Invalid date format")

    return ValidationResult(is_valid=True)


def validate_watch_status(status: Any) -> ValidationResult:
    if not _is_one_of(status, _VALID_STATUSES):
        valid = ", ".join(s.value for s in WatchStatus)
        return _invalid(f"Invalid watch status. Must be one of: {valid}")
    return ValidationResult(is_valid=True)


def validate_watchlist_array(items: Any) -> ValidationResult:
    if not isinstance(items, list):
        return _invalid("Invalid watchlist: Not an array")
    if len(items) > WATCHLIST_MAX_ITEMS:
        return _invalid(f"Watchlist exceeds maximum limit of {WATCHLIST_MAX_ITEMS} items")

    ids = [item.get("id") for item in items if isinstance(item, Mapping) and isinstance(item.get("id"), str)]
    if len(ids) != len(set(ids)):
        return _invalid("Invalid watchlist: Contains duplicate items")

    for index, item in enumerate(items):
        result = validate_watchlist_item(item)
        if not result.is_valid:
            return _invalid(f"Item {index + 1}: {result.error}")
    return ValidationResult(is_valid=True)


def _prepare_entry(raw: Any) -> Any:
    # Repairs applied before validation: titles trimmed, finite averages clamped.
    if isinstance(raw, WatchlistItem):
        raw = raw.to_dict()
    if not isinstance(raw, Mapping):
        return raw
    entry = dict(raw)
    title = entry.get("displayTitle")
    if isinstance(title, str):
        entry["displayTitle"] = title.strip()
    average = entry.get("average")
    if _is_finite_number(average):
        entry["average"] = float(max(0.0, min(10.0, average)))
    return entry


def sanitize_watchlist(raw_items: Any) -> List[WatchlistItem]:
    """Keep the valid, unique (first occurrence wins) entries, at most the item limit. Never raises."""
    if not isinstance(raw_items, (list, tuple)):
        return []

    valid: List[WatchlistItem] = []
    seen_ids: set[str] = set()
    for raw in raw_items:
        entry = _prepare_entry(raw)
        if not validate_watchlist_item(entry).is_valid:
            continue
        item_id = entry["id"]
        if item_id in seen_ids:
            continue
        date_watched = entry.get("dateWatched")
        if parse_iso_datetime(date_watched) is None:
            date_watched = None
        poster_path = entry.get("posterPath")
        valid.append(
            WatchlistItem(
                id=item_id,
                display_title=entry["displayTitle"],
                poster_path=poster_path if poster_path else None,
                average=float(entry["average"]),
                media_type=MediaType(entry["mediaType"]),
                watch_status=WatchStatus(entry["watchStatus"]),
                date_added=entry["dateAdded"],
                date_watched=date_watched,
            )
        )
        seen_ids.add(item_id)
        if len(valid) >= WATCHLIST_MAX_ITEMS:
            break
    return valid


def get_watchlist_capacity(current_count: int) -> WatchlistCapacity:
    return WatchlistCapacity(
        current=current_count,
        max=WATCHLIST_MAX_ITEMS,
        remaining=WATCHLIST_MAX_ITEMS - current_count,
        percentage=int(round(current_count / WATCHLIST_MAX_ITEMS * 100)),
        is_full=current_count >= WATCHLIST_MAX_ITEMS,
        is_near_full=current_count >= WATCHLIST_WARNING_THRESHOLD,
    )


__all__ = [
    "ValidationResult",
    "WatchlistCapacity",
    "validate_media_item",
    "validate_add_to_watchlist",
    "validate_watchlist_item",
    "validate_watch_status",
    "validate_watchlist_array",
    "sanitize_watchlist",
    "get_watchlist_capacity",
]
