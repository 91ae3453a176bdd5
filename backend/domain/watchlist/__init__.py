from domain.watchlist.errors import (
    StorageError,
    StorageQuotaExceededError,
    StorageUnavailableError,
    WatchlistError,
    WatchlistErrorType,
    classify_error,
    safe_storage_operation,
)
from domain.watchlist.media_item import MediaItem, MovieItem, TvShowItem, media_item_from_payload
from domain.watchlist.queries import (
    WatchlistStats,
    get_items_by_status,
    get_movies,
    get_tv_shows,
    get_watchlist_stats,
    is_in_watchlist,
)
from domain.watchlist.validation import (
    ValidationResult,
    WatchlistCapacity,
    get_watchlist_capacity,
    sanitize_watchlist,
    validate_add_to_watchlist,
    validate_media_item,
    validate_watch_status,
    validate_watchlist_array,
    validate_watchlist_item,
)
from domain.watchlist.watchlist_item import (
    WATCHLIST_MAX_ITEMS,
    WATCHLIST_STORAGE_KEY,
    WATCHLIST_WARNING_THRESHOLD,
    MediaType,
    WatchlistItem,
    WatchStatus,
    parse_iso_datetime,
    utc_now_iso,
)

__all__ = [
    "StorageError",
    "StorageQuotaExceededError",
    "StorageUnavailableError",
    "WatchlistError",
    "WatchlistErrorType",
    "classify_error",
    "safe_storage_operation",
    "MediaItem",
    "MovieItem",
    "TvShowItem",
    "media_item_from_payload",
    "WatchlistStats",
    "get_items_by_status",
    "get_movies",
    "get_tv_shows",
    "get_watchlist_stats",
    "is_in_watchlist",
    "ValidationResult",
    "WatchlistCapacity",
    "get_watchlist_capacity",
    "sanitize_watchlist",
    "validate_add_to_watchlist",
    "validate_media_item",
    "validate_watch_status",
    "validate_watchlist_array",
    "validate_watchlist_item",
    "WATCHLIST_MAX_ITEMS",
    "WATCHLIST_STORAGE_KEY",
    "WATCHLIST_WARNING_THRESHOLD",
    "MediaType",
    "WatchlistItem",
    "WatchStatus",
    "parse_iso_datetime",
    "utc_now_iso",
]
