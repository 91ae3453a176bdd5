from application.watchlist.operations import (
    WatchlistResult,
    add_to_watchlist,
    clear_watchlist,
    load_watchlist,
    remove_from_watchlist,
    save_watchlist,
    update_watch_status,
)
from application.watchlist.recovery import (
    RecoveryResult,
    StorageInfo,
    attempt_data_recovery,
    check_storage_available,
    clear_all_watchlist_data,
    create_backup,
    get_storage_info,
)
from application.watchlist.watchlist_service import WatchlistService

__all__ = [
    "WatchlistResult",
    "add_to_watchlist",
    "clear_watchlist",
    "load_watchlist",
    "remove_from_watchlist",
    "save_watchlist",
    "update_watch_status",
    "RecoveryResult",
    "StorageInfo",
    "attempt_data_recovery",
    "check_storage_available",
    "clear_all_watchlist_data",
    "create_backup",
    "get_storage_info",
    "WatchlistService",
]
