from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, List, Optional, Tuple

from application.ports.key_value_storage_port import KeyValueStoragePort
from application.watchlist import operations
from application.watchlist.operations import WatchlistResult
from application.watchlist.recovery import (
    RecoveryResult,
    StorageInfo,
    attempt_data_recovery,
    create_backup,
    get_storage_info,
)
from domain.watchlist import (
    WATCHLIST_STORAGE_KEY,
    WatchlistCapacity,
    WatchlistError,
    WatchlistItem,
    WatchlistStats,
    WatchStatus,
    get_items_by_status,
    get_movies,
    get_tv_shows,
    get_watchlist_capacity,
    get_watchlist_stats,
    is_in_watchlist,
)

logger = logging.getLogger(__name__)

DEFAULT_ERROR_DISMISS_S = 5.0


class WatchlistService:
    """Stateful watchlist bound to one storage key.

    Holds the sanitized items in memory, persists every mutation through the
    storage port and re-reads the key when another handle on the same storage
    changes it (last writer wins). The most recent failure is kept in
    `last_error` until it is cleared, replaced, or older than `error_dismiss_s`.
    """

    def __init__(
        self,
        storage: KeyValueStoragePort,
        *,
        key: str = WATCHLIST_STORAGE_KEY,
        error_dismiss_s: float = DEFAULT_ERROR_DISMISS_S,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._storage = storage
        self._key = key
        self._error_dismiss_s = float(error_dismiss_s)
        self._clock = clock
        self._lock = threading.RLock()
        self._items: Tuple[WatchlistItem, ...] = ()
        self._last_error: Optional[WatchlistError] = None
        self._last_error_at: Optional[float] = None
        self._last_warning: Optional[str] = None
        self._stale = False

        self.refresh()
        self._unsubscribe = storage.subscribe(self._on_storage_change)

    # ==================== State ====================

    @property
    def key(self) -> str:
        return self._key

    @property
    def items(self) -> Tuple[WatchlistItem, ...]:
        return self._items

    @property
    def stats(self) -> WatchlistStats:
        return get_watchlist_stats(self._items)

    @property
    def capacity(self) -> WatchlistCapacity:
        return get_watchlist_capacity(len(self._items))

    @property
    def last_warning(self) -> Optional[str]:
        return self._last_warning

    @property
    def last_error(self) -> Optional[WatchlistError]:
        with self._lock:
            if self._last_error is None or self._last_error_at is None:
                return None
            if self._clock() - self._last_error_at >= self._error_dismiss_s:
                self._last_error = None
                self._last_error_at = None
            return self._last_error

    def clear_errors(self) -> None:
        with self._lock:
            self._last_error = None
            self._last_error_at = None

    def _record(self, result: WatchlistResult) -> WatchlistResult:
        with self._lock:
            if result.success:
                self._items = result.items
                self._last_error = None
                self._last_error_at = None
            elif result.error is not None:
                self._last_error = result.error
                self._last_error_at = self._clock()
            self._last_warning = result.warning
        return result

    # ==================== Queries ====================

    def is_in_watchlist(self, item_id: str) -> bool:
        return is_in_watchlist(self._items, item_id)

    def get_movies(self) -> List[WatchlistItem]:
        return get_movies(self._items)

    def get_tv_shows(self) -> List[WatchlistItem]:
        return get_tv_shows(self._items)

    def get_items_by_status(self, status: WatchStatus) -> List[WatchlistItem]:
        return get_items_by_status(self._items, status)

    def get_item(self, item_id: str) -> Optional[WatchlistItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def storage_info(self) -> StorageInfo:
        return get_storage_info(self._storage, key=self._key)

    # ==================== Mutations ====================

    def add(
        self,
        media: Any,
        watch_status: WatchStatus = WatchStatus.PLAN_TO_WATCH,
        *,
        now: Optional[str] = None,
    ) -> WatchlistResult:
        with self._lock:
            result = operations.add_to_watchlist(
                self._storage, self._items, media, watch_status, key=self._key, now=now
            )
            self._record(result)
        self._refresh_if_stale()
        return result

    def remove(self, item_id: str) -> WatchlistResult:
        with self._lock:
            result = self._record(operations.remove_from_watchlist(self._storage, self._items, item_id, key=self._key))
        self._refresh_if_stale()
        return result

    def update_status(
        self,
        item_id: str,
        new_status: WatchStatus,
        *,
        now: Optional[str] = None,
    ) -> WatchlistResult:
        with self._lock:
            result = operations.update_watch_status(
                self._storage, self._items, item_id, new_status, key=self._key, now=now
            )
            self._record(result)
        self._refresh_if_stale()
        return result

    def clear(self) -> WatchlistResult:
        with self._lock:
            result = operations.clear_watchlist(self._storage, key=self._key)
            if not result.success:
                result = WatchlistResult(False, self._items, result.error)
            self._record(result)
        self._refresh_if_stale()
        return result

    # ==================== Sync / recovery ====================

    def refresh(self) -> WatchlistResult:
        """Re-read the persisted list; unreadable data falls back to recovery, then to empty."""
        with self._lock:
            self._stale = False
            result = self._reload()
        self._refresh_if_stale()
        return result

    def _reload(self) -> WatchlistResult:
        result = operations.load_watchlist(self._storage, key=self._key)
        if result.success:
            return self._record(result)

        logger.warning(
            "watchlist load failed key=%s type=%s; attempting recovery",
            self._key,
            result.error.type.value if result.error else "unknown",
        )
        recovery = attempt_data_recovery(self._storage, key=self._key)
        items = tuple(recovery.data or ()) if recovery.success else ()
        self._items = items
        self._last_warning = recovery.message
        if result.error is not None:
            self._last_error = result.error
            self._last_error_at = self._clock()
        return WatchlistResult(False, items, result.error, recovery.message)

    def _refresh_if_stale(self) -> None:
        # Never waits on the lock: a holder re-checks the flag once it releases.
        while self._stale:
            if not self._lock.acquire(blocking=False):
                return
            try:
                if self._stale:
                    self._stale = False
                    self._reload()
            finally:
                self._lock.release()

    def attempt_recovery(self) -> RecoveryResult:
        """Recover what can be read from storage and write the cleaned list back."""
        with self._lock:
            recovery = attempt_data_recovery(self._storage, key=self._key)
            if recovery.success:
                items = tuple(recovery.data or ())
                error = operations.save_watchlist(self._storage, items, key=self._key, context="attempt_recovery")
                if error is not None:
                    self._record(WatchlistResult(False, self._items, error))
                    recovery = RecoveryResult(False, f"Recovery failed: {error.message}")
                else:
                    self._record(WatchlistResult(True, items))
        self._refresh_if_stale()
        return recovery

    def create_backup(self) -> RecoveryResult:
        return create_backup(self._storage, key=self._key)

    def _on_storage_change(self, key: str, new_value: Optional[str]) -> None:
        if key != self._key:
            return
        logger.info("watchlist changed externally key=%s removed=%s", key, new_value is None)
        self._stale = True
        self._refresh_if_stale()

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None


__all__ = ["WatchlistService", "DEFAULT_ERROR_DISMISS_S"]
