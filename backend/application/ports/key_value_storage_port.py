from __future__ import annotations

from typing import Callable, List, Optional, Protocol

from domain.watchlist.errors import StorageError, StorageQuotaExceededError, StorageUnavailableError

# (key, new_value) where new_value is None after a removal.
StorageListener = Callable[[str, Optional[str]], None]


def entry_size(key: str, value: str) -> int:
    """Bytes a stored entry counts against the quota (UTF-8 key plus value)."""
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


class KeyValueStoragePort(Protocol):
    """String key-value storage with a finite quota.

    Writes raise `StorageQuotaExceededError` when the quota would be exceeded and
    `StorageUnavailableError` when the backend cannot be used. Listeners are told
    about changes made by *other* handles on the same underlying storage.
    """

    @property
    def quota_bytes(self) -> int:
        ...

    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...

    def keys(self) -> List[str]:
        ...

    def subscribe(self, listener: StorageListener) -> Callable[[], None]:
        """Register a change listener; returns an unsubscribe callable."""
        ...


__all__ = [
    "KeyValueStoragePort",
    "StorageListener",
    "entry_size",
    "StorageError",
    "StorageQuotaExceededError",
    "StorageUnavailableError",
]
