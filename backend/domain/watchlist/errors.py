from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Callable, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StorageError(Exception):
    """Base class for key-value storage failures."""


class StorageQuotaExceededError(StorageError):
    """A write would exceed the storage quota."""


class StorageUnavailableError(StorageError):
    """The storage backend cannot be read or written."""


class WatchlistErrorType(str, Enum):
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"
    STORAGE_QUOTA_EXCEEDED = "STORAGE_QUOTA_EXCEEDED"
    INVALID_DATA = "INVALID_DATA"
    ITEM_NOT_FOUND = "ITEM_NOT_FOUND"
    DUPLICATE_ITEM = "DUPLICATE_ITEM"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    NETWORK_ERROR = "NETWORK_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


DEFAULT_USER_MESSAGES = {
    WatchlistErrorType.STORAGE_UNAVAILABLE: (
        "Storage is unavailable or disabled. Your watchlist won't be saved."
    ),
    WatchlistErrorType.STORAGE_QUOTA_EXCEEDED: (
        "Your storage is full. Please clear some data or export your watchlist to free up space."
    ),
    WatchlistErrorType.INVALID_DATA: (
        "Some watchlist data appears to be corrupted. We've cleaned it up for you."
    ),
    WatchlistErrorType.ITEM_NOT_FOUND: "The item you're looking for was not found in your watchlist.",
    WatchlistErrorType.DUPLICATE_ITEM: "This item is already in your watchlist.",
    WatchlistErrorType.CAPACITY_EXCEEDED: (
        "Your watchlist is full. Please remove some items before adding new ones."
    ),
    WatchlistErrorType.NETWORK_ERROR: (
        "There was a network error. Please check your connection and try again."
    ),
    WatchlistErrorType.RATE_LIMITED: (
        "You're making requests too quickly. Please wait a moment and try again."
    ),
    WatchlistErrorType.UNKNOWN_ERROR: "Something went wrong with your watchlist. Please try again.",
}

RECOVERABLE_TYPES = frozenset(
    {
        WatchlistErrorType.STORAGE_QUOTA_EXCEEDED,
        WatchlistErrorType.INVALID_DATA,
        WatchlistErrorType.NETWORK_ERROR,
        WatchlistErrorType.RATE_LIMITED,
    }
)


class WatchlistError(Exception):
    """Classified watchlist failure with a technical and a user-facing message."""

    def __init__(
        self,
        type: WatchlistErrorType,
        message: str,
        user_message: Optional[str] = None,
        recoverable: Optional[bool] = None,
    ) -> None:
        super().__init__(message)
        self.type = WatchlistErrorType(type)
        self.message = message
        self.user_message = user_message or DEFAULT_USER_MESSAGES[self.type]
        self.recoverable = self.type in RECOVERABLE_TYPES if recoverable is None else bool(recoverable)

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "message": self.message,
            "user_message": self.user_message,
            "recoverable": self.recoverable,
        }

    def __repr__(self) -> str:
        return f"WatchlistError(type={self.type.value!r}, message={self.message!r})"


def classify_error(exc: BaseException) -> WatchlistError:
    """Map an arbitrary exception onto the watchlist error taxonomy."""
    if isinstance(exc, WatchlistError):
        return exc

    message = str(exc) or exc.__class__.__name__
    lowered = message.lower()

    if isinstance(exc, StorageQuotaExceededError) or "quota" in lowered:
        return WatchlistError(WatchlistErrorType.STORAGE_QUOTA_EXCEEDED, message)
    if isinstance(exc, (StorageUnavailableError, PermissionError)):
        return WatchlistError(WatchlistErrorType.STORAGE_UNAVAILABLE, message)
    if isinstance(exc, json.JSONDecodeError) or (isinstance(exc, ValueError) and "json" in lowered):
        return WatchlistError(WatchlistErrorType.INVALID_DATA, message)
    if isinstance(exc, (ConnectionError, TimeoutError)) or "network" in lowered:
        return WatchlistError(WatchlistErrorType.NETWORK_ERROR, message)
    return WatchlistError(
        WatchlistErrorType.UNKNOWN_ERROR,
        message,
        user_message=f"An unexpected error occurred: {message}",
    )


def safe_storage_operation(
    operation: Callable[[], T],
    fallback: T,
    context: Optional[str] = None,
) -> Tuple[T, Optional[WatchlistError]]:
    """Run a storage call; on failure return `(fallback, classified_error)` instead of raising."""
    try:
        return operation(), None
    except Exception as exc:
        error = classify_error(exc)
        logger.error(
            "watchlist storage error operation=%s type=%s message=%s",
            context or "unknown",
            error.type.value,
            error.message,
        )
        return fallback, error


__all__ = [
    "StorageError",
    "StorageQuotaExceededError",
    "StorageUnavailableError",
    "WatchlistErrorType",
    "WatchlistError",
    "DEFAULT_USER_MESSAGES",
    "RECOVERABLE_TYPES",
    "classify_error",
    "safe_storage_operation",
]
