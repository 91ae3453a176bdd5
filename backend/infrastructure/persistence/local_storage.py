from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import weakref
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from application.ports.key_value_storage_port import (
    StorageListener,
    StorageQuotaExceededError,
    StorageUnavailableError,
    entry_size,
)

logger = logging.getLogger(__name__)

DEFAULT_QUOTA_BYTES = 5 * 1024 * 1024


class _ChangeChannel:
    """Fan-out of change notifications between handles on the same storage.

    A handle never hears about its own writes, only about writes made through
    other handles (same semantics as browser `storage` events across tabs).
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: List[Tuple[int, StorageListener]] = []

    def subscribe(self, owner: object, listener: StorageListener) -> Callable[[], None]:
        entry = (id(owner), listener)
        with self._lock:
            self._listeners.append(entry)

        def _unsubscribe() -> None:
            with self._lock:
                if entry in self._listeners:
                    self._listeners.remove(entry)

        return _unsubscribe

    def publish(self, source: object, key: str, value: Optional[str]) -> None:
        with self._lock:
            targets = [listener for owner, listener in self._listeners if owner != id(source)]
        for listener in targets:
            try:
                listener(key, value)
            except Exception:
                logger.exception("storage listener failed key=%s", key)


class _QuotaMixin:
    quota_bytes: int

    def _check_quota(self, data: Dict[str, str], key: str, value: str) -> None:
        used = sum(entry_size(k, v) for k, v in data.items() if k != key)
        if used + entry_size(key, value) > self.quota_bytes:
            raise StorageQuotaExceededError(
                f"Storage quota exceeded: writing {key!r} needs "
                f"{used + entry_size(key, value)} of {self.quota_bytes} bytes"
            )


class InMemoryBackend:
    """Shared state behind one or more `InMemoryLocalStorage` handles."""

    def __init__(self) -> None:
        self.data: Dict[str, str] = {}
        self.lock = threading.RLock()
        self.channel = _ChangeChannel()


class InMemoryLocalStorage(_QuotaMixin):
    """Process-local key-value storage.

    Handles created with the same `backend` see the same data and notify each
    other of changes, which makes them useful for simulating several clients.
    """

    def __init__(
        self,
        *,
        backend: Optional[InMemoryBackend] = None,
        quota_bytes: int = DEFAULT_QUOTA_BYTES,
    ) -> None:
        self.backend = backend or InMemoryBackend()
        self.quota_bytes = int(quota_bytes)

    def get_item(self, key: str) -> Optional[str]:
        with self.backend.lock:
            return self.backend.data.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self.backend.lock:
            self._check_quota(self.backend.data, key, value)
            self.backend.data[key] = value
        self.backend.channel.publish(self, key, value)

    def remove_item(self, key: str) -> None:
        with self.backend.lock:
            existed = self.backend.data.pop(key, None) is not None
        if existed:
            self.backend.channel.publish(self, key, None)

    def keys(self) -> List[str]:
        with self.backend.lock:
            return list(self.backend.data.keys())

    def subscribe(self, listener: StorageListener) -> Callable[[], None]:
        return self.backend.channel.subscribe(self, listener)


_FILE_CHANNELS: "weakref.WeakValueDictionary[str, _ChangeChannel]" = weakref.WeakValueDictionary()
_FILE_LOCKS: Dict[str, threading.RLock] = {}
_FILE_REGISTRY_LOCK = threading.Lock()


def _file_channel_and_lock(path: Path) -> Tuple[_ChangeChannel, threading.RLock]:
    resolved = str(path.resolve())
    with _FILE_REGISTRY_LOCK:
        channel = _FILE_CHANNELS.get(resolved)
        if channel is None:
            channel = _ChangeChannel()
            _FILE_CHANNELS[resolved] = channel
        lock = _FILE_LOCKS.setdefault(resolved, threading.RLock())
    return channel, lock


class FileLocalStorage(_QuotaMixin):
    """Key-value storage persisted as one JSON object on disk.

    Writes go to a temp file in the same directory and are moved into place
    with `os.replace`. Handles opened on the same path share change notifications.
    """

    def __init__(self, path: str | Path, *, quota_bytes: int = DEFAULT_QUOTA_BYTES) -> None:
        self.path = Path(path).expanduser()
        self.quota_bytes = int(quota_bytes)
        self._channel, self._lock = _file_channel_and_lock(self.path)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                raw = handle.read()
        except OSError as exc:
            raise StorageUnavailableError(f"Cannot read storage file {self.path}: {exc}") from exc
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StorageUnavailableError(f"Storage file {self.path} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise StorageUnavailableError(f"Storage file {self.path} does not hold a JSON object")
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: Dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".storage-", dir=str(self.path.parent))
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(data, handle, ensure_ascii=False)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as exc:
            raise StorageUnavailableError(f"Cannot write storage file {self.path}: {exc}") from exc

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            self._check_quota(data, key, value)
            data[key] = value
            self._write(data)
        self._channel.publish(self, key, value)

    def remove_item(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key not in data:
                return
            del data[key]
            self._write(data)
        self._channel.publish(self, key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._read().keys())

    def subscribe(self, listener: StorageListener) -> Callable[[], None]:
        return self._channel.subscribe(self, listener)


def create_local_storage(
    path: str | Path | None = None,
    *,
    quota_bytes: int = DEFAULT_QUOTA_BYTES,
):
    """File-backed storage when a path is given, otherwise in-memory."""
    if path:
        logger.info("watchlist storage backend=file path=%s quota_bytes=%s", path, quota_bytes)
        return FileLocalStorage(path, quota_bytes=quota_bytes)
    logger.info("watchlist storage backend=memory quota_bytes=%s", quota_bytes)
    return InMemoryLocalStorage(quota_bytes=quota_bytes)


__all__ = [
    "DEFAULT_QUOTA_BYTES",
    "InMemoryBackend",
    "InMemoryLocalStorage",
    "FileLocalStorage",
    "create_local_storage",
]
