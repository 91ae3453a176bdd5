import logging
import time
from typing import Any, Dict, Optional

from infrastructure.utils import format_kv


class EventLogger:
    """
    Compact single-line flow logs for one recommendation run or watchlist request.

    Keeps a per-run sequence counter and elapsed time so interleaved runs can be
    told apart without repeating the whole context on every line.
    """

    def __init__(
        self,
        logger: logging.Logger,
        prefix: str,
        *,
        base_fields: Optional[Dict[str, Any]] = None,
        clock=time.monotonic,
        stacklevel: int = 3,
    ) -> None:
        self._logger = logger
        self._prefix = prefix
        self._base_fields: Dict[str, Any] = dict(base_fields or {})
        self._clock = clock
        self._started_at = clock()
        self._seq = 0
        self._stacklevel = stacklevel

    @property
    def seq(self) -> int:
        return self._seq

    def elapsed(self) -> float:
        return round(self._clock() - self._started_at, 4)

    def set(self, **fields: Any) -> None:
        self._base_fields.update({k: v for k, v in fields.items() if v is not None})

    def info(self, event: str, **fields: Any) -> None:
        self._log(logging.INFO, event, **fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._log(logging.WARNING, event, **fields)

    def exception(self, event: str, **fields: Any) -> None:
        """ERROR level with the current traceback attached."""
        self._log(logging.ERROR, event, exc_info=True, **fields)

    def _log(self, level: int, event: str, exc_info: bool = False, **fields: Any) -> None:
        self._seq += 1
        payload: Dict[str, Any] = {"seq": self._seq, "event": event, "elapsed_seconds": self.elapsed()}
        payload.update(self._base_fields)
        payload.update({k: v for k, v in fields.items() if v is not None})
        self._logger.log(
            level,
            "%s %s",
            self._prefix,
            format_kv(**payload),
            exc_info=exc_info,
            stacklevel=self._stacklevel,
        )
