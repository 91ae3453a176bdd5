from __future__ import annotations

import asyncio
import json
from typing import Any, AsyncIterator, Optional, TypeVar

T = TypeVar("T")

HEARTBEAT_FRAME = ": ping\n\n"


def format_sse(payload: Any) -> str:
    return f"data: {json.dumps(payload, ensure_ascii=False, default=str)}\n\n"


async def iter_with_heartbeat(
    source: AsyncIterator[T],
    interval_s: float,
) -> AsyncIterator[Optional[T]]:
    """Re-yield `source`, yielding None whenever nothing arrived for `interval_s` seconds.

    Closing this generator cancels any pending read and closes `source`.
    """
    iterator = source.__aiter__()
    pending: asyncio.Future = asyncio.ensure_future(iterator.__anext__())
    try:
        while True:
            done, _ = await asyncio.wait({pending}, timeout=interval_s if interval_s > 0 else None)
            if not done:
                yield None
                continue
            try:
                item = pending.result()
            except StopAsyncIteration:
                return
            yield item
            pending = asyncio.ensure_future(iterator.__anext__())
    finally:
        if not pending.done():
            pending.cancel()
            await asyncio.gather(pending, return_exceptions=True)
        aclose = getattr(iterator, "aclose", None)
        if callable(aclose):
            await aclose()
