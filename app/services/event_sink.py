"""
app/services/event_sink.py

Outbound event funnel for one streamed search response.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Mapping
from typing import Any

from pydantic import BaseModel

from app.scraping.events import KEEPALIVE_FRAME, encode_event


class EventSink:
    """
    Single-writer funnel between search tasks and one HTTP response body.

    Any number of tasks may ``emit``; each payload is framed before it is
    queued, so frames reach the client whole and in enqueue order. The
    response side drains ``frames()``, which starts with a keep-alive comment
    so the connection opens before any scrape finishes.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[bytes | None] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def emit(self, payload: BaseModel | Mapping[str, Any]) -> None:
        if self._closed:
            return
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(mode="json", exclude_none=True)
        self._queue.put_nowait(encode_event(payload))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)

    async def frames(self) -> AsyncIterator[bytes]:
        yield KEEPALIVE_FRAME
        while True:
            frame = await self._queue.get()
            if frame is None:
                return
            yield frame
