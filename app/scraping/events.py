"""
Server-Sent Events framing shared by the agent reader and the search relay.

Inbound, upstream responses are read line by line and every ``data:`` line
holding a JSON object becomes one event. Outbound, each payload is written as
one ``data: <json>`` frame terminated by a blank line.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterable, AsyncIterator, Mapping
from typing import Any

DATA_FIELD = "data:"
KEEPALIVE_FRAME = b": ping\n\n"


def parse_event_line(line: str) -> dict[str, Any] | None:
    """
    Decode one SSE line into an event object.

    Comments, other SSE fields, blank lines and malformed JSON all yield None.
    """

    line = line.rstrip("\r\n")
    if not line.startswith(DATA_FIELD):
        return None
    raw = line[len(DATA_FIELD):]
    if raw.startswith(" "):
        raw = raw[1:]
    try:
        event = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(event, dict):
        return None
    return event


async def iter_events(lines: AsyncIterable[str]) -> AsyncIterator[dict[str, Any]]:
    """
    Pull decoded events from an async stream of text lines.
    """

    async for line in lines:
        event = parse_event_line(line)
        if event is not None:
            yield event


def encode_event(payload: Mapping[str, Any]) -> bytes:
    # ASCII-only: lone surrogates from upstream JSON come out as \u escapes.
    body = json.dumps(payload, default=str, separators=(",", ":"))
    return f"{DATA_FIELD} {body}\n\n".encode("ascii")
