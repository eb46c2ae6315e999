"""
Structured logging helpers for search and scraping workflows.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    *,
    started_at: float | None = None,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.

    ``started_at`` is a ``time.monotonic()`` reading; when given, the line
    carries ``elapsed_seconds`` measured from it.
    """

    if not logger.isEnabledFor(level):
        return
    payload: dict[str, Any] = {"event": event, **fields}
    if started_at is not None:
        payload["elapsed_seconds"] = round(time.monotonic() - started_at, 1)
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))
