"""
app/services/background_tasks.py

Registry for fire-and-forget work that must outlive the request that
started it, such as cache writes after a client disconnects.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)

_pending: set[asyncio.Task] = set()


def spawn_background(coro: Coroutine[Any, Any, Any], *, name: str | None = None) -> asyncio.Task:
    """
    Start ``coro`` as an independent task.

    The registry holds a strong reference until the task finishes, so the
    task is neither garbage collected nor cancelled along with its caller.
    """

    task = asyncio.create_task(coro, name=name)
    _pending.add(task)
    task.add_done_callback(_on_done)
    return task


def _on_done(task: asyncio.Task) -> None:
    _pending.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Background task %s failed: %s", task.get_name(), exc, exc_info=exc)


def pending_count() -> int:
    return len(_pending)


async def drain_background_tasks(timeout: float | None = None) -> None:
    """
    Wait for registered tasks on the running loop to finish.
    """

    loop = asyncio.get_running_loop()
    tasks = [task for task in _pending if task.get_loop() is loop]
    if not tasks:
        return
    done, not_done = await asyncio.wait(tasks, timeout=timeout)
    if not_done:
        logger.warning("%d background task(s) still running after drain timeout", len(not_done))
