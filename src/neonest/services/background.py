"""Fire-and-forget scheduling for remote sync."""

import asyncio
import logging
from collections.abc import Coroutine
from typing import TypeVar

T = TypeVar("T")

_logger = logging.getLogger(__name__)


def fire_and_forget(
    coro: Coroutine[object, object, T], pending: set[asyncio.Task[T]]
) -> asyncio.Task[T] | None:
    """Schedule a coroutine on the running loop without awaiting it.

    The task is kept in ``pending`` until it finishes so it is not garbage
    collected mid-flight. Without a running loop the coroutine is dropped.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        coro.close()
        _logger.info("No running event loop, skipping background sync")
        return None
    task = loop.create_task(coro)
    pending.add(task)
    task.add_done_callback(pending.discard)
    return task
