"""Bridges between the async exporter and synchronous callers."""

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

T = TypeVar("T")


def run_sync(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine to completion in a fresh event loop.

    Args:
        coro: The coroutine to execute.

    Returns:
        The coroutine's result. Exceptions propagate unchanged.

    Raises:
        RuntimeError: If called from a thread that already runs an event loop.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    coro.close()
    raise RuntimeError("run_sync() cannot be called from a running event loop; await instead")
