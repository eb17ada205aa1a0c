"""In-flight board operations, cancellable per owner.

Each chat (the owner) may have several running operations; ``cancel_all``
aborts every one of them, e.g. when the user sends /cancel.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any, Hashable

logger = logging.getLogger(__name__)


class InflightRegistry:
    """Tracks running asyncio tasks by owner key."""

    def __init__(self) -> None:
        self._tasks: dict[Hashable, set[asyncio.Task]] = {}

    def start(self, owner: Hashable, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        """Run ``coro`` as a task registered under ``owner``."""
        task = asyncio.create_task(coro)
        self._tasks.setdefault(owner, set()).add(task)
        task.add_done_callback(lambda t: self._forget(owner, t))
        return task

    def _forget(self, owner: Hashable, task: asyncio.Task) -> None:
        tasks = self._tasks.get(owner)
        if tasks is None:
            return
        tasks.discard(task)
        if not tasks:
            del self._tasks[owner]

    def pending(self, owner: Hashable) -> int:
        return len(self._tasks.get(owner, ()))

    def cancel_all(self, owner: Hashable) -> int:
        """Cancel every running task for ``owner``. Returns how many were cancelled."""
        cancelled = 0
        for task in list(self._tasks.get(owner, ())):
            if task.cancel():
                cancelled += 1
        if cancelled:
            logger.info("Cancelled %d in-flight operation(s) for %s", cancelled, owner)
        return cancelled
