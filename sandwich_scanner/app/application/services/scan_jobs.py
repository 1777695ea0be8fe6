from __future__ import annotations

import asyncio
import logging
from typing import Coroutine, Any

logger = logging.getLogger(__name__)


class ScanJobRunner:
    """
    Launches scan jobs as independent asyncio tasks.

    The caller is never blocked by a job. Jobs have no cancellation hook:
    each one runs until it completes, fails, or the process exits.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    def start(self, job: Coroutine[Any, Any, Any], *, name: str | None = None) -> asyncio.Task[Any]:
        task = asyncio.create_task(job, name=name)
        # keep a strong reference until the task finishes
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        logger.info("Scan job started: %s", task.get_name())
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning("Scan job cancelled: %s", task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Scan job crashed: %s", task.get_name(), exc_info=exc)

    @property
    def running(self) -> int:
        return len(self._tasks)

    async def wait(self) -> None:
        """Wait until every job started so far has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
