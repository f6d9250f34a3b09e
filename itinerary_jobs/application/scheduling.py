"""Fire-and-forget submission of generation work.

The request boundary hands the pipeline to a scheduler and returns without
awaiting it. The pipeline itself guarantees a terminal job state.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Protocol

from fastapi import BackgroundTasks

_logger = logging.getLogger("itinerary-jobs.pipeline")

JobRunner = Callable[..., Awaitable[Any]]


class JobScheduler(Protocol):
    def schedule(self, job_id: str, runner: JobRunner, *args: Any) -> None: ...


class BackgroundTaskScheduler:
    """Runs the job after the HTTP response has been sent (FastAPI ``BackgroundTasks``)."""

    def __init__(self, background_tasks: BackgroundTasks):
        self._tasks = background_tasks

    def schedule(self, job_id: str, runner: JobRunner, *args: Any) -> None:
        self._tasks.add_task(runner, *args)
        _logger.debug("Job %s scheduled as background task", job_id)


class AsyncioTaskScheduler:
    """Runs each job as an ``asyncio`` task on the current loop.

    Task references are held until completion so the loop cannot drop them.
    """

    def __init__(self):
        self._pending: dict[str, asyncio.Task] = {}

    def schedule(self, job_id: str, runner: JobRunner, *args: Any) -> None:
        loop = asyncio.get_running_loop()
        task = loop.create_task(runner(*args), name=f"itinerary-job-{job_id}")
        self._pending[job_id] = task
        task.add_done_callback(lambda t, jid=job_id: self._finished(jid, t))

    def _finished(self, job_id: str, task: asyncio.Task) -> None:
        self._pending.pop(job_id, None)
        if task.cancelled():
            _logger.warning("Job %s task was cancelled", job_id)
            return
        exc = task.exception()
        if exc is not None:
            _logger.error("Job %s task raised: %s", job_id, exc)

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every scheduled job to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending.values()), return_exceptions=True)
            for job_id, task in list(self._pending.items()):
                if task.done():
                    self._pending.pop(job_id, None)


__all__ = ["AsyncioTaskScheduler", "BackgroundTaskScheduler", "JobScheduler"]
