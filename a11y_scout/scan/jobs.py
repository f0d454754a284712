# a11y_scout/scan/jobs.py
"""
Fire-and-forget background jobs on the running event loop.

The queue keeps a strong reference to every task until it finishes (the
event loop only keeps weak ones) and owns one cancellation event per job,
which the job body checks between units of work.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, FrozenSet, List, Optional

from a11y_scout.logger import logger

JobBody = Callable[[asyncio.Event], Awaitable[object]]


class JobQueue:
    """Registry of running background jobs keyed by job id."""

    def __init__(self) -> None:
        self._tasks: Dict[str, asyncio.Task] = {}
        self._cancel: Dict[str, asyncio.Event] = {}

    def submit(self, job_id: str, body: JobBody) -> asyncio.Task:
        """Schedule ``body(cancel_event)`` and return immediately."""
        if job_id in self._tasks:
            raise ValueError(f"job {job_id} is already running")
        cancel = asyncio.Event()
        task = asyncio.create_task(body(cancel), name=f"scan-{job_id}")
        self._tasks[job_id] = task
        self._cancel[job_id] = cancel
        task.add_done_callback(lambda t, jid=job_id: self._done(jid, t))
        return task

    def cancel(self, job_id: str) -> bool:
        """Ask a running job to stop at its next checkpoint."""
        event = self._cancel.get(job_id)
        if event is None:
            return False
        event.set()
        return True

    def running(self) -> FrozenSet[str]:
        """Ids of jobs that have not finished yet."""
        return frozenset(self._tasks)

    def task(self, job_id: str) -> Optional[asyncio.Task]:
        return self._tasks.get(job_id)

    async def join(self) -> None:
        """Wait until every submitted job has finished."""
        pending: List[asyncio.Task] = list(self._tasks.values())
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def _done(self, job_id: str, task: asyncio.Task) -> None:
        self._tasks.pop(job_id, None)
        self._cancel.pop(job_id, None)
        if task.cancelled():
            logger.warning("Job %s was cancelled", job_id)
        elif task.exception() is not None:
            logger.error("Job %s crashed: %r", job_id, task.exception())
