"""Background worker that drains the task queue."""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta

from docmirror.pipeline.controller import TaskController
from docmirror.pipeline.queue import Job, TaskQueue

logger = logging.getLogger(__name__)


class Worker:
    """Claims queued jobs one at a time and runs them through the controller.

    A job is acked once its task reaches a terminal state, whether the
    translations succeeded or not. Only an exception escaping the
    controller nacks it for another attempt.
    """

    def __init__(
        self,
        controller: TaskController,
        queue: TaskQueue,
        poll_interval: float = 2.0,
        stale_after: float = 3600.0,
    ) -> None:
        self.controller = controller
        self.queue = queue
        self.poll_interval = poll_interval
        self.stale_after = stale_after
        self._stopped = False

    async def run_once(self) -> Job | None:
        """Process the next pending job. Returns it, or None if the queue is empty."""
        job = self.queue.dequeue()
        if job is None:
            return None

        logger.info("Running task %s (job %s, attempt %d)", job.task_id, job.id, job.attempts + 1)
        try:
            await self.controller.run_job(job)
        except Exception as e:
            logger.error("Job %s for task %s failed: %s", job.id, job.task_id, e)
            self.queue.nack(job.id, str(e) or type(e).__name__)
        else:
            self.queue.ack(job.id)
        return job

    async def drain(self) -> int:
        """Run jobs until the queue is empty. Returns how many were processed."""
        count = 0
        while await self.run_once() is not None:
            count += 1
        return count

    async def run_forever(self) -> None:
        logger.info("Worker started (poll interval %.1fs)", self.poll_interval)
        released = self.queue.requeue_stale(timedelta(seconds=self.stale_after))
        if released:
            logger.warning("Re-queued %d job(s) abandoned by a previous worker", released)
        while not self._stopped:
            if await self.run_once() is None:
                await asyncio.sleep(self.poll_interval)
        logger.info("Worker stopped")

    def stop(self) -> None:
        self._stopped = True
