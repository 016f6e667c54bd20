"""Background worker that pulls queued subtitle jobs and runs them."""

from __future__ import annotations

import asyncio

from services.queue import SubtitleJobQueue
from shared.utils import config, setup_logging

from .orchestrator import SubtitleProcessingOrchestrator

logger = setup_logging("subtitle-worker")


class SubtitleWorker:
    """Poll the job queue and run up to ``concurrency`` pipelines at once.

    Queue calls are blocking redis-py calls and run in a thread so the event
    loop (shared with the API when the worker runs in-process) keeps serving
    requests while Redis is slow or down.
    """

    def __init__(
        self,
        orchestrator: SubtitleProcessingOrchestrator,
        queue: SubtitleJobQueue | None = None,
        concurrency: int | None = None,
        poll_interval: float | None = None,
    ):
        self.orchestrator = orchestrator
        self.queue = queue or orchestrator.scheduler
        self.concurrency = max(1, int(concurrency or config.get("subtitle_worker_concurrency", 2)))
        self.poll_interval = float(poll_interval or config.get("subtitle_worker_poll_interval", 1.0))
        self._semaphore = asyncio.Semaphore(self.concurrency)
        self._tasks: set[asyncio.Task] = set()
        self._stopping = asyncio.Event()

    async def process_job(self, job_id: str) -> None:
        async with self._semaphore:
            await self._run(job_id)

    async def _run(self, job_id: str) -> None:
        try:
            await self.orchestrator.run(job_id)
        except Exception:
            logger.exception("Subtitle job %s crashed the worker run", job_id)

    async def _run_and_release(self, job_id: str) -> None:
        try:
            await self._run(job_id)
        finally:
            self._semaphore.release()

    async def _dequeue(self) -> str | None:
        try:
            return await asyncio.to_thread(self.queue.dequeue)
        except ConnectionError as exc:
            logger.error("Queue unavailable: %s", exc)
            return None

    async def recover_stalled_jobs(self) -> list[str]:
        """Requeue jobs whose run stopped writing for the orchestrator's ``stale_after`` window."""
        job_ids = await asyncio.to_thread(
            self.orchestrator.job_store.find_stalled_jobs, self.orchestrator.stale_after
        )
        requeued = []
        for job_id in job_ids:
            try:
                await asyncio.to_thread(self.queue.enqueue, job_id)
            except ConnectionError as exc:
                logger.error("Could not requeue stalled subtitle job %s: %s", job_id, exc)
                break
            logger.warning("Requeued stalled subtitle job %s", job_id)
            requeued.append(job_id)
        return requeued

    async def process_next(self) -> str | None:
        """Run the next queued job to completion; returns its id, or None when the queue is empty."""
        job_id = await self._dequeue()
        if job_id is None:
            return None
        logger.info("Picked up subtitle job %s", job_id)
        await self.process_job(job_id)
        return job_id

    async def run_forever(self) -> None:
        logger.info("Subtitle worker started (concurrency=%d)", self.concurrency)
        loop = asyncio.get_running_loop()
        next_recovery = loop.time()
        while not self._stopping.is_set():
            if loop.time() >= next_recovery:
                await self.recover_stalled_jobs()
                next_recovery = loop.time() + self.orchestrator.stale_after

            # Only dequeue once a run slot is free
            await self._semaphore.acquire()
            job_id = await self._dequeue()

            if job_id is None:
                self._semaphore.release()
                try:
                    await asyncio.wait_for(self._stopping.wait(), timeout=self.poll_interval)
                except asyncio.TimeoutError:
                    pass
                continue

            logger.info("Picked up subtitle job %s", job_id)
            task = asyncio.create_task(self._run_and_release(job_id))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        logger.info("Subtitle worker stopped")

    def stop(self) -> None:
        self._stopping.set()
