"""Tests for the queue-driven subtitle worker."""

import asyncio
import time

import pytest

from services.queue import QueueManager, SubtitleJobQueue
from services.subtitles.worker import SubtitleWorker
from shared.enums import SubtitleProcessingStatus

VIDEO_URL = "https://cdn.example.com/ladder-safety.mp4"


@pytest.fixture
def job_queue():
    return SubtitleJobQueue(queue_manager=QueueManager(), queue_name="subtitle_worker_test")


@pytest.mark.asyncio
async def test_process_next_runs_queued_job(orchestrator, job_store, job_queue, subject):
    orchestrator.scheduler = job_queue
    job_id = await orchestrator.start_processing(subject.id, VIDEO_URL, target_languages=["Spanish"])
    worker = SubtitleWorker(orchestrator, concurrency=1, poll_interval=0.01)

    assert await worker.process_next() == job_id
    assert job_store.get_job(job_id).status == SubtitleProcessingStatus.COMPLETED
    assert await worker.process_next() is None


@pytest.mark.asyncio
async def test_worker_survives_crashing_run(orchestrator, job_queue):
    async def crash(job_id):
        raise RuntimeError("database is locked")

    orchestrator.run = crash
    job_queue.enqueue("job-1")
    worker = SubtitleWorker(orchestrator, queue=job_queue, concurrency=1)

    assert await worker.process_next() == "job-1"


@pytest.mark.asyncio
async def test_run_forever_drains_queue_until_stopped(orchestrator, job_queue):
    seen = []

    async def record(job_id):
        seen.append(job_id)
        await asyncio.sleep(0)

    orchestrator.run = record
    for job_id in ("job-1", "job-2", "job-3"):
        job_queue.enqueue(job_id)
    worker = SubtitleWorker(orchestrator, queue=job_queue, concurrency=2, poll_interval=0.01)

    task = asyncio.create_task(worker.run_forever())
    for _ in range(100):
        if len(seen) == 3:
            break
        await asyncio.sleep(0.01)
    worker.stop()
    await asyncio.wait_for(task, timeout=1)

    assert sorted(seen) == ["job-1", "job-2", "job-3"]
    assert job_queue.get_length() == 0


@pytest.mark.asyncio
async def test_concurrency_limit(orchestrator, job_queue):
    running = 0
    peak = 0
    release = asyncio.Event()

    async def slow(job_id):
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await release.wait()
        running -= 1

    orchestrator.run = slow
    for index in range(4):
        job_queue.enqueue(f"job-{index}")
    worker = SubtitleWorker(orchestrator, queue=job_queue, concurrency=2, poll_interval=0.01)

    task = asyncio.create_task(worker.run_forever())
    await asyncio.sleep(0.05)
    assert peak == 2
    assert job_queue.get_length() == 2

    release.set()
    await asyncio.sleep(0.05)
    worker.stop()
    await asyncio.wait_for(task, timeout=1)

    assert peak == 2
    assert job_queue.get_length() == 0


@pytest.mark.asyncio
async def test_unreachable_queue_does_not_block_event_loop(orchestrator):
    class UnreachableQueue:
        def dequeue(self):
            time.sleep(0.3)
            raise ConnectionError("Redis connection refused")

    worker = SubtitleWorker(orchestrator, queue=UnreachableQueue(), concurrency=1, poll_interval=0.01)
    task = asyncio.create_task(worker.run_forever())
    await asyncio.sleep(0.05)

    started = time.monotonic()
    await asyncio.sleep(0.01)
    assert time.monotonic() - started < 0.2

    worker.stop()
    await asyncio.wait_for(task, timeout=2)


@pytest.mark.asyncio
async def test_stalled_job_is_requeued_and_finished(orchestrator, job_store, job_queue, subject):
    orchestrator.scheduler = job_queue
    job_id = await orchestrator.start_processing(subject.id, VIDEO_URL, target_languages=["Spanish"])
    # Message consumed by a worker that died right after claiming
    assert job_queue.dequeue() == job_id
    job_store.claim_job(job_id)

    orchestrator.stale_after = 0
    worker = SubtitleWorker(orchestrator, concurrency=1)

    assert await worker.recover_stalled_jobs() == [job_id]
    assert await worker.process_next() == job_id
    assert job_store.get_job(job_id).status == SubtitleProcessingStatus.COMPLETED
    assert await worker.recover_stalled_jobs() == []
