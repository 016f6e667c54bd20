import json

import pytest
import redis

from services.queue import PROCESS_SUBTITLES_ACTION, QueueManager, SubtitleJobQueue


@pytest.fixture
def queue():
    return QueueManager()


@pytest.fixture
def job_queue():
    return SubtitleJobQueue(queue_manager=QueueManager(), queue_name="subtitle_jobs_test")


def test_enqueue_dequeue(queue):
    key = "test_queue"
    value = "test_value"
    queue.enqueue(key, value)
    assert queue.dequeue(key) == value
    assert queue.dequeue(key) is None


def test_queue_length(queue):
    key = "test_queue_len"
    queue.enqueue(key, "v1")
    queue.enqueue(key, "v2")
    assert queue.get_length(key) == 2
    queue.dequeue(key)
    assert queue.get_length(key) == 1
    queue.dequeue(key)
    assert queue.get_length(key) == 0


def test_enqueue_raises_connection_error_when_redis_is_down(queue):
    class UnreachableRedis:
        def ping(self):
            raise ConnectionError("Connection refused")

    queue.redis = UnreachableRedis()

    with pytest.raises(ConnectionError):
        queue.enqueue("test_queue", "value")


def test_dequeue_raises_connection_error_when_redis_drops(queue):
    class DroppingRedis:
        def ping(self):
            return True

        def lpop(self, key):
            raise redis.ConnectionError("Connection reset by peer")

    queue.redis = DroppingRedis()

    with pytest.raises(ConnectionError):
        queue.dequeue("test_queue")


def test_subtitle_job_queue_is_fifo(job_queue):
    job_queue.enqueue("job-1")
    job_queue.enqueue("job-2")

    assert job_queue.get_length() == 2
    assert job_queue.dequeue() == "job-1"
    assert job_queue.dequeue() == "job-2"
    assert job_queue.dequeue() is None


def test_subtitle_job_payload_shape(job_queue):
    job_queue.enqueue("job-7")

    raw = job_queue.queue_manager.dequeue(job_queue.queue_name)
    assert json.loads(raw) == {"job_id": "job-7", "action": PROCESS_SUBTITLES_ACTION}


def test_subtitle_job_queue_skips_foreign_payloads(job_queue):
    manager = job_queue.queue_manager
    manager.enqueue(job_queue.queue_name, "not json")
    manager.enqueue(job_queue.queue_name, json.dumps({"action": "generate_audio", "job_id": "x"}))
    manager.enqueue(job_queue.queue_name, json.dumps(["job-0"]))
    job_queue.enqueue("job-3")

    assert job_queue.dequeue() == "job-3"
    assert job_queue.get_length() == 0


def test_queue_manager_created_lazily():
    job_queue = SubtitleJobQueue()
    assert job_queue.queue_name == "subtitle_jobs"
    assert isinstance(job_queue.queue_manager, QueueManager)
