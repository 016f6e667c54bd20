import json
import time
from typing import Any, cast

import redis

from shared.utils import config, setup_logging

logger = setup_logging("queue")

PROCESS_SUBTITLES_ACTION = "process_subtitles"


class QueueManager:
    def __init__(self, redis_url: str | None = None) -> None:
        self.redis_url = redis_url or config.get("redis_url", "redis://localhost:6379/0")
        self.redis = redis.Redis.from_url(self.redis_url, decode_responses=True)  # type: ignore[misc]
        self._connection_checked = False
        logger.info("QueueManager initialized with Redis URL: %s", self.redis_url)

    def _ensure_connection(self) -> None:
        """Lazy connection check with retry logic."""
        if self._connection_checked:
            return

        max_retries = 3
        retry_delay = 1.0

        for attempt in range(max_retries):
            try:
                self.redis.ping()
                self._connection_checked = True
                logger.info("Successfully connected to Redis at %s", self.redis_url)
                return
            except redis.RedisError as e:
                if attempt == max_retries - 1:
                    logger.error("Failed to connect to Redis after %d attempts: %s", max_retries, e)
                    raise ConnectionError(f"Redis connection failed: {e}") from e
                logger.warning("Redis connection attempt %d failed, retrying in %ss: %s", attempt + 1, retry_delay, e)
                time.sleep(retry_delay)
                retry_delay *= 2

    def enqueue(self, key: str, value: str) -> None:
        try:
            self._ensure_connection()
            self.redis.rpush(key, value)
            logger.debug("Enqueued item to queue '%s'", key)
        except (redis.RedisError, ConnectionError) as e:
            logger.error("Failed to enqueue to queue '%s': %s", key, e)
            # Force a fresh connection check on the next attempt
            self._connection_checked = False
            raise ConnectionError(f"Redis enqueue operation failed: {e}") from e

    def dequeue(self, key: str) -> str | None:
        try:
            self._ensure_connection()
            result = self.redis.lpop(key)  # type: ignore[misc]
        except redis.RedisError as e:
            logger.error("Failed to dequeue from queue '%s': %s", key, e)
            self._connection_checked = False
            raise ConnectionError(f"Redis dequeue operation failed: {e}") from e
        if result is None:
            return None
        if isinstance(result, bytes):
            return result.decode("utf-8")
        return str(result)  # type: ignore[misc]

    def get_length(self, key: str) -> int:
        result = self.redis.llen(key)
        return cast(int, result)


class SubtitleJobQueue:
    """Schedule subtitle processing runs on a Redis list."""

    def __init__(self, queue_manager: QueueManager | None = None, queue_name: str | None = None) -> None:
        self._queue_manager = queue_manager
        self.queue_name = queue_name or config.get("subtitle_queue_name", "subtitle_jobs")

    @property
    def queue_manager(self) -> QueueManager:
        if self._queue_manager is None:
            self._queue_manager = QueueManager()
        return self._queue_manager

    @queue_manager.setter
    def queue_manager(self, value: QueueManager | None) -> None:
        self._queue_manager = value

    def enqueue(self, job_id: str) -> None:
        payload = json.dumps({"job_id": job_id, "action": PROCESS_SUBTITLES_ACTION})
        self.queue_manager.enqueue(self.queue_name, payload)
        logger.info("Queued subtitle job %s on '%s'", job_id, self.queue_name)

    def dequeue(self) -> str | None:
        """Pop the next job id, skipping payloads that are not subtitle runs."""
        while True:
            raw = self.queue_manager.dequeue(self.queue_name)
            if raw is None:
                return None
            payload = self._decode(raw)
            if payload and payload.get("action") == PROCESS_SUBTITLES_ACTION and payload.get("job_id"):
                return str(payload["job_id"])
            logger.warning("Discarding unrecognised queue payload: %s", raw)

    def get_length(self) -> int:
        return self.queue_manager.get_length(self.queue_name)

    @staticmethod
    def _decode(raw: str) -> dict[str, Any] | None:
        try:
            payload = json.loads(raw)
        except ValueError:
            return None
        return payload if isinstance(payload, dict) else None
