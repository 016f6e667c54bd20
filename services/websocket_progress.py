"""WebSocket progress manager for real-time subtitle job updates."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Any, Dict, Set, Tuple
from uuid import uuid4

from fastapi import WebSocket

from shared.utils import setup_logging

logger = setup_logging("websocket-progress")


class WebSocketProgressManager:
    """Track WebSocket connections and which jobs each client follows."""

    def __init__(self) -> None:
        self._connections: Dict[str, WebSocket] = {}
        self._job_subscriptions: Dict[str, Set[str]] = defaultdict(set)
        self._client_jobs: Dict[str, Set[str]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, client_id: str | None = None) -> str:
        """Accept WebSocket connection and register client."""
        client_key = client_id or str(uuid4())
        await websocket.accept()
        async with self._lock:
            self._connections[client_key] = websocket
        return client_key

    async def disconnect(self, client_id: str, close: bool = True) -> None:
        """Remove client connection and subscriptions."""
        async with self._lock:
            websocket = self._connections.pop(client_id, None)
            for job_id in self._client_jobs.pop(client_id, set()):
                self._drop_subscriber(job_id, client_id)
        if websocket and close:
            try:
                await websocket.close()
            except RuntimeError as exc:
                logger.debug("WebSocket %s already closed: %s", client_id, exc)

    def _drop_subscriber(self, job_id: str, client_id: str) -> None:
        subscribers = self._job_subscriptions.get(job_id)
        if subscribers:
            subscribers.discard(client_id)
            if not subscribers:
                self._job_subscriptions.pop(job_id, None)

    async def subscribe(self, client_id: str, job_id: str) -> None:
        """Subscribe a client to a specific job."""
        async with self._lock:
            if client_id not in self._connections:
                raise RuntimeError("Client not connected")
            self._job_subscriptions[job_id].add(client_id)
            self._client_jobs[client_id].add(job_id)

    async def unsubscribe(self, client_id: str, job_id: str | None = None) -> None:
        """Unsubscribe a client from a job or from all jobs."""
        async with self._lock:
            if client_id not in self._connections:
                return

            job_ids = list(self._client_jobs.get(client_id, set())) if job_id is None else [job_id]
            for jid in job_ids:
                self._drop_subscriber(jid, client_id)
            if job_id is None:
                self._client_jobs.pop(client_id, None)
            else:
                self._client_jobs.get(client_id, set()).discard(job_id)

    def subscriber_count(self, job_id: str) -> int:
        return len(self._job_subscriptions.get(job_id, ()))

    async def send_progress_update(self, job_id: str, progress_data: dict[str, Any]) -> int:
        """Send a progress event to every subscriber of a job; returns how many received it."""
        recipients: list[Tuple[str, WebSocket]] = []
        async with self._lock:
            for client_id in list(self._job_subscriptions.get(job_id, set())):
                websocket = self._connections.get(client_id)
                if websocket:
                    recipients.append((client_id, websocket))

        delivered = 0
        for client_id, websocket in recipients:
            try:
                await websocket.send_json(progress_data)
                delivered += 1
            except Exception as exc:
                logger.info("Dropping WebSocket client %s after send failure: %s", client_id, exc)
                await self.disconnect(client_id, close=False)
        return delivered

    async def reset(self) -> None:
        """Clear all connections and subscriptions (primarily for tests)."""
        async with self._lock:
            connections = list(self._connections.items())
            self._connections.clear()
            self._job_subscriptions.clear()
            self._client_jobs.clear()

        for client_id, websocket in connections:
            try:
                await websocket.close()
            except RuntimeError as exc:
                logger.debug("WebSocket %s already closed: %s", client_id, exc)


# Shared manager instance
websocket_manager = WebSocketProgressManager()
