"""Fire-and-forget progress reporting for subtitle jobs."""

from __future__ import annotations

from services.websocket_progress import WebSocketProgressManager, websocket_manager
from shared.models import SubtitleProgressUpdate
from shared.utils import setup_logging

logger = setup_logging("subtitle-progress")


class SubtitleProgressReporter:
    """Push progress snapshots to WebSocket subscribers; never raises."""

    def __init__(self, manager: WebSocketProgressManager | None = None):
        self.manager = manager or websocket_manager

    async def report(self, job_id: str, update: SubtitleProgressUpdate) -> None:
        payload = {"type": "subtitle_progress", **update.model_dump(mode="json")}
        try:
            await self.manager.send_progress_update(job_id, payload)
        except Exception as exc:
            logger.warning("Failed to report progress for job %s: %s", job_id, exc)
