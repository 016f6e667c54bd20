"""Filesystem storage for SRT files under the media root."""

from __future__ import annotations

import asyncio
from pathlib import Path

from shared.models import SrtUploadResult
from shared.utils import config, ensure_directory, sanitize_filename, setup_logging

from .base import SrtStorageProvider

logger = setup_logging("local-srt-storage")


class LocalSrtStorageProvider(SrtStorageProvider):
    """Write SRT files to ``{media_root}/subtitles`` and expose them under a URL prefix."""

    def __init__(self, root: str | Path | None = None, base_url: str | None = None):
        self.root = Path(root) if root else Path(config.get("media_root", "./media")) / "subtitles"
        self.base_url = (base_url or config.get("local_storage_base_url", "/media/subtitles")).rstrip("/")

    def _relative_path(self, file_name: str, tenant_id: str | None) -> str:
        return sanitize_filename(self.build_path(file_name, tenant_id))

    async def upload_srt(self, srt_content: str, file_name: str, tenant_id: str | None = None) -> SrtUploadResult:
        relative = self._relative_path(file_name, tenant_id)
        target = self.root / relative
        try:
            ensure_directory(str(target.parent))
            await asyncio.to_thread(target.write_text, srt_content, encoding="utf-8")
        except OSError as exc:
            logger.error("Failed to write SRT %s: %s", target, exc)
            return SrtUploadResult.failure_result(f"Upload failed: {exc}")

        logger.info("Stored SRT at %s", target)
        return SrtUploadResult.success_result(f"{self.base_url}/{relative}")

    async def get_srt_content(self, file_name: str, tenant_id: str | None = None) -> str | None:
        target = self.root / self._relative_path(file_name, tenant_id)
        if not target.is_file():
            return None
        try:
            return await asyncio.to_thread(target.read_text, encoding="utf-8")
        except OSError as exc:
            logger.error("Failed to read SRT %s: %s", target, exc)
            return None

    async def delete_srt(self, file_name: str, tenant_id: str | None = None) -> bool:
        target = self.root / self._relative_path(file_name, tenant_id)
        if not target.is_file():
            logger.warning("File not found for deletion: %s", target)
            return False
        try:
            target.unlink()
        except OSError as exc:
            logger.error("Failed to delete SRT %s: %s", target, exc)
            return False
        logger.info("Deleted SRT %s", target)
        return True
