"""Resolve where a source video can be fetched from."""

from __future__ import annotations

import re
from collections.abc import Callable
from urllib.parse import parse_qs, urlparse

from shared.enums import VideoSourceType
from shared.http_client import AsyncHTTPClient, ResponseTooLargeError
from shared.models import VideoSourceResult
from shared.utils import config, sanitize_filename, setup_logging

logger = setup_logging("video-source-resolver")

GOOGLE_DRIVE_DOWNLOAD_URL = "https://drive.google.com/uc?export=download&id={file_id}"
_DRIVE_PATH_ID_RE = re.compile(r"/(?:file/)?d/([A-Za-z0-9_-]+)")


def extract_google_drive_file_id(url: str) -> str | None:
    """Pull the file id out of the common Google Drive share link shapes."""
    parsed = urlparse(url)
    if "google.com" not in parsed.netloc:
        return None
    match = _DRIVE_PATH_ID_RE.search(parsed.path)
    if match:
        return match.group(1)
    ids = parse_qs(parsed.query).get("id")
    return ids[0] if ids else None


class VideoSourceResolver:
    """Turn a video URL plus its source type into something a speech API can consume."""

    def __init__(
        self,
        max_video_size_mb: int | None = None,
        http_client_factory: Callable[[], AsyncHTTPClient] | None = None,
    ):
        self.max_video_size_mb = max_video_size_mb or int(config.get("subtitle_max_video_size_mb", 500))
        self._http_client_factory = http_client_factory or (
            lambda: AsyncHTTPClient(timeout=float(config.get("transcription_timeout", 900)))
        )

    @property
    def max_bytes(self) -> int:
        return self.max_video_size_mb * 1024 * 1024

    async def resolve(self, video_url: str, source_type: VideoSourceType) -> VideoSourceResult:
        source_type = VideoSourceType(source_type)

        if source_type == VideoSourceType.GOOGLE_DRIVE:
            file_id = extract_google_drive_file_id(video_url)
            if not file_id:
                return VideoSourceResult(success=False, error_message=f"Not a Google Drive share link: {video_url}")
            return VideoSourceResult(success=True, direct_url=GOOGLE_DRIVE_DOWNLOAD_URL.format(file_id=file_id))

        if source_type == VideoSourceType.DOWNLOAD_REQUIRED:
            return await self._download(video_url)

        return VideoSourceResult(success=True, direct_url=video_url)

    async def _download(self, video_url: str) -> VideoSourceResult:
        logger.info("Downloading source video from %s", video_url)
        try:
            async with self._http_client_factory() as client:
                response = await client.download(video_url, max_bytes=self.max_bytes)
        except ResponseTooLargeError as exc:
            return VideoSourceResult(
                success=False,
                error_message=f"Video exceeds maximum size of {self.max_video_size_mb} MB: {exc}",
            )
        except Exception as exc:
            logger.error("Video download failed for %s: %s", video_url, exc)
            return VideoSourceResult(success=False, error_message=f"Video download failed: {exc}")

        if not response.ok:
            return VideoSourceResult(success=False, error_message=f"Video download failed: HTTP {response.status}")

        file_name = sanitize_filename(urlparse(video_url).path.rsplit("/", 1)[-1]) or "video.mp4"
        logger.info("Downloaded %d bytes for %s", len(response.content or b""), file_name)
        return VideoSourceResult(success=True, content=response.content, file_name=file_name)
