"""ElevenLabs speech-to-text driver."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import aiohttp

from shared.enums import VideoSourceType
from shared.http_client import AsyncHTTPClient
from shared.models import TranscriptionResult, TranscriptWord
from shared.utils import config, setup_logging

from .base import TranscriptionProvider
from .video_source import VideoSourceResolver

logger = setup_logging("elevenlabs-transcription")


class ElevenLabsTranscriptionProvider(TranscriptionProvider):
    """Word-level transcription through the ElevenLabs ``/speech-to-text`` endpoint."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        video_source_resolver: VideoSourceResolver | None = None,
        http_client_factory: Callable[[], AsyncHTTPClient] | None = None,
    ):
        self.api_key = api_key or config.get("elevenlabs_api_key", "")
        self.model = model or config.get("elevenlabs_model", "scribe_v1")
        self.base_url = (base_url or config.get("elevenlabs_base_url", "https://api.elevenlabs.io/v1")).rstrip("/")
        self.video_source_resolver = video_source_resolver or VideoSourceResolver()
        timeout = float(config.get("transcription_timeout", 900))
        self._http_client_factory = http_client_factory or (lambda: AsyncHTTPClient(timeout=timeout))

    async def transcribe(
        self, video_url: str, source_type: VideoSourceType = VideoSourceType.DIRECT_URL
    ) -> TranscriptionResult:
        logger.info("Starting transcription for video: %s", video_url)

        source = await self.video_source_resolver.resolve(video_url, source_type)
        if not source.success:
            logger.error("Could not resolve video source %s: %s", video_url, source.error_message)
            return TranscriptionResult.failure_result(source.error_message or "Video source could not be resolved")

        form = aiohttp.FormData()
        form.add_field("model_id", self.model)
        if source.content is not None:
            form.add_field(
                "file", source.content, filename=source.file_name or "video.mp4", content_type="application/octet-stream"
            )
        else:
            form.add_field("cloud_storage_url", source.direct_url or video_url)

        try:
            async with self._http_client_factory() as client:
                response = await client.post(
                    f"{self.base_url}/speech-to-text", data=form, headers={"xi-api-key": self.api_key}
                )
        except aiohttp.ClientError as exc:
            logger.error("HTTP request failed during transcription for %s: %s", video_url, exc)
            return TranscriptionResult.failure_result(f"HTTP request failed: {exc}")
        except Exception as exc:
            logger.error("Transcription failed for %s: %s", video_url, exc)
            return TranscriptionResult.failure_result(f"Transcription failed: {exc}")

        if not response.ok:
            logger.error("ElevenLabs API error: %s - %s", response.status, response.body)
            return TranscriptionResult.failure_result(f"ElevenLabs API error: {response.status} - {response.body}")

        try:
            words = self.parse_words(response.json())
        except (ValueError, TypeError, AttributeError) as exc:
            logger.error("Failed to parse transcription response for %s: %s", video_url, exc)
            return TranscriptionResult.failure_result(f"Failed to parse transcription response: {exc}")

        logger.info("Transcription completed. Words extracted: %d", len(words))
        return TranscriptionResult.success_result(words, raw_response=response.body)

    @staticmethod
    def parse_words(payload: Any) -> list[TranscriptWord]:
        """Map the ``words`` array of a response onto transcript elements."""
        if not isinstance(payload, dict):
            raise ValueError(f"expected a JSON object, got {type(payload).__name__}")

        words: list[TranscriptWord] = []
        for item in payload.get("words") or []:
            words.append(
                TranscriptWord(
                    text=item.get("text") or "",
                    type=item.get("type") or "word",
                    start=float(item.get("start") or 0),
                    end=float(item.get("end") or 0),
                )
            )
        return words

