"""Base classes for the external providers used by the subtitle pipeline."""

from __future__ import annotations

from abc import ABC, abstractmethod

from shared.enums import VideoSourceType
from shared.models import SrtUploadResult, TranscriptionResult, TranslationResult


class TranscriptionProvider(ABC):
    """Turn a video into a word-level transcript."""

    @abstractmethod
    async def transcribe(
        self, video_url: str, source_type: VideoSourceType = VideoSourceType.DIRECT_URL
    ) -> TranscriptionResult:
        """Transcribe the video; expected failures come back as a failure result."""


class TranslationProvider(ABC):
    """Translate a chunk of SRT text."""

    @abstractmethod
    async def translate_batch(self, srt_batch: str, target_language: str) -> TranslationResult:
        """Translate ``srt_batch`` into ``target_language``, keeping numbering and timings."""


class SrtStorageProvider(ABC):
    """Persist generated SRT files somewhere a video player can fetch them."""

    @abstractmethod
    async def upload_srt(self, srt_content: str, file_name: str, tenant_id: str | None = None) -> SrtUploadResult:
        """Create or overwrite a file and return its public URL."""

    @abstractmethod
    async def get_srt_content(self, file_name: str, tenant_id: str | None = None) -> str | None:
        """Return the file's text, or None when it cannot be read."""

    @abstractmethod
    async def delete_srt(self, file_name: str, tenant_id: str | None = None) -> bool:
        """Delete a file; False when it did not exist or could not be removed."""

    @staticmethod
    def build_path(file_name: str, tenant_id: str | None = None, prefix: str | None = None) -> str:
        parts = [part.strip("/") for part in (prefix, tenant_id, file_name) if part and part.strip("/")]
        return "/".join(parts)


TRANSLATION_PROMPT = (
    "Translate the following SRT subtitle text to {language}.\n"
    "Keep the exact same format with numbers and timestamps, only translate the text.\n"
    "Return only the translated SRT, nothing else:\n\n"
    "{srt}"
)


def build_translation_prompt(srt_batch: str, target_language: str) -> str:
    return TRANSLATION_PROMPT.format(language=target_language, srt=srt_batch)
