from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from shared.enums import (
    SubtitleProcessingStatus,
    SubtitleTranslationStatus,
    VideoSourceType,
)


# Port result models
class TranscriptWord(BaseModel):
    """One element of a word-level transcript."""
    text: str = ""
    type: str = "word"
    start: float = 0.0
    end: float = 0.0


class TranscriptionResult(BaseModel):
    success: bool
    words: list[TranscriptWord] = Field(default_factory=list)
    raw_response: str | None = None
    error_message: str | None = None

    @classmethod
    def success_result(cls, words: list[TranscriptWord], raw_response: str | None = None) -> "TranscriptionResult":
        return cls(success=True, words=words, raw_response=raw_response)

    @classmethod
    def failure_result(cls, error_message: str) -> "TranscriptionResult":
        return cls(success=False, error_message=error_message)


class TranslationResult(BaseModel):
    success: bool
    translated_content: str = ""
    error_message: str | None = None

    @classmethod
    def success_result(cls, translated_content: str) -> "TranslationResult":
        return cls(success=True, translated_content=translated_content)

    @classmethod
    def failure_result(cls, error_message: str) -> "TranslationResult":
        return cls(success=False, error_message=error_message)


class SrtUploadResult(BaseModel):
    success: bool
    url: str | None = None
    error_message: str | None = None

    @classmethod
    def success_result(cls, url: str) -> "SrtUploadResult":
        return cls(success=True, url=url)

    @classmethod
    def failure_result(cls, error_message: str) -> "SrtUploadResult":
        return cls(success=False, error_message=error_message)


class VideoSourceResult(BaseModel):
    """A video location the speech-to-text provider can consume."""
    success: bool
    direct_url: str | None = None
    content: bytes | None = None
    file_name: str | None = None
    error_message: str | None = None


# Domain snapshots returned by the job store
class TrainingSubject(BaseModel):
    id: str
    tenant_id: str
    title: str
    created_at: datetime | None = None


class SubtitleTranslation(BaseModel):
    language: str
    language_code: str
    status: SubtitleTranslationStatus = SubtitleTranslationStatus.PENDING
    total_subtitles: int = 0
    subtitles_processed: int = 0
    srt_url: str | None = None
    srt_content: str | None = None
    error_message: str | None = None

    @property
    def percentage(self) -> int:
        if self.total_subtitles <= 0:
            return 0
        return (self.subtitles_processed * 100) // self.total_subtitles


class SubtitleJob(BaseModel):
    id: str
    subject_id: str
    tenant_id: str
    subject_title: str = ""
    source_video_url: str
    video_source_type: VideoSourceType = VideoSourceType.DIRECT_URL
    status: SubtitleProcessingStatus = SubtitleProcessingStatus.PENDING
    source_transcript: str | None = None
    source_srt_url: str | None = None
    source_srt_content: str | None = None
    total_subtitles: int = 0
    translations: list[SubtitleTranslation] = Field(default_factory=list)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    error_message: str | None = None
    created_at: datetime | None = None

    def get_translation(self, language_code: str) -> SubtitleTranslation | None:
        code = language_code.lower()
        for translation in self.translations:
            if translation.language_code.lower() == code:
                return translation
        return None


# Progress / status views
class LanguageProgress(BaseModel):
    language: str
    language_code: str
    status: SubtitleTranslationStatus
    percentage: int = Field(default=0, ge=0, le=100)
    srt_url: str | None = None
    error_message: str | None = None


class SubtitleProgressUpdate(BaseModel):
    """Live progress event pushed to WebSocket subscribers."""
    job_id: str
    overall_status: SubtitleProcessingStatus
    overall_percentage: int = Field(default=0, ge=0, le=100)
    current_step: str
    languages: list[LanguageProgress] = Field(default_factory=list)
    error_message: str | None = None


class SubtitleProcessingStatusResponse(BaseModel):
    job_id: str
    subject_id: str
    status: SubtitleProcessingStatus
    overall_percentage: int = Field(default=0, ge=0, le=100)
    current_step: str
    error_message: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    total_subtitles: int = 0
    languages: list[LanguageProgress] = Field(default_factory=list)


# Request/Response Models
class StartSubtitleProcessingRequest(BaseModel):
    video_url: str = Field(..., min_length=1, description="URL of the source video")
    video_source_type: VideoSourceType = Field(default=VideoSourceType.DIRECT_URL)
    target_languages: list[str] = Field(
        default_factory=list, description="Language names to translate into, e.g. 'Spanish'"
    )


class StartProcessingResponse(BaseModel):
    job_id: str
    message: str
    status_url: str


class CreateSubjectRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    tenant_id: str = Field(..., min_length=1, max_length=100)


class SupportedLanguage(BaseModel):
    language: str
    language_code: str


class AvailableLanguagesResponse(BaseModel):
    languages: list[SupportedLanguage]


class APIResponse(BaseModel):
    success: bool = True
    message: str
    data: dict[str, Any] | None = None
