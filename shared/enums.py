"""
Enums and constants used across the application.
"""

from enum import Enum


class SubtitleProcessingStatus(str, Enum):
    """Lifecycle of a subtitle processing job."""

    PENDING = "pending"
    TRANSCRIBING = "transcribing"
    TRANSLATING = "translating"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SubtitleProcessingStatus.COMPLETED, SubtitleProcessingStatus.FAILED)


ACTIVE_JOB_STATUSES = (
    SubtitleProcessingStatus.PENDING,
    SubtitleProcessingStatus.TRANSCRIBING,
    SubtitleProcessingStatus.TRANSLATING,
)

RUNNING_JOB_STATUSES = (
    SubtitleProcessingStatus.TRANSCRIBING,
    SubtitleProcessingStatus.TRANSLATING,
)


class SubtitleTranslationStatus(str, Enum):
    """Lifecycle of one language inside a job."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SubtitleTranslationStatus.COMPLETED, SubtitleTranslationStatus.FAILED)


class VideoSourceType(str, Enum):
    """Where the source video lives."""

    DIRECT_URL = "direct_url"
    GOOGLE_DRIVE = "google_drive"
    DOWNLOAD_REQUIRED = "download_required"


class TranscriptElementType(str, Enum):
    """Element types emitted by word-level speech-to-text."""

    WORD = "word"
    SPACING = "spacing"
    PUNCTUATION = "punctuation"
    AUDIO_EVENT = "audio_event"


SOURCE_LANGUAGE = "English"
SOURCE_LANGUAGE_CODE = "en"
