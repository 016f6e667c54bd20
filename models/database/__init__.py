"""
Database models package - SQLAlchemy ORM models
"""

from .subject import TrainingSubject
from .subtitle_job import SubtitleProcessingJob, SubtitleTranslationRecord

__all__ = [
    "SubtitleProcessingJob",
    "SubtitleTranslationRecord",
    "TrainingSubject",
]
