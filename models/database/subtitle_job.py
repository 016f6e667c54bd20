"""
Subtitle processing job models - transcription and per-language translation tracking
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SubtitleProcessingJob(Base):
    """One end-to-end attempt to produce subtitles for a training subject"""

    __tablename__ = "subtitle_processing_jobs"

    id = Column(String(36), primary_key=True)
    subject_id = Column(String(36), ForeignKey("training_subjects.id"), nullable=False, index=True)
    tenant_id = Column(String(100), nullable=False, index=True)
    source_video_url = Column(Text, nullable=False)
    video_source_type = Column(String(50), nullable=False, default="direct_url")
    status = Column(String(50), nullable=False, default="pending", index=True)  # pending, transcribing, translating, completed, failed
    source_transcript = Column(Text, nullable=True)  # raw speech-to-text response
    source_srt_url = Column(String(1000), nullable=True)
    source_srt_content = Column(Text, nullable=True)
    total_subtitles = Column(Integer, nullable=False, default=0)
    error_message = Column(Text, nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True, default=_utcnow, onupdate=_utcnow)

    # Relationships
    subject = relationship("TrainingSubject", back_populates="subtitle_jobs")
    translations = relationship(
        "SubtitleTranslationRecord",
        back_populates="job",
        cascade="all, delete-orphan",
        order_by="SubtitleTranslationRecord.position",
    )


class SubtitleTranslationRecord(Base):
    """Per-language progress and outcome inside a processing job"""

    __tablename__ = "subtitle_translations"
    __table_args__ = (UniqueConstraint("job_id", "language_code", name="uq_subtitle_translation_language"),)

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(String(36), ForeignKey("subtitle_processing_jobs.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    language = Column(String(100), nullable=False)
    language_code = Column(String(10), nullable=False)
    status = Column(String(50), nullable=False, default="pending")  # pending, in_progress, completed, failed
    total_subtitles = Column(Integer, nullable=False, default=0)
    subtitles_processed = Column(Integer, nullable=False, default=0)
    srt_url = Column(String(1000), nullable=True)
    srt_content = Column(Text, nullable=True)
    error_message = Column(Text, nullable=True)

    job = relationship("SubtitleProcessingJob", back_populates="translations")
