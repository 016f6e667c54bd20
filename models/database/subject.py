"""
Training subject model - the video item that subtitles are produced for
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship

from database import Base


class TrainingSubject(Base):
    """A training video owned by a tenant"""

    __tablename__ = "training_subjects"

    id = Column(String(36), primary_key=True)
    tenant_id = Column(String(100), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    # Relationships
    subtitle_jobs = relationship(
        "SubtitleProcessingJob", back_populates="subject", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<TrainingSubject(id={self.id}, title={self.title})>"
