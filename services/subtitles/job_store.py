"""Persistence for training subjects and subtitle processing jobs."""

from __future__ import annotations

import threading
import weakref
from collections.abc import Callable, Iterable
from datetime import timedelta
from typing import Any
from uuid import uuid4

from sqlalchemy import and_, case, or_, select, update
from sqlalchemy.orm import Session, selectinload

from database import SessionLocal
from models.database import SubtitleProcessingJob, SubtitleTranslationRecord
from models.database import TrainingSubject as TrainingSubjectDB
from shared.enums import ACTIVE_JOB_STATUSES, RUNNING_JOB_STATUSES, SubtitleProcessingStatus, VideoSourceType
from shared.models import SubtitleJob, SubtitleTranslation, TrainingSubject
from shared.utils import setup_logging, utc_now

from .errors import ActiveJobExistsError, JobNotFoundError

logger = setup_logging("subtitle-job-store")

JOB_FIELDS = {
    "status",
    "source_transcript",
    "source_srt_url",
    "source_srt_content",
    "total_subtitles",
    "error_message",
    "started_at",
    "completed_at",
}
TRANSLATION_FIELDS = {
    "status",
    "total_subtitles",
    "subtitles_processed",
    "srt_url",
    "srt_content",
    "error_message",
}


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


class SubtitleJobStore:
    """Store jobs as rows and hand out immutable pydantic snapshots.

    Each write runs in its own short transaction under a per-job lock, so the
    worker and API readers never observe a half-applied update. Every write
    also bumps the job's ``updated_at``, which doubles as the run heartbeat.
    """

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self._session_factory = session_factory
        # Locks live only while some caller holds them
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    def _lock_for(self, job_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(job_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[job_id] = lock
            return lock

    # Subjects
    def add_subject(self, title: str, tenant_id: str, subject_id: str | None = None) -> TrainingSubject:
        with self._session_factory() as session:
            row = TrainingSubjectDB(id=subject_id or str(uuid4()), tenant_id=tenant_id, title=title)
            session.add(row)
            session.commit()
            session.refresh(row)
            logger.info("Created training subject %s (%s)", row.id, title)
            return self._subject_to_model(row)

    def get_subject(self, subject_id: str) -> TrainingSubject | None:
        with self._session_factory() as session:
            row = session.get(TrainingSubjectDB, subject_id)
            return self._subject_to_model(row) if row else None

    # Jobs
    def create_job(
        self,
        subject: TrainingSubject,
        video_url: str,
        video_source_type: VideoSourceType,
        languages: Iterable[tuple[str, str]],
    ) -> SubtitleJob:
        """Persist a Pending job with one Pending translation per (language, code) pair.

        Raises:
            ActiveJobExistsError: the subject already has an active job
        """
        now = utc_now()
        job_id = str(uuid4())
        with self._lock_for(f"subject:{subject.id}"), self._session_factory() as session:
            active_id = self._active_job_id(session, subject.id)
            if active_id is not None:
                raise ActiveJobExistsError(subject.id, active_id)

            row = SubtitleProcessingJob(
                id=job_id,
                subject_id=subject.id,
                tenant_id=subject.tenant_id,
                source_video_url=video_url,
                video_source_type=_enum_value(video_source_type),
                status=SubtitleProcessingStatus.PENDING.value,
                total_subtitles=0,
                started_at=now,
                created_at=now,
            )
            row.translations = [
                SubtitleTranslationRecord(position=position, language=language, language_code=code)
                for position, (language, code) in enumerate(languages)
            ]
            session.add(row)
            session.commit()
            return self._load_snapshot(session, job_id)

    def get_job(self, job_id: str) -> SubtitleJob | None:
        with self._session_factory() as session:
            return self._load_snapshot(session, job_id, required=False)

    def find_active_job(self, subject_id: str) -> SubtitleJob | None:
        with self._session_factory() as session:
            job_id = self._active_job_id(session, subject_id)
            return self._load_snapshot(session, job_id, required=False) if job_id else None

    @staticmethod
    def _active_job_id(session: Session, subject_id: str) -> str | None:
        return session.scalars(
            select(SubtitleProcessingJob.id)
            .where(
                SubtitleProcessingJob.subject_id == subject_id,
                SubtitleProcessingJob.status.in_([s.value for s in ACTIVE_JOB_STATUSES]),
            )
            .order_by(SubtitleProcessingJob.created_at.desc())
            .limit(1)
        ).first()

    def find_latest_job(self, subject_id: str) -> SubtitleJob | None:
        with self._session_factory() as session:
            row = session.scalars(
                select(SubtitleProcessingJob.id)
                .where(SubtitleProcessingJob.subject_id == subject_id)
                .order_by(SubtitleProcessingJob.created_at.desc())
                .limit(1)
            ).first()
            return self._load_snapshot(session, row, required=False) if row else None

    def claim_job(self, job_id: str, stale_after: float | None = None) -> bool:
        """Take ownership of a job run.

        A Pending job moves to Transcribing. With ``stale_after`` set, a
        Transcribing or Translating job whose heartbeat is at least that many
        seconds old is taken over as well, keeping its status so the run can
        resume. Returns False when the job is missing, finished or owned by a
        live run. The check and the write are one UPDATE, so two workers never
        both win.
        """
        now = utc_now()
        pending = SubtitleProcessingStatus.PENDING.value
        claimable = SubtitleProcessingJob.status == pending
        if stale_after is not None:
            cutoff = now - timedelta(seconds=stale_after)
            claimable = or_(claimable, and_(
                SubtitleProcessingJob.status.in_([s.value for s in RUNNING_JOB_STATUSES]),
                or_(SubtitleProcessingJob.updated_at.is_(None), SubtitleProcessingJob.updated_at <= cutoff),
            ))

        with self._lock_for(job_id), self._session_factory() as session:
            result = session.execute(
                update(SubtitleProcessingJob)
                .where(SubtitleProcessingJob.id == job_id, claimable)
                .values(
                    status=case(
                        (SubtitleProcessingJob.status == pending, SubtitleProcessingStatus.TRANSCRIBING.value),
                        else_=SubtitleProcessingJob.status,
                    ),
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            session.commit()
            return result.rowcount == 1

    def find_stalled_jobs(self, stale_after: float) -> list[str]:
        """Ids of Transcribing/Translating jobs with no write for ``stale_after`` seconds."""
        cutoff = utc_now() - timedelta(seconds=stale_after)
        with self._session_factory() as session:
            return list(session.scalars(
                select(SubtitleProcessingJob.id)
                .where(
                    SubtitleProcessingJob.status.in_([s.value for s in RUNNING_JOB_STATUSES]),
                    or_(SubtitleProcessingJob.updated_at.is_(None), SubtitleProcessingJob.updated_at <= cutoff),
                )
                .order_by(SubtitleProcessingJob.created_at)
            ))

    def update_job(self, job_id: str, **fields: Any) -> SubtitleJob:
        unknown = set(fields) - JOB_FIELDS
        if unknown:
            raise ValueError(f"Unknown job fields: {', '.join(sorted(unknown))}")

        with self._lock_for(job_id), self._session_factory() as session:
            row = session.get(SubtitleProcessingJob, job_id)
            if row is None:
                raise JobNotFoundError(job_id)
            for name, value in fields.items():
                setattr(row, name, _enum_value(value))
            row.updated_at = utc_now()
            session.commit()
            return self._load_snapshot(session, job_id)

    def update_translation(self, job_id: str, language_code: str, **fields: Any) -> SubtitleJob:
        unknown = set(fields) - TRANSLATION_FIELDS
        if unknown:
            raise ValueError(f"Unknown translation fields: {', '.join(sorted(unknown))}")

        with self._lock_for(job_id), self._session_factory() as session:
            row = session.scalars(
                select(SubtitleTranslationRecord).where(
                    SubtitleTranslationRecord.job_id == job_id,
                    SubtitleTranslationRecord.language_code == language_code,
                )
            ).first()
            if row is None:
                raise JobNotFoundError(job_id)
            for name, value in fields.items():
                setattr(row, name, _enum_value(value))
            row.job.updated_at = utc_now()
            session.commit()
            return self._load_snapshot(session, job_id)

    def set_translation_totals(self, job_id: str, total_subtitles: int) -> SubtitleJob:
        """Record the block count on the job and every translation in one transaction."""
        with self._lock_for(job_id), self._session_factory() as session:
            row = session.get(SubtitleProcessingJob, job_id)
            if row is None:
                raise JobNotFoundError(job_id)
            row.total_subtitles = total_subtitles
            for translation in row.translations:
                translation.total_subtitles = total_subtitles
            row.updated_at = utc_now()
            session.commit()
            return self._load_snapshot(session, job_id)

    def delete_job(self, job_id: str) -> bool:
        with self._lock_for(job_id), self._session_factory() as session:
            row = session.get(SubtitleProcessingJob, job_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
        logger.info("Deleted subtitle job %s", job_id)
        return True

    # Mapping helpers
    def _load_snapshot(self, session: Session, job_id: str, required: bool = True) -> SubtitleJob | None:
        row = session.scalars(
            select(SubtitleProcessingJob)
            .options(selectinload(SubtitleProcessingJob.translations), selectinload(SubtitleProcessingJob.subject))
            .where(SubtitleProcessingJob.id == job_id)
            .execution_options(populate_existing=True)
        ).first()
        if row is None:
            if required:
                raise JobNotFoundError(job_id)
            return None
        return self._job_to_model(row)

    @staticmethod
    def _subject_to_model(row: TrainingSubjectDB) -> TrainingSubject:
        return TrainingSubject(id=row.id, tenant_id=row.tenant_id, title=row.title, created_at=row.created_at)

    @staticmethod
    def _job_to_model(row: SubtitleProcessingJob) -> SubtitleJob:
        return SubtitleJob(
            id=row.id,
            subject_id=row.subject_id,
            tenant_id=row.tenant_id,
            subject_title=row.subject.title if row.subject else "",
            source_video_url=row.source_video_url,
            video_source_type=VideoSourceType(row.video_source_type),
            status=SubtitleProcessingStatus(row.status),
            source_transcript=row.source_transcript,
            source_srt_url=row.source_srt_url,
            source_srt_content=row.source_srt_content,
            total_subtitles=row.total_subtitles or 0,
            translations=[
                SubtitleTranslation(
                    language=t.language,
                    language_code=t.language_code,
                    status=t.status,
                    total_subtitles=t.total_subtitles or 0,
                    subtitles_processed=t.subtitles_processed or 0,
                    srt_url=t.srt_url,
                    srt_content=t.srt_content,
                    error_message=t.error_message,
                )
                for t in row.translations
            ],
            started_at=row.started_at,
            completed_at=row.completed_at,
            error_message=row.error_message,
            created_at=row.created_at,
        )
