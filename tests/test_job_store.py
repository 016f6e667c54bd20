"""Tests for the SQLAlchemy-backed subtitle job store."""

from datetime import timedelta

import pytest
from sqlalchemy import update

from models.database import SubtitleProcessingJob
from services.subtitles.errors import ActiveJobExistsError, JobNotFoundError
from shared.enums import SubtitleProcessingStatus, SubtitleTranslationStatus, VideoSourceType
from shared.utils import utc_now

LANGUAGES = [("English", "en"), ("Spanish", "es"), ("German", "de")]


@pytest.fixture
def job(job_store, subject):
    return job_store.create_job(subject, "https://cdn.example.com/ladder.mp4", VideoSourceType.DIRECT_URL, LANGUAGES)


def test_add_and_get_subject(job_store) -> None:
    created = job_store.add_subject("Manual Handling", "tenant-1", subject_id="subject-1")

    fetched = job_store.get_subject("subject-1")
    assert fetched == created
    assert fetched.title == "Manual Handling"
    assert job_store.get_subject("missing") is None


def test_create_job_persists_pending_translations_in_order(job, subject) -> None:
    assert job.status == SubtitleProcessingStatus.PENDING
    assert job.subject_id == subject.id
    assert job.tenant_id == "tenant-42"
    assert job.subject_title == subject.title
    assert job.started_at is not None
    assert [t.language_code for t in job.translations] == ["en", "es", "de"]
    assert all(t.status == SubtitleTranslationStatus.PENDING for t in job.translations)


def test_create_job_rejects_second_active_job(job_store, subject, job) -> None:
    with pytest.raises(ActiveJobExistsError) as exc_info:
        job_store.create_job(subject, "https://cdn.example.com/other.mp4", VideoSourceType.DIRECT_URL, LANGUAGES)

    assert exc_info.value.job_id == job.id
    assert job.id in str(exc_info.value)


def test_terminal_job_no_longer_blocks(job_store, subject, job) -> None:
    job_store.update_job(job.id, status=SubtitleProcessingStatus.FAILED, error_message="boom")

    assert job_store.find_active_job(subject.id) is None
    second = job_store.create_job(subject, "https://cdn.example.com/v2.mp4", VideoSourceType.DIRECT_URL, LANGUAGES)

    assert job_store.find_latest_job(subject.id).id == second.id


def test_claim_job_only_once(job_store, job) -> None:
    assert job_store.claim_job(job.id) is True
    assert job_store.claim_job(job.id) is False
    assert job_store.get_job(job.id).status == SubtitleProcessingStatus.TRANSCRIBING
    assert job_store.claim_job("missing") is False


def test_update_translation_and_totals(job_store, job) -> None:
    job_store.set_translation_totals(job.id, 12)
    snapshot = job_store.update_translation(
        job.id, "es", status=SubtitleTranslationStatus.IN_PROGRESS, subtitles_processed=6
    )

    spanish = snapshot.get_translation("ES")
    assert snapshot.total_subtitles == 12
    assert spanish.status == SubtitleTranslationStatus.IN_PROGRESS
    assert spanish.total_subtitles == 12
    assert spanish.percentage == 50
    assert snapshot.get_translation("de").subtitles_processed == 0


def test_update_rejects_unknown_fields(job_store, job) -> None:
    with pytest.raises(ValueError):
        job_store.update_job(job.id, subject_id="other")
    with pytest.raises(ValueError):
        job_store.update_translation(job.id, "es", language="Klingon")


def test_updates_on_missing_job_raise(job_store) -> None:
    with pytest.raises(JobNotFoundError):
        job_store.update_job("missing", status=SubtitleProcessingStatus.FAILED)
    with pytest.raises(JobNotFoundError):
        job_store.update_translation("missing", "es", subtitles_processed=1)
    with pytest.raises(JobNotFoundError):
        job_store.set_translation_totals("missing", 3)


def test_delete_job(job_store, subject, job) -> None:
    assert job_store.delete_job(job.id) is True
    assert job_store.get_job(job.id) is None
    assert job_store.find_latest_job(subject.id) is None
    assert job_store.delete_job(job.id) is False


def test_claim_takes_over_stale_run_only(job_store, job) -> None:
    assert job_store.claim_job(job.id) is True

    # A live run is never taken over
    assert job_store.claim_job(job.id, stale_after=3600) is False
    # A stale run is taken over and keeps its status
    assert job_store.claim_job(job.id, stale_after=0) is True
    assert job_store.get_job(job.id).status == SubtitleProcessingStatus.TRANSCRIBING

    job_store.update_job(job.id, status=SubtitleProcessingStatus.COMPLETED)
    assert job_store.claim_job(job.id, stale_after=0) is False


def test_find_stalled_jobs(job_store, subject, job) -> None:
    assert job_store.find_stalled_jobs(0) == []

    job_store.claim_job(job.id)
    assert job_store.find_stalled_jobs(0) == [job.id]
    assert job_store.find_stalled_jobs(3600) == []

    job_store.update_job(job.id, status=SubtitleProcessingStatus.FAILED)
    assert job_store.find_stalled_jobs(0) == []


def test_translation_writes_refresh_heartbeat(job_store, session_factory, job) -> None:
    job_store.claim_job(job.id)
    with session_factory() as session:
        session.execute(
            update(SubtitleProcessingJob)
            .where(SubtitleProcessingJob.id == job.id)
            .values(updated_at=utc_now() - timedelta(hours=2))
        )
        session.commit()
    assert job_store.find_stalled_jobs(3600) == [job.id]

    job_store.update_translation(job.id, "es", status=SubtitleTranslationStatus.IN_PROGRESS)

    assert job_store.find_stalled_jobs(3600) == []
    assert job_store.claim_job(job.id, stale_after=3600) is False


def test_locks_are_not_retained(job_store, subject, job) -> None:
    job_store.claim_job(job.id)
    job_store.update_translation(job.id, "es", subtitles_processed=1)
    job_store.update_job(job.id, status=SubtitleProcessingStatus.COMPLETED)
    job_store.create_job(subject, "https://cdn.example.com/v2.mp4", VideoSourceType.DIRECT_URL, LANGUAGES)

    assert len(job_store._locks) == 0
