"""Subtitle processing orchestrator: transcription, SRT generation and per-language translation."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence

from services.queue import SubtitleJobQueue
from shared.enums import (
    SOURCE_LANGUAGE,
    SOURCE_LANGUAGE_CODE,
    SubtitleProcessingStatus,
    SubtitleTranslationStatus,
    VideoSourceType,
)
from shared.models import (
    LanguageProgress,
    SrtUploadResult,
    SubtitleJob,
    SubtitleProcessingStatusResponse,
    SubtitleProgressUpdate,
    SubtitleTranslation,
    TranscriptionResult,
    TranslationResult,
)
from shared.utils import config, generate_slug, setup_logging, utc_now

from .drivers import (
    SrtStorageProvider,
    TranscriptionProvider,
    TranslationProvider,
    load_storage_provider,
    load_transcription_provider,
    load_translation_provider,
)
from .errors import ActiveJobExistsError, InvalidLanguageError, JobNotFoundError, SubjectNotFoundError
from .generator import BLOCK_SEPARATOR, SrtGenerator
from .job_store import SubtitleJobStore
from .languages import LanguageCodeResolver
from .progress import SubtitleProgressReporter

logger = setup_logging("subtitle-orchestrator")

TRANSCRIBING_PERCENTAGE = 15
TRANSLATION_PERCENTAGE_SPAN = 80


def calculate_overall_percentage(job: SubtitleJob) -> int:
    """Progress bar value for a job.

    Translating jobs sit between 15 and 95; only the explicit transition to
    Completed (or Failed) takes the bar to 100.
    """
    status = job.status
    if status == SubtitleProcessingStatus.PENDING:
        return 0
    if status == SubtitleProcessingStatus.TRANSCRIBING:
        return TRANSCRIBING_PERCENTAGE
    if status == SubtitleProcessingStatus.TRANSLATING:
        total = len(job.translations)
        if total == 0:
            return TRANSCRIBING_PERCENTAGE
        finished = sum(1 for t in job.translations if t.status.is_terminal)
        return TRANSCRIBING_PERCENTAGE + (TRANSLATION_PERCENTAGE_SPAN * finished) // total
    return 100


def describe_current_step(job: SubtitleJob) -> str:
    status = job.status
    if status == SubtitleProcessingStatus.PENDING:
        return "Waiting to start..."
    if status == SubtitleProcessingStatus.TRANSCRIBING:
        return "Transcribing audio..."
    if status == SubtitleProcessingStatus.TRANSLATING:
        active = next((t for t in job.translations if t.status == SubtitleTranslationStatus.IN_PROGRESS), None)
        if active is None:
            return "Translating..."
        return f"Translating {active.language}... ({active.subtitles_processed}/{active.total_subtitles})"
    if status == SubtitleProcessingStatus.COMPLETED:
        return "Complete!"
    return "Failed"


def language_progress(translations: Iterable[SubtitleTranslation]) -> list[LanguageProgress]:
    return [
        LanguageProgress(
            language=t.language,
            language_code=t.language_code,
            status=t.status,
            percentage=min(t.percentage, 100),
            srt_url=t.srt_url,
            error_message=t.error_message,
        )
        for t in translations
    ]


class SubtitleProcessingOrchestrator:
    """Drive a subtitle job from a video URL to uploaded SRT files in every requested language."""

    def __init__(
        self,
        job_store: SubtitleJobStore | None = None,
        scheduler: SubtitleJobQueue | None = None,
        transcription_provider: TranscriptionProvider | None = None,
        translation_provider: TranslationProvider | None = None,
        storage_provider: SrtStorageProvider | None = None,
        progress_reporter: SubtitleProgressReporter | None = None,
        language_resolver: LanguageCodeResolver | None = None,
        srt_generator: SrtGenerator | None = None,
        batch_size: int | None = None,
        translation_concurrency: int | None = None,
        batch_retries: int | None = None,
        retry_delay: float | None = None,
        stale_after: float | None = None,
    ):
        self._job_store = job_store
        self._scheduler = scheduler
        self._transcription_provider = transcription_provider
        self._translation_provider = translation_provider
        self._storage_provider = storage_provider
        self.progress_reporter = progress_reporter or SubtitleProgressReporter()
        self.language_resolver = language_resolver or LanguageCodeResolver()
        self.srt_generator = srt_generator or SrtGenerator()

        self.batch_size = max(1, int(batch_size or config.get_setting(
            "subtitles.batch_size", config.get("subtitle_batch_size", 30)
        )))
        self.translation_concurrency = max(1, int(translation_concurrency or config.get_setting(
            "subtitles.translation_concurrency", config.get("translation_concurrency", 1)
        )))
        self.batch_retries = max(0, int(
            batch_retries if batch_retries is not None else config.get("translation_batch_retries", 0)
        ))
        self.retry_delay = float(retry_delay if retry_delay is not None else config.get("translation_retry_delay", 1.0))
        self.stale_after = float(
            stale_after if stale_after is not None else config.get("subtitle_job_stale_after", 1800.0)
        )

    # Lazily constructed collaborators
    @property
    def job_store(self) -> SubtitleJobStore:
        if self._job_store is None:
            self._job_store = SubtitleJobStore()
        return self._job_store

    @job_store.setter
    def job_store(self, store: SubtitleJobStore) -> None:
        self._job_store = store

    @property
    def scheduler(self) -> SubtitleJobQueue:
        if self._scheduler is None:
            self._scheduler = SubtitleJobQueue()
        return self._scheduler

    @scheduler.setter
    def scheduler(self, scheduler: SubtitleJobQueue) -> None:
        self._scheduler = scheduler

    @property
    def transcription_provider(self) -> TranscriptionProvider:
        if self._transcription_provider is None:
            self._transcription_provider = load_transcription_provider(config.get("transcription_provider", "elevenlabs"))
        return self._transcription_provider

    @transcription_provider.setter
    def transcription_provider(self, provider: TranscriptionProvider) -> None:
        self._transcription_provider = provider

    @transcription_provider.deleter
    def transcription_provider(self) -> None:
        self._transcription_provider = None

    @property
    def translation_provider(self) -> TranslationProvider:
        if self._translation_provider is None:
            self._translation_provider = load_translation_provider(config.get("translation_provider", "claude"))
        return self._translation_provider

    @translation_provider.setter
    def translation_provider(self, provider: TranslationProvider) -> None:
        self._translation_provider = provider

    @translation_provider.deleter
    def translation_provider(self) -> None:
        self._translation_provider = None

    @property
    def storage_provider(self) -> SrtStorageProvider:
        if self._storage_provider is None:
            self._storage_provider = load_storage_provider(config.get("srt_storage_provider", "local"))
        return self._storage_provider

    @storage_provider.setter
    def storage_provider(self, provider: SrtStorageProvider) -> None:
        self._storage_provider = provider

    @storage_provider.deleter
    def storage_provider(self) -> None:
        self._storage_provider = None

    # Public operations
    async def start_processing(
        self,
        subject_id: str,
        video_url: str,
        video_source_type: VideoSourceType = VideoSourceType.DIRECT_URL,
        target_languages: Sequence[str] = (),
    ) -> str:
        """Validate, persist a Pending job and queue it; returns the job id without waiting for the run.

        Raises:
            SubjectNotFoundError: no such training subject
            ActiveJobExistsError: the subject already has a Pending/Transcribing/Translating job
            InvalidLanguageError: one or more language names are not supported
        """
        subject = self.job_store.get_subject(subject_id)
        if subject is None:
            raise SubjectNotFoundError(subject_id)

        active = self.job_store.find_active_job(subject_id)
        if active is not None:
            raise ActiveJobExistsError(subject_id, active.id)

        languages = self._build_language_set(target_languages)
        job = self.job_store.create_job(subject, video_url, VideoSourceType(video_source_type), languages)
        logger.info(
            "Created subtitle job %s for subject %s with languages %s",
            job.id,
            subject_id,
            ", ".join(code for _, code in languages),
        )

        try:
            await asyncio.to_thread(self.scheduler.enqueue, job.id)
        except ConnectionError as exc:
            logger.error("Could not schedule subtitle job %s: %s", job.id, exc)
            self.job_store.update_job(
                job.id,
                status=SubtitleProcessingStatus.FAILED,
                error_message=f"Failed to schedule processing: {exc}",
                completed_at=utc_now(),
            )
            raise

        return job.id

    async def run(self, job_id: str) -> None:
        """Execute the pipeline for a queued job.

        A job left Transcribing or Translating by a run that stopped writing
        for ``stale_after`` seconds is resumed: a stored English SRT is reused
        and only unfinished languages are translated again. Missing, finished
        and live jobs are ignored, so redelivery is safe.
        """
        job = self.job_store.get_job(job_id)
        if job is None:
            logger.warning("Subtitle job %s not found; nothing to run", job_id)
            return
        if not self.job_store.claim_job(job_id, stale_after=self.stale_after):
            logger.info("Subtitle job %s is %s and owned or finished; skipping run", job_id, job.status.value)
            return
        if job.status != SubtitleProcessingStatus.PENDING:
            logger.warning("Resuming stalled subtitle job %s from %s", job_id, job.status.value)

        try:
            await self._run_pipeline(job_id)
        except JobNotFoundError:
            logger.info("Subtitle job %s was discarded during processing; stopping", job_id)

    async def get_status(self, subject_id: str) -> SubtitleProcessingStatusResponse | None:
        job = self.job_store.find_latest_job(subject_id)
        if job is None:
            return None
        return SubtitleProcessingStatusResponse(
            job_id=job.id,
            subject_id=job.subject_id,
            status=job.status,
            overall_percentage=calculate_overall_percentage(job),
            current_step=describe_current_step(job),
            error_message=job.error_message,
            started_at=job.started_at,
            completed_at=job.completed_at,
            total_subtitles=job.total_subtitles,
            languages=language_progress(job.translations),
        )

    async def get_srt_content(self, subject_id: str, language_code: str) -> str | None:
        """SRT text of a completed translation in the subject's latest job."""
        job = self.job_store.find_latest_job(subject_id)
        if job is None:
            return None
        translation = job.get_translation(language_code)
        if translation is None or translation.status != SubtitleTranslationStatus.COMPLETED:
            return None
        if translation.srt_content:
            return translation.srt_content
        return await self.storage_provider.get_srt_content(
            self.srt_file_name(job, translation.language_code), job.tenant_id
        )

    async def discard_job(self, subject_id: str) -> bool:
        """Delete the latest job and its uploaded files; an in-flight run stops at its next write."""
        job = self.job_store.find_latest_job(subject_id)
        if job is None:
            return False

        for translation in job.translations:
            if not translation.srt_url:
                continue
            file_name = self.srt_file_name(job, translation.language_code)
            try:
                await self.storage_provider.delete_srt(file_name, job.tenant_id)
            except Exception as exc:
                logger.warning("Could not delete %s for job %s: %s", file_name, job.id, exc)

        deleted = self.job_store.delete_job(job.id)
        logger.info("Discarded subtitle job %s for subject %s", job.id, subject_id)
        return deleted

    # Pipeline stages
    async def _run_pipeline(self, job_id: str) -> None:
        job = self.job_store.get_job(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        await self._report(job)

        if job.source_srt_content and job.total_subtitles:
            source_srt = job.source_srt_content
            english = job.get_translation(SOURCE_LANGUAGE_CODE)
            if english is not None and not english.status.is_terminal:
                await self._store_source_srt(job, source_srt, job.total_subtitles)
        else:
            source_srt = await self._transcribe(job)
            if source_srt is None:
                return

        job = self.job_store.update_job(job_id, status=SubtitleProcessingStatus.TRANSLATING)
        logger.info("Job %s transcribed into %d subtitles; translating", job_id, job.total_subtitles)
        await self._report(job)

        await self._translate_pending(job, source_srt)

        job = self.job_store.update_job(
            job_id, status=SubtitleProcessingStatus.COMPLETED, completed_at=utc_now()
        )
        completed = sum(1 for t in job.translations if t.status == SubtitleTranslationStatus.COMPLETED)
        logger.info("Job %s completed: %d of %d languages ready", job_id, completed, len(job.translations))
        await self._report(job)

    async def _transcribe(self, job: SubtitleJob) -> str | None:
        """Transcribe, build and upload the English SRT. Returns None when the job failed."""
        try:
            try:
                result = await self.transcription_provider.transcribe(job.source_video_url, job.video_source_type)
            except Exception as exc:
                logger.error("Transcription provider raised for job %s: %s", job.id, exc)
                result = TranscriptionResult.failure_result(f"Transcription failed: {exc}")

            if not result.success:
                await self._fail_job(job.id, result.error_message or "Transcription failed")
                return None

            source_srt = self.srt_generator.generate_srt(result.words)
            total = self.srt_generator.count_subtitle_blocks(source_srt)
            if total == 0:
                await self._fail_job(job.id, "Transcription produced no subtitle text")
                return None

            self.job_store.update_job(
                job.id,
                source_transcript=result.raw_response,
                source_srt_content=source_srt,
            )
            self.job_store.set_translation_totals(job.id, total)
            await self._store_source_srt(job, source_srt, total)
            return source_srt
        except JobNotFoundError:
            raise
        except Exception as exc:
            logger.exception("Unexpected error while transcribing job %s", job.id)
            await self._fail_job(job.id, f"Transcription failed: {exc}")
            return None

    async def _store_source_srt(self, job: SubtitleJob, source_srt: str, total: int) -> None:
        upload = await self._upload(job, SOURCE_LANGUAGE_CODE, source_srt)
        if not upload.success:
            logger.warning("English SRT upload failed for job %s: %s", job.id, upload.error_message)
            self.job_store.update_translation(
                job.id,
                SOURCE_LANGUAGE_CODE,
                status=SubtitleTranslationStatus.FAILED,
                error_message=f"Upload failed: {upload.error_message}",
            )
            return

        self.job_store.update_job(job.id, source_srt_url=upload.url)
        self.job_store.update_translation(
            job.id,
            SOURCE_LANGUAGE_CODE,
            status=SubtitleTranslationStatus.COMPLETED,
            srt_url=upload.url,
            srt_content=source_srt,
            total_subtitles=total,
            subtitles_processed=total,
        )

    async def _translate_pending(self, job: SubtitleJob, source_srt: str) -> None:
        # In-progress languages belong to a dead run and start over
        pending = [t for t in job.translations if not t.status.is_terminal]
        if not pending:
            return

        blocks = self.srt_generator.split_srt_into_blocks(source_srt)
        batches = [blocks[i:i + self.batch_size] for i in range(0, len(blocks), self.batch_size)]
        semaphore = asyncio.Semaphore(self.translation_concurrency)

        async def _guarded(translation: SubtitleTranslation) -> None:
            async with semaphore:
                await self._translate_language(job, translation, batches)

        results = await asyncio.gather(*(_guarded(t) for t in pending), return_exceptions=True)
        for outcome in results:
            if isinstance(outcome, BaseException):
                raise outcome

    async def _translate_language(
        self, job: SubtitleJob, translation: SubtitleTranslation, batches: list[list[str]]
    ) -> None:
        code = translation.language_code
        logger.info("Translating job %s to %s", job.id, translation.language)
        try:
            snapshot = self.job_store.update_translation(
                job.id, code, status=SubtitleTranslationStatus.IN_PROGRESS, subtitles_processed=0
            )
            await self._report(snapshot)

            translated: list[str] = []
            processed = 0
            for index, batch in enumerate(batches, start=1):
                result = await self._translate_batch(BLOCK_SEPARATOR.join(batch), translation.language)
                if not result.success:
                    logger.warning(
                        "Batch %d/%d for %s failed on job %s: %s",
                        index,
                        len(batches),
                        translation.language,
                        job.id,
                        result.error_message,
                    )
                    await self._fail_translation(job.id, code, result.error_message or "Translation failed")
                    return

                translated.append(result.translated_content.strip())
                processed += len(batch)
                snapshot = self.job_store.update_translation(job.id, code, subtitles_processed=processed)
                await self._report(snapshot)

            content = BLOCK_SEPARATOR.join(translated) + BLOCK_SEPARATOR
            upload = await self._upload(job, code, content)
            if not upload.success:
                await self._fail_translation(job.id, code, f"Upload failed: {upload.error_message}")
                return

            snapshot = self.job_store.update_translation(
                job.id,
                code,
                status=SubtitleTranslationStatus.COMPLETED,
                srt_url=upload.url,
                srt_content=content,
                total_subtitles=processed,
            )
            logger.info("Completed %s subtitles for job %s", translation.language, job.id)
            await self._report(snapshot)
        except JobNotFoundError:
            raise
        except Exception as exc:
            logger.exception("Translation to %s failed for job %s", translation.language, job.id)
            await self._fail_translation(job.id, code, str(exc) or exc.__class__.__name__)

    async def _translate_batch(self, batch_text: str, language: str) -> TranslationResult:
        attempts = self.batch_retries + 1
        delay = self.retry_delay
        result = TranslationResult.failure_result("Translation was not attempted")

        for attempt in range(1, attempts + 1):
            try:
                result = await self.translation_provider.translate_batch(batch_text, language)
            except Exception as exc:
                result = TranslationResult.failure_result(f"Translation failed: {exc}")

            if result.success and not result.translated_content.strip():
                result = TranslationResult.failure_result("Translation returned empty content")
            if result.success:
                return result

            if attempt < attempts:
                logger.warning(
                    "Retrying %s batch in %.1fs (attempt %d of %d): %s",
                    language,
                    delay,
                    attempt + 1,
                    attempts,
                    result.error_message,
                )
                await asyncio.sleep(delay)
                delay *= 2

        return result

    async def _upload(self, job: SubtitleJob, language_code: str, content: str) -> SrtUploadResult:
        file_name = self.srt_file_name(job, language_code)
        try:
            return await self.storage_provider.upload_srt(content, file_name, job.tenant_id)
        except Exception as exc:
            logger.error("Storage provider raised while uploading %s: %s", file_name, exc)
            return SrtUploadResult.failure_result(str(exc))

    async def _fail_job(self, job_id: str, error_message: str) -> None:
        logger.error("Subtitle job %s failed: %s", job_id, error_message)
        job = self.job_store.update_job(
            job_id,
            status=SubtitleProcessingStatus.FAILED,
            error_message=error_message,
            completed_at=utc_now(),
        )
        await self._report(job)

    async def _fail_translation(self, job_id: str, language_code: str, error_message: str) -> None:
        job = self.job_store.update_translation(
            job_id, language_code, status=SubtitleTranslationStatus.FAILED, error_message=error_message
        )
        await self._report(job)

    async def _report(self, job: SubtitleJob) -> None:
        update = SubtitleProgressUpdate(
            job_id=job.id,
            overall_status=job.status,
            overall_percentage=calculate_overall_percentage(job),
            current_step=describe_current_step(job),
            languages=language_progress(job.translations),
            error_message=job.error_message,
        )
        await self.progress_reporter.report(job.id, update)

    # Helpers
    def _build_language_set(self, target_languages: Sequence[str]) -> list[tuple[str, str]]:
        """English first, then each requested language once, deduplicated by ISO code."""
        invalid = [name for name in target_languages if not self.language_resolver.is_valid_language(name)]
        if invalid:
            raise InvalidLanguageError(invalid)

        languages = [(SOURCE_LANGUAGE, SOURCE_LANGUAGE_CODE)]
        seen = {SOURCE_LANGUAGE_CODE}
        for name in target_languages:
            code = self.language_resolver.resolve(name)
            if code in seen:
                continue
            seen.add(code)
            languages.append((self.language_resolver.get_display_name(name), code))
        return languages

    @staticmethod
    def srt_file_name(job: SubtitleJob, language_code: str) -> str:
        slug = generate_slug(job.subject_title) or job.subject_id
        return f"{slug}_{language_code}.srt"
