"""Subtitle processing service API endpoints."""

from fastapi import FastAPI, HTTPException, Query, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from services.subtitles.errors import ActiveJobExistsError, InvalidLanguageError, SubjectNotFoundError
from services.subtitles.orchestrator import SubtitleProcessingOrchestrator
from shared.models import (
    APIResponse,
    AvailableLanguagesResponse,
    CreateSubjectRequest,
    StartProcessingResponse,
    StartSubtitleProcessingRequest,
    SubtitleProcessingStatusResponse,
    SupportedLanguage,
    TrainingSubject,
)
from shared.utils import config, setup_logging

logger = setup_logging("subtitle-service")

app = FastAPI(
    title="Subtitle Service",
    description="Video transcription, SRT generation and multi-language subtitle translation",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.get("allowed_origins", ["*"]),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

orchestrator = SubtitleProcessingOrchestrator()

STATUS_URL = "/api/v1/subtitles/subjects/{subject_id}/subtitles/status"


@app.get("/health")
async def health_check():
    """Health check endpoint for the subtitle service."""
    return APIResponse(message="Subtitle Service is healthy")


@app.get("/languages", response_model=AvailableLanguagesResponse)
async def list_languages() -> AvailableLanguagesResponse:
    """List every language that can be requested for translation."""
    languages = orchestrator.language_resolver.get_all_languages()
    return AvailableLanguagesResponse(
        languages=[SupportedLanguage(language=name, language_code=code) for name, code in languages.items()]
    )


@app.post("/subjects", response_model=TrainingSubject, status_code=status.HTTP_201_CREATED)
async def create_subject(request: CreateSubjectRequest) -> TrainingSubject:
    """Register a training video that subtitles can be produced for."""
    return orchestrator.job_store.add_subject(title=request.title, tenant_id=request.tenant_id)


@app.post(
    "/subjects/{subject_id}/subtitles/process",
    response_model=StartProcessingResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def start_processing(subject_id: str, request: StartSubtitleProcessingRequest) -> StartProcessingResponse:
    """Queue transcription and translation for a subject's video.

    English subtitles are always produced; ``target_languages`` adds translations.
    """
    try:
        job_id = await orchestrator.start_processing(
            subject_id,
            request.video_url,
            request.video_source_type,
            request.target_languages,
        )
    except SubjectNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ActiveJobExistsError as exc:
        raise HTTPException(status_code=409, detail={"message": str(exc), "job_id": exc.job_id}) from exc
    except InvalidLanguageError as exc:
        valid = list(orchestrator.language_resolver.get_all_languages())
        raise HTTPException(
            status_code=400,
            detail={
                "message": str(exc),
                "invalid_languages": exc.invalid_languages,
                "valid_languages": valid,
            },
        ) from exc
    except Exception as exc:
        logger.error("Failed to start subtitle processing for %s: %s", subject_id, exc)
        raise HTTPException(status_code=500, detail=f"Failed to start subtitle processing: {exc}") from exc

    return StartProcessingResponse(
        job_id=job_id,
        message="Subtitle processing started",
        status_url=STATUS_URL.format(subject_id=subject_id),
    )


@app.get("/subjects/{subject_id}/subtitles/status", response_model=SubtitleProcessingStatusResponse)
async def get_processing_status(subject_id: str) -> SubtitleProcessingStatusResponse:
    """Progress of the most recent processing job for a subject."""
    job_status = await orchestrator.get_status(subject_id)
    if job_status is None:
        raise HTTPException(status_code=404, detail=f"No subtitle processing job found for subject {subject_id}")
    return job_status


@app.get("/subjects/{subject_id}/subtitles/{language_code}")
async def download_subtitles(
    subject_id: str,
    language_code: str,
    download: bool = Query(False, description="Serve as an attachment"),
) -> Response:
    """Return the SRT file for one completed language."""
    content = await orchestrator.get_srt_content(subject_id, language_code)
    if content is None:
        raise HTTPException(
            status_code=404,
            detail=f"No completed subtitles in '{language_code}' for subject {subject_id}",
        )

    headers = {}
    if download:
        headers["Content-Disposition"] = f'attachment; filename="{subject_id}_{language_code.lower()}.srt"'
    return Response(content=content, media_type="application/x-subrip", headers=headers)


@app.delete("/subjects/{subject_id}/subtitles", response_model=APIResponse)
async def discard_subtitles(subject_id: str) -> APIResponse:
    """Delete the latest job and its files; a running job stops at its next progress write."""
    if not await orchestrator.discard_job(subject_id):
        raise HTTPException(status_code=404, detail=f"No subtitle processing job found for subject {subject_id}")
    return APIResponse(message="Subtitle processing job discarded")
