import asyncio
import os
import sys
from pathlib import Path
from typing import Generator

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SUBTITLE_INPROCESS_WORKER", "false")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from database import init_database
from services.queue import redis as redis_module
from services.subtitles.drivers import SrtStorageProvider, TranscriptionProvider, TranslationProvider
from services.subtitles.job_store import SubtitleJobStore
from services.subtitles.orchestrator import SubtitleProcessingOrchestrator
from services.websocket_progress import websocket_manager
from shared.enums import VideoSourceType
from shared.models import (
    SrtUploadResult,
    SubtitleProgressUpdate,
    TranscriptionResult,
    TranscriptWord,
    TranslationResult,
)
from shared.utils import config as service_config, ensure_directory


class DummyRedis:
    def __init__(self) -> None:
        self._store: dict[str, list[str]] = {}

    def ping(self) -> bool:
        return True

    def rpush(self, key: str, value: str) -> None:
        self._store.setdefault(key, []).append(value)

    def lpop(self, key: str):
        queue = self._store.get(key)
        if not queue:
            return None
        value = queue.pop(0)
        if not queue:
            self._store.pop(key, None)
        return value

    def llen(self, key: str) -> int:
        return len(self._store.get(key, []))


def make_words(*items: tuple[str, float, float], kind: str = "word") -> list[TranscriptWord]:
    return [TranscriptWord(text=text, type=kind, start=start, end=end) for text, start, end in items]


SAMPLE_WORDS = make_words(
    ("Always", 0.0, 0.4),
    ("wear", 0.5, 0.8),
    ("your", 0.9, 1.1),
    ("harness.", 1.2, 1.8),
    ("Check", 2.0, 2.3),
    ("the", 2.4, 2.5),
    ("anchor", 2.6, 3.0),
    ("point", 3.1, 3.4),
    ("first!", 3.5, 4.0),
    ("Any", 4.5, 4.7),
    ("questions?", 4.8, 5.5),
)


class StubTranscriptionProvider(TranscriptionProvider):
    def __init__(self, words: list[TranscriptWord] | None = None, error: str | None = None) -> None:
        self.words = SAMPLE_WORDS if words is None else words
        self.error = error
        self.calls: list[tuple[str, VideoSourceType]] = []

    async def transcribe(self, video_url, source_type=VideoSourceType.DIRECT_URL) -> TranscriptionResult:
        self.calls.append((video_url, source_type))
        if self.error:
            return TranscriptionResult.failure_result(self.error)
        return TranscriptionResult.success_result(self.words, raw_response='{"words": []}')


class StubTranslationProvider(TranslationProvider):
    """Echo each batch followed by a language tag; failures are configured per language."""

    def __init__(self, failing: dict[str, str] | None = None, blank: set[str] | None = None) -> None:
        self.failing = failing or {}
        self.blank = blank or set()
        self.calls: list[tuple[str, str]] = []

    async def translate_batch(self, srt_batch: str, target_language: str) -> TranslationResult:
        self.calls.append((srt_batch, target_language))
        if target_language in self.failing:
            return TranslationResult.failure_result(self.failing[target_language])
        if target_language in self.blank:
            return TranslationResult(success=True, translated_content="   \n ")
        return TranslationResult.success_result(f"{srt_batch}\n[{target_language}]")


class MemoryStorageProvider(SrtStorageProvider):
    def __init__(self, failing_files: set[str] | None = None) -> None:
        self.files: dict[str, str] = {}
        self.failing_files = failing_files or set()
        self.deleted: list[str] = []

    async def upload_srt(self, srt_content, file_name, tenant_id=None) -> SrtUploadResult:
        if file_name in self.failing_files:
            return SrtUploadResult.failure_result("disk full")
        path = self.build_path(file_name, tenant_id)
        self.files[path] = srt_content
        return SrtUploadResult.success_result(f"https://files.example.com/{path}")

    async def get_srt_content(self, file_name, tenant_id=None):
        return self.files.get(self.build_path(file_name, tenant_id))

    async def delete_srt(self, file_name, tenant_id=None) -> bool:
        path = self.build_path(file_name, tenant_id)
        self.deleted.append(path)
        return self.files.pop(path, None) is not None


class RecordingScheduler:
    def __init__(self) -> None:
        self.enqueued: list[str] = []

    def enqueue(self, job_id: str) -> None:
        self.enqueued.append(job_id)


class RecordingReporter:
    def __init__(self) -> None:
        self.updates: list[SubtitleProgressUpdate] = []

    async def report(self, job_id: str, update: SubtitleProgressUpdate) -> None:
        self.updates.append(update)


@pytest.fixture(scope="session", autouse=True)
def fake_redis() -> Generator[None, None, None]:
    """Patch redis client to use in-memory storage for tests."""
    original_from_url = redis_module.Redis.from_url

    def fake_from_url(cls, url: str, *args, **kwargs):  # type: ignore[unused-argument]
        return DummyRedis()

    redis_module.Redis.from_url = classmethod(fake_from_url)  # type: ignore[assignment]
    try:
        yield
    finally:
        redis_module.Redis.from_url = original_from_url  # type: ignore[assignment]


@pytest.fixture
def session_factory():
    """Fresh in-memory SQLite database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_database(bind=engine)
    try:
        yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    finally:
        engine.dispose()


@pytest.fixture
def job_store(session_factory) -> SubtitleJobStore:
    return SubtitleJobStore(session_factory=session_factory)


@pytest.fixture
def subject(job_store):
    return job_store.add_subject(title="Working at Height: Ladder Safety!", tenant_id="tenant-42")


@pytest.fixture
def transcription_provider() -> StubTranscriptionProvider:
    return StubTranscriptionProvider()


@pytest.fixture
def translation_provider() -> StubTranslationProvider:
    return StubTranslationProvider()


@pytest.fixture
def storage_provider() -> MemoryStorageProvider:
    return MemoryStorageProvider()


@pytest.fixture
def scheduler() -> RecordingScheduler:
    return RecordingScheduler()


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def orchestrator(
    job_store, scheduler, transcription_provider, translation_provider, storage_provider, reporter
) -> SubtitleProcessingOrchestrator:
    return SubtitleProcessingOrchestrator(
        job_store=job_store,
        scheduler=scheduler,
        transcription_provider=transcription_provider,
        translation_provider=translation_provider,
        storage_provider=storage_provider,
        progress_reporter=reporter,
        batch_size=2,
        translation_concurrency=1,
        batch_retries=0,
        retry_delay=0,
    )


@pytest.fixture(autouse=True)
def test_environment(tmp_path: Path) -> Generator:
    """Point media storage at a temp directory and reset WebSocket state per test."""
    media_root = tmp_path / "media"
    ensure_directory(str(media_root))
    previous_media_root = service_config.get("media_root")
    service_config.set("media_root", str(media_root))

    loop = asyncio.new_event_loop()
    try:
        loop.run_until_complete(websocket_manager.reset())
    finally:
        loop.close()

    try:
        yield
    finally:
        service_config.set("media_root", previous_media_root)


@pytest.fixture
def sample_words() -> list[TranscriptWord]:
    return list(SAMPLE_WORDS)
