"""Subtitle provider driver registry."""

from shared.utils import setup_logging

from .base import SrtStorageProvider, TranscriptionProvider, TranslationProvider, build_translation_prompt
from .claude import ClaudeTranslationProvider
from .elevenlabs import ElevenLabsTranscriptionProvider
from .github import GitHubSrtStorageProvider
from .local import LocalSrtStorageProvider
from .video_source import VideoSourceResolver

logger = setup_logging("subtitle-drivers")


def load_transcription_provider(provider_name: str) -> TranscriptionProvider:
    providers: dict[str, type[TranscriptionProvider]] = {
        "elevenlabs": ElevenLabsTranscriptionProvider,
    }
    provider_cls = providers.get((provider_name or "").lower())
    if provider_cls is None:
        logger.warning("Unknown transcription provider '%s', falling back to elevenlabs", provider_name)
        provider_cls = ElevenLabsTranscriptionProvider
    return provider_cls()


def load_translation_provider(provider_name: str) -> TranslationProvider:
    from .openai_chat import AzureOpenAITranslationProvider, OpenAITranslationProvider  # lazy import

    providers: dict[str, type[TranslationProvider]] = {
        "claude": ClaudeTranslationProvider,
        "openai": OpenAITranslationProvider,
        "azure": AzureOpenAITranslationProvider,
    }
    provider_cls = providers.get((provider_name or "").lower())
    if provider_cls is None:
        logger.warning("Unknown translation provider '%s', falling back to claude", provider_name)
        provider_cls = ClaudeTranslationProvider
    return provider_cls()


def load_storage_provider(provider_name: str) -> SrtStorageProvider:
    providers: dict[str, type[SrtStorageProvider]] = {
        "local": LocalSrtStorageProvider,
        "github": GitHubSrtStorageProvider,
    }
    provider_cls = providers.get((provider_name or "").lower())
    if provider_cls is None:
        logger.warning("Unknown SRT storage provider '%s', falling back to local", provider_name)
        provider_cls = LocalSrtStorageProvider
    return provider_cls()


__all__ = [
    "ClaudeTranslationProvider",
    "ElevenLabsTranscriptionProvider",
    "GitHubSrtStorageProvider",
    "LocalSrtStorageProvider",
    "SrtStorageProvider",
    "TranscriptionProvider",
    "TranslationProvider",
    "VideoSourceResolver",
    "build_translation_prompt",
    "load_storage_provider",
    "load_transcription_provider",
    "load_translation_provider",
]
