"""
Configuration management for the subtitle services.
"""

import json
import os
from typing import Any

import yaml

from dotenv import load_dotenv


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


class ServiceConfig:
    """Configuration management for services using environment variables."""

    def __init__(self) -> None:
        """Initialize configuration by loading environment variables."""
        # Always load .env from the project root (where app.py is located)
        env_path = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.env"))
        load_dotenv(dotenv_path=env_path, override=False)
        self.config: dict[str, Any] = {}
        self.settings_config: dict[str, Any] = {}
        self.settings_config_path = os.getenv(
            "SUBTITLE_CONFIG_PATH",
            os.path.join(os.path.dirname(__file__), "../config/subtitles.yaml"),
        )
        self.load_from_env()
        self.load_settings_file()

    def load_from_env(self) -> None:
        """Load configuration from environment variables."""
        self.config = {
            "database_url": os.getenv("DATABASE_URL"),
            "redis_url": os.getenv("REDIS_URL", "redis://localhost:6379/0"),
            "media_root": os.getenv("MEDIA_ROOT", "/app/media"),
            "debug": _env_bool("DEBUG"),
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
            "allowed_origins": json.loads(os.getenv("ALLOWED_ORIGINS", '["*"]')),
            # Pipeline tuning
            "subtitle_batch_size": int(os.getenv("SUBTITLE_BATCH_SIZE", "30")),
            "subtitle_words_per_subtitle": int(os.getenv("SUBTITLE_WORDS_PER_SUBTITLE", "8")),
            "subtitle_max_video_size_mb": int(os.getenv("SUBTITLE_MAX_VIDEO_SIZE_MB", "500")),
            "translation_concurrency": int(os.getenv("TRANSLATION_CONCURRENCY", "1")),
            "translation_batch_retries": int(os.getenv("TRANSLATION_BATCH_RETRIES", "0")),
            "translation_retry_delay": float(os.getenv("TRANSLATION_RETRY_DELAY", "1.0")),
            # Queue / worker
            "subtitle_queue_name": os.getenv("SUBTITLE_QUEUE_NAME", "subtitle_jobs"),
            "subtitle_worker_concurrency": int(os.getenv("SUBTITLE_WORKER_CONCURRENCY", "2")),
            "subtitle_worker_poll_interval": float(os.getenv("SUBTITLE_WORKER_POLL_INTERVAL", "1.0")),
            "subtitle_inprocess_worker": _env_bool("SUBTITLE_INPROCESS_WORKER", "true"),
            # Seconds without a job write before a run counts as dead and may be resumed
            "subtitle_job_stale_after": float(os.getenv("SUBTITLE_JOB_STALE_AFTER", "1800")),
            # Transcription (ElevenLabs speech-to-text)
            "transcription_provider": os.getenv("TRANSCRIPTION_PROVIDER", "elevenlabs"),
            "elevenlabs_api_key": os.getenv("ELEVENLABS_API_KEY"),
            "elevenlabs_model": os.getenv("ELEVENLABS_MODEL", "scribe_v1"),
            "elevenlabs_base_url": os.getenv("ELEVENLABS_BASE_URL", "https://api.elevenlabs.io/v1"),
            "transcription_timeout": int(os.getenv("TRANSCRIPTION_TIMEOUT", "900")),
            # Translation
            "translation_provider": os.getenv("TRANSLATION_PROVIDER", "claude"),
            "anthropic_api_key": os.getenv("ANTHROPIC_API_KEY"),
            "claude_model": os.getenv("CLAUDE_MODEL", "claude-sonnet-4-20250514"),
            "claude_max_tokens": int(os.getenv("CLAUDE_MAX_TOKENS", "4000")),
            "claude_base_url": os.getenv("CLAUDE_BASE_URL", "https://api.anthropic.com/v1"),
            "translation_timeout": int(os.getenv("TRANSLATION_TIMEOUT", "120")),
            "openai_api_key": os.getenv("OPENAI_API_KEY"),
            "openai_translation_model": os.getenv("OPENAI_TRANSLATION_MODEL", "gpt-4o-mini"),
            "openai_translation_max_tokens": int(os.getenv("OPENAI_TRANSLATION_MAX_TOKENS", "4000")),
            "azure_openai_key": os.getenv("AZURE_OPENAI_KEY"),
            "azure_openai_endpoint": os.getenv("AZURE_OPENAI_ENDPOINT"),
            "azure_openai_deployment": os.getenv("AZURE_OPENAI_DEPLOYMENT"),
            # SRT storage
            "srt_storage_provider": os.getenv("SRT_STORAGE_PROVIDER", "local"),
            "github_token": os.getenv("GITHUB_TOKEN"),
            "github_owner": os.getenv("GITHUB_OWNER", ""),
            "github_repo": os.getenv("GITHUB_REPO", ""),
            "github_branch": os.getenv("GITHUB_BRANCH", "main"),
            "github_path": os.getenv("GITHUB_PATH", "subs"),
            "local_storage_base_url": os.getenv("LOCAL_STORAGE_BASE_URL", "/media/subtitles"),
        }

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key.

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value
        """
        value = self.config.get(key, default)
        return default if value is None else value

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value.

        Args:
            key: Configuration key
            value: Configuration value
        """
        self.config[key] = value

    def reload(self) -> None:
        """Reload configuration from environment variables."""
        self.load_from_env()
        self.load_settings_file()

    def load_settings_file(self) -> None:
        """Load optional subtitle settings from a YAML file."""
        path = os.path.abspath(self.settings_config_path)
        try:
            with open(path, "r", encoding="utf-8") as stream:
                data = yaml.safe_load(stream) or {}
        except FileNotFoundError:
            data = {}
        self.settings_config = data

    def get_setting(self, path: str, default: Any = None) -> Any:
        """Retrieve a settings-file value via dotted path, e.g. ``subtitles.batch_size``."""
        env_override_key = f"SUBTITLE_FLAG_{path.replace('.', '_').upper()}"
        env_value = os.getenv(env_override_key)
        if env_value is not None:
            return self._coerce_env_value(env_value, default)

        node: Any = self.settings_config
        for part in path.split("."):
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node if node is not None else default

    def set_settings_config(self, settings_config: dict[str, Any]) -> None:
        """Override settings-file configuration (useful for tests)."""
        self.settings_config = settings_config

    @staticmethod
    def _coerce_env_value(raw: str, default: Any) -> Any:
        lowered = raw.lower()
        if lowered in {"true", "false"}:
            return lowered == "true"
        if lowered.replace(".", "", 1).isdigit():
            try:
                return float(lowered) if "." in lowered else int(lowered)
            except ValueError:
                return raw
        return raw or default


# Global configuration instance
config = ServiceConfig()
