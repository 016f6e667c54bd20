import logging
import re
from datetime import UTC, datetime
from pathlib import Path

from shared.config import ServiceConfig, config

__all__ = [
    "ServiceConfig",
    "config",
    "ensure_directory",
    "generate_slug",
    "sanitize_filename",
    "setup_logging",
    "utc_now",
]


def setup_logging(service_name: str, log_level: str | None = None) -> logging.Logger:
    """Setup logging configuration for a service"""
    level = log_level or config.get("log_level", "INFO")
    logger = logging.getLogger(service_name)
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(f"%(asctime)s - {service_name} - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def sanitize_filename(filename: str) -> str:
    """Sanitize filename for safe storage"""
    invalid_chars = '<>:"\\|?*'
    for char in invalid_chars:
        filename = filename.replace(char, "_")
    # Disallow climbing out of the storage root
    parts = [part for part in filename.split("/") if part not in ("", ".", "..")]
    return "/".join(parts)


def ensure_directory(path: str) -> None:
    """Ensure directory exists, create if not"""
    Path(path).mkdir(parents=True, exist_ok=True)


def generate_slug(title: str) -> str:
    """Build a file-name slug: lowercase, only [a-z0-9], whitespace runs become underscores."""
    slug = title.lower()
    slug = re.sub(r"[^a-z0-9\s]", "", slug)
    slug = re.sub(r"\s+", "_", slug)
    return slug.strip("_")


def utc_now() -> datetime:
    return datetime.now(UTC)
