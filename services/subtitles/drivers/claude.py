"""Claude Messages API translation driver."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import aiohttp

from shared.http_client import AsyncHTTPClient
from shared.models import TranslationResult
from shared.utils import config, setup_logging

from .base import TranslationProvider, build_translation_prompt

logger = setup_logging("claude-translation")

ANTHROPIC_VERSION = "2023-06-01"


class ClaudeTranslationProvider(TranslationProvider):
    """Translate SRT batches with Claude over plain HTTP."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        base_url: str | None = None,
        http_client_factory: Callable[[], AsyncHTTPClient] | None = None,
    ):
        self.api_key = api_key or config.get("anthropic_api_key", "")
        self.model = model or config.get("claude_model", "claude-sonnet-4-20250514")
        self.max_tokens = max_tokens or int(config.get("claude_max_tokens", 4000))
        self.base_url = (base_url or config.get("claude_base_url", "https://api.anthropic.com/v1")).rstrip("/")
        timeout = float(config.get("translation_timeout", 120))
        self._http_client_factory = http_client_factory or (lambda: AsyncHTTPClient(timeout=timeout))

    async def translate_batch(self, srt_batch: str, target_language: str) -> TranslationResult:
        payload = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": build_translation_prompt(srt_batch, target_language)}],
        }
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }

        try:
            async with self._http_client_factory() as client:
                response = await client.post(f"{self.base_url}/messages", json_body=payload, headers=headers)
        except aiohttp.ClientError as exc:
            logger.error("HTTP request failed during translation to %s: %s", target_language, exc)
            return TranslationResult.failure_result(f"HTTP request failed: {exc}")
        except Exception as exc:
            logger.error("Translation to %s failed: %s", target_language, exc)
            return TranslationResult.failure_result(f"Translation failed: {exc}")

        if not response.ok:
            logger.error("Claude API error: %s - %s", response.status, response.body)
            return TranslationResult.failure_result(f"Claude API error: {response.status}")

        try:
            content = self.extract_text(response.json())
        except (ValueError, TypeError, AttributeError) as exc:
            logger.error("Failed to parse translation response for %s: %s", target_language, exc)
            return TranslationResult.failure_result(f"Failed to parse translation response: {exc}")

        if not content or not content.strip():
            logger.warning("Claude returned empty content for %s", target_language)
            return TranslationResult.failure_result("Translation returned empty content")

        return TranslationResult.success_result(content.strip())

    @staticmethod
    def extract_text(payload: Any) -> str:
        """Return the first text block of a Messages API response."""
        for block in payload.get("content") or []:
            if block.get("type", "text") == "text" and block.get("text") is not None:
                return block["text"]
        return ""
