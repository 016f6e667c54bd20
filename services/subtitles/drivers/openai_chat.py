"""OpenAI and Azure OpenAI translation drivers using AsyncOpenAI."""

from __future__ import annotations

from openai import AsyncOpenAI, OpenAIError

from shared.azure_openai_client import (
    create_azure_openai_client,
    create_openai_client,
    get_azure_deployment_name,
)
from shared.models import TranslationResult
from shared.utils import config, setup_logging

from .base import TranslationProvider, build_translation_prompt

logger = setup_logging("openai-translation")


class OpenAITranslationProvider(TranslationProvider):
    """Direct OpenAI implementation using the chat completions API."""

    def __init__(self, client: AsyncOpenAI | None = None, model: str | None = None):
        self.client = client or create_openai_client(async_client=True)
        self.model = model or config.get("openai_translation_model", "gpt-4o-mini")
        self.max_tokens = int(config.get("openai_translation_max_tokens", 4000))

    async def translate_batch(self, srt_batch: str, target_language: str) -> TranslationResult:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": build_translation_prompt(srt_batch, target_language)}],
                temperature=0,
                max_tokens=self.max_tokens,
            )
        except OpenAIError as exc:
            logger.error("OpenAI translation to %s failed: %s", target_language, exc)
            return TranslationResult.failure_result(f"OpenAI API error: {exc}")

        content = response.choices[0].message.content if response.choices else None
        if content is None or not content.strip():
            logger.warning("OpenAI returned empty content for %s", target_language)
            return TranslationResult.failure_result("Translation returned empty content")
        return TranslationResult.success_result(content.strip())


class AzureOpenAITranslationProvider(OpenAITranslationProvider):
    """Azure OpenAI variant; the model is the deployment name."""

    def __init__(self, client: AsyncOpenAI | None = None, deployment: str | None = None):
        super().__init__(
            client=client or create_azure_openai_client(async_client=True),
            model=get_azure_deployment_name(deployment),
        )
