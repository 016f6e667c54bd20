"""Factories for the OpenAI and Azure OpenAI clients used by the translation drivers."""

from __future__ import annotations

from openai import AsyncOpenAI, OpenAI

from shared.utils import config


def create_azure_openai_client(
    api_key: str | None = None,
    azure_endpoint: str | None = None,
    async_client: bool = True,
) -> AsyncOpenAI | OpenAI:
    """
    Build a client for an Azure OpenAI resource through its v1-compatible endpoint.

    Raises:
        ValueError: If the key or endpoint is missing
    """
    api_key = api_key or config.get("azure_openai_key")
    azure_endpoint = azure_endpoint or config.get("azure_openai_endpoint")

    if not api_key or not azure_endpoint:
        raise ValueError(
            "Azure OpenAI credentials not configured. "
            "Set AZURE_OPENAI_KEY and AZURE_OPENAI_ENDPOINT environment variables."
        )

    base_url = f"{azure_endpoint.rstrip('/')}/openai/v1/"
    if async_client:
        return AsyncOpenAI(api_key=api_key, base_url=base_url)
    return OpenAI(api_key=api_key, base_url=base_url)


def create_openai_client(api_key: str | None = None, async_client: bool = True) -> AsyncOpenAI | OpenAI:
    """
    Build a client for api.openai.com.

    Raises:
        ValueError: If the API key is missing
    """
    api_key = api_key or config.get("openai_api_key")
    if not api_key:
        raise ValueError("OpenAI API key not configured. Set OPENAI_API_KEY environment variable.")

    if async_client:
        return AsyncOpenAI(api_key=api_key)
    return OpenAI(api_key=api_key)


def get_azure_deployment_name(deployment: str | None = None) -> str:
    """Deployment to send requests to; an explicit argument wins over configuration."""
    return deployment or config.get("azure_openai_deployment") or "gpt-4o-mini"
