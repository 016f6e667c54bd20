"""
HTTP client utilities for calling external providers.
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Any

import aiohttp


class ResponseTooLargeError(Exception):
    """Raised when a download exceeds the allowed size."""


@dataclass
class HTTPResponse:
    """Status and body of a completed request."""

    status: int
    body: str = ""
    content: bytes | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        return json.loads(self.body)


class AsyncHTTPClient:
    """Async HTTP client that reports status codes instead of raising on them."""

    def __init__(self, timeout: float = 30) -> None:
        """Initialize HTTP client."""
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "AsyncHTTPClient":
        """Enter async context manager."""
        self.session = aiohttp.ClientSession(timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        if self.session:
            await self.session.close()

    @staticmethod
    async def _prepare_request(coro_or_ctx: Any) -> Any:
        """Normalize aiohttp request result to an async context manager."""
        if asyncio.iscoroutine(coro_or_ctx):
            return await coro_or_ctx
        return coro_or_ctx

    def _require_session(self) -> aiohttp.ClientSession:
        if not self.session:
            raise RuntimeError("HTTP client not initialized. Use async context manager.")
        return self.session

    async def request(self, method: str, url: str, **kwargs: Any) -> HTTPResponse:
        """Perform a request and return its status and text body."""
        session = self._require_session()
        request_ctx = await self._prepare_request(session.request(method, url, **kwargs))
        async with request_ctx as response:
            return HTTPResponse(status=response.status, body=await response.text())

    async def get(self, url: str, headers: dict[str, Any] | None = None) -> HTTPResponse:
        """Perform GET request."""
        return await self.request("GET", url, headers=headers)

    async def post(
        self,
        url: str,
        json_body: dict[str, Any] | None = None,
        data: Any = None,
        headers: dict[str, Any] | None = None,
    ) -> HTTPResponse:
        """Perform POST request with either a JSON body or form data."""
        if data is not None:
            return await self.request("POST", url, data=data, headers=headers)
        return await self.request("POST", url, json=json_body, headers=headers)

    async def put(
        self,
        url: str,
        json_body: dict[str, Any] | None = None,
        headers: dict[str, Any] | None = None,
    ) -> HTTPResponse:
        """Perform PUT request."""
        return await self.request("PUT", url, json=json_body, headers=headers)

    async def delete(
        self,
        url: str,
        json_body: dict[str, Any] | None = None,
        headers: dict[str, Any] | None = None,
    ) -> HTTPResponse:
        """Perform DELETE request."""
        return await self.request("DELETE", url, json=json_body, headers=headers)

    async def download(self, url: str, max_bytes: int | None = None, chunk_size: int = 1 << 16) -> HTTPResponse:
        """Stream a binary body into memory, stopping once ``max_bytes`` is exceeded."""
        session = self._require_session()
        request_ctx = await self._prepare_request(session.get(url))
        async with request_ctx as response:
            if not 200 <= response.status < 300:
                return HTTPResponse(status=response.status, body=await response.text())

            declared = response.content_length
            if max_bytes is not None and declared is not None and declared > max_bytes:
                raise ResponseTooLargeError(f"Video is {declared} bytes, limit is {max_bytes}")

            buffer = bytearray()
            async for chunk in response.content.iter_chunked(chunk_size):
                buffer.extend(chunk)
                if max_bytes is not None and len(buffer) > max_bytes:
                    raise ResponseTooLargeError(f"Video exceeds the {max_bytes} byte limit")
            return HTTPResponse(status=response.status, content=bytes(buffer))
