"""Tests for HTTP client utility module."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from shared.http_client import AsyncHTTPClient, HTTPResponse, ResponseTooLargeError


def _mock_session(status: int = 200, body: str = "") -> tuple[AsyncMock, AsyncMock]:
    mock_session = AsyncMock()
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.text.return_value = body
    mock_session.request.return_value.__aenter__.return_value = mock_response
    return mock_session, mock_response


async def _chunks(*parts: bytes):
    for part in parts:
        yield part


class TestHTTPResponse:
    def test_ok_range(self) -> None:
        assert HTTPResponse(status=204).ok is True
        assert HTTPResponse(status=302).ok is False
        assert HTTPResponse(status=500).ok is False

    def test_json_body(self) -> None:
        assert HTTPResponse(status=200, body='{"sha": "abc"}').json() == {"sha": "abc"}


class TestAsyncHTTPClient:
    """Test HTTP client functionality."""

    @pytest.mark.asyncio
    async def test_context_manager(self) -> None:
        """Test HTTP client as async context manager."""
        async with AsyncHTTPClient() as client:
            assert client.session is not None

    @pytest.mark.asyncio
    async def test_get_request(self) -> None:
        """Test GET request functionality."""
        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session, _ = _mock_session(body='{"status": "success"}')
            mock_session_class.return_value = mock_session

            async with AsyncHTTPClient() as client:
                result = await client.get("https://api.example.com/test")
                assert result.ok
                assert result.json() == {"status": "success"}
                mock_session.request.assert_called_once_with(
                    "GET", "https://api.example.com/test", headers=None
                )

    @pytest.mark.asyncio
    async def test_post_json_request(self) -> None:
        """Test POST request with a JSON body."""
        post_data: dict[str, Any] = {"model": "claude", "max_tokens": 10}
        headers = {"x-api-key": "secret"}

        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session, _ = _mock_session(status=201, body="{}")
            mock_session_class.return_value = mock_session

            async with AsyncHTTPClient() as client:
                result = await client.post("https://api.example.com/create", json_body=post_data, headers=headers)
                assert result.status == 201
                mock_session.request.assert_called_once_with(
                    "POST", "https://api.example.com/create", json=post_data, headers=headers
                )

    @pytest.mark.asyncio
    async def test_post_form_request(self) -> None:
        """Test POST request with form data."""
        form = object()

        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session, _ = _mock_session()
            mock_session_class.return_value = mock_session

            async with AsyncHTTPClient() as client:
                await client.post("https://api.example.com/upload", data=form)
                mock_session.request.assert_called_once_with(
                    "POST", "https://api.example.com/upload", data=form, headers=None
                )

    @pytest.mark.asyncio
    async def test_put_and_delete_requests(self) -> None:
        """Test PUT and DELETE request functionality."""
        body: dict[str, Any] = {"sha": "abc"}

        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session, _ = _mock_session()
            mock_session_class.return_value = mock_session

            async with AsyncHTTPClient() as client:
                await client.put("https://api.example.com/item", json_body=body)
                await client.delete("https://api.example.com/item", json_body=body)

            methods = [call.args[0] for call in mock_session.request.call_args_list]
            assert methods == ["PUT", "DELETE"]
            assert mock_session.request.call_args.kwargs == {"json": body, "headers": None}

    @pytest.mark.asyncio
    async def test_error_status_is_returned_not_raised(self) -> None:
        """Test HTTP error status handling."""
        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session, _ = _mock_session(status=404, body="missing")
            mock_session_class.return_value = mock_session

            async with AsyncHTTPClient() as client:
                result = await client.get("https://api.example.com/notfound")
                assert result.ok is False
                assert result.status == 404
                assert result.body == "missing"

    @pytest.mark.asyncio
    async def test_not_initialized_error(self) -> None:
        """Test error when client not used as context manager."""
        client = AsyncHTTPClient()
        with pytest.raises(RuntimeError, match="HTTP client not initialized"):
            await client.get("https://api.example.com/test")


class TestDownload:
    @staticmethod
    def _download_session(content_length: int | None, *parts: bytes) -> AsyncMock:
        mock_session = AsyncMock()
        mock_response = AsyncMock()
        mock_response.status = 200
        mock_response.content_length = content_length
        mock_response.content.iter_chunked = MagicMock(return_value=_chunks(*parts))
        mock_session.get.return_value.__aenter__.return_value = mock_response
        return mock_session

    @pytest.mark.asyncio
    async def test_download_collects_chunks(self) -> None:
        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session_class.return_value = self._download_session(None, b"abc", b"def")

            async with AsyncHTTPClient() as client:
                result = await client.download("https://files.example.com/a.mp4", max_bytes=10)

        assert result.content == b"abcdef"

    @pytest.mark.asyncio
    async def test_declared_length_over_limit(self) -> None:
        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session_class.return_value = self._download_session(2048, b"x")

            async with AsyncHTTPClient() as client:
                with pytest.raises(ResponseTooLargeError):
                    await client.download("https://files.example.com/a.mp4", max_bytes=1024)

    @pytest.mark.asyncio
    async def test_streamed_body_over_limit(self) -> None:
        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_session_class.return_value = self._download_session(None, b"12345", b"67890")

            async with AsyncHTTPClient() as client:
                with pytest.raises(ResponseTooLargeError):
                    await client.download("https://files.example.com/a.mp4", max_bytes=8)
