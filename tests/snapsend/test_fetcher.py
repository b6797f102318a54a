"""Tests for the URI resource fetcher."""

from __future__ import annotations

import base64
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from snapsend.errors import UnsupportedUriError
from snapsend.fetcher import UriResourceFetcher, sniff_content_type
from snapsend.models.config import FetcherConfig

_PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
_JPEG = b"\xff\xd8\xff\xe0" + b"\x00" * 16


def _mock_http_response(
    status: int, body: bytes = b"", headers: dict[str, str] | None = None
) -> AsyncMock:
    """Create a mock aiohttp response."""
    response = AsyncMock()
    response.status = status
    response.content_length = len(body)
    response.headers = headers or {}
    response.read = AsyncMock(return_value=body)
    response.__aenter__ = AsyncMock(return_value=response)
    response.__aexit__ = AsyncMock(return_value=None)
    return response


def _patch_session(monkeypatch: pytest.MonkeyPatch, get_cm: AsyncMock) -> MagicMock:
    session = MagicMock()
    session.get = MagicMock(return_value=get_cm)

    async def _close() -> None:
        session.closed = True

    session.close = AsyncMock(side_effect=_close)
    session.closed = False

    monkeypatch.setattr("snapsend.fetcher.aiohttp.ClientSession", lambda **_kw: session)
    return session


class TestSniffContentType:
    """Tests for magic-byte detection."""

    @pytest.mark.parametrize(
        ("data", "expected"),
        [
            (_JPEG, "image/jpeg"),
            (_PNG, "image/png"),
            (b"GIF89a....", "image/gif"),
            (b"RIFF\x00\x00\x00\x00WEBPVP8 ", "image/webp"),
            (b"\x00\x00\x00\x18ftypheic\x00\x00", "image/heic"),
            (b"%PDF-1.7", "application/pdf"),
            (b"plain text", None),
        ],
    )
    def test_detects_known_formats(self, data: bytes, expected: str | None) -> None:
        """Recognizes common image formats by their signatures."""
        assert sniff_content_type(data) == expected


class TestFileUris:
    """Tests for file:// references."""

    @pytest.mark.asyncio
    async def test_reads_file_and_sniffs_type(self, tmp_path: Path) -> None:
        """Reads the whole file and detects PNG from its bytes."""
        # Given: A PNG saved without an extension
        path = tmp_path / "capture"
        path.write_bytes(_PNG)
        fetcher = UriResourceFetcher()

        # When: Fetching it
        resource = await fetcher.fetch(path.as_uri())

        # Then: Bytes and sniffed content type are returned
        assert resource.data == _PNG
        assert resource.content_type == "image/png"
        assert resource.size == len(_PNG)

    @pytest.mark.asyncio
    async def test_guesses_type_from_extension(self, tmp_path: Path) -> None:
        """Unrecognized bytes fall back to the extension guess."""
        path = tmp_path / "notes.txt"
        path.write_bytes(b"hello")

        resource = await UriResourceFetcher().fetch(path.as_uri())

        assert resource.content_type == "text/plain"

    @pytest.mark.asyncio
    async def test_defaults_to_jpeg(self, tmp_path: Path) -> None:
        """No declared, sniffed or guessed type yields image/jpeg."""
        path = tmp_path / "blob"
        path.write_bytes(b"\x01\x02\x03")

        resource = await UriResourceFetcher().fetch(path.as_uri())

        assert resource.content_type == "image/jpeg"

    @pytest.mark.asyncio
    async def test_missing_file_raises(self, tmp_path: Path) -> None:
        """A missing file propagates FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            await UriResourceFetcher().fetch((tmp_path / "gone.jpg").as_uri())

    @pytest.mark.asyncio
    async def test_enforces_size_limit(self, tmp_path: Path) -> None:
        """Files above max_bytes are refused."""
        path = tmp_path / "big.jpg"
        path.write_bytes(b"x" * 100)
        fetcher = UriResourceFetcher(FetcherConfig(max_bytes=10))

        with pytest.raises(ValueError, match="limit"):
            await fetcher.fetch(path.as_uri())


class TestDataUris:
    """Tests for data: references."""

    @pytest.mark.asyncio
    async def test_decodes_base64_payload(self) -> None:
        """Base64 payloads are decoded and the header type is used."""
        uri = "data:image/png;base64," + base64.b64encode(_PNG).decode()

        resource = await UriResourceFetcher().fetch(uri)

        assert resource.data == _PNG
        assert resource.content_type == "image/png"

    @pytest.mark.asyncio
    async def test_decodes_unpadded_base64_payload(self) -> None:
        """Base64 payloads without trailing padding still decode."""
        # Given: A short data URI whose payload omits the '=' padding
        uri = "data:image/png;base64,AA"

        # When: Fetching it
        resource = await UriResourceFetcher().fetch(uri)

        # Then: The single byte is recovered with the declared type
        assert resource.data == b"\x00"
        assert resource.content_type == "image/png"

    @pytest.mark.asyncio
    async def test_decodes_percent_encoded_payload(self) -> None:
        """Non-base64 payloads are percent-decoded."""
        resource = await UriResourceFetcher().fetch("data:text/plain,hello%20world")

        assert resource.data == b"hello world"
        assert resource.content_type == "text/plain"

    @pytest.mark.asyncio
    async def test_missing_comma_is_malformed(self) -> None:
        """A data URI without a payload separator is rejected."""
        with pytest.raises(ValueError, match="Malformed"):
            await UriResourceFetcher().fetch("data:image/png;base64")


class TestUnsupportedUris:
    """Tests for references no transport can read."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("uri", ["content://media/external/images/1", "ftp://host/x.jpg"])
    async def test_raises_unsupported(self, uri: str) -> None:
        """Content-provider and unknown schemes raise UnsupportedUriError."""
        with pytest.raises(UnsupportedUriError):
            await UriResourceFetcher().fetch(uri)


class TestHttpUris:
    """Tests for http(s):// references."""

    @pytest.mark.asyncio
    async def test_fetches_body_and_declared_type(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """The response body and Content-Type header are returned."""
        # Given: A server answering with a PNG
        response = _mock_http_response(200, _PNG, {"Content-Type": "image/png; q=1"})
        session = _patch_session(monkeypatch, response)
        fetcher = UriResourceFetcher()

        # When: Fetching
        resource = await fetcher.fetch("https://example.com/a.png")

        # Then: Body and normalized declared type are used
        session.get.assert_called_once_with("https://example.com/a.png")
        assert resource.data == _PNG
        assert resource.content_type == "image/png"

        await fetcher.shutdown()
        session.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_generic_declared_type_is_sniffed(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """application/octet-stream does not override sniffing."""
        response = _mock_http_response(
            200, _JPEG, {"Content-Type": "application/octet-stream"}
        )
        _patch_session(monkeypatch, response)

        resource = await UriResourceFetcher().fetch("https://example.com/x")

        assert resource.content_type == "image/jpeg"

    @pytest.mark.asyncio
    async def test_error_status_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """HTTP errors raise RuntimeError."""
        _patch_session(monkeypatch, _mock_http_response(404))

        with pytest.raises(RuntimeError, match="HTTP 404"):
            await UriResourceFetcher().fetch("https://example.com/missing.jpg")


class TestFetcherShutdown:
    """Tests for shutdown semantics."""

    @pytest.mark.asyncio
    async def test_fetch_after_shutdown_raises(self) -> None:
        """A shut-down fetcher refuses new work."""
        fetcher = UriResourceFetcher()
        await fetcher.shutdown()
        await fetcher.shutdown()

        with pytest.raises(RuntimeError, match="shut down"):
            await fetcher.fetch("data:,x")

    def test_accepts_none_config(self) -> None:
        """Defaults apply when no config is given."""
        fetcher: Any = UriResourceFetcher(None)
        assert fetcher._max_bytes == FetcherConfig().max_bytes
