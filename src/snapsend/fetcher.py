"""Reading local resource URIs into in-memory buffers."""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import mimetypes
from pathlib import Path
from urllib.parse import unquote, unquote_to_bytes, urlparse
from urllib.request import url2pathname

import aiohttp

from snapsend.errors import UnsupportedUriError
from snapsend.interfaces import FetchedResource, ResourceFetcher
from snapsend.models.config import FetcherConfig

logger = logging.getLogger(__name__)

_GENERIC_CONTENT_TYPES = frozenset({"", "application/octet-stream", "binary/octet-stream"})
_HEIF_BRANDS = frozenset({b"heic", b"heix", b"heim", b"heis", b"mif1", b"msf1"})


def sniff_content_type(data: bytes) -> str | None:
    """Identify common image/document payloads by their magic bytes."""
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if data.startswith((b"GIF87a", b"GIF89a")):
        return "image/gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    if data[4:8] == b"ftyp" and data[8:12] in _HEIF_BRANDS:
        return "image/heic"
    if data.startswith(b"%PDF-"):
        return "application/pdf"
    return None


def _declared_type(value: str | None) -> str | None:
    if value is None:
        return None
    mime = value.split(";", 1)[0].strip().lower()
    if mime in _GENERIC_CONTENT_TYPES:
        return None
    return mime


class UriResourceFetcher(ResourceFetcher):
    """Fetcher for ``file://``, ``data:`` and ``http(s)://`` URIs.

    ``content://`` references belong to an on-device content provider and
    cannot be resolved here; they raise UnsupportedUriError.
    """

    def __init__(self, config: FetcherConfig | None = None) -> None:
        config = config or FetcherConfig()
        self._timeout_s = float(config.request_timeout_s)
        self._max_bytes = int(config.max_bytes)
        self._default_content_type = config.default_content_type
        self._session: aiohttp.ClientSession | None = None
        self._shutdown_called = False

    async def fetch(self, uri: str) -> FetchedResource:
        if self._shutdown_called:
            raise RuntimeError("Fetcher has been shut down")

        scheme = uri.split(":", 1)[0].lower() if ":" in uri else ""
        match scheme:
            case "file":
                data, declared = await self._fetch_file(uri)
            case "data":
                data, declared = self._decode_data_uri(uri)
            case "http" | "https":
                data, declared = await self._fetch_http(uri)
            case _:
                raise UnsupportedUriError(uri)

        self._check_size(len(data))
        content_type = self._resolve_content_type(uri, data, declared)
        logger.debug("Fetched %d bytes (%s) from %s URI", len(data), content_type, scheme)
        return FetchedResource(uri=uri, data=data, content_type=content_type)

    async def shutdown(self, timeout: float | None = None) -> None:
        """Cleanup resources - close HTTP session."""
        _ = timeout
        if self._shutdown_called:
            return
        self._shutdown_called = True

        if self._session and not self._session.closed:
            await self._session.close()

    async def _fetch_file(self, uri: str) -> tuple[bytes, str | None]:
        parsed = urlparse(uri)
        if parsed.netloc not in ("", "localhost"):
            raise UnsupportedUriError(uri)
        path = Path(url2pathname(unquote(parsed.path)))
        size = (await asyncio.to_thread(path.stat)).st_size
        self._check_size(size)
        data = await asyncio.to_thread(path.read_bytes)
        return data, None

    def _decode_data_uri(self, uri: str) -> tuple[bytes, str | None]:
        header, sep, payload = uri[len("data:") :].partition(",")
        if not sep:
            raise ValueError("Malformed data URI: missing ',' separator")
        is_base64 = header.lower().endswith(";base64")
        media_type = header[: -len(";base64")] if is_base64 else header
        if is_base64:
            encoded = unquote(payload).strip()
            encoded += "=" * (-len(encoded) % 4)
            try:
                data = base64.b64decode(encoded, validate=False)
            except binascii.Error as exc:
                raise ValueError(f"Malformed base64 payload in data URI: {exc}") from exc
        else:
            data = unquote_to_bytes(payload)
        return data, _declared_type(media_type)

    async def _fetch_http(self, uri: str) -> tuple[bytes, str | None]:
        session = await self._get_session()
        async with session.get(uri) as response:
            if response.status >= 400:
                raise RuntimeError(f"Resource fetch failed: HTTP {response.status}")
            if response.content_length is not None:
                self._check_size(response.content_length)
            data = await response.read()
            return data, _declared_type(response.headers.get("Content-Type"))

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._timeout_s)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    def _check_size(self, size: int) -> None:
        if size > self._max_bytes:
            raise ValueError(f"Resource is {size} bytes, limit is {self._max_bytes}")

    def _resolve_content_type(self, uri: str, data: bytes, declared: str | None) -> str:
        if declared:
            return declared
        sniffed = sniff_content_type(data)
        if sniffed:
            return sniffed
        if not uri.lower().startswith("data:"):
            guessed, _ = mimetypes.guess_type(urlparse(uri).path)
            if guessed:
                return guessed
        return self._default_content_type
