"""Local filesystem storage backend."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from datetime import timedelta
from pathlib import Path, PurePosixPath
from urllib.parse import parse_qsl, urlencode, urlparse
from urllib.request import url2pathname

from snapsend.interfaces import StorageBackend
from snapsend.models.config import LocalStorageConfig
from snapsend.models.storage import StoredObjectInfo, StorageUploadResult
from snapsend.plugins.registry import PluginType, plugin
from snapsend.signed_urls import sign_link, verify_link

logger = logging.getLogger(__name__)

METADATA_DIR = ".metadata"


@plugin(plugin_type=PluginType.STORAGE, name="local")
class LocalStorage(StorageBackend):
    """Local storage backend for development and tests.

    Object bytes live under ``root``; content type and custom metadata live
    in a JSON sidecar under ``root/.metadata``. Signed URLs carry an expiry
    and an HMAC signature keyed by the secret in ``signing_key_env``;
    ``read_signed_url`` refuses links that are forged or expired.
    """

    config_cls = LocalStorageConfig

    @classmethod
    def create(cls, config: LocalStorageConfig) -> StorageBackend:
        return cls(config)

    def __init__(self, config: LocalStorageConfig) -> None:
        self.root = Path(config.root).expanduser().resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self.bucket = config.bucket_name
        self._signing_key_env = config.signing_key_env
        self._shutdown_called = False

    async def put_bytes(
        self,
        dest_path: str,
        data: bytes,
        *,
        content_type: str,
        metadata: dict[str, str],
    ) -> StorageUploadResult:
        self._ensure_open()
        relative = self._relative_path(dest_path)
        dest = self.root.joinpath(*relative.parts)
        sidecar = self._sidecar_path(relative)
        record = {"content_type": content_type, "metadata": dict(metadata)}
        await asyncio.to_thread(self._write_object, dest, data, sidecar, record)
        logger.debug("Stored %d bytes at %s", len(data), dest)
        return StorageUploadResult(
            path=str(relative),
            bucket=self.bucket,
            storage_uri=f"local:{dest}",
        )

    async def get_download_url(self, object_path: str) -> str:
        self._ensure_open()
        dest = self._full_dest_path(object_path)
        return dest.as_uri()

    async def get_metadata(self, object_path: str) -> StoredObjectInfo:
        self._ensure_open()
        relative = self._relative_path(object_path)
        dest = self.root.joinpath(*relative.parts)
        return await asyncio.to_thread(self._read_info, relative, dest)

    async def get_signed_url(self, object_path: str, expires_in: timedelta) -> str:
        self._ensure_open()
        signing_key = self._signing_key()
        relative = self._relative_path(object_path)
        dest = self.root.joinpath(*relative.parts)
        if not await asyncio.to_thread(dest.is_file):
            raise FileNotFoundError(f"Object not found: {object_path}")
        params = sign_link(
            signing_key=signing_key,
            object_path=str(relative),
            expires_in=expires_in,
        )
        return f"{dest.as_uri()}?{urlencode(params)}"

    async def read_signed_url(self, url: str) -> bytes:
        """Return the object behind a link from get_signed_url.

        Raises SignedLinkError when the link is forged or expired, and
        ValueError when it does not point inside this storage root.
        """
        self._ensure_open()
        parsed = urlparse(url)
        if parsed.scheme != "file":
            raise ValueError(f"Not a local storage link: {url}")
        dest = Path(url2pathname(parsed.path)).resolve()
        try:
            inside = dest.relative_to(self.root)
        except ValueError as exc:
            raise ValueError(f"Link points outside storage root: {url}") from exc
        relative = self._relative_path(inside.as_posix())

        verify_link(
            signing_key=self._signing_key(),
            object_path=str(relative),
            params=dict(parse_qsl(parsed.query)),
        )
        if not await asyncio.to_thread(dest.is_file):
            raise FileNotFoundError(f"Object not found: {relative}")
        return await asyncio.to_thread(dest.read_bytes)

    async def exists(self, object_path: str) -> bool:
        self._ensure_open()
        try:
            path = self._full_dest_path(object_path)
        except ValueError:
            return False
        return await asyncio.to_thread(path.is_file)

    async def delete(self, object_path: str) -> None:
        self._ensure_open()
        relative = self._relative_path(object_path)
        dest = self.root.joinpath(*relative.parts)
        await asyncio.to_thread(dest.unlink, True)
        await asyncio.to_thread(self._sidecar_path(relative).unlink, True)

    async def ping(self) -> bool:
        if self._shutdown_called:
            return False
        return self.root.exists() and self.root.is_dir()

    async def shutdown(self, timeout: float | None = None) -> None:
        _ = timeout
        self._shutdown_called = True

    def _ensure_open(self) -> None:
        if self._shutdown_called:
            raise RuntimeError("Storage has been shut down")

    def _signing_key(self) -> str:
        signing_key = os.getenv(self._signing_key_env)
        if not signing_key:
            raise RuntimeError(f"Signing key missing from environment: {self._signing_key_env}")
        return signing_key

    def _relative_path(self, dest_path: str) -> PurePosixPath:
        cleaned = str(dest_path).lstrip("/")
        if not cleaned or "\\" in cleaned:
            raise ValueError(f"Invalid dest_path: {dest_path}")
        path = PurePosixPath(cleaned)
        if path.is_absolute() or ".." in path.parts or path.parts[0] == METADATA_DIR:
            raise ValueError(f"Invalid dest_path: {dest_path}")
        return path

    def _full_dest_path(self, dest_path: str) -> Path:
        return self.root.joinpath(*self._relative_path(dest_path).parts)

    def _sidecar_path(self, relative: PurePosixPath) -> Path:
        return self.root.joinpath(METADATA_DIR, *relative.parts).with_name(f"{relative.name}.json")

    @staticmethod
    def _write_object(dest: Path, data: bytes, sidecar: Path, record: dict[str, object]) -> None:
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(data)
        sidecar.parent.mkdir(parents=True, exist_ok=True)
        sidecar.write_text(json.dumps(record, sort_keys=True), encoding="utf-8")

    def _read_info(self, relative: PurePosixPath, dest: Path) -> StoredObjectInfo:
        if not dest.is_file():
            raise FileNotFoundError(f"Object not found: {relative}")
        sidecar = self._sidecar_path(relative)
        record: dict[str, object] = {}
        if sidecar.is_file():
            record = json.loads(sidecar.read_text(encoding="utf-8"))
        content_type = record.get("content_type")
        custom_metadata = record.get("metadata") or {}
        return StoredObjectInfo(
            path=str(relative),
            bucket=self.bucket,
            content_type=content_type if isinstance(content_type, str) else None,
            size=dest.stat().st_size,
            custom_metadata=custom_metadata if isinstance(custom_metadata, dict) else {},
        )
