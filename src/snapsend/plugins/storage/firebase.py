"""Firebase Storage (Google Cloud Storage) backend plugin."""

from __future__ import annotations

import asyncio
import logging
import os
import uuid
from datetime import timedelta
from pathlib import PurePosixPath
from typing import Any
from urllib.parse import quote

from google.api_core.exceptions import NotFound
from google.auth.credentials import Signing
from google.auth.transport.requests import Request
from google.cloud import storage

from snapsend.interfaces import StorageBackend
from snapsend.models.config import FirebaseStorageConfig
from snapsend.models.storage import StoredObjectInfo, StorageUploadResult
from snapsend.plugins.registry import PluginType, plugin

logger = logging.getLogger(__name__)

# Custom metadata key Firebase uses for public download tokens
DOWNLOAD_TOKEN_KEY = "firebaseStorageDownloadTokens"


@plugin(plugin_type=PluginType.STORAGE, name="firebase")
class FirebaseStorage(StorageBackend):
    """Firebase Storage backend.

    Objects are written with google-cloud-storage. Each upload gets a
    Firebase download token so that ``get_download_url`` returns the same
    tokenized link the Firebase client SDKs produce. Signed URLs are V4
    signatures: made locally with a service-account key, or through the IAM
    signBlob API when the credentials only carry an access token.
    """

    config_cls = FirebaseStorageConfig

    @classmethod
    def create(cls, config: FirebaseStorageConfig) -> StorageBackend:
        return cls(config)

    def __init__(self, config: FirebaseStorageConfig, client: Any | None = None) -> None:
        self.bucket_name = config.bucket
        self._download_url_base = config.download_url_base.rstrip("/")
        self.client = client if client is not None else self._create_client(config)
        self._bucket = self.client.bucket(self.bucket_name)
        self._shutdown_called = False

        logger.info("FirebaseStorage initialized: bucket=%s", self.bucket_name)

    def _create_client(self, config: FirebaseStorageConfig) -> storage.Client:
        """Create a storage client.

        Uses the service-account JSON named by ``credentials_env`` when set,
        otherwise application default credentials.
        """
        credentials_path = os.getenv(config.credentials_env)
        if credentials_path:
            logger.info("Using service account credentials from %s", config.credentials_env)
            return storage.Client.from_service_account_json(
                credentials_path, project=config.project_id
            )
        return storage.Client(project=config.project_id)

    async def put_bytes(
        self,
        dest_path: str,
        data: bytes,
        *,
        content_type: str,
        metadata: dict[str, str],
    ) -> StorageUploadResult:
        """Upload bytes with content type and custom metadata."""
        self._ensure_open()
        object_path = self._object_path(dest_path)
        blob_metadata = dict(metadata)
        blob_metadata[DOWNLOAD_TOKEN_KEY] = str(uuid.uuid4())

        await asyncio.to_thread(
            self._upload_bytes, object_path, data, content_type, blob_metadata
        )
        return StorageUploadResult(
            path=object_path,
            bucket=self.bucket_name,
            storage_uri=f"gs://{self.bucket_name}/{object_path}",
        )

    def _upload_bytes(
        self, object_path: str, data: bytes, content_type: str, metadata: dict[str, str]
    ) -> None:
        """Upload object (blocking operation)."""
        blob = self._bucket.blob(object_path)
        blob.metadata = metadata
        blob.upload_from_string(data, content_type=content_type)
        logger.debug("Uploaded to bucket %s: %s", self.bucket_name, object_path)

    async def get_download_url(self, object_path: str) -> str:
        """Return the tokenized Firebase download URL for an object."""
        self._ensure_open()
        object_path = self._object_path(object_path)
        token = await asyncio.to_thread(self._download_token, object_path)
        return (
            f"{self._download_url_base}/b/{self.bucket_name}/o/{quote(object_path, safe='')}"
            f"?alt=media&token={token}"
        )

    def _download_token(self, object_path: str) -> str:
        """Read the object's first download token, minting one if absent."""
        blob = self._get_blob(object_path)
        metadata = dict(blob.metadata or {})
        tokens = metadata.get(DOWNLOAD_TOKEN_KEY) or ""
        token = tokens.split(",", 1)[0].strip()
        if token:
            return token
        token = str(uuid.uuid4())
        metadata[DOWNLOAD_TOKEN_KEY] = token
        blob.metadata = metadata
        blob.patch()
        return token

    async def get_metadata(self, object_path: str) -> StoredObjectInfo:
        """Re-read object attributes and custom metadata."""
        self._ensure_open()
        object_path = self._object_path(object_path)
        blob = await asyncio.to_thread(self._get_blob, object_path)
        custom = {
            str(key): "" if value is None else str(value)
            for key, value in (blob.metadata or {}).items()
            if key != DOWNLOAD_TOKEN_KEY
        }
        return StoredObjectInfo(
            path=object_path,
            bucket=self.bucket_name,
            content_type=blob.content_type,
            size=blob.size,
            custom_metadata=custom,
        )

    def _get_blob(self, object_path: str) -> Any:
        blob = self._bucket.get_blob(object_path)
        if blob is None:
            raise FileNotFoundError(f"Object not found: gs://{self.bucket_name}/{object_path}")
        return blob

    async def get_signed_url(self, object_path: str, expires_in: timedelta) -> str:
        """Mint a V4 signed GET URL."""
        self._ensure_open()
        object_path = self._object_path(object_path)
        blob = self._bucket.blob(object_path)
        options: dict[str, Any] = {"version": "v4", "expiration": expires_in, "method": "GET"}

        credentials = self.client._credentials
        if not isinstance(credentials, Signing):
            # Default Cloud Functions credentials hold no private key
            if not credentials.valid:
                await asyncio.to_thread(credentials.refresh, Request())
            options["service_account_email"] = credentials.service_account_email
            options["access_token"] = credentials.token

        return await asyncio.to_thread(blob.generate_signed_url, **options)

    async def exists(self, object_path: str) -> bool:
        """Check if object exists in the bucket."""
        self._ensure_open()
        try:
            object_path = self._object_path(object_path)
        except ValueError:
            return False
        blob = self._bucket.blob(object_path)
        return bool(await asyncio.to_thread(blob.exists))

    async def delete(self, object_path: str) -> None:
        """Delete object from the bucket.

        Idempotent: missing objects are treated as success.
        """
        self._ensure_open()
        object_path = self._object_path(object_path)
        blob = self._bucket.blob(object_path)
        try:
            await asyncio.to_thread(blob.delete)
        except NotFound:
            return

    async def ping(self) -> bool:
        """Health check - verify bucket access."""
        if self._shutdown_called:
            return False
        try:
            return bool(await asyncio.to_thread(self._bucket.exists))
        except Exception as e:
            logger.warning("Firebase storage ping failed: %s", e, exc_info=True)
            return False

    async def shutdown(self, timeout: float | None = None) -> None:
        """Cleanup resources."""
        _ = timeout
        if self._shutdown_called:
            return

        self._shutdown_called = True
        close = getattr(self.client, "close", None)
        if callable(close):
            await asyncio.to_thread(close)
        logger.info("FirebaseStorage closed")

    def _ensure_open(self) -> None:
        if self._shutdown_called:
            raise RuntimeError("Storage has been shut down")

    def _object_path(self, dest_path: str) -> str:
        cleaned = str(dest_path).lstrip("/")
        if not cleaned or "\\" in cleaned:
            raise ValueError(f"Invalid dest_path: {dest_path}")
        path = PurePosixPath(cleaned)
        if path.is_absolute() or ".." in path.parts:
            raise ValueError(f"Invalid dest_path: {dest_path}")
        return str(path)
