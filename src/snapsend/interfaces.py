"""Interface definitions for SnapSend pipeline components."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from snapsend.models.notification import EmailMessage
    from snapsend.models.storage import StoredObjectInfo, StorageUploadResult


class Shutdownable(ABC):
    """Async shutdown interface for managed components."""

    @abstractmethod
    async def shutdown(self, timeout: float | None = None) -> None:
        """Release resources and stop background work."""
        raise NotImplementedError


@dataclass(frozen=True)
class FetchedResource:
    """Bytes read from a local resource, buffered whole."""

    uri: str
    data: bytes
    content_type: str

    @property
    def size(self) -> int:
        return len(self.data)


class ResourceFetcher(Shutdownable, ABC):
    """Reads the content behind a local resource URI into memory."""

    @abstractmethod
    async def fetch(self, uri: str) -> FetchedResource:
        """Return the resource bytes and content type. Raises on failure."""
        raise NotImplementedError


class StorageBackend(Shutdownable, ABC):
    """Object storage holding uploaded issue files and their metadata."""

    @abstractmethod
    async def put_bytes(
        self,
        dest_path: str,
        data: bytes,
        *,
        content_type: str,
        metadata: dict[str, str],
    ) -> StorageUploadResult:
        """Upload bytes with custom metadata. Returns storage result."""
        raise NotImplementedError

    @abstractmethod
    async def get_download_url(self, object_path: str) -> str:
        """Return a publicly resolvable download URL for an uploaded object."""
        raise NotImplementedError

    @abstractmethod
    async def get_metadata(self, object_path: str) -> StoredObjectInfo:
        """Re-read an object's stored attributes and custom metadata.

        Raises FileNotFoundError if the object does not exist.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_signed_url(self, object_path: str, expires_in: timedelta) -> str:
        """Mint a time-limited read-only URL for the object."""
        raise NotImplementedError

    @abstractmethod
    async def exists(self, object_path: str) -> bool:
        """Check if object exists in storage."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, object_path: str) -> None:
        """Delete an object from storage.

        Must be idempotent: deleting a missing object should succeed.
        """
        raise NotImplementedError

    @abstractmethod
    async def ping(self) -> bool:
        """Health check. Returns True if storage is reachable."""
        raise NotImplementedError


class Notifier(Shutdownable, ABC):
    """Sends notifications (e.g., email)."""

    @abstractmethod
    async def send(self, message: EmailMessage) -> None:
        """Send notification. Raises on failure."""
        raise NotImplementedError

    @abstractmethod
    async def ping(self) -> bool:
        """Health check. Returns True if notifier is reachable."""
        raise NotImplementedError
