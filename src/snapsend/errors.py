"""Error hierarchy for SnapSend pipeline stages."""

from __future__ import annotations


class PipelineError(Exception):
    """Base exception for all pipeline errors.

    Compatible with error-as-value pattern: instances can be returned as values
    instead of raised. Preserves stack traces via exception chaining.
    """

    def __init__(
        self, message: str, stage: str, ref_code: str, cause: Exception | None = None
    ) -> None:
        super().__init__(message)
        self.stage = stage
        self.ref_code = ref_code
        self.cause = cause
        self.__cause__ = cause  # Python's exception chaining


class FetchError(PipelineError):
    """Reading the local resource behind a URI failed."""

    def __init__(self, ref_code: str, uri: str, cause: Exception) -> None:
        super().__init__(
            f"Fetch failed for {ref_code}: {_short_uri(uri)}",
            stage="fetch",
            ref_code=ref_code,
            cause=cause,
        )
        self.uri = uri


class UnsupportedUriError(ValueError):
    """No transport is able to read the given URI scheme."""

    def __init__(self, uri: str) -> None:
        super().__init__(f"No fetch handler for URI: {_short_uri(uri)}")
        self.uri = uri


class UploadError(PipelineError):
    """Storage upload failed."""

    def __init__(self, ref_code: str, object_path: str | None, cause: Exception) -> None:
        super().__init__(
            f"Upload failed for {ref_code} (path: {object_path})",
            stage="upload",
            ref_code=ref_code,
            cause=cause,
        )
        self.object_path = object_path


class NotifyError(PipelineError):
    """Notification delivery failed."""

    def __init__(self, ref_code: str, notifier_name: str, cause: Exception) -> None:
        super().__init__(
            f"Notify failed for {ref_code} (notifier: {notifier_name})",
            stage="notify",
            ref_code=ref_code,
            cause=cause,
        )
        self.notifier_name = notifier_name


def _short_uri(uri: str, limit: int = 80) -> str:
    # data: URIs carry the whole payload inline
    if len(uri) <= limit:
        return uri
    return uri[:limit] + "..."
