"""Centralized enums for type safety and IDE support."""

from enum import StrEnum


class BucketFolder(StrEnum):
    """Logical storage namespace selected by the submitting workflow."""

    SNAP_SEND = "snap-send"
    GPS_PROBLEMS = "gps-problems"

    @property
    def prefix(self) -> str:
        """Object name prefix watched by the notification trigger."""
        return f"{self.value}/"

    @property
    def display_name(self) -> str:
        """Label used in email subjects."""
        return _DISPLAY_NAMES[self]

    @property
    def report_title(self) -> str:
        """Heading used in email bodies."""
        return _REPORT_TITLES[self]

    @property
    def has_issue_type(self) -> bool:
        """GPS problem reports have no issue category."""
        return self is not BucketFolder.GPS_PROBLEMS

    @classmethod
    def from_object_name(cls, name: str) -> "BucketFolder | None":
        """Return the folder an object name lives under, or None."""
        for folder in cls:
            if name.startswith(folder.prefix):
                return folder
        return None


_DISPLAY_NAMES = {
    BucketFolder.SNAP_SEND: "Snap & Send",
    BucketFolder.GPS_PROBLEMS: "GPS Problem",
}

_REPORT_TITLES = {
    BucketFolder.SNAP_SEND: "New Snap & Send Request",
    BucketFolder.GPS_PROBLEMS: "New GPS Problem Report",
}


class FailureStage(StrEnum):
    """Stage at which a single-file upload failed."""

    FETCH = "fetch"
    UPLOAD = "upload"


class TriggerStage(StrEnum):
    """Per-invocation states of the storage notification trigger.

    Stages are reached in declaration order; an outcome records the last one.
    """

    RECEIVED = "received"
    FILTERED = "filtered"
    METADATA_FETCHED = "metadata_fetched"
    SIGNED_URL_MINTED = "signed_url_minted"
    MESSAGE_COMPOSED = "message_composed"
    DISPATCHED = "dispatched"


class TriggerStatus(StrEnum):
    """Terminal status of a trigger invocation."""

    SKIPPED = "skipped"
    SENT = "sent"
    FAILED = "failed"
