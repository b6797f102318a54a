"""Notification payload and trigger outcome models."""

from __future__ import annotations

from pydantic import BaseModel

from snapsend.models.enums import BucketFolder, TriggerStage, TriggerStatus

NOT_AVAILABLE = "N/A"


class IssueNotification(BaseModel):
    """Everything the dispatcher email shows about one uploaded file.

    Every data field is a display string; missing values are ``"N/A"``.
    """

    folder: BucketFolder
    ref_code: str
    full_name: str
    phone: str
    machine: str
    issue_type: str
    issue: str
    file_path: str
    content_type: str
    size_kb: str
    signed_url: str
    link_ttl_hours: int


class EmailMessage(BaseModel):
    """Rendered email content; recipients belong to notifier config."""

    subject: str
    text: str
    html: str
    ref_code: str
    object_name: str


class TriggerOutcome(BaseModel):
    """Result of one trigger invocation."""

    status: TriggerStatus
    stage: TriggerStage
    object_name: str
    error: str | None = None
