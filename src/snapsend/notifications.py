"""Composition of dispatcher emails for uploaded issue files."""

from __future__ import annotations

import html
import math
from collections import defaultdict
from collections.abc import Mapping

from snapsend.models.config import EmailTemplateConfig
from snapsend.models.enums import BucketFolder
from snapsend.models.notification import NOT_AVAILABLE, EmailMessage, IssueNotification
from snapsend.models.storage import FinalizeEvent, StoredObjectInfo


def format_size_kb(size: int | None) -> str:
    """Render a byte count as whole kilobytes, rounding halves up."""
    if size is None:
        return NOT_AVAILABLE
    return f"{math.floor(size / 1024 + 0.5)} KB"


def _field(metadata: Mapping[str, str], *keys: str) -> str:
    for key in keys:
        value = metadata.get(key)
        if value and value.strip():
            return value
    return NOT_AVAILABLE


def _ref_code_from_path(object_name: str) -> str | None:
    parts = object_name.split("/")
    if len(parts) >= 3 and parts[1]:
        return parts[1]
    return None


def build_notification(
    event: FinalizeEvent,
    info: StoredObjectInfo | None,
    *,
    signed_url: str,
    link_ttl_hours: int,
) -> IssueNotification:
    """Collect the display values for one uploaded file.

    Stored custom metadata wins over metadata carried inline on the event;
    event attributes win over re-read object attributes. Every missing value
    renders as ``N/A``.
    """
    folder = BucketFolder.from_object_name(event.name)
    if folder is None:
        raise ValueError(f"Object is outside the watched folders: {event.name}")

    metadata: dict[str, str] = dict(event.metadata or {})
    if info is not None:
        metadata.update(info.custom_metadata)

    content_type = event.content_type or (info.content_type if info else None)
    size = event.size if event.size is not None else (info.size if info else None)
    ref_code = metadata.get("refCode") or _ref_code_from_path(event.name) or NOT_AVAILABLE

    return IssueNotification(
        folder=folder,
        ref_code=ref_code,
        full_name=_field(metadata, "full_name"),
        phone=_field(metadata, "phone"),
        machine=_field(metadata, "machine"),
        issue_type=_field(metadata, "issue_type"),
        issue=_field(metadata, "issue", "issue_description"),
        file_path=event.name,
        content_type=content_type or NOT_AVAILABLE,
        size_kb=format_size_kb(size),
        signed_url=signed_url,
        link_ttl_hours=link_ttl_hours,
    )


def _context(notification: IssueNotification, *, escape: bool) -> defaultdict[str, str]:
    def fmt(value: object) -> str:
        text = str(value)
        return html.escape(text) if escape else text

    folder = notification.folder
    values = {
        "folder": folder.value,
        "folder_label": folder.display_name,
        "report_title": folder.report_title,
        "ref_code": notification.ref_code,
        "full_name": notification.full_name,
        "phone": notification.phone,
        "machine": notification.machine,
        "issue_type": notification.issue_type,
        "issue": notification.issue,
        "file_path": notification.file_path,
        "content_type": notification.content_type,
        "size_kb": notification.size_kb,
        "signed_url": notification.signed_url,
        "link_ttl_hours": notification.link_ttl_hours,
    }
    context: defaultdict[str, str] = defaultdict(str, {k: fmt(v) for k, v in values.items()})

    if folder.has_issue_type:
        context["issue_type_text"] = f"Issue Type: {notification.issue_type}\n"
        context["issue_type_html"] = (
            f"<p><strong>Issue Type:</strong> {html.escape(notification.issue_type)}</p>"
        )
    else:
        context["issue_type_text"] = ""
        context["issue_type_html"] = ""
    return context


def render_email(notification: IssueNotification, templates: EmailTemplateConfig) -> EmailMessage:
    """Render subject, plain-text and HTML bodies from the configured templates.

    Values interpolated into the HTML body are escaped; subject and text
    bodies carry them verbatim.
    """
    plain = _context(notification, escape=False)
    subject = " ".join(templates.subject_template.format_map(plain).split())
    text = templates.text_template.format_map(plain).strip() if templates.text_template else ""
    html_body = (
        templates.html_template.format_map(_context(notification, escape=True)).strip()
        if templates.html_template
        else ""
    )
    return EmailMessage(
        subject=subject,
        text=text,
        html=html_body,
        ref_code=notification.ref_code,
        object_name=notification.file_path,
    )
