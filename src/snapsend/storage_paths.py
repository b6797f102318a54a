"""Helpers for building storage object paths."""

from __future__ import annotations

import re
from pathlib import PurePosixPath

from snapsend.models.enums import BucketFolder

SLUG_MAX_LENGTH = 32
DEFAULT_EXTENSION = "jpg"

_WHITESPACE_RE = re.compile(r"\s+")
_DISALLOWED_RE = re.compile(r"[^0-9A-Za-z-]")
_HYPHEN_RUN_RE = re.compile(r"-{2,}")
_EXTENSION_ALIASES = {"jpeg": "jpg", "pjpeg": "jpg", "quicktime": "mov", "x-png": "png"}


def slugify(value: str | None, default: str, max_length: int = SLUG_MAX_LENGTH) -> str:
    """Render a free-text label as a bounded, path-safe slug.

    Whitespace runs become single hyphens and anything outside
    alphanumerics and hyphens is dropped.
    """
    cleaned = _WHITESPACE_RE.sub("-", (value or "").strip())
    cleaned = _DISALLOWED_RE.sub("", cleaned)
    cleaned = _HYPHEN_RUN_RE.sub("-", cleaned)
    cleaned = cleaned[:max_length].strip("-")
    return cleaned or default


def extension_for_content_type(content_type: str | None) -> str:
    """Derive a file extension from a MIME type's subtype."""
    if not content_type or "/" not in content_type:
        return DEFAULT_EXTENSION
    subtype = content_type.split(";", 1)[0].split("/", 1)[1].strip().lower()
    subtype = subtype.split("+", 1)[0]
    subtype = _EXTENSION_ALIASES.get(subtype, subtype)
    if not subtype or not subtype.isalnum():
        return DEFAULT_EXTENSION
    return subtype


def _sanitize_segment(value: str) -> str:
    cleaned = value.strip().replace("/", "_").replace("\\", "_")
    cleaned = "_".join(part for part in cleaned.split() if part)
    return cleaned or "unknown"


def _normalize_dest_path(path: PurePosixPath) -> str:
    if path.is_absolute():
        raise ValueError(f"dest_path must be relative, got {path}")
    for part in path.parts:
        if part in ("", ".", ".."):
            raise ValueError(f"dest_path contains invalid segment: {path}")
    return str(path)


def build_object_path(
    folder: BucketFolder | str,
    ref_code: str,
    *,
    machine: str | None = None,
    issue_type: str | None = None,
    extension: str | None = None,
    index: int = 0,
    total: int = 1,
) -> str:
    """Build the deterministic object path for one file of a submission.

    Shape: ``{folder}/{ref_code}/{machine}_{issue}[_{n}].{ext}`` where ``n``
    is the 1-based position, rendered only for multi-file batches.
    """
    if index < 0:
        raise ValueError(f"index must be >= 0, got {index}")
    folder_name = BucketFolder(folder).value
    base = f"{slugify(machine, 'machine')}_{slugify(issue_type, 'issue')}"
    if total > 1:
        base = f"{base}_{index + 1}"
    ext = (extension or DEFAULT_EXTENSION).lstrip(".") or DEFAULT_EXTENSION
    path = PurePosixPath(folder_name) / _sanitize_segment(ref_code) / f"{base}.{ext}"
    return _normalize_dest_path(path)
