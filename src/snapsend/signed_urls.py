"""Expiring HMAC signatures for links to locally stored objects.

The local backend appends ``expires`` and ``signature`` query parameters to
``file://`` links; ``LocalStorage.read_signed_url`` checks them before any
bytes are served.
"""

from __future__ import annotations

import hashlib
import hmac
import time
from collections.abc import Mapping
from datetime import timedelta
from enum import StrEnum


class SignedLinkErrorCode(StrEnum):
    MALFORMED = "malformed"
    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED = "expired"


class SignedLinkError(PermissionError):
    """Raised when a signed link is malformed, forged or past its expiry."""

    def __init__(self, code: SignedLinkErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code


def link_signature(signing_key: str, object_path: str, expires_at: int) -> str:
    message = f"GET\n{object_path}\n{expires_at}".encode()
    return hmac.new(signing_key.encode(), message, hashlib.sha256).hexdigest()


def sign_link(
    *,
    signing_key: str,
    object_path: str,
    expires_in: timedelta,
    now: float | None = None,
) -> dict[str, str]:
    """Return the query parameters granting read access until now + expires_in."""
    ttl = int(expires_in.total_seconds())
    if ttl <= 0:
        raise ValueError("expires_in must be positive")
    expires_at = int(time.time() if now is None else now) + ttl
    return {
        "expires": str(expires_at),
        "signature": link_signature(signing_key, object_path, expires_at),
    }


def verify_link(
    *,
    signing_key: str,
    object_path: str,
    params: Mapping[str, str],
    now: float | None = None,
) -> int:
    """Check link parameters for object_path; returns the expiry timestamp."""
    raw_expires = params.get("expires", "")
    signature = params.get("signature", "")
    if not raw_expires.isdigit() or not signature:
        raise SignedLinkError(SignedLinkErrorCode.MALFORMED, "Link is missing expiry or signature")

    expires_at = int(raw_expires)
    expected = link_signature(signing_key, object_path, expires_at)
    if not hmac.compare_digest(expected, signature):
        raise SignedLinkError(SignedLinkErrorCode.INVALID_SIGNATURE, "Link signature mismatch")
    if (time.time() if now is None else now) >= expires_at:
        raise SignedLinkError(SignedLinkErrorCode.EXPIRED, "Link has expired")
    return expires_at
