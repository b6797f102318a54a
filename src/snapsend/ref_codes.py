"""Submission reference code generation."""

from __future__ import annotations

import random
import string
from datetime import UTC, datetime

_SUFFIX_ALPHABET = string.digits + string.ascii_uppercase
SUFFIX_LENGTH = 3


def generate_ref_code(now: datetime | None = None, rng: random.Random | None = None) -> str:
    """Return ``YYYYMMDDHHMMSS-XXX``: UTC timestamp plus a random base-36 suffix."""
    moment = (now or datetime.now(UTC)).astimezone(UTC)
    chooser = rng or random.SystemRandom()
    suffix = "".join(chooser.choice(_SUFFIX_ALPHABET) for _ in range(SUFFIX_LENGTH))
    return f"{moment:%Y%m%d%H%M%S}-{suffix}"
