"""Filtering of candidate local resource references before upload."""

from __future__ import annotations

from collections.abc import Iterable

ACCEPTED_PREFIXES = ("file://", "content://", "http://", "https://", "data:")

# String renderings of missing values that pickers sometimes hand back.
_SENTINELS = frozenset({"undefined", "null"})


def is_valid_uri(value: object) -> bool:
    """Return True if a transport can plausibly read the reference.

    The value must be a string that, once trimmed, is non-empty, is not a
    sentinel null rendering, and starts with an accepted scheme.
    """
    if not isinstance(value, str):
        return False
    trimmed = value.strip()
    if not trimmed or trimmed in _SENTINELS:
        return False
    return trimmed.lower().startswith(ACCEPTED_PREFIXES)


def partition_uris(values: Iterable[object] | None) -> tuple[list[str], list[str]]:
    """Split candidates into (valid, rejected), both in input order.

    Valid entries are returned trimmed; rejected entries are rendered as
    strings so callers can report them.
    """
    valid: list[str] = []
    rejected: list[str] = []
    for value in values or ():
        if is_valid_uri(value):
            valid.append(str(value).strip())
        else:
            rejected.append(value if isinstance(value, str) else repr(value))
    return valid, rejected


def filter_valid_uris(values: Iterable[object] | None) -> list[str]:
    """Return the valid subsequence of candidate references."""
    valid, _ = partition_uris(values)
    return valid
