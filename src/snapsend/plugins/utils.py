"""Shared utilities for plugin discovery."""

from __future__ import annotations

from collections.abc import Iterable
from importlib import metadata


def iter_entry_points(group: str) -> Iterable[metadata.EntryPoint]:
    """Iterate installed entry points registered under ``group``.

    Args:
        group: Entry point group name (e.g., "snapsend.plugins")
    """
    return metadata.entry_points(group=group)
