"""Notifier plugins."""

from __future__ import annotations

from typing import Any, cast

from pydantic import BaseModel

from snapsend.interfaces import Notifier
from snapsend.plugins.registry import PluginType, load_plugin


def load_notifier_plugin(backend: str, config: dict[str, Any] | BaseModel) -> Notifier:
    """Create a notifier through the plugin registry.

    Raises:
        ValueError: If the backend is unknown
        ValidationError: If the notifier config is invalid
    """
    return cast(Notifier, load_plugin(PluginType.NOTIFIER, backend, config))


__all__ = ["load_notifier_plugin"]
