"""Storage backend plugins."""

from __future__ import annotations

from typing import cast

from snapsend.interfaces import StorageBackend
from snapsend.models.config import StorageConfig
from snapsend.plugins.registry import PluginType, load_plugin


def load_storage_plugin(config: StorageConfig) -> StorageBackend:
    """Create the configured storage backend through the plugin registry.

    Args:
        config: Storage configuration with backend name and backend-specific settings

    Raises:
        ValueError: If the backend is unknown or its config section is missing
    """
    return cast(
        StorageBackend,
        load_plugin(PluginType.STORAGE, config.backend, config.backend_config()),
    )


__all__ = ["load_storage_plugin"]
