"""Unified plugin registry for SnapSend.

Storage backends and notifiers are class-based plugins: each declares a
pydantic ``config_cls`` and a ``create`` factory, and registers itself with
the ``@plugin`` decorator when its module is imported.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Any, Generic, Protocol, TypeVar, cast

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class PluginType(str, Enum):
    """Categorization of plugin types."""

    STORAGE = "storage"
    NOTIFIER = "notifier"


ConfigT = TypeVar("ConfigT", bound=BaseModel)
PluginInterfaceT = TypeVar("PluginInterfaceT", bound=object, covariant=True)


class PluginProtocol(Protocol[ConfigT, PluginInterfaceT]):
    """Protocol defining the structure of a valid SnapSend plugin class."""

    config_cls: type[ConfigT]

    @classmethod
    def create(cls, config: ConfigT) -> PluginInterfaceT:
        """Factory method to create the plugin instance."""
        ...


class PluginRegistry(Generic[ConfigT, PluginInterfaceT]):
    """Generic registry for a specific type of plugin."""

    def __init__(self, plugin_type: PluginType) -> None:
        self.plugin_type = plugin_type
        self._plugins: dict[str, type[PluginProtocol[ConfigT, PluginInterfaceT]]] = {}

    def register(
        self, name: str, plugin_cls: type[PluginProtocol[ConfigT, PluginInterfaceT]]
    ) -> None:
        """Register a plugin class."""
        if name in self._plugins:
            raise ValueError(f"{self.plugin_type.value} plugin '{name}' is already registered.")

        self._plugins[name] = plugin_cls
        logger.debug("Registered %s plugin: %s", self.plugin_type.value, name)

    def load(
        self, name: str, config_dict: dict[str, Any], **runtime_context: Any
    ) -> PluginInterfaceT:
        """Load and instantiate a plugin.

        Args:
            name: The name of the plugin to load.
            config_dict: Raw configuration dictionary (from YAML/JSON).
            **runtime_context: Key-value pairs merged into the config before validation.

        Returns:
            An instantiated and configured plugin object.

        Raises:
            ValueError: If the plugin name is unknown.
            ValidationError: If configuration is invalid.
        """
        plugin_cls = self._get(name)
        validated_config = self._validate_with(plugin_cls, config_dict, runtime_context)
        return plugin_cls.create(validated_config)

    def validate(self, name: str, config_dict: dict[str, Any], **runtime_context: Any) -> BaseModel:
        """Validate configuration for a plugin without instantiating it."""
        plugin_cls = self._get(name)
        return self._validate_with(plugin_cls, config_dict, runtime_context)

    def get_all(self) -> dict[str, type[PluginProtocol[ConfigT, PluginInterfaceT]]]:
        """Return all registered plugins."""
        return self._plugins.copy()

    def _get(self, name: str) -> type[PluginProtocol[ConfigT, PluginInterfaceT]]:
        if name not in self._plugins:
            available = ", ".join(sorted(self._plugins.keys()))
            raise ValueError(
                f"Unknown {self.plugin_type.value} plugin: '{name}'. Available: {available}"
            )
        return self._plugins[name]

    @staticmethod
    def _validate_with(
        plugin_cls: type[PluginProtocol[ConfigT, PluginInterfaceT]],
        config_dict: dict[str, Any],
        runtime_context: dict[str, Any],
    ) -> ConfigT:
        merged_config = config_dict.copy()
        merged_config.update(runtime_context)
        return plugin_cls.config_cls.model_validate(merged_config)


# Separate registries per type for strict typing
_REGISTRIES: dict[PluginType, PluginRegistry[Any, Any]] = {t: PluginRegistry(t) for t in PluginType}


def plugin(plugin_type: PluginType, name: str) -> Callable[[type], type]:
    """Decorator to register a class as a plugin.

    Args:
        plugin_type: The category of plugin (STORAGE or NOTIFIER)
        name: The unique name for this plugin (e.g., "firebase", "sendgrid_email")
    """

    def decorator(cls: type) -> type:
        if not hasattr(cls, "config_cls"):
            raise TypeError(f"Plugin class {cls.__name__} must define 'config_cls'")
        if not hasattr(cls, "create"):
            raise TypeError(f"Plugin class {cls.__name__} must define 'create' classmethod")

        _REGISTRIES[plugin_type].register(name, cls)

        cast(Any, cls).__plugin_name__ = name
        cast(Any, cls).__plugin_type__ = plugin_type
        return cls

    return decorator


def _as_dict(config: dict[str, Any] | BaseModel) -> dict[str, Any]:
    if isinstance(config, BaseModel):
        return config.model_dump()
    return config


def load_plugin(
    plugin_type: PluginType, name: str, config: dict[str, Any] | BaseModel, **runtime_context: Any
) -> Any:
    """Public API to load any plugin.

    Args:
        plugin_type: The enum type of plugin to load.
        name: The plugin name (e.g. "firebase").
        config: The raw config dict OR an already-validated BaseModel.
        runtime_context: Extra config values to inject before validation.
    """
    return _REGISTRIES[plugin_type].load(name, _as_dict(config), **runtime_context)


def validate_plugin(
    plugin_type: PluginType, name: str, config: dict[str, Any] | BaseModel, **runtime_context: Any
) -> BaseModel:
    """Validate plugin configuration without instantiating it."""
    return _REGISTRIES[plugin_type].validate(name, _as_dict(config), **runtime_context)


def get_plugin_names(plugin_type: PluginType) -> list[str]:
    """Get list of registered plugin names for a given type."""
    return sorted(_REGISTRIES[plugin_type].get_all().keys())
