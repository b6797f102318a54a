"""Plugin-aware configuration validation helpers."""

from __future__ import annotations

from snapsend.config.loader import ConfigError, ConfigErrorCode
from snapsend.models.config import Config
from snapsend.plugins.registry import PluginType, get_plugin_names, validate_plugin


def validate_plugin_names(
    config: Config,
    valid_storage: list[str] | None = None,
    valid_notifiers: list[str] | None = None,
) -> None:
    """Validate that plugin names are recognized.

    Args:
        config: Config instance to validate
        valid_storage: Optional list of valid storage backends
        valid_notifiers: Optional list of valid notifier backends

    Raises:
        ConfigError: If plugin names are not recognized
    """
    errors: list[str] = []

    if valid_storage is not None:
        valid_storage_lower = {name.lower() for name in valid_storage}
        if config.storage.backend.lower() not in valid_storage_lower:
            errors.append(
                f"Unknown storage backend: {config.storage.backend} "
                f"(valid: {sorted(valid_storage_lower)})"
            )

    if valid_notifiers is not None:
        valid_notifiers_lower = {name.lower() for name in valid_notifiers}
        for notifier in config.notifiers:
            if notifier.backend.lower() not in valid_notifiers_lower:
                errors.append(
                    f"Unknown notifier backend: {notifier.backend} "
                    f"(valid: {sorted(valid_notifiers_lower)})"
                )

    if errors:
        raise ConfigError(
            "Invalid plugin configuration:\n  " + "\n  ".join(errors),
            code=ConfigErrorCode.PLUGIN_NAMES_INVALID,
        )


def validate_plugin_configs(config: Config) -> None:
    """Validate plugin configs against registered plugin config models."""
    errors: list[str] = []

    try:
        validate_plugin(
            PluginType.STORAGE,
            config.storage.backend,
            config.storage.backend_config(),
        )
    except Exception as exc:
        errors.append(f"storage[{config.storage.backend}]: {exc}")

    for index, notifier in enumerate(config.notifiers):
        try:
            validate_plugin(
                PluginType.NOTIFIER,
                notifier.backend,
                notifier.config,
            )
        except Exception as exc:
            errors.append(f"notifier[{index}:{notifier.backend}]: {exc}")

    if errors:
        raise ConfigError(
            "Invalid plugin config:\n  " + "\n  ".join(errors),
            code=ConfigErrorCode.PLUGIN_CONFIG_INVALID,
        )


def validate_config(config: Config) -> None:
    """Check plugin names, then plugin configs, against the registry."""
    validate_plugin_names(
        config,
        valid_storage=get_plugin_names(PluginType.STORAGE),
        valid_notifiers=get_plugin_names(PluginType.NOTIFIER),
    )
    validate_plugin_configs(config)
