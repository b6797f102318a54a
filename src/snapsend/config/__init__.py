"""Configuration loading and validation."""

from snapsend.config.loader import (
    ConfigError,
    ConfigErrorCode,
    load_config,
    load_config_from_dict,
    resolve_env_var,
)
from snapsend.config.validation import (
    validate_config,
    validate_plugin_configs,
    validate_plugin_names,
)

__all__ = [
    "ConfigError",
    "ConfigErrorCode",
    "load_config",
    "load_config_from_dict",
    "resolve_env_var",
    "validate_config",
    "validate_plugin_configs",
    "validate_plugin_names",
]
