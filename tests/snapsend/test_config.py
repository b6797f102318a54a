"""Tests for configuration loading and validation."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from snapsend.config import (
    ConfigError,
    ConfigErrorCode,
    load_config,
    load_config_from_dict,
    resolve_env_var,
    validate_plugin_names,
)
from snapsend.models.config import LocalStorageConfig


def minimal_config() -> dict[str, object]:
    """Return minimal valid config dict."""
    return {
        "version": 1,
        "storage": {
            "backend": "firebase",
            "firebase": {"bucket": "ready-to-run.appspot.com"},
        },
        "notifiers": [
            {
                "backend": "sendgrid_email",
                "config": {"to_emails": ["dispatch@example.com"]},
            }
        ],
    }


def test_load_config_from_dict_success() -> None:
    """Test loading valid config from dict."""
    # Given a minimal valid config dict
    data = minimal_config()

    # When loading config
    config = load_config_from_dict(data)

    # Then defaults are applied
    assert config.storage.backend == "firebase"
    assert config.upload.max_images == 10
    assert config.trigger.signed_url_ttl_hours == 24
    assert config.trigger.watched_prefixes == ["snap-send/", "gps-problems/"]
    assert len(config.enabled_notifiers) == 1


def test_backend_names_are_normalized() -> None:
    """Backend names are case-insensitive."""
    data = minimal_config()
    data["storage"] = {"backend": "Local", "local": {"root": "/tmp/snapsend"}}

    config = load_config_from_dict(data)

    assert config.storage.backend == "local"
    assert isinstance(config.storage.backend_config(), LocalStorageConfig)


def test_missing_backend_section_fails_validation() -> None:
    """Selecting a built-in backend requires its section."""
    data = minimal_config()
    data["storage"] = {"backend": "firebase"}

    with pytest.raises(ConfigError) as exc_info:
        load_config_from_dict(data)

    assert exc_info.value.code is ConfigErrorCode.VALIDATION_FAILED
    assert "storage.firebase is required" in str(exc_info.value)


def test_unknown_notifier_backend_rejected() -> None:
    """Unregistered notifier names are reported."""
    data = minimal_config()
    data["notifiers"] = [{"backend": "pager", "config": {}}]

    with pytest.raises(ConfigError) as exc_info:
        load_config_from_dict(data)

    assert exc_info.value.code is ConfigErrorCode.PLUGIN_NAMES_INVALID
    assert "Unknown notifier backend: pager" in str(exc_info.value)


def test_invalid_notifier_config_rejected() -> None:
    """Notifier config is validated against the plugin's model."""
    data = minimal_config()
    data["notifiers"] = [{"backend": "sendgrid_email", "config": {"to_emails": []}}]

    with pytest.raises(ConfigError) as exc_info:
        load_config_from_dict(data)

    assert exc_info.value.code is ConfigErrorCode.PLUGIN_CONFIG_INVALID
    assert "notifier[0:sendgrid_email]" in str(exc_info.value)


def test_validate_plugin_names_unknown_storage() -> None:
    config = load_config_from_dict(minimal_config())

    with pytest.raises(ConfigError, match="Unknown storage backend: firebase"):
        validate_plugin_names(config, valid_storage=["local"])


def test_upload_limits_validated() -> None:
    data = minimal_config()
    data["upload"] = {"max_images": 0}

    with pytest.raises(ConfigError) as exc_info:
        load_config_from_dict(data)

    assert "upload -> max_images" in str(exc_info.value)


def test_trigger_requires_a_body_template() -> None:
    data = minimal_config()
    data["trigger"] = {"email": {"text_template": "", "html_template": ""}}

    with pytest.raises(ConfigError, match="at least one of"):
        load_config_from_dict(data)


class TestLoadConfigFile:
    """Tests for loading YAML files."""

    def test_load_config_file(self, tmp_path: Path) -> None:
        """Valid YAML is loaded and validated."""
        path = tmp_path / "snapsend.yaml"
        path.write_text(
            "storage:\n"
            "  backend: local\n"
            "  local:\n"
            "    root: ./storage\n"
            "trigger:\n"
            "  signed_url_ttl_hours: 12\n"
        )
        path.chmod(0o600)

        config = load_config(path)

        assert config.storage.backend == "local"
        assert config.trigger.signed_url_ttl_hours == 12
        assert config.notifiers == []

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path / "missing.yaml")

        assert exc_info.value.code is ConfigErrorCode.FILE_NOT_FOUND

    @pytest.mark.parametrize(
        ("content", "code"),
        [
            ("", ConfigErrorCode.EMPTY_FILE),
            ("- a\n- b\n", ConfigErrorCode.ROOT_NOT_MAPPING),
            ("storage: [unclosed\n", ConfigErrorCode.YAML_INVALID),
            ("version: 1\n", ConfigErrorCode.VALIDATION_FAILED),
        ],
    )
    def test_bad_files(self, tmp_path: Path, content: str, code: ConfigErrorCode) -> None:
        """Each malformed file maps to a stable error code."""
        path = tmp_path / "bad.yaml"
        path.write_text(content)

        with pytest.raises(ConfigError) as exc_info:
            load_config(path)

        assert exc_info.value.code is code
        assert exc_info.value.path == path

    @pytest.mark.skipif(os.name != "posix", reason="POSIX permissions only")
    def test_permissive_mode_warns(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """World-readable config files produce a warning."""
        path = tmp_path / "snapsend.yaml"
        path.write_text("storage:\n  backend: local\n  local: {}\n")
        path.chmod(0o644)

        with caplog.at_level(logging.WARNING, logger="snapsend.config.loader"):
            load_config(path)

        assert "permissions are too permissive" in caplog.text


class TestResolveEnvVar:
    """Tests for environment variable lookup."""

    def test_present(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SNAPSEND_TEST_VAR", "value")
        assert resolve_env_var("SNAPSEND_TEST_VAR") == "value"

    def test_missing_required(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SNAPSEND_TEST_VAR", raising=False)

        with pytest.raises(ConfigError) as exc_info:
            resolve_env_var("SNAPSEND_TEST_VAR")

        assert exc_info.value.code is ConfigErrorCode.ENV_VAR_MISSING

    def test_missing_optional(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SNAPSEND_TEST_VAR", raising=False)
        assert resolve_env_var("SNAPSEND_TEST_VAR", required=False) is None
