"""
Unit tests for Configuration System.

Tests cover settings defaults and validation, YAML and .env loading,
environment variable mapping and the global accessors.
"""
import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from options_thugs.core.config import (
    ConfigurationError,
    ConfigurationManager,
    Settings,
    get_config_manager,
    get_settings,
    initialize_config,
    reload_config,
)
from tests.utils.base_test import UnitTestCase


class TestSettings(UnitTestCase):
    """Test cases for Settings class."""

    def test_default_settings_creation(self):
        """Test creating settings with default values."""
        settings = Settings()

        assert settings.app.name == "options-thugs"
        assert settings.app.log_level == "INFO"
        assert settings.app.environment == "development"

        assert settings.strategy.timeout_ms == 2000
        assert settings.strategy.cancel_orders_when_stopping is True
        assert settings.strategy.comment_orders is True
        assert settings.strategy.dispose_on_stop is False
        assert settings.strategy.max_error_count == 10
        assert settings.strategy.orders_keep_time_seconds == 0

        assert settings.notifications.backend == "log"
        assert settings.notifications.async_dispatch is True

    def test_settings_validation(self):
        """Test settings validation."""
        settings = Settings(app=dict(log_level="warning"), notifications=dict(backend="NULL"))
        assert settings.app.log_level == "WARNING"
        assert settings.notifications.backend == "null"

        with pytest.raises(ValueError):
            Settings(app=dict(log_level="LOUD"))

        with pytest.raises(ValueError):
            Settings(strategy=dict(timeout_ms=-1))

        with pytest.raises(ValueError):
            Settings(notifications=dict(backend="message_box"))

    def test_log_config(self):
        """Test the dictConfig layout."""
        settings = Settings(logging=dict(log_to_file=True, log_file_path="logs/test.log"))

        config = settings.get_log_config()

        assert config["loggers"]["options_thugs"]["handlers"] == ["console", "file"]
        assert config["handlers"]["file"]["filename"] == "logs/test.log"
        assert config["handlers"]["console"]["formatter"] == "readable"

    def test_json_console(self):
        settings = Settings(logging=dict(enable_json_logging=True))

        assert settings.get_log_config()["handlers"]["console"]["formatter"] == "json"


class TestConfigurationManager(UnitTestCase):
    """Test cases for ConfigurationManager class."""

    def setup_method(self):
        super().setup_method()
        self.manager = ConfigurationManager()
        self.tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self.tmpdir.name)

    def teardown_method(self):
        self.tmpdir.cleanup()
        super().teardown_method()

    def write_yaml(self, data, name="config.yaml"):
        path = self.root / name
        path.write_text(yaml.safe_dump(data), encoding="utf-8")
        return path

    def test_load_from_yaml(self):
        """Test YAML values override defaults."""
        path = self.write_yaml({"strategy": {"timeout_ms": 1500}, "app": {"environment": "staging"}})
        self.manager.add_config_path(path)

        settings = self.manager.load_configuration()

        assert settings.strategy.timeout_ms == 1500
        assert settings.app.environment == "staging"
        assert self.manager.get_config_value("strategy.timeout_ms") == 1500
        assert self.manager.get_config_value("strategy.unknown", "fallback") == "fallback"

    def test_env_file_overrides_yaml(self):
        """Test .env values take precedence over YAML."""
        self.manager.add_config_path(self.write_yaml({"strategy": {"timeout_ms": 1500}}))
        env_path = self.root / ".env"
        env_path.write_text("STRATEGY_TIMEOUT_MS=900\nNOTIFICATION_BACKEND=null\n", encoding="utf-8")
        self.manager.add_env_file(env_path)

        settings = self.manager.load_configuration()

        assert settings.strategy.timeout_ms == 900
        assert settings.notifications.backend == "null"

    def test_environment_overrides_files(self):
        """Test process environment has the last word."""
        self.manager.add_config_path(self.write_yaml({"strategy": {"max_error_count": 4}}))

        with patch.dict(os.environ, {"STRATEGY_MAX_ERROR_COUNT": "7", "NOTIFICATION_ASYNC_DISPATCH": "false"}):
            settings = self.manager.load_configuration()

        assert settings.strategy.max_error_count == 7
        assert settings.notifications.async_dispatch is False

    def test_missing_files_rejected(self):
        with pytest.raises(ConfigurationError):
            self.manager.add_config_path(self.root / "missing.yaml")

        with pytest.raises(ConfigurationError):
            self.manager.add_env_file(self.root / "missing.env")

    def test_invalid_yaml_rejected(self):
        path = self.root / "broken.yaml"
        path.write_text("strategy: [unclosed", encoding="utf-8")
        self.manager.add_config_path(path)

        with pytest.raises(ConfigurationError):
            self.manager.load_configuration()

    def test_invalid_values_rejected(self):
        self.manager.add_config_path(self.write_yaml({"strategy": {"max_error_count": 0}}))

        with pytest.raises(ConfigurationError):
            self.manager.load_configuration()

    def test_settings_cached_until_reload(self):
        """Test loading is cached and reload picks up changes."""
        first = self.manager.load_configuration()

        with patch.dict(os.environ, {"STRATEGY_TIMEOUT_MS": "100"}):
            assert self.manager.load_configuration() is first
            reloaded = self.manager.reload_configuration()

        assert reloaded.strategy.timeout_ms == 100

    def test_get_settings_before_load(self):
        with pytest.raises(ConfigurationError):
            self.manager.get_settings()

    def test_save_to_yaml_roundtrip(self):
        self.manager.add_config_path(self.write_yaml({"strategy": {"timeout_ms": 1234}}))
        self.manager.load_configuration()
        out = self.root / "saved.yaml"

        self.manager.save_to_yaml(out)

        assert yaml.safe_load(out.read_text(encoding="utf-8"))["strategy"]["timeout_ms"] == 1234

    def test_merge_configs_is_deep(self):
        merged = self.manager.merge_configs(
            {"strategy": {"timeout_ms": 1, "comment_orders": False}},
            {"strategy": {"timeout_ms": 2}},
            None,
        )

        assert merged == {"strategy": {"timeout_ms": 2, "comment_orders": False}}


class TestGlobalConfig(UnitTestCase):
    """Test cases for the module level accessors."""

    def test_get_settings_loads_defaults(self):
        settings = get_settings()

        assert settings.strategy.timeout_ms == 2000
        assert get_settings() is settings

    def test_initialize_config_with_paths(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"app": {"log_level": "debug"}}), encoding="utf-8")

        settings = initialize_config(config_paths=[path])

        assert settings.app.log_level == "DEBUG"
        assert get_settings() is settings
        assert get_config_manager().get_settings() is settings

    def test_reload_config(self):
        get_settings()

        with patch.dict(os.environ, {"LOG_LEVEL": "ERROR"}):
            settings = reload_config()

        assert settings.app.log_level == "ERROR"
