"""Configuration manager for the strategy runtime."""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import structlog
import yaml
from dotenv import dotenv_values, load_dotenv
from pydantic import ValidationError

from .settings import Settings


class ConfigurationError(Exception):
    """Raised when there's an error in configuration loading or validation."""
    pass


# Environment variable -> dotted settings path
ENV_MAPPING: Dict[str, str] = {
    'APP_NAME': 'app.name',
    'APP_VERSION': 'app.version',
    'DEBUG': 'app.debug',
    'LOG_LEVEL': 'app.log_level',
    'ENVIRONMENT': 'app.environment',
    'STRATEGY_TIMEOUT_MS': 'strategy.timeout_ms',
    'STRATEGY_CANCEL_ORDERS_WHEN_STOPPING': 'strategy.cancel_orders_when_stopping',
    'STRATEGY_COMMENT_ORDERS': 'strategy.comment_orders',
    'STRATEGY_DISPOSE_ON_STOP': 'strategy.dispose_on_stop',
    'STRATEGY_MAX_ERROR_COUNT': 'strategy.max_error_count',
    'STRATEGY_ORDERS_KEEP_TIME_SECONDS': 'strategy.orders_keep_time_seconds',
    'NOTIFICATION_BACKEND': 'notifications.backend',
    'NOTIFICATION_ASYNC_DISPATCH': 'notifications.async_dispatch',
    'NOTIFICATION_QUEUE_SIZE': 'notifications.queue_size',
    'LOG_TO_FILE': 'logging.log_to_file',
    'LOG_FILE_PATH': 'logging.log_file_path',
    'LOG_MAX_FILE_SIZE': 'logging.log_max_file_size',
    'LOG_BACKUP_COUNT': 'logging.log_backup_count',
    'ENABLE_JSON_LOGGING': 'logging.enable_json_logging',
}


def _set_nested_value(data: dict, keys: List[str], value: Any) -> None:
    """Set a nested dictionary value from a list of keys."""
    for key in keys[:-1]:
        if key not in data or not isinstance(data[key], dict):
            data[key] = {}
        data = data[key]
    data[keys[-1]] = value


def map_environment(values: Dict[str, Optional[str]]) -> dict:
    """Translate flat environment-style values into a nested settings dict."""
    config: dict = {}
    for env_var, config_path in ENV_MAPPING.items():
        value = values.get(env_var)
        if value is not None:
            _set_nested_value(config, config_path.split('.'), value)
    return config


class ConfigurationManager:
    """Manages application configuration with support for multiple sources.

    Sources are merged in order: YAML files, .env files, process environment.
    Later sources override earlier ones.
    """

    def __init__(self) -> None:
        """Initialize the configuration manager."""
        self._settings: Optional[Settings] = None
        self._lock = threading.RLock()
        self._config_paths: List[Path] = []
        self._env_files: List[Path] = []
        self._config_dict: Optional[dict] = None

    def add_config_path(self, path: Union[str, Path]) -> None:
        """Add a YAML configuration file path.

        Raises:
            ConfigurationError: If path doesn't exist.
        """
        config_path = Path(path)

        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {path}")

        with self._lock:
            if config_path not in self._config_paths:
                self._config_paths.append(config_path)

    def add_env_file(self, env_file: Union[str, Path]) -> None:
        """Add an environment file path.

        Raises:
            ConfigurationError: If file doesn't exist.
        """
        env_path = Path(env_file)

        if not env_path.exists():
            raise ConfigurationError(f"Environment file not found: {env_file}")

        with self._lock:
            if env_path not in self._env_files:
                self._env_files.append(env_path)

    def load_from_yaml(self, file_path: Union[str, Path]) -> dict:
        """Load configuration from YAML file.

        Raises:
            ConfigurationError: If file cannot be loaded or parsed.
        """
        try:
            with open(file_path, 'r', encoding='utf-8') as file:
                data = yaml.safe_load(file) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load YAML config from {file_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"YAML config in {file_path} must be a mapping")
        return data

    def load_from_env(self, env_file: Union[str, Path]) -> dict:
        """Load mapped configuration values from a .env file."""
        return map_environment(dict(dotenv_values(env_file)))

    def merge_configs(self, *configs: dict) -> dict:
        """Deep merge multiple configuration dictionaries.

        Later dictionaries override earlier ones for conflicting keys.
        Nested dictionaries are merged recursively.
        """
        def deep_merge(base: dict, overlay: dict) -> dict:
            result = base.copy()

            for key, value in overlay.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = deep_merge(result[key], value)
                else:
                    result[key] = value

            return result

        merged: dict = {}
        for config in configs:
            if config:
                merged = deep_merge(merged, config)

        return merged

    def load_configuration(self, reload: bool = False) -> Settings:
        """Load and merge all configuration sources.

        Args:
            reload: Force reload even if already loaded

        Raises:
            ConfigurationError: If configuration cannot be loaded or validated.
        """
        logger = structlog.get_logger(__name__)

        with self._lock:
            if self._settings is not None and not reload:
                return self._settings

            config_parts = [self.load_from_yaml(path) for path in self._config_paths]
            config_parts.extend(self.load_from_env(env_file) for env_file in self._env_files)
            config_parts.append(map_environment(dict(os.environ)))

            merged_config = self.merge_configs(*config_parts)

            try:
                self._settings = Settings(**merged_config)
            except ValidationError as e:
                raise ConfigurationError(f"Failed to load configuration: {e}") from e

            self._config_dict = merged_config
            logger.debug(
                "Configuration loaded",
                config_paths=[str(p) for p in self._config_paths],
                env_files=[str(p) for p in self._env_files],
            )
            return self._settings

    def get_settings(self) -> Settings:
        """Get the current settings.

        Raises:
            ConfigurationError: If settings haven't been loaded yet.
        """
        if self._settings is None:
            raise ConfigurationError("Configuration not loaded. Call load_configuration() first.")
        return self._settings

    def get_config_value(self, key: str, default: Any = None) -> Any:
        """Get a specific configuration value by dot notation key.

        Args:
            key: Configuration key (e.g., 'strategy.timeout_ms')
            default: Default value if key not found
        """
        data: Any = self.get_settings().model_dump()
        for part in key.split('.'):
            if isinstance(data, dict) and part in data:
                data = data[part]
            else:
                return default
        return data

    def save_to_yaml(self, file_path: Union[str, Path], settings: Optional[Settings] = None) -> None:
        """Save settings to a YAML file.

        Raises:
            ConfigurationError: If settings cannot be saved.
        """
        if settings is None:
            settings = self.get_settings()

        try:
            with open(file_path, 'w', encoding='utf-8') as file:
                yaml.safe_dump(settings.model_dump(), file, default_flow_style=False, indent=2)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration to {file_path}: {e}") from e

    def reload_configuration(self) -> Settings:
        """Force reload of configuration from all sources."""
        return self.load_configuration(reload=True)

    def reset(self) -> None:
        """Reset the configuration manager to initial state."""
        with self._lock:
            self._settings = None
            self._config_dict = None
            self._config_paths.clear()
            self._env_files.clear()


# Global configuration manager instance
_config_manager: Optional[ConfigurationManager] = None
_config_lock = threading.Lock()


def get_config_manager() -> ConfigurationManager:
    """Get the global configuration manager instance."""
    global _config_manager

    with _config_lock:
        if _config_manager is None:
            _config_manager = ConfigurationManager()

    return _config_manager


def initialize_config(
    config_paths: Optional[List[Union[str, Path]]] = None,
    env_files: Optional[List[Union[str, Path]]] = None,
) -> Settings:
    """Initialize configuration from explicit or default sources.

    Default sources are ``config/config.yaml``, ``.env`` and ``config/.env``
    when they exist.
    """
    logger = structlog.get_logger(__name__)
    manager = get_config_manager()

    logger.info("Initializing configuration", config_paths=config_paths, env_files=env_files)

    if config_paths:
        for path in config_paths:
            manager.add_config_path(path)
    else:
        default_path = Path("config/config.yaml")
        if default_path.exists():
            manager.add_config_path(default_path)

    if env_files:
        for env_file in env_files:
            manager.add_env_file(env_file)
    else:
        for env_file in (Path(".env"), Path("config/.env")):
            if env_file.exists():
                manager.add_env_file(env_file)

    for env_file in manager._env_files:
        load_dotenv(env_file, override=False)

    return manager.load_configuration(reload=True)


def get_settings() -> Settings:
    """Get the current application settings.

    Falls back to defaults plus the process environment when
    initialize_config() has not been called.
    """
    manager = get_config_manager()

    if manager._settings is None:
        return manager.load_configuration()

    return manager._settings


def reload_config() -> Settings:
    """Reload configuration from all sources."""
    return get_config_manager().reload_configuration()
