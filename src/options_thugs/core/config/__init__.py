"""Configuration exports."""

from .manager import (
    ConfigurationError,
    ConfigurationManager,
    get_config_manager,
    get_settings,
    initialize_config,
    reload_config,
)
from .settings import (
    AppSettings,
    LoggingSettings,
    NotificationSettings,
    Settings,
    StrategySettings,
)

__all__ = [
    "ConfigurationError",
    "ConfigurationManager",
    "get_config_manager",
    "get_settings",
    "initialize_config",
    "reload_config",

    # Settings models
    "Settings",
    "AppSettings",
    "StrategySettings",
    "NotificationSettings",
    "LoggingSettings",
]
