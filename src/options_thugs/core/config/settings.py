"""Configuration settings for the strategy runtime."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AppSettings(BaseModel):
    """Application-level settings."""

    name: str = Field(default="options-thugs", description="Application name")
    version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    environment: str = Field(default="development", description="Environment (development, staging, production)")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment."""
        valid_envs = ["development", "staging", "production"]
        if v.lower() not in valid_envs:
            raise ValueError(f"Environment must be one of: {valid_envs}")
        return v.lower()


class StrategySettings(BaseModel):
    """Defaults applied to every strategy instance."""

    timeout_ms: int = Field(default=2000, ge=0, description="Timeout used by trading logic, in milliseconds")
    cancel_orders_when_stopping: bool = Field(default=True, description="Cancel active orders when the strategy stops")
    comment_orders: bool = Field(default=True, description="Tag orders with the strategy name")
    dispose_on_stop: bool = Field(default=False, description="Release the strategy object after stop")
    max_error_count: int = Field(default=10, ge=1, le=1000, description="Errors tolerated before a warning is logged")
    orders_keep_time_seconds: int = Field(default=0, ge=0, description="How long finished orders are kept, 0 keeps none")


class NotificationSettings(BaseModel):
    """Operator notification channel settings."""

    backend: str = Field(default="log", description="Notification backend (null, log)")
    async_dispatch: bool = Field(default=True, description="Deliver notifications from a background thread")
    queue_size: int = Field(default=1000, ge=1, le=100000, description="Pending notification limit")

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Validate backend name."""
        valid_backends = ["null", "log"]
        if v.lower() not in valid_backends:
            raise ValueError(f"Notification backend must be one of: {valid_backends}")
        return v.lower()


class LoggingSettings(BaseModel):
    """Logging configuration settings."""

    log_to_file: bool = Field(default=False, description="Enable file logging")
    log_file_path: str = Field(default="logs/options_thugs.log", description="Log file path")
    log_max_file_size: int = Field(default=10485760, ge=1024, description="Max log file size in bytes")
    log_backup_count: int = Field(default=5, ge=1, le=50, description="Number of log backups to keep")
    log_format: str = Field(
        default="%(asctime)s %(levelname)s %(name)s %(message)s",
        description="Log format string"
    )
    enable_json_logging: bool = Field(default=False, description="Enable JSON formatted logging")


class Settings(BaseModel):
    """Main application settings."""

    model_config = ConfigDict(validate_assignment=True)

    app: AppSettings = Field(default_factory=AppSettings, description="Application settings")
    strategy: StrategySettings = Field(default_factory=StrategySettings, description="Strategy defaults")
    notifications: NotificationSettings = Field(default_factory=NotificationSettings, description="Notification settings")
    logging: LoggingSettings = Field(default_factory=LoggingSettings, description="Logging settings")

    def to_dict(self) -> dict:
        """Convert settings to dictionary."""
        return self.model_dump()

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app.environment == "production"

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app.environment == "development"

    def get_log_config(self) -> dict:
        """Get logging configuration for Python logging module."""

        readable_format = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

        config = {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "readable": {
                    "format": readable_format,
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
                "json": {
                    "()": "options_thugs.utils.logging.StrategyLogFormatter",
                    "format": self.logging.log_format,
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json" if self.logging.enable_json_logging else "readable",
                    "stream": "ext://sys.stdout",
                },
            },
            "loggers": {
                "options_thugs": {
                    "level": self.app.log_level,
                    "handlers": ["console"],
                    "propagate": False,
                },
            },
        }

        if self.logging.log_to_file:
            config["handlers"]["file"] = {
                "class": "logging.handlers.RotatingFileHandler",
                "formatter": "json",
                "filename": self.logging.log_file_path,
                "maxBytes": self.logging.log_max_file_size,
                "backupCount": self.logging.log_backup_count,
            }
            config["loggers"]["options_thugs"]["handlers"].append("file")

        return config
