"""Structured logging configuration for the strategy runtime."""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
from pythonjsonlogger.json import JsonFormatter

from ..core.config import Settings, get_settings

ROOT_LOGGER = "options_thugs"


class StrategyLogFormatter(JsonFormatter):
    """JSON formatter for strategy runtime logs."""

    def __init__(self, *args, **kwargs):
        """Initialize the formatter with custom field names."""
        kwargs.setdefault('rename_fields', {
            'levelname': 'level',
            'name': 'logger',
            'asctime': 'timestamp',
        })
        super().__init__(*args, **kwargs)

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        """Add runtime fields to log records."""
        super().add_fields(log_record, record, message_dict)

        log_record['environment'] = getattr(record, 'environment', 'development')
        log_record['service'] = getattr(record, 'service', 'options-thugs')

        for key in ('strategy', 'security', 'portfolio', 'connector'):
            if hasattr(record, key):
                log_record[key] = getattr(record, key)


class StrategyLogFilter(logging.Filter):
    """Stamps environment and service on every record."""

    def __init__(self, environment: str = "development", service: str = "options-thugs"):
        super().__init__()
        self.environment = environment
        self.service = service

    def filter(self, record: logging.LogRecord) -> bool:
        record.environment = self.environment
        record.service = self.service
        return True


def setup_logging(
    settings: Optional[Settings] = None,
    log_level: Optional[str] = None,
) -> None:
    """Setup logging for the strategy runtime.

    Applies ``Settings.get_log_config()`` through dictConfig and routes
    structlog through the standard library so both end up in the same
    handlers.

    Args:
        settings: Settings to use (global settings if not provided)
        log_level: Override log level
    """
    settings = settings or get_settings()
    config = settings.get_log_config()

    if log_level:
        config['loggers'][ROOT_LOGGER]['level'] = log_level.upper()

    if settings.logging.log_to_file:
        Path(settings.logging.log_file_path).parent.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(config)

    log_filter = StrategyLogFilter(
        environment=settings.app.environment,
        service=settings.app.name,
    )
    # Logger filters skip records from child loggers, handler filters do not
    for handler in logging.getLogger(ROOT_LOGGER).handlers:
        handler.addFilter(log_filter)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.KeyValueRenderer(key_order=['event'], sort_keys=True),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str, **context) -> structlog.stdlib.BoundLogger:
    """Get a logger namespaced under the runtime root logger.

    Args:
        name: Logger name (e.g. "strategy.executor")
        **context: Values bound to every event logged through it
    """
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return structlog.get_logger(name).bind(**context)


def log_error_with_context(logger: Any, error: Any, context: Optional[Dict[str, Any]] = None, **kwargs) -> None:
    """Log an error value with additional context.

    Args:
        logger: structlog logger
        error: Exception instance or error text
        context: Additional context
        **kwargs: Additional error details
    """
    extra = {
        'error_type': type(error).__name__ if isinstance(error, BaseException) else 'str',
        'error_message': str(error),
        **kwargs,
    }

    if context:
        extra.update(context)

    logger.error("error_observed", **extra)

