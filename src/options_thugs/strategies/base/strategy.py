"""
Execution engine base for trading strategies.

``BaseStrategy`` owns the status machine (created -> started -> stopped),
the strategy's internal error stream and the ``on_started`` /
``on_stopped`` hooks that subclasses extend with super-call semantics.
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from ...core.config import StrategySettings, get_settings
from ...core.events import EventHook
from ...core.exceptions import InvalidStateError
from ...utils.logging import get_logger


class StrategyStatus(Enum):
    """Strategy status enumeration."""
    CREATED = "created"
    STARTED = "started"
    STOPPED = "stopped"


class StrategyConfig(BaseModel):
    """Per-instance engine options."""

    name: str = Field(..., min_length=1, description="Strategy name")
    timeout_ms: int = Field(default=2000, ge=0, description="Timeout used by trading logic, in milliseconds")
    cancel_orders_when_stopping: bool = Field(default=True, description="Cancel active orders on stop")
    comment_orders: bool = Field(default=True, description="Tag orders with the strategy name")
    dispose_on_stop: bool = Field(default=False, description="Release the strategy object after stop")
    max_error_count: int = Field(default=10, ge=1, description="Errors tolerated before a warning is logged")
    orders_keep_time_seconds: int = Field(default=0, ge=0, description="How long finished orders are kept")

    @classmethod
    def from_settings(cls, name: str, settings: Optional[StrategySettings] = None) -> StrategyConfig:
        """Build a config from the global strategy defaults."""
        settings = settings or get_settings().strategy
        return cls(name=name, **settings.model_dump())


class BaseStrategy:
    """
    Base class driven by an execution engine.

    The engine calls ``start()`` and ``stop()``; subclasses extend
    ``on_started()`` / ``on_stopped()`` and must call through to this class.
    Errors raised inside trading logic are published with ``report_error``
    on the ``error`` hook; they never stop the strategy.
    """

    def __init__(self, name: Optional[str] = None, config: Optional[StrategyConfig] = None):
        """Initialize the strategy.

        Args:
            name: Strategy name (defaults to the class name)
            config: Engine options (defaults to the global strategy settings)
        """
        self.config = config or StrategyConfig.from_settings(name or type(self).__name__)
        self.name = name or self.config.name

        self.connector: Optional[Any] = None
        self.security: Optional[Any] = None
        self.portfolio: Optional[Any] = None

        self.status = StrategyStatus.CREATED
        self.error = EventHook(f"{self.name}.error")
        self.error_count = 0

        self._lock = threading.RLock()
        self._error_lock = threading.Lock()
        self.logger = get_logger("strategy", strategy=self.name)

    @property
    def is_running(self) -> bool:
        return self.status is StrategyStatus.STARTED

    def start(self) -> None:
        """Transition to started and run the ``on_started`` hook.

        Raises:
            InvalidStateError: If the strategy was already stopped
        """
        with self._lock:
            if self.status is StrategyStatus.STARTED:
                self.logger.warning("Strategy is already running")
                return
            if self.status is StrategyStatus.STOPPED:
                raise InvalidStateError("A stopped strategy cannot be restarted", strategy=self.name)

            self._check_can_start()

            self.logger.info("Starting strategy")
            self.status = StrategyStatus.STARTED
            self.on_started()

    def stop(self) -> None:
        """Transition to stopped and run the ``on_stopped`` hook.

        Errors raised by the hook propagate after the status has changed.
        """
        with self._lock:
            if self.status is not StrategyStatus.STARTED:
                self.logger.warning("Strategy is not running", status=self.status.value)
                return

            self.logger.info("Stopping strategy")
            self.status = StrategyStatus.STOPPED
            self.on_stopped()

    def report_error(self, error: Any) -> None:
        """Publish an error raised by trading logic on the ``error`` hook."""
        with self._error_lock:
            self.error_count += 1
            count = self.error_count

        self.logger.debug("Strategy error reported", error=str(error), error_count=count)
        if count == self.config.max_error_count:
            self.logger.warning("Strategy error limit reached", max_error_count=count)

        self.error.fire(error)

    def on_started(self) -> None:
        """Hook run after the status changed to started."""
        self.logger.info("Strategy started")

    def on_stopped(self) -> None:
        """Hook run after the status changed to stopped."""
        self.logger.info("Strategy stopped", error_count=self.error_count)

    def _check_can_start(self) -> None:
        """Raise if the strategy may not start yet."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, status={self.status.value})"
