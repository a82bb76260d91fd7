"""Error taxonomy for the strategy lifecycle."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class StrategyError(Exception):
    """Base exception for all strategy lifecycle errors."""

    def __init__(
        self,
        message: str,
        strategy: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """Initialize strategy error.

        Args:
            message: Error message
            strategy: Name of the strategy the error belongs to
            context: Additional diagnostic values
        """
        super().__init__(message)
        self.strategy = strategy
        self.context = context or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        parts = [self.args[0]]
        if self.strategy:
            parts.append(f"(Strategy: {self.strategy})")
        return " ".join(parts)


class InvalidStateError(StrategyError):
    """Raised when a required reference is missing or a setup transition is illegal."""

    def __init__(
        self,
        message: str,
        missing: Optional[List[str]] = None,
        **kwargs
    ):
        """Initialize invalid state error.

        Args:
            message: Error message
            missing: Names of the fields that were not provided
            **kwargs: Additional arguments passed to parent
        """
        super().__init__(message, **kwargs)
        self.missing = missing or []


class ReadinessFailure(Enum):
    """Why a strategy is not ready to trade."""
    BINDING_INCOMPLETE = "binding incomplete"
    REGISTRATION_INCOMPLETE = "registration incomplete"


class PreconditionFailedError(StrategyError):
    """Raised when trading logic runs before setup has completed."""

    def __init__(self, reason: ReadinessFailure, message: Optional[str] = None, **kwargs):
        """Initialize precondition error.

        Args:
            reason: Which setup phase is incomplete
            message: Optional detailed message (defaults to the reason text)
            **kwargs: Additional arguments passed to parent
        """
        super().__init__(message or reason.value, **kwargs)
        self.reason = reason


class StrategyExecutionError(StrategyError):
    """Raised when the strategy executor is misused."""
    pass


@dataclass(frozen=True)
class ObservedExternalError:
    """An error surfaced asynchronously by the connector or the engine.

    Never raised. It is the value handed to the notification channel.
    ``source`` is "strategy" for the strategy error stream and "connector"
    for the connector streams.
    """
    label: str
    error_text: str
    title: str
    source: str = "connector"

    @classmethod
    def from_notification(cls, label: str, error_text: str, title: str) -> ObservedExternalError:
        source = "strategy" if label.startswith("Strategy.") else "connector"
        return cls(label=label, error_text=error_text, title=title, source=source)

    def format(self) -> str:
        return f"{self.label}{self.error_text}"
