"""Connector interface consumed by strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from ..events import EventHook
from .entities import OrderFail

__all__ = ["BaseConnector", "OrderFail"]


class BaseConnector(ABC):
    """
    Abstract connection to a trading venue.

    Implementations route market-data and portfolio subscriptions and publish
    three event streams that strategies observe:

    - ``error``: generic connector error (payload: exception or message)
    - ``connection_error``: transport/session failure (payload: exception)
    - ``order_register_failed``: order rejected by the venue (payload: OrderFail)

    Event handlers may be fired from the connector's own threads.
    """

    def __init__(self, name: str = "connector"):
        self.name = name
        self.error = EventHook(f"{name}.error")
        self.connection_error = EventHook(f"{name}.connection_error")
        self.order_register_failed = EventHook(f"{name}.order_register_failed")

    @abstractmethod
    def register_security(self, security: Any) -> None:
        """Subscribe to level-1 data for a security."""

    @abstractmethod
    def unregister_security(self, security: Any) -> None:
        """Drop a security subscription."""

    @abstractmethod
    def register_market_depth(self, security: Any) -> None:
        """Subscribe to the order book of a security."""

    @abstractmethod
    def unregister_market_depth(self, security: Any) -> None:
        """Drop an order book subscription."""

    @abstractmethod
    def register_portfolio(self, portfolio: Any) -> None:
        """Subscribe to portfolio/position updates."""

    @abstractmethod
    def unregister_portfolio(self, portfolio: Any) -> None:
        """Drop a portfolio subscription."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"
