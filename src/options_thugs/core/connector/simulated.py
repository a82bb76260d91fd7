"""In-memory connector for dry runs and tests."""

from __future__ import annotations

import threading
from collections import Counter
from typing import Any, Dict, List, Optional

import structlog

from ..exceptions import InvalidStateError
from .base import BaseConnector
from .entities import OrderFail

logger = structlog.get_logger(__name__)


class SimulatedConnector(BaseConnector):
    """
    Connector that keeps subscriptions in memory.

    Subscriptions are reference counted: two strategies registering the same
    security need two unregistrations before the subscription is dropped.
    """

    SECURITIES = "securities"
    MARKET_DEPTHS = "market_depths"
    PORTFOLIOS = "portfolios"

    def __init__(self, name: str = "simulated"):
        super().__init__(name)
        self._lock = threading.Lock()
        self._subscriptions: Dict[str, Counter] = {
            self.SECURITIES: Counter(),
            self.MARKET_DEPTHS: Counter(),
            self.PORTFOLIOS: Counter(),
        }
        # (action, kind, entity) in call order
        self.history: List[tuple] = []

    # Subscriptions

    def register_security(self, security: Any) -> None:
        self._add(self.SECURITIES, security)

    def unregister_security(self, security: Any) -> None:
        self._remove(self.SECURITIES, security)

    def register_market_depth(self, security: Any) -> None:
        self._add(self.MARKET_DEPTHS, security)

    def unregister_market_depth(self, security: Any) -> None:
        self._remove(self.MARKET_DEPTHS, security)

    def register_portfolio(self, portfolio: Any) -> None:
        self._add(self.PORTFOLIOS, portfolio)

    def unregister_portfolio(self, portfolio: Any) -> None:
        self._remove(self.PORTFOLIOS, portfolio)

    def is_security_registered(self, security: Any) -> bool:
        return self._count(self.SECURITIES, security) > 0

    def is_market_depth_registered(self, security: Any) -> bool:
        return self._count(self.MARKET_DEPTHS, security) > 0

    def is_portfolio_registered(self, portfolio: Any) -> bool:
        return self._count(self.PORTFOLIOS, portfolio) > 0

    def subscription_count(self, kind: Optional[str] = None) -> int:
        """Total number of live subscriptions, optionally for one kind."""
        with self._lock:
            if kind is not None:
                return sum(self._subscriptions[kind].values())
            return sum(sum(c.values()) for c in self._subscriptions.values())

    # Event emitters

    def raise_error(self, error: Any) -> int:
        return self.error.fire(error)

    def raise_connection_error(self, error: Any) -> int:
        return self.connection_error.fire(error)

    def raise_order_register_failed(self, error: Any, order: Any = None) -> int:
        return self.order_register_failed.fire(OrderFail(error=error, order=order))

    # Internal

    def _count(self, kind: str, entity: Any) -> int:
        with self._lock:
            return self._subscriptions[kind][entity]

    def _add(self, kind: str, entity: Any) -> None:
        with self._lock:
            self._subscriptions[kind][entity] += 1
            self.history.append(("register", kind, entity))
        logger.debug("Subscription added", connector=self.name, kind=kind, entity=str(entity))

    def _remove(self, kind: str, entity: Any) -> None:
        with self._lock:
            counter = self._subscriptions[kind]
            if counter[entity] <= 0:
                raise InvalidStateError(
                    f"Cannot unregister {entity}: no active {kind} subscription",
                    context={"connector": self.name, "kind": kind},
                )
            counter[entity] -= 1
            if counter[entity] == 0:
                del counter[entity]
            self.history.append(("unregister", kind, entity))
        logger.debug("Subscription removed", connector=self.name, kind=kind, entity=str(entity))
