"""
Primary strategy: the readiness lifecycle every trading strategy goes through.

Setup is two-phase and must complete before the engine starts the strategy:

1. ``set_strategy_entities_for_work(connector, security, portfolio)``
2. ``register_strategy_entities_for_work(securities, market_depths, portfolios)``

While running, errors from the connector and from the strategy itself are
reported through the notification channel. On stop, every entity this
strategy registered is unregistered in registration order, unless the
strategy is a managed child whose parent owns cleanup.

Example:
    strategy = MyStrategy()
    strategy.set_strategy_entities_for_work(connector, security, portfolio)
    strategy.register_strategy_entities_for_work([security], [security], [portfolio])
    strategy.start()
    ...
    strategy.stop()
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Tuple

from ..core.events import EventHook
from ..core.exceptions import (
    InvalidStateError,
    PreconditionFailedError,
    ReadinessFailure,
)
from ..core.notifications import Notifier, get_default_notifier
from .base import BaseStrategy, StrategyConfig, StrategyStatus

STRATEGY_ERROR = ("Strategy.WhenError rule: ", "Strategy error")
CONNECTOR_ERROR = ("Connector.Error event: ", "Connection error")
CONNECTION_ERROR = ("Connector.ConnectionError event: ", "Connection error2")
ORDER_REGISTER_FAILED = ("Connector.OrderRegisterFailed event: ", "Order registration failed")


class ReadinessState(Enum):
    """Setup progress of a primary strategy."""
    CREATED = "created"
    BOUND = "bound"
    REGISTERED = "registered"


class PrimaryStrategy(BaseStrategy):
    """
    Base for strategies that run against a connector.

    A parent strategy composing children calls
    ``mark_strategy_like_child(child)`` (or builds the child with
    ``managed_by_parent=True``); the child then skips its own readiness
    checks and never unregisters anything on stop.
    """

    def __init__(
        self,
        name: Optional[str] = None,
        config: Optional[StrategyConfig] = None,
        notifier: Optional[Notifier] = None,
        managed_by_parent: bool = False,
    ):
        """Initialize the strategy.

        Args:
            name: Strategy name
            config: Engine options
            notifier: Error notification channel (the shared one built from settings by default)
            managed_by_parent: Hand cleanup responsibility to a parent strategy
        """
        super().__init__(name=name, config=config)

        self.timeout = self.config.timeout_ms
        self.notifier = notifier or get_default_notifier()

        self._state = ReadinessState.CREATED
        self._managed_by_parent = threading.Event()
        if managed_by_parent:
            self._managed_by_parent.set()

        self._securities: List[Any] = []
        self._market_depths: List[Any] = []
        self._portfolios: List[Any] = []

        # (hook, handler) pairs attached for the current run
        self._observers: List[Tuple[EventHook, Callable[[Any], None]]] = []

    # Readiness

    @property
    def readiness(self) -> ReadinessState:
        return self._state

    @property
    def is_bound(self) -> bool:
        return self._state in (ReadinessState.BOUND, ReadinessState.REGISTERED)

    @property
    def is_registered(self) -> bool:
        return self._state is ReadinessState.REGISTERED

    @property
    def is_managed_child(self) -> bool:
        return self._managed_by_parent.is_set()

    @property
    def registered_securities(self) -> Tuple[Any, ...]:
        return tuple(self._securities)

    @property
    def registered_market_depths(self) -> Tuple[Any, ...]:
        return tuple(self._market_depths)

    @property
    def registered_portfolios(self) -> Tuple[Any, ...]:
        return tuple(self._portfolios)

    def has_registrations(self) -> bool:
        return bool(self._securities or self._market_depths or self._portfolios)

    # Setup

    def set_strategy_entities_for_work(self, connector: Any, security: Any, portfolio: Any) -> None:
        """Bind the connector, primary security and portfolio.

        Nothing is assigned unless all three are provided.

        Raises:
            InvalidStateError: If any argument is None, or setup is no longer allowed
        """
        missing = [
            field_name for field_name, value in (
                ("connector", connector),
                ("security", security),
                ("portfolio", portfolio),
            )
            if value is None
        ]
        if missing:
            raise InvalidStateError(
                f"Some of important fields is null: {', '.join(missing)}",
                missing=missing,
                strategy=self.name,
            )

        with self._lock:
            self._ensure_setup_allowed()
            if self._state is ReadinessState.REGISTERED:
                raise InvalidStateError(
                    "Entities cannot be rebound after registration",
                    strategy=self.name,
                )

            self.connector = connector
            self.security = security
            self.portfolio = portfolio
            self._state = ReadinessState.BOUND

        self.logger.info(
            "Strategy entities set",
            connector=repr(connector),
            security=str(security),
            portfolio=str(portfolio),
        )

    def register_strategy_entities_for_work(
        self,
        securities: Optional[Iterable[Any]] = None,
        market_depths: Optional[Iterable[Any]] = None,
        portfolios: Optional[Iterable[Any]] = None,
    ) -> None:
        """Register every entity the strategy needs with the connector.

        Empty sequences are valid and mean the strategy needs nothing of
        that kind. Connector errors propagate; entities registered before
        the failure are still released on stop.

        Raises:
            InvalidStateError: If the strategy is not bound or already registered
        """
        securities = list(securities or ())
        market_depths = list(market_depths or ())
        portfolios = list(portfolios or ())

        with self._lock:
            self._ensure_setup_allowed()
            if self._state is ReadinessState.CREATED or self.connector is None:
                raise InvalidStateError(
                    "Strategy entities must be set before registration",
                    missing=["connector"],
                    strategy=self.name,
                )
            if self._state is ReadinessState.REGISTERED:
                raise InvalidStateError("Strategy entities are already registered", strategy=self.name)

            connector = self.connector
            plan = (
                (securities, self._securities, connector.register_security),
                (market_depths, self._market_depths, connector.register_market_depth),
                (portfolios, self._portfolios, connector.register_portfolio),
            )
            for entities, registered, register in plan:
                for entity in entities:
                    register(entity)
                    registered.append(entity)

            self._state = ReadinessState.REGISTERED

        self.logger.info(
            "Strategy entities registered",
            securities=len(securities),
            market_depths=len(market_depths),
            portfolios=len(portfolios),
        )

    def mark_strategy_like_child(self, child: PrimaryStrategy) -> None:
        """Take over cleanup responsibility for a child strategy.

        For subclasses composing child strategies. Once marked, the child
        skips its readiness checks and its stop hook unregisters nothing.
        Entities the child registered before being marked are not released
        by the child; the parent has to handle them.
        """
        if not isinstance(child, PrimaryStrategy):
            raise TypeError(f"Child must be a PrimaryStrategy, got {type(child).__name__}")
        if child is self:
            raise InvalidStateError("A strategy cannot mark itself as a child", strategy=self.name)

        if child.has_registrations():
            self.logger.warning(
                "Child already holds registrations that it will not release",
                child=child.name,
                securities=len(child._securities),
                market_depths=len(child._market_depths),
                portfolios=len(child._portfolios),
            )

        child._managed_by_parent.set()
        self.logger.debug("Strategy marked as managed child", child=child.name)

    def check_if_strategy_ready_to_work(self) -> None:
        """Raise unless trading logic may run.

        Raises:
            PreconditionFailedError: If binding or registration is incomplete
        """
        if self.is_managed_child:
            return

        state = self._state
        if state is ReadinessState.CREATED:
            raise PreconditionFailedError(
                ReadinessFailure.BINDING_INCOMPLETE,
                "binding incomplete: set connector, security and portfolio first",
                strategy=self.name,
            )
        if state is not ReadinessState.REGISTERED:
            raise PreconditionFailedError(
                ReadinessFailure.REGISTRATION_INCOMPLETE,
                "registration incomplete: register securities, market depths and portfolios (or empty sequences)",
                strategy=self.name,
            )

    def is_ready_to_work(self) -> bool:
        try:
            self.check_if_strategy_ready_to_work()
        except PreconditionFailedError:
            return False
        return True

    # Engine hooks

    def on_started(self) -> None:
        self._attach_observers()
        super().on_started()

    def on_stopped(self) -> None:
        try:
            self._detach_observers()
            if self.is_managed_child:
                self.logger.debug("Managed child stopped, cleanup left to parent")
            else:
                self._unregister_entities()
        finally:
            super().on_stopped()

    def _check_can_start(self) -> None:
        self.check_if_strategy_ready_to_work()

    # Internal

    def _ensure_setup_allowed(self) -> None:
        if self.status is not StrategyStatus.CREATED:
            raise InvalidStateError(
                f"Setup is not allowed once the strategy is {self.status.value}",
                strategy=self.name,
            )

    def _notify(self, label: str, title: str, error: Any) -> None:
        self.notifier.notify(label, str(error), title)

    def _observer(self, label: str, title: str) -> Callable[[Any], None]:
        def handler(error: Any) -> None:
            self._notify(label, title, error)
        return handler

    def _order_fail_observer(self) -> Callable[[Any], None]:
        label, title = ORDER_REGISTER_FAILED

        def handler(fail: Any) -> None:
            self._notify(label, title, getattr(fail, "error", fail))
        return handler

    def _attach_observers(self) -> None:
        if self._observers:
            return

        self._observers.append((self.error, self.error.subscribe(self._observer(*STRATEGY_ERROR))))

        connector = self.connector
        if connector is None:
            self.logger.warning("No connector bound, connector errors will not be reported")
            return

        self._observers.extend([
            (connector.error, connector.error.subscribe(self._observer(*CONNECTOR_ERROR))),
            (connector.connection_error, connector.connection_error.subscribe(self._observer(*CONNECTION_ERROR))),
            (connector.order_register_failed, connector.order_register_failed.subscribe(self._order_fail_observer())),
        ])

    def _detach_observers(self) -> None:
        while self._observers:
            hook, handler = self._observers.pop()
            hook.unsubscribe(handler)

    def _unregister_entities(self) -> None:
        connector = self.connector
        if connector is None:
            raise InvalidStateError(
                "Cannot unregister strategy entities, connector is null",
                missing=["connector"],
                strategy=self.name,
            )

        plan = (
            (self._securities, connector.unregister_security),
            (self._market_depths, connector.unregister_market_depth),
            (self._portfolios, connector.unregister_portfolio),
        )
        released = 0
        for pending, unregister in plan:
            while pending:
                unregister(pending[0])
                pending.pop(0)
                released += 1

        self.logger.info("Strategy entities unregistered", released=released)
