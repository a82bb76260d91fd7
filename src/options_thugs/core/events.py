"""Synchronous observer lists used by connectors and strategies."""

from __future__ import annotations

import threading
from typing import Any, Callable, List

import structlog

logger = structlog.get_logger(__name__)

Handler = Callable[[Any], None]


class EventHook:
    """Thread-safe list of handlers fired with a single payload.

    Handlers are called in subscription order. A handler that raises is
    logged and the remaining handlers still run.
    """

    def __init__(self, name: str):
        self.name = name
        self._handlers: List[Handler] = []
        self._lock = threading.Lock()

    def subscribe(self, handler: Handler) -> Handler:
        """Add a handler and return it so the caller can unsubscribe later."""
        with self._lock:
            self._handlers.append(handler)
        return handler

    def unsubscribe(self, handler: Handler) -> bool:
        """Remove a handler.

        Returns:
            True if the handler was subscribed
        """
        with self._lock:
            try:
                self._handlers.remove(handler)
            except ValueError:
                return False
        return True

    def fire(self, payload: Any) -> int:
        """Call every handler with payload.

        Returns:
            Number of handlers that completed without raising
        """
        with self._lock:
            handlers = list(self._handlers)

        delivered = 0
        for handler in handlers:
            try:
                handler(payload)
                delivered += 1
            except Exception:
                logger.exception("Event handler failed", hook=self.name)
        return delivered

    def clear(self) -> None:
        with self._lock:
            self._handlers.clear()

    def __iadd__(self, handler: Handler) -> EventHook:
        self.subscribe(handler)
        return self

    def __isub__(self, handler: Handler) -> EventHook:
        self.unsubscribe(handler)
        return self

    def __len__(self) -> int:
        with self._lock:
            return len(self._handlers)

    def __repr__(self) -> str:
        return f"EventHook({self.name!r}, handlers={len(self)})"
