"""
Operator notification channel.

Strategies report every observed error through ``Notifier.notify``. The
channel is pluggable: the default writes to the log, ``NullNotifier`` drops
everything, ``CallbackNotifier`` forwards to any callable and
``QueuedNotifier`` moves delivery off the caller's thread so connector
threads never wait on a slow sink.
"""

from __future__ import annotations

import queue
import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional

import structlog

from ..utils.logging import log_error_with_context
from .config import Settings, get_settings
from .exceptions import ObservedExternalError

logger = structlog.get_logger(__name__)


class Notifier(ABC):
    """Single-method capability used to surface errors to an operator."""

    @abstractmethod
    def notify(self, label: str, error_text: str, title: str) -> None:
        """Report an error.

        Args:
            label: Where the error came from, used as a message prefix
            error_text: Text of the error
            title: Short caption
        """

    def close(self) -> None:
        """Release resources held by the channel."""


class NullNotifier(Notifier):
    """Drops every notification."""

    def notify(self, label: str, error_text: str, title: str) -> None:
        return None


class LoggingNotifier(Notifier):
    """Writes notifications to the structured log at ERROR level."""

    def __init__(self, logger_name: str = "options_thugs.notifications"):
        self.logger = structlog.get_logger(logger_name)

    def notify(self, label: str, error_text: str, title: str) -> None:
        log_error_with_context(self.logger, error_text, title=title, label=label.strip())


class CallbackNotifier(Notifier):
    """Hands each notification to a callable as an ObservedExternalError."""

    def __init__(self, callback: Callable[[ObservedExternalError], None]):
        self.callback = callback

    def notify(self, label: str, error_text: str, title: str) -> None:
        self.callback(ObservedExternalError.from_notification(label, error_text, title))


class QueuedNotifier(Notifier):
    """Delivers to a wrapped notifier from a background worker thread.

    ``notify`` never blocks: when the queue is full, or the channel is
    closed, the notification is dropped and a warning is logged.
    """

    _STOP = object()

    def __init__(self, target: Notifier, maxsize: int = 1000):
        self.target = target
        self.dropped = 0
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        # Guards _closed and _pending; enqueueing happens under it too
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._closed = False
        self._pending = 0
        self._worker = threading.Thread(
            target=self._run, name="notifier-worker", daemon=True
        )
        self._worker.start()

    @property
    def closed(self) -> bool:
        return self._closed

    def notify(self, label: str, error_text: str, title: str) -> None:
        with self._lock:
            if self._closed:
                self.dropped += 1
                reason = "closed"
            else:
                try:
                    self._queue.put_nowait((label, error_text, title))
                except queue.Full:
                    self.dropped += 1
                    reason = "full"
                else:
                    self._pending += 1
                    return
            dropped = self.dropped
        logger.warning("Notification dropped", reason=reason, title=title, dropped=dropped)

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait until every queued notification was handed to the target.

        Returns:
            True if the queue drained before timeout
        """
        with self._idle:
            return self._idle.wait_for(lambda: self._pending == 0, timeout)

    def close(self, timeout: float = 5.0) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        # Everything accepted before _closed was set is already ahead of the sentinel
        self._queue.put(self._STOP)
        self._worker.join(timeout)
        self.target.close()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is self._STOP:
                return
            try:
                self.target.notify(*item)
            except Exception:
                logger.exception("Notifier target failed", target=type(self.target).__name__)
            finally:
                with self._idle:
                    self._pending -= 1
                    if self._pending == 0:
                        self._idle.notify_all()


def create_notifier(settings: Optional[Settings] = None) -> Notifier:
    """Build the notification channel described by settings."""
    settings = settings or get_settings()
    config = settings.notifications

    notifier: Notifier
    if config.backend == "null":
        notifier = NullNotifier()
    else:
        notifier = LoggingNotifier()

    if config.async_dispatch and not isinstance(notifier, NullNotifier):
        notifier = QueuedNotifier(notifier, maxsize=config.queue_size)

    logger.debug("Notifier created", backend=config.backend, async_dispatch=config.async_dispatch)
    return notifier


# Process-wide channel shared by strategies built without an explicit notifier
_default_notifier: Optional[Notifier] = None
_default_lock = threading.Lock()


def get_default_notifier() -> Notifier:
    """Get the shared notification channel, building it from settings on first use."""
    global _default_notifier

    with _default_lock:
        if _default_notifier is None:
            _default_notifier = create_notifier()
        return _default_notifier


def reset_default_notifier() -> None:
    """Close the shared channel so the next use rebuilds it from current settings."""
    global _default_notifier

    with _default_lock:
        notifier, _default_notifier = _default_notifier, None

    if notifier is not None:
        notifier.close()
