"""Strategy execution engine driving start/stop from a worker thread."""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Dict, List, Optional

from ...strategies.base import BaseStrategy
from ...utils.logging import get_logger
from ..exceptions import StrategyExecutionError


class StrategyExecutor:
    """Runs strategy transitions on its own worker thread.

    Strategies are set up by the caller's thread and handed over with
    ``add_strategy``; the strategy's ``start`` refuses to run unless setup
    has completed, so setup always happens-before start.
    """

    def __init__(self, max_workers: int = 1):
        """Initialize strategy executor.

        Args:
            max_workers: Worker threads used for transitions
        """
        self.logger = get_logger("strategy.executor")
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="strategy-executor")
        self._lock = threading.Lock()
        self._shutdown = False

        self.strategies: Dict[str, BaseStrategy] = {}

        self.stats = {
            'started': 0,
            'stopped': 0,
            'errors': 0,
        }

    def add_strategy(self, strategy: BaseStrategy) -> None:
        """Hand a strategy over to the executor.

        Raises:
            StrategyExecutionError: If a strategy with the same name exists
        """
        with self._lock:
            if strategy.name in self.strategies:
                raise StrategyExecutionError(
                    "Strategy with this name is already managed", strategy=strategy.name
                )
            self.strategies[strategy.name] = strategy
        self.logger.debug("Strategy added", strategy=strategy.name)

    def start_strategy(self, name: str) -> Future:
        """Start a strategy on the worker thread."""
        return self._submit(name, "start")

    def stop_strategy(self, name: str) -> Future:
        """Stop a strategy on the worker thread."""
        return self._submit(name, "stop")

    def stop_all(self, timeout: Optional[float] = None) -> List[Future]:
        futures = [self.stop_strategy(name) for name in list(self.strategies)]
        wait(futures, timeout=timeout)
        return futures

    def shutdown(self, stop_strategies: bool = True) -> None:
        """Stop managed strategies and release the worker threads."""
        if self._shutdown:
            return
        if stop_strategies:
            self.stop_all()
        self._shutdown = True
        self._pool.shutdown(wait=True)
        self.logger.info("Strategy executor shut down", **self.stats)

    def _submit(self, name: str, action: str) -> Future:
        if self._shutdown:
            raise StrategyExecutionError("Strategy executor is shut down", strategy=name)
        with self._lock:
            strategy = self.strategies.get(name)
        if strategy is None:
            raise StrategyExecutionError("Unknown strategy", strategy=name)
        return self._pool.submit(self._run_transition, strategy, action)

    def _run_transition(self, strategy: BaseStrategy, action: str) -> None:
        before = strategy.status
        try:
            getattr(strategy, action)()
        except Exception as e:
            with self._lock:
                self.stats['errors'] += 1
            self.logger.error(
                "Strategy transition failed",
                strategy=strategy.name,
                action=action,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        # start and stop return without a transition when there is nothing to do
        if strategy.status is not before:
            with self._lock:
                self.stats['started' if action == "start" else 'stopped'] += 1
