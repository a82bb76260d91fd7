"""Execution engine exports."""

from .strategy_executor import StrategyExecutor

__all__ = ["StrategyExecutor"]
