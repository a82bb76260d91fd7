"""
Strategy exports.

This module provides the execution engine base and the primary strategy
that wires strategies to a connector with a two-phase setup lifecycle.
"""

from .base import (
    BaseStrategy,
    StrategyConfig,
    StrategyStatus,
)

from .primary import (
    PrimaryStrategy,
    ReadinessState,
)

__all__ = [
    # Engine base
    "BaseStrategy",
    "StrategyConfig",
    "StrategyStatus",

    # Readiness lifecycle
    "PrimaryStrategy",
    "ReadinessState",
]
