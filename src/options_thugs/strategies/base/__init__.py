"""
Strategy framework exports.

This module provides the execution engine base that concrete strategies
extend with standardized lifecycle management.
"""

from .strategy import (
    BaseStrategy,
    StrategyConfig,
    StrategyStatus,
)

__all__ = [
    # Main strategy class
    "BaseStrategy",

    # Configuration
    "StrategyConfig",

    # Enums
    "StrategyStatus",
]
