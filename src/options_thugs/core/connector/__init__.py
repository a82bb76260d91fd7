"""
Connector exports.

The connector is the strategy's window onto the trading venue: market data,
portfolio subscriptions and asynchronous error streams.
"""

from .base import BaseConnector
from .entities import OrderFail, Portfolio, Security
from .simulated import SimulatedConnector

__all__ = [
    "BaseConnector",
    "SimulatedConnector",

    # Entity references
    "Security",
    "Portfolio",
    "OrderFail",
]
