"""Strategy readiness lifecycle for connector-driven trading strategies."""

__version__ = "1.0.0"
