"""Lightweight references to connector-side entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional


@dataclass(frozen=True)
class Security:
    """A tradable instrument reference."""
    code: str
    board: str = ""
    price_step: Decimal = Decimal("0.01")

    @property
    def id(self) -> str:
        return f"{self.code}@{self.board}" if self.board else self.code

    def __str__(self) -> str:
        return self.id


@dataclass(frozen=True)
class Portfolio:
    """An account/position-holding reference."""
    name: str
    board: str = ""

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class OrderFail:
    """Payload of a connector's order-registration failure event."""
    error: Any
    order: Optional[Any] = field(default=None, compare=False)

    def __str__(self) -> str:
        return str(self.error)
