"""
Materializer result types.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from inkquote.orders import ProductionOrder


@dataclass(frozen=True, slots=True)
class Materialized:
    """
    The production order for a payment.

    Note: created is True only for the one call that consumed the pending
    order. Every other call, concurrent or later, gets created=False.
    """

    order: ProductionOrder
    created: bool


class MaterializeErrorKind(Enum):
    """Kinds of materialization errors."""

    RETRYABLE_NOT_FOUND = auto()  # Pending gone, winner's order not visible yet
    STORE_ERROR = auto()  # Storage backend error
    INVALID = auto()  # Pending contents fail validation


@dataclass(frozen=True, slots=True)
class MaterializeError:
    kind: MaterializeErrorKind
    message: str
    cause: object | None = None

    @property
    def retryable(self) -> bool:
        return self.kind is MaterializeErrorKind.RETRYABLE_NOT_FOUND


__all__ = ("Materialized", "MaterializeErrorKind", "MaterializeError")
