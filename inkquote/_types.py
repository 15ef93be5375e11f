"""
Core types for inkquote.

Re-exports from kungfu/combinators + money helpers.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

# Re-export from kungfu
from kungfu import Result, Ok, Error, LazyCoroResult

# Re-export from combinators
from combinators import LCR, NoError

# ═══════════════════════════════════════════════════════════════════════════════
# Lazy Computation Aliases
# ═══════════════════════════════════════════════════════════════════════════════

type Lazy[T, E] = LazyCoroResult[T, E]
"""Lazy async computation that may fail."""

# ═══════════════════════════════════════════════════════════════════════════════
# Money
# ═══════════════════════════════════════════════════════════════════════════════

type Money = Decimal
"""Single-currency monetary amount. Never a float."""

ZERO: Money = Decimal("0")
CENT: Money = Decimal("0.01")
HUNDRED: Money = Decimal("100")


def money(value: Decimal | int | float | str) -> Money:
    """
    Coerce to Decimal.

    Note: floats go through str() so 0.5 stays 0.5 and not 0.5000000000000000277.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round2(value: Money) -> Money:
    """Round half-up to cents."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def percent_of(value: Money, percent: Decimal | int) -> Money:
    """value × percent/100, unrounded."""
    return value * money(percent) / HUNDRED


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "LazyCoroResult",
    # Re-exports from combinators
    "LCR",
    "NoError",
    # Aliases
    "Lazy",
    "Money",
    # Money helpers
    "ZERO",
    "CENT",
    "HUNDRED",
    "money",
    "round2",
    "percent_of",
)
