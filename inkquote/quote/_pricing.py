"""
Pricing arithmetic shared by quotes and campaign settlement.
"""

from __future__ import annotations

from decimal import Decimal

from inkquote._types import Money, HUNDRED, percent_of, round2


def marked_up(base_cost: Money, markup_percent: Decimal) -> Money:
    """base × (1 + markup/100)"""
    return base_cost * (1 + markup_percent / HUNDRED)


def split_deposit(total: Money, deposit_percent: Decimal) -> tuple[Money, Money]:
    """
    Deposit and balance for a total.

    deposit = round2(total × pct/100); balance = round2(total) − deposit,
    so the two always add back to the rounded total.
    """
    deposit = round2(percent_of(total, deposit_percent))
    return deposit, round2(total) - deposit


__all__ = ("marked_up", "split_deposit")
