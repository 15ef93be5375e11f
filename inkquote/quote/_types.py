"""
Quote types — request, print configuration, priced result.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum

from inkquote._types import Money, ZERO


# ═══════════════════════════════════════════════════════════════════════════════
# Print Configuration
# ═══════════════════════════════════════════════════════════════════════════════

MIN_COLORS = 1
MAX_COLORS = 4


class PrintLocation(StrEnum):
    FRONT = "front"
    BACK = "back"
    LEFT_CHEST = "left_chest"
    RIGHT_CHEST = "right_chest"
    FULL_BACK = "full_back"


@dataclass(frozen=True, slots=True)
class LocationPrint:
    enabled: bool
    num_colors: int = 1


type PrintConfiguration = Mapping[PrintLocation, LocationPrint]


def enabled_locations(config: PrintConfiguration) -> dict[PrintLocation, LocationPrint]:
    return {loc: lp for loc, lp in config.items() if lp.enabled}


def total_screens(config: PrintConfiguration) -> int:
    """One screen per ink color per enabled location."""
    return sum(lp.num_colors for lp in enabled_locations(config).values())


def max_colors(config: PrintConfiguration) -> int:
    """Highest color count across enabled locations, 0 when nothing prints."""
    return max((lp.num_colors for lp in enabled_locations(config).values()), default=0)


# ═══════════════════════════════════════════════════════════════════════════════
# Request
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class QuoteLine:
    garment_id: str
    quantity: int


@dataclass(frozen=True, slots=True)
class QuoteRequest:
    """
    What the shopper is pricing.

    Note: one line is a single-garment order. Several lines share one
    print setup; print cost is computed once on the combined quantity.
    """

    lines: tuple[QuoteLine, ...]
    print_config: PrintConfiguration
    discount_amount: Money = ZERO

    @classmethod
    def single(
        cls,
        garment_id: str,
        quantity: int,
        print_config: PrintConfiguration,
        discount_amount: Money = ZERO,
    ) -> QuoteRequest:
        return cls((QuoteLine(garment_id, quantity),), print_config, discount_amount)

    @property
    def total_quantity(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def garment_ids(self) -> tuple[str, ...]:
        return tuple(line.garment_id for line in self.lines)

    @property
    def primary_garment_id(self) -> str:
        return self.lines[0].garment_id


# ═══════════════════════════════════════════════════════════════════════════════
# Result
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class GarmentLineCost:
    garment_id: str
    name: str
    quantity: int
    cost_per_shirt: Money
    total: Money
    tier_id: str | None


@dataclass(frozen=True, slots=True)
class PrintCost:
    """Shared print cost of the whole physical order."""

    per_unit: Money
    setup_fees: Money
    total: Money
    total_screens: int
    active_locations: int
    rate_colors: int
    tier_id: str | None

    @classmethod
    def none(cls) -> PrintCost:
        return cls(ZERO, ZERO, ZERO, 0, 0, 0, None)


@dataclass(frozen=True, slots=True)
class Quote:
    """
    Priced breakdown.

    Invariant: deposit_amount + balance_due == round2(total).
    Per-unit figures are display values rounded to cents; totals are exact
    until the deposit split.

    degraded: a tier or print-rate row was missing and a fallback formula
    priced part of the quote. gaps says which.
    """

    total_quantity: int
    garment_cost_total: Money
    garment_cost_per_unit: Money
    print_cost_total: Money
    print_cost_per_unit: Money
    setup_fees: Money
    total_screens: int
    active_locations: int
    subtotal: Money
    discount: Money
    total: Money
    deposit_amount: Money
    balance_due: Money
    per_unit_price: Money
    garment_breakdown: tuple[GarmentLineCost, ...]
    gaps: tuple[str, ...] = field(default=())

    @property
    def degraded(self) -> bool:
        return bool(self.gaps)

    @property
    def is_multi_garment(self) -> bool:
        return len(self.garment_breakdown) > 1


__all__ = (
    "MIN_COLORS",
    "MAX_COLORS",
    "PrintLocation",
    "LocationPrint",
    "PrintConfiguration",
    "enabled_locations",
    "total_screens",
    "max_colors",
    "QuoteLine",
    "QuoteRequest",
    "GarmentLineCost",
    "PrintCost",
    "Quote",
)
