"""
Rate table types — read-only reference data.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True, slots=True)
class QuantityTier:
    """
    A quantity range with its garment markup.

    Note: family_id namespaces tiers per garment line; a garment's
    pricing_tier_id names its family. max_qty=None is unbounded.
    """

    id: str
    family_id: str
    name: str
    min_qty: int
    max_qty: int | None
    garment_markup_percent: Decimal

    def covers(self, quantity: int) -> bool:
        if quantity < self.min_qty:
            return False
        return self.max_qty is None or quantity <= self.max_qty


@dataclass(frozen=True, slots=True)
class PrintRate:
    """Per-shirt print cost and per-screen setup fee, keyed by (tier_id, num_colors)."""

    tier_id: str
    num_colors: int
    cost_per_shirt: Decimal
    setup_fee_per_screen: Decimal


@dataclass(frozen=True, slots=True)
class Garment:
    id: str
    name: str
    base_cost: Decimal
    pricing_tier_id: str
    available_colors: tuple[str, ...] = ()
    color_images: Mapping[str, str] = field(default_factory=dict)


__all__ = ("QuantityTier", "PrintRate", "Garment")
