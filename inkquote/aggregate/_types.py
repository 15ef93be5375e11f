"""
Aggregation types.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

DEFAULT_GARMENT = "default"
"""Sentinel for selections made before orders named their garment."""

type ColorSizeQuantities = Mapping[str, Mapping[str, int]]
"""color → size → quantity"""


@dataclass(frozen=True, slots=True)
class Selection:
    """One raw (garment, color, size, quantity) pick."""

    garment_id: str | None
    color: str
    size: str
    quantity: int


@dataclass(frozen=True, slots=True)
class GarmentSelection:
    colors: tuple[str, ...]
    quantities: ColorSizeQuantities

    @property
    def total_quantity(self) -> int:
        return sum(qty for sizes in self.quantities.values() for qty in sizes.values())


@dataclass(frozen=True, slots=True)
class AggregatedOrder:
    """
    Canonical nested quantities.

    garments holds every group, keyed by garment id in first-seen order.
    The legacy projection (garment_id, garment_color, color_size_quantities)
    is what single-garment callers persist. For a multi-garment order it is
    the first garment, and selected_garments carries the full map.

    Invariant: total_quantity == Σ input quantities == Σ leaves of garments.
    """

    garments: Mapping[str, GarmentSelection]
    total_quantity: int
    is_multi_garment: bool
    garment_id: str
    garment_color: str
    color_size_quantities: ColorSizeQuantities = field(default_factory=dict)

    @property
    def selected_garments(self) -> Mapping[str, GarmentSelection] | None:
        """Full per-garment map, only present for multi-garment orders."""
        return self.garments if self.is_multi_garment else None

    def garment_quantities(self) -> dict[str, int]:
        return {gid: sel.total_quantity for gid, sel in self.garments.items()}


__all__ = (
    "DEFAULT_GARMENT",
    "ColorSizeQuantities",
    "Selection",
    "GarmentSelection",
    "AggregatedOrder",
)
