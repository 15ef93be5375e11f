"""
Aggregate — raw selections to nested per-garment quantities.

    from inkquote import aggregate as A

    order = A.aggregate_selections([
        A.Selection("gildan-5000", "Black", "M", 5),
        A.Selection("gildan-5000", "Black", "M", 3),
    ])
    order.garments["gildan-5000"].quantities  # {"Black": {"M": 8}}
"""

from inkquote.aggregate._types import (
    DEFAULT_GARMENT,
    ColorSizeQuantities,
    Selection,
    GarmentSelection,
    AggregatedOrder,
)
from inkquote.aggregate._aggregate import aggregate_selections

__all__ = (
    "DEFAULT_GARMENT",
    "ColorSizeQuantities",
    "Selection",
    "GarmentSelection",
    "AggregatedOrder",
    "aggregate_selections",
)
