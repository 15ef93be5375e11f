"""Selection aggregation."""

from __future__ import annotations

from collections.abc import Iterable

from inkquote._errors import ValidationError
from inkquote.aggregate._types import (
    DEFAULT_GARMENT,
    AggregatedOrder,
    GarmentSelection,
    Selection,
)


def aggregate_selections(
    selections: Iterable[Selection],
    *,
    default_garment_id: str | None = None,
) -> AggregatedOrder:
    """
    Collapse raw selections into garment → color → size → quantity.

    Selections without a garment id fall under the "default" sentinel, or
    under default_garment_id when the caller knows which garment that is.
    Duplicate (garment, color, size) tuples are summed.

    Multi-garment means more than one distinct garment id other than the
    sentinel. A single-garment order's legacy projection merges every group,
    so nothing is dropped when sentinel picks sit beside one real garment.

    Raises:
        ValidationError: a negative quantity.
    """
    fallback = default_garment_id or DEFAULT_GARMENT
    grouped: dict[str, dict[str, dict[str, int]]] = {}
    total = 0

    for sel in selections:
        if sel.quantity < 0:
            raise ValidationError(f"quantity cannot be negative, got {sel.quantity}", sel.size)
        gid = sel.garment_id or fallback
        sizes = grouped.setdefault(gid, {}).setdefault(sel.color, {})
        sizes[sel.size] = sizes.get(sel.size, 0) + sel.quantity
        total += sel.quantity

    garments = {
        gid: GarmentSelection(colors=tuple(by_color), quantities=by_color)
        for gid, by_color in grouped.items()
    }
    real_ids = [gid for gid in garments if gid != DEFAULT_GARMENT]
    is_multi = len(real_ids) > 1

    if not garments:
        return AggregatedOrder(garments={}, total_quantity=0, is_multi_garment=False, garment_id="", garment_color="")

    if is_multi:
        first_id = next(iter(garments))
        first = garments[first_id]
        return AggregatedOrder(
            garments=garments,
            total_quantity=total,
            is_multi_garment=True,
            garment_id=first_id,
            garment_color=first.colors[0] if first.colors else "",
            color_size_quantities=first.quantities,
        )

    merged: dict[str, dict[str, int]] = {}
    for sel in garments.values():
        for color, sizes in sel.quantities.items():
            bucket = merged.setdefault(color, {})
            for size, qty in sizes.items():
                bucket[size] = bucket.get(size, 0) + qty

    return AggregatedOrder(
        garments=garments,
        total_quantity=total,
        is_multi_garment=False,
        garment_id=real_ids[0] if real_ids else "",
        garment_color=next(iter(merged), ""),
        color_size_quantities=merged,
    )


__all__ = ("aggregate_selections",)
