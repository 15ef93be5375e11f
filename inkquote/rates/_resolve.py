"""Tier resolution."""

from __future__ import annotations

from collections.abc import Iterable

from inkquote._errors import TierNotFoundError
from inkquote.rates._types import QuantityTier


def resolve_tier(tiers: Iterable[QuantityTier], quantity: int) -> QuantityTier:
    """
    Pick the tier whose range contains quantity.

    Ranges are meant to partition the quantity domain. If they overlap anyway,
    the tier with the highest min_qty wins.

    Raises:
        TierNotFoundError: no tier covers quantity. A configuration defect;
            callers fall back instead of rejecting the request.
    """
    best: QuantityTier | None = None
    family = ""
    for tier in tiers:
        family = tier.family_id
        if tier.covers(quantity) and (best is None or tier.min_qty > best.min_qty):
            best = tier
    if best is None:
        raise TierNotFoundError(family, quantity)
    return best


__all__ = ("resolve_tier",)
