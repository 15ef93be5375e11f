"""
Rate repository — read-only reference-data provider.

The engine never writes rate tables; implementations may cache freely.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Protocol

from inkquote._errors import PrintRateNotFoundError, TierNotFoundError
from inkquote.rates._resolve import resolve_tier
from inkquote.rates._types import Garment, PrintRate, QuantityTier


# ═══════════════════════════════════════════════════════════════════════════════
# Protocol
# ═══════════════════════════════════════════════════════════════════════════════


class RateRepository(Protocol):
    """
    Reference-data provider.

    Lookups that hit a missing row raise a ConfigurationGap subclass.
    Backend failures propagate as the backend's own exceptions.
    """

    async def garments(self, ids: Sequence[str]) -> Mapping[str, Garment]:
        """Garments by id. Unknown ids are absent from the result."""
        ...

    async def tier_for(self, family_id: str, quantity: int) -> QuantityTier:
        """Tier of family_id covering quantity. Raises TierNotFoundError."""
        ...

    async def print_rate(self, tier_id: str, num_colors: int) -> PrintRate:
        """Rate for (tier_id, num_colors). Raises PrintRateNotFoundError."""
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Memory Rates — fixed tables, for tests and previews
# ═══════════════════════════════════════════════════════════════════════════════


class MemoryRates:
    """In-memory rate tables."""

    def __init__(
        self,
        tiers: Iterable[QuantityTier] = (),
        print_rates: Iterable[PrintRate] = (),
        garments: Iterable[Garment] = (),
    ) -> None:
        self._tiers: dict[str, list[QuantityTier]] = {}
        for tier in tiers:
            self._tiers.setdefault(tier.family_id, []).append(tier)
        self._rates = {(r.tier_id, r.num_colors): r for r in print_rates}
        self._garments = {g.id: g for g in garments}

    async def garments(self, ids: Sequence[str]) -> Mapping[str, Garment]:
        return {gid: self._garments[gid] for gid in ids if gid in self._garments}

    async def tier_for(self, family_id: str, quantity: int) -> QuantityTier:
        tiers = self._tiers.get(family_id, [])
        if not tiers:
            raise TierNotFoundError(family_id, quantity)
        return resolve_tier(tiers, quantity)

    async def print_rate(self, tier_id: str, num_colors: int) -> PrintRate:
        rate = self._rates.get((tier_id, num_colors))
        if rate is None:
            raise PrintRateNotFoundError(tier_id, num_colors)
        return rate


__all__ = ("RateRepository", "MemoryRates")
