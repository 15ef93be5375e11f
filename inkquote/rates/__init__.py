"""
Rates — quantity tiers, print rates, garments.

    from inkquote import rates as R

    repo = R.MemoryRates(tiers=[...], print_rates=[...], garments=[...])
    tier = await repo.tier_for("standard", 50)

    # Pure resolution over a fixed list
    tier = R.resolve_tier(tiers, 50)

The SQLAlchemy-backed repository lives in inkquote.db.
"""

from inkquote.rates._types import QuantityTier, PrintRate, Garment
from inkquote.rates._resolve import resolve_tier
from inkquote.rates._repo import RateRepository, MemoryRates

__all__ = (
    "QuantityTier",
    "PrintRate",
    "Garment",
    "resolve_tier",
    "RateRepository",
    "MemoryRates",
)
