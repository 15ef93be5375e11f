"""
SQLAlchemy rate repository.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from inkquote._errors import PrintRateNotFoundError, TierNotFoundError
from inkquote.rates import Garment, PrintRate, QuantityTier
from inkquote.db._tables import GarmentTable, PrintRateTable, TierTable


class SQLAlchemyRates:
    """
    Rate tables in the database.

    Note: read-only from the engine's side. Driver exceptions propagate;
    only missing rows become ConfigurationGap.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def garments(self, ids: Sequence[str]) -> Mapping[str, Garment]:
        if not ids:
            return {}
        async with self._session_factory() as session:
            rows = (
                await session.execute(select(GarmentTable).where(GarmentTable.id.in_(ids)))
            ).scalars()
            return {row.id: _garment(row) for row in rows}

    async def tier_for(self, family_id: str, quantity: int) -> QuantityTier:
        """Covering tier with the highest min_qty, so overlapping rows resolve like resolve_tier."""
        stmt = (
            select(TierTable)
            .where(
                TierTable.family_id == family_id,
                TierTable.min_qty <= quantity,
                or_(TierTable.max_qty.is_(None), TierTable.max_qty >= quantity),
            )
            .order_by(TierTable.min_qty.desc())
            .limit(1)
        )
        async with self._session_factory() as session:
            row = (await session.execute(stmt)).scalar_one_or_none()
        if row is None:
            raise TierNotFoundError(family_id, quantity)
        return QuantityTier(
            id=row.id,
            family_id=row.family_id,
            name=row.name,
            min_qty=row.min_qty,
            max_qty=row.max_qty,
            garment_markup_percent=row.garment_markup_percent,
        )

    async def print_rate(self, tier_id: str, num_colors: int) -> PrintRate:
        async with self._session_factory() as session:
            row = await session.get(PrintRateTable, (tier_id, num_colors))
        if row is None:
            raise PrintRateNotFoundError(tier_id, num_colors)
        return PrintRate(
            tier_id=row.tier_id,
            num_colors=row.num_colors,
            cost_per_shirt=row.cost_per_shirt,
            setup_fee_per_screen=row.setup_fee_per_screen,
        )


def _garment(row: GarmentTable) -> Garment:
    return Garment(
        id=row.id,
        name=row.name,
        base_cost=row.base_cost,
        pricing_tier_id=row.pricing_tier_id,
        available_colors=tuple(row.available_colors),
        color_images=dict(row.color_images),
    )


async def load_rates(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    tiers: Iterable[QuantityTier] = (),
    print_rates: Iterable[PrintRate] = (),
    garments: Iterable[Garment] = (),
) -> None:
    """Seed reference data. Admin tooling and tests only."""
    async with session_factory() as session:
        session.add_all(
            TierTable(
                id=t.id,
                family_id=t.family_id,
                name=t.name,
                min_qty=t.min_qty,
                max_qty=t.max_qty,
                garment_markup_percent=t.garment_markup_percent,
            )
            for t in tiers
        )
        session.add_all(
            PrintRateTable(
                tier_id=r.tier_id,
                num_colors=r.num_colors,
                cost_per_shirt=r.cost_per_shirt,
                setup_fee_per_screen=r.setup_fee_per_screen,
            )
            for r in print_rates
        )
        session.add_all(
            GarmentTable(
                id=g.id,
                name=g.name,
                base_cost=g.base_cost,
                pricing_tier_id=g.pricing_tier_id,
                available_colors=list(g.available_colors),
                color_images=dict(g.color_images),
            )
            for g in garments
        )
        await session.commit()


__all__ = ("SQLAlchemyRates", "load_rates")
