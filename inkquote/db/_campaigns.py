"""
SQLAlchemy campaign store.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import Any, cast

from sqlalchemy import select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kungfu import Result, Ok, Error

from inkquote._errors import StoreError, ValidationError
from inkquote._types import Money
from inkquote.campaigns import (
    AlreadySettled,
    Campaign,
    CampaignMissing,
    CampaignOrder,
    CampaignOrderStatus,
    CampaignStatus,
    Refused,
    SettleBuildFn,
    SettleClaim,
    Settled,
    check_payable,
)
from inkquote.orders import ProductionOrder
from inkquote.db._codec import campaign_codec, campaign_order_codec, dump, load, order_codec
from inkquote.db._orders import order_row
from inkquote.db._tables import CampaignOrderTable, CampaignTable, ProductionOrderTable


def _campaign(row: CampaignTable) -> Campaign:
    return replace(
        load(campaign_codec, row.payload),
        status=CampaignStatus(row.status),
        final_order_id=row.final_order_id,
    )


def _campaign_order(row: CampaignOrderTable) -> CampaignOrder:
    return replace(
        load(campaign_order_codec, row.payload),
        status=CampaignOrderStatus(row.status),
        amount_paid=Decimal(row.amount_paid),
    )


class SQLAlchemyCampaignStore:
    """
    Campaign store on SQLAlchemy async sessions.

    Note: settle inserts the order and sets final_order_id with
    UPDATE ... WHERE final_order_id IS NULL in one transaction. Zero rows
    updated means another settlement won; this one rolls back and returns
    the winner's order.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def add_campaign(self, campaign: Campaign) -> Result[None, StoreError]:
        try:
            async with self._session_factory() as session:
                session.add(
                    CampaignTable(
                        id=campaign.id,
                        status=campaign.status,
                        final_order_id=campaign.final_order_id,
                        payload=dump(campaign_codec, campaign),
                    )
                )
                await session.commit()
                return Ok(None)
        except Exception as e:
            return Error(StoreError(f"Failed to add campaign: {e}", e))

    async def get_campaign(self, campaign_id: str) -> Result[Campaign | None, StoreError]:
        try:
            async with self._session_factory() as session:
                row = await session.get(CampaignTable, campaign_id)
                return Ok(_campaign(row) if row is not None else None)
        except Exception as e:
            return Error(StoreError(f"Failed to get campaign: {e}", e))

    async def add_order(self, order: CampaignOrder) -> Result[None, StoreError]:
        try:
            async with self._session_factory() as session:
                campaign = await session.get(CampaignTable, order.campaign_id)
                if campaign is None:
                    return Error(StoreError(f"No campaign: {order.campaign_id}"))
                if campaign.final_order_id is not None:
                    return Error(StoreError(f"Campaign already settled: {campaign.id}"))
                session.add(
                    CampaignOrderTable(
                        id=order.id,
                        campaign_id=order.campaign_id,
                        status=order.status,
                        amount_paid=order.amount_paid,
                        payload=dump(campaign_order_codec, order),
                    )
                )
                await session.commit()
                return Ok(None)
        except Exception as e:
            return Error(StoreError(f"Failed to add campaign order: {e}", e))

    async def list_orders(self, campaign_id: str) -> Result[list[CampaignOrder], StoreError]:
        try:
            async with self._session_factory() as session:
                return Ok(await self._orders_of(session, campaign_id))
        except Exception as e:
            return Error(StoreError(f"Failed to list campaign orders: {e}", e))

    async def mark_order_paid(
        self, order_id: str, amount: Money
    ) -> Result[CampaignOrder, ValidationError | StoreError]:
        try:
            async with self._session_factory() as session:
                row = await session.get(CampaignOrderTable, order_id)
                if row is None:
                    return Error(ValidationError("unknown campaign order", order_id))
                order = _campaign_order(row)
                campaign_row = await session.get(CampaignTable, row.campaign_id)
                campaign = _campaign(campaign_row) if campaign_row is not None else None
                if problem := check_payable(campaign, order):
                    return Error(problem)

                cursor = cast(
                    CursorResult[Any],
                    await session.execute(
                        update(CampaignOrderTable)
                        .where(
                            CampaignOrderTable.id == order_id,
                            CampaignOrderTable.status == CampaignOrderStatus.PENDING,
                        )
                        .values(status=CampaignOrderStatus.PAID, amount_paid=amount)
                    ),
                )
                if cursor.rowcount == 0:
                    await session.rollback()
                    return Error(ValidationError("order is no longer pending", order_id))
                await session.commit()
                return Ok(replace(order, status=CampaignOrderStatus.PAID, amount_paid=amount))
        except Exception as e:
            return Error(StoreError(f"Failed to mark order paid: {e}", e))

    async def get_production_order(self, order_id: str) -> Result[ProductionOrder | None, StoreError]:
        try:
            async with self._session_factory() as session:
                row = await session.get(ProductionOrderTable, order_id)
                return Ok(load(order_codec, row.payload) if row is not None else None)
        except Exception as e:
            return Error(StoreError(f"Failed to get order: {e}", e))

    async def settle(self, campaign_id: str, build: SettleBuildFn) -> Result[SettleClaim, StoreError]:
        try:
            async with self._session_factory() as session:
                row = await session.get(CampaignTable, campaign_id)
                if row is None:
                    return Ok(CampaignMissing(campaign_id))
                if row.final_order_id is not None:
                    return await self._already_settled(session, row.final_order_id)

                campaign = _campaign(row)
                orders = await self._orders_of(session, campaign_id)

                match build(campaign, orders):
                    case Error(err):
                        await session.rollback()
                        return Ok(Refused(err))
                    case Ok(order):
                        session.add(order_row(order))
                        cursor = cast(
                            CursorResult[Any],
                            await session.execute(
                                update(CampaignTable)
                                .where(
                                    CampaignTable.id == campaign_id,
                                    CampaignTable.final_order_id.is_(None),
                                )
                                .values(final_order_id=order.id, status=CampaignStatus.COMPLETED)
                            ),
                        )
                        if cursor.rowcount == 0:
                            await session.rollback()
                            return await self._winner(campaign_id)
                        await session.commit()
                        return Ok(Settled(order))
        except IntegrityError:
            # production_orders.campaign_id: a concurrent settlement committed first
            return await self._winner(campaign_id)
        except Exception as e:
            return Error(StoreError(f"Failed to settle campaign: {e}", e))

    # ─── internals ───

    async def _orders_of(self, session: AsyncSession, campaign_id: str) -> list[CampaignOrder]:
        rows = (
            await session.execute(
                select(CampaignOrderTable).where(CampaignOrderTable.campaign_id == campaign_id)
            )
        ).scalars()
        return [_campaign_order(r) for r in rows]

    async def _already_settled(
        self, session: AsyncSession, order_id: str
    ) -> Result[SettleClaim, StoreError]:
        row = await session.get(ProductionOrderTable, order_id)
        if row is None:
            return Error(StoreError(f"Settled order missing: {order_id}"))
        return Ok(AlreadySettled(load(order_codec, row.payload)))

    async def _winner(self, campaign_id: str) -> Result[SettleClaim, StoreError]:
        try:
            async with self._session_factory() as session:
                row = await session.get(CampaignTable, campaign_id)
                if row is None or row.final_order_id is None:
                    return Error(StoreError(f"Settlement of {campaign_id} lost, winner not visible"))
                return await self._already_settled(session, row.final_order_id)
        except Exception as e:
            return Error(StoreError(f"Failed to read settled campaign: {e}", e))


__all__ = ("SQLAlchemyCampaignStore",)
