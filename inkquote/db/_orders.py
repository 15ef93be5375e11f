"""
SQLAlchemy order store.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kungfu import Result, Ok, Error

from inkquote._errors import StoreError
from inkquote._logging import get_logger
from inkquote.orders import (
    BuildFn,
    Claim,
    Claimed,
    Consumed,
    Exists,
    PendingOrder,
    PendingState,
    ProductionOrder,
    Rejected,
)
from inkquote.db._codec import dump, load, naive_utc, order_codec, pending_codec
from inkquote.db._tables import PendingOrderTable, ProductionOrderTable

logger = get_logger(__name__)


def order_row(order: ProductionOrder) -> ProductionOrderTable:
    return ProductionOrderTable(
        id=order.id,
        payment_reference=order.payment_reference,
        pending_order_id=order.pending_order_id,
        campaign_id=order.campaign_id,
        created_at=naive_utc(order.created_at),
        payload=dump(order_codec, order),
    )


class SQLAlchemyOrderStore:
    """
    Order store on SQLAlchemy async sessions.

    Note: claim_pending deletes the pending row with RETURNING and inserts
    the production order in the same transaction. A concurrent caller's
    DELETE finds nothing and gets Consumed; a rollback puts the row back.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def add_pending(self, pending: PendingOrder) -> Result[None, StoreError]:
        try:
            async with self._session_factory() as session:
                session.add(
                    PendingOrderTable(
                        id=pending.id,
                        expires_at=naive_utc(pending.expires_at),
                        payload=dump(pending_codec, pending),
                    )
                )
                await session.commit()
                return Ok(None)
        except Exception as e:
            return Error(StoreError(f"Failed to add pending order: {e}", e))

    async def pending_state(self, pending_id: str) -> Result[PendingState | None, StoreError]:
        try:
            async with self._session_factory() as session:
                row = await session.get(PendingOrderTable, pending_id)
                if row is not None:
                    return Ok(Exists(load(pending_codec, row.payload)))
                order_id = (
                    await session.execute(
                        select(ProductionOrderTable.id).where(
                            ProductionOrderTable.pending_order_id == pending_id
                        )
                    )
                ).scalar_one_or_none()
                if order_id is not None:
                    return Ok(Consumed(pending_id, order_id))
                return Ok(None)
        except Exception as e:
            return Error(StoreError(f"Failed to get pending state: {e}", e))

    async def find_by_payment_reference(
        self, payment_reference: str
    ) -> Result[ProductionOrder | None, StoreError]:
        try:
            async with self._session_factory() as session:
                payload = (
                    await session.execute(
                        select(ProductionOrderTable.payload).where(
                            ProductionOrderTable.payment_reference == payment_reference
                        )
                    )
                ).scalar_one_or_none()
                return Ok(load(order_codec, payload) if payload is not None else None)
        except Exception as e:
            return Error(StoreError(f"Failed to find order: {e}", e))

    async def get_order(self, order_id: str) -> Result[ProductionOrder | None, StoreError]:
        try:
            async with self._session_factory() as session:
                row = await session.get(ProductionOrderTable, order_id)
                return Ok(load(order_codec, row.payload) if row is not None else None)
        except Exception as e:
            return Error(StoreError(f"Failed to get order: {e}", e))

    async def claim_pending(self, pending_id: str, build: BuildFn) -> Result[Claim, StoreError]:
        try:
            async with self._session_factory() as session:
                payload = (
                    await session.execute(
                        delete(PendingOrderTable)
                        .where(PendingOrderTable.id == pending_id)
                        .returning(PendingOrderTable.payload)
                    )
                ).scalar_one_or_none()

                if payload is None:
                    await session.rollback()
                    return Ok(Consumed(pending_id))

                match await build(load(pending_codec, payload)):
                    case Error(err):
                        await session.rollback()
                        logger.info(f"[Pending: {pending_id}] restored after failed materialization")
                        return Ok(Rejected(err))
                    case Ok(order):
                        session.add(order_row(order))
                        await session.commit()
                        return Ok(Claimed(order))
        except Exception as e:
            return Error(StoreError(f"Failed to claim pending order: {e}", e))

    async def purge_expired_pending(self, now: datetime) -> Result[int, StoreError]:
        try:
            async with self._session_factory() as session:
                deleted = (
                    await session.execute(
                        delete(PendingOrderTable)
                        .where(PendingOrderTable.expires_at < naive_utc(now))
                        .returning(PendingOrderTable.id)
                    )
                ).scalars().all()
                await session.commit()
                return Ok(len(deleted))
        except Exception as e:
            return Error(StoreError(f"Failed to purge pending orders: {e}", e))


__all__ = ("order_row", "SQLAlchemyOrderStore")
