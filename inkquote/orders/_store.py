"""
Order store — typed storage protocol.

All methods return Result for explicit error handling; stores never raise.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Protocol

from kungfu import Result, Ok, Error

from inkquote._errors import StoreError, ValidationError
from inkquote._logging import get_logger
from inkquote.orders._types import (
    Claim,
    Claimed,
    Consumed,
    Exists,
    PendingOrder,
    PendingState,
    ProductionOrder,
    Rejected,
)

logger = get_logger(__name__)

type BuildFn = Callable[[PendingOrder], Awaitable[Result[ProductionOrder, ValidationError]]]
"""Turns the consumed pending order into the production order to insert."""


# ═══════════════════════════════════════════════════════════════════════════════
# Store Protocol
# ═══════════════════════════════════════════════════════════════════════════════


class OrderStore(Protocol):
    """
    Pending and production order storage.

    Note: claim_pending is the mutual-exclusion point. Deleting the pending
    order and inserting the built production order must commit together:
    either both happen, or the pending order is still there afterwards.
    A separate read-then-delete is not an implementation of it.
    """

    async def add_pending(self, pending: PendingOrder) -> Result[None, StoreError]:
        ...

    async def pending_state(self, pending_id: str) -> Result[PendingState | None, StoreError]:
        """Exists, Consumed, or Ok(None) when the id was never seen."""
        ...

    async def find_by_payment_reference(
        self, payment_reference: str
    ) -> Result[ProductionOrder | None, StoreError]:
        ...

    async def get_order(self, order_id: str) -> Result[ProductionOrder | None, StoreError]:
        ...

    async def claim_pending(self, pending_id: str, build: BuildFn) -> Result[Claim, StoreError]:
        """
        Atomically delete the pending order and insert what build makes of it.

        Returns Ok(Consumed) when no pending row was there to delete (another
        caller got it), Ok(Rejected) when build refused the contents (pending
        restored), Ok(Claimed) on success.
        """
        ...

    async def purge_expired_pending(self, now: datetime) -> Result[int, StoreError]:
        """Delete abandoned checkouts. Returns how many went."""
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Memory Store — For Testing
# ═══════════════════════════════════════════════════════════════════════════════


class MemoryOrderStore:
    """
    In-memory order store.

    Note: single process only. The lock is released while build runs, so
    other callers can observe the pending order gone before its production
    order is visible, the same window a database transaction in flight leaves.
    """

    def __init__(self) -> None:
        self._pending: dict[str, PendingOrder] = {}
        self._orders: dict[str, ProductionOrder] = {}
        self._by_reference: dict[str, str] = {}
        self._by_pending: dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def add_pending(self, pending: PendingOrder) -> Result[None, StoreError]:
        async with self._lock:
            if pending.id in self._pending or pending.id in self._by_pending:
                return Error(StoreError(f"Pending order already exists: {pending.id}"))
            self._pending[pending.id] = pending
            return Ok(None)

    async def pending_state(self, pending_id: str) -> Result[PendingState | None, StoreError]:
        async with self._lock:
            if pending := self._pending.get(pending_id):
                return Ok(Exists(pending))
            if order_id := self._by_pending.get(pending_id):
                return Ok(Consumed(pending_id, order_id))
            return Ok(None)

    async def find_by_payment_reference(
        self, payment_reference: str
    ) -> Result[ProductionOrder | None, StoreError]:
        async with self._lock:
            order_id = self._by_reference.get(payment_reference)
            return Ok(self._orders[order_id] if order_id else None)

    async def get_order(self, order_id: str) -> Result[ProductionOrder | None, StoreError]:
        async with self._lock:
            return Ok(self._orders.get(order_id))

    async def claim_pending(self, pending_id: str, build: BuildFn) -> Result[Claim, StoreError]:
        async with self._lock:
            pending = self._pending.pop(pending_id, None)
        if pending is None:
            return Ok(Consumed(pending_id))

        try:
            built = await build(pending)
        except Exception as e:
            await self._restore(pending)
            return Error(StoreError(f"Failed to build order: {e}", e))

        match built:
            case Error(err):
                await self._restore(pending)
                return Ok(Rejected(err))
            case Ok(order):
                async with self._lock:
                    ref = order.payment_reference
                    if ref is not None and ref in self._by_reference:
                        self._pending[pending.id] = pending
                        return Error(StoreError(f"Payment reference already used: {ref}"))
                    self._orders[order.id] = order
                    self._by_pending[pending.id] = order.id
                    if ref is not None:
                        self._by_reference[ref] = order.id
                return Ok(Claimed(order))

    async def purge_expired_pending(self, now: datetime) -> Result[int, StoreError]:
        async with self._lock:
            expired = [pid for pid, p in self._pending.items() if p.is_expired(now)]
            for pid in expired:
                del self._pending[pid]
            return Ok(len(expired))

    async def _restore(self, pending: PendingOrder) -> None:
        async with self._lock:
            self._pending[pending.id] = pending
        logger.info(f"[Pending: {pending.id}] restored after failed materialization")


__all__ = ("BuildFn", "OrderStore", "MemoryOrderStore")
