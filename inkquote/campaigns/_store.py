"""
Campaign store — typed storage protocol.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import replace
from typing import Protocol

from kungfu import Result, Ok, Error

from inkquote._errors import StoreError, ValidationError
from inkquote._types import Money
from inkquote.orders import ProductionOrder
from inkquote.campaigns._types import (
    AlreadySettled,
    Campaign,
    CampaignMissing,
    CampaignOrder,
    CampaignOrderStatus,
    CampaignStatus,
    Refused,
    SettleClaim,
    Settled,
)

type SettleBuildFn = Callable[
    [Campaign, Sequence[CampaignOrder]], Result[ProductionOrder, ValidationError]
]
"""Turns a campaign and all its participant orders into the order to insert."""


# ═══════════════════════════════════════════════════════════════════════════════
# Store Protocol
# ═══════════════════════════════════════════════════════════════════════════════


class CampaignStore(Protocol):
    """
    Campaign storage.

    Note: settle must check final_order_id, insert the order and set
    final_order_id in one atomic unit, or make the set a conditional write
    (final_order_id IS NULL) that loses cleanly. Two concurrent settlements
    must never both insert.
    """

    async def add_campaign(self, campaign: Campaign) -> Result[None, StoreError]:
        ...

    async def get_campaign(self, campaign_id: str) -> Result[Campaign | None, StoreError]:
        ...

    async def add_order(self, order: CampaignOrder) -> Result[None, StoreError]:
        ...

    async def list_orders(self, campaign_id: str) -> Result[list[CampaignOrder], StoreError]:
        ...

    async def mark_order_paid(
        self, order_id: str, amount: Money
    ) -> Result[CampaignOrder, ValidationError | StoreError]:
        """pending → paid. Refused for unknown orders, non-pending orders, settled campaigns."""
        ...

    async def get_production_order(self, order_id: str) -> Result[ProductionOrder | None, StoreError]:
        ...

    async def settle(self, campaign_id: str, build: SettleBuildFn) -> Result[SettleClaim, StoreError]:
        ...


def check_payable(campaign: Campaign | None, order: CampaignOrder) -> ValidationError | None:
    """Why a participant payment can't be recorded, or None."""
    if campaign is None:
        return ValidationError("order belongs to no campaign", order.id)
    if campaign.is_settled:
        return ValidationError("campaign already settled", campaign.id)
    if order.status != CampaignOrderStatus.PENDING:
        return ValidationError(f"order is {order.status}, not pending", order.id)
    return None


# ═══════════════════════════════════════════════════════════════════════════════
# Memory Store — For Testing
# ═══════════════════════════════════════════════════════════════════════════════


class MemoryCampaignStore:
    """
    In-memory campaign store.

    Note: settle holds the lock across check, build and write; build is
    synchronous so nothing else interleaves.
    """

    def __init__(self) -> None:
        self._campaigns: dict[str, Campaign] = {}
        self._orders: dict[str, CampaignOrder] = {}
        self._production: dict[str, ProductionOrder] = {}
        self._lock = asyncio.Lock()

    async def add_campaign(self, campaign: Campaign) -> Result[None, StoreError]:
        async with self._lock:
            if campaign.id in self._campaigns:
                return Error(StoreError(f"Campaign already exists: {campaign.id}"))
            self._campaigns[campaign.id] = campaign
            return Ok(None)

    async def get_campaign(self, campaign_id: str) -> Result[Campaign | None, StoreError]:
        async with self._lock:
            return Ok(self._campaigns.get(campaign_id))

    async def add_order(self, order: CampaignOrder) -> Result[None, StoreError]:
        async with self._lock:
            campaign = self._campaigns.get(order.campaign_id)
            if campaign is None:
                return Error(StoreError(f"No campaign: {order.campaign_id}"))
            if campaign.is_settled:
                return Error(StoreError(f"Campaign already settled: {campaign.id}"))
            self._orders[order.id] = order
            return Ok(None)

    async def list_orders(self, campaign_id: str) -> Result[list[CampaignOrder], StoreError]:
        async with self._lock:
            return Ok([o for o in self._orders.values() if o.campaign_id == campaign_id])

    async def mark_order_paid(
        self, order_id: str, amount: Money
    ) -> Result[CampaignOrder, ValidationError | StoreError]:
        async with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                return Error(ValidationError("unknown campaign order", order_id))
            if problem := check_payable(self._campaigns.get(order.campaign_id), order):
                return Error(problem)
            paid = replace(order, status=CampaignOrderStatus.PAID, amount_paid=amount)
            self._orders[order_id] = paid
            return Ok(paid)

    async def get_production_order(self, order_id: str) -> Result[ProductionOrder | None, StoreError]:
        async with self._lock:
            return Ok(self._production.get(order_id))

    async def settle(self, campaign_id: str, build: SettleBuildFn) -> Result[SettleClaim, StoreError]:
        async with self._lock:
            campaign = self._campaigns.get(campaign_id)
            if campaign is None:
                return Ok(CampaignMissing(campaign_id))

            if campaign.final_order_id is not None:
                existing = self._production.get(campaign.final_order_id)
                if existing is None:
                    return Error(StoreError(f"Settled order missing: {campaign.final_order_id}"))
                return Ok(AlreadySettled(existing))

            orders = [o for o in self._orders.values() if o.campaign_id == campaign_id]
            match build(campaign, orders):
                case Error(err):
                    return Ok(Refused(err))
                case Ok(order):
                    self._production[order.id] = order
                    self._campaigns[campaign_id] = replace(
                        campaign,
                        final_order_id=order.id,
                        status=CampaignStatus.COMPLETED,
                    )
                    return Ok(Settled(order))


__all__ = ("SettleBuildFn", "CampaignStore", "check_payable", "MemoryCampaignStore")
