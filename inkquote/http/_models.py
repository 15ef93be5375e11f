"""
Request/response models — pydantic at the edge, dataclasses inside.

In models convert with to_domain(), Out models with from_domain().
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, Field

from inkquote._types import ZERO
from inkquote.aggregate import Selection
from inkquote.campaigns import CampaignOrder, CampaignStats, Settlement
from inkquote.orders import (
    ArtworkRef,
    Consumed,
    Customer,
    Exists,
    PendingOrder,
    PendingState,
    ProductionOrder,
)
from inkquote.quote import (
    LocationPrint,
    PrintConfiguration,
    PrintLocation,
    Quote,
    QuoteLine,
    QuoteRequest,
)


# ═══════════════════════════════════════════════════════════════════════════════
# Quotes
# ═══════════════════════════════════════════════════════════════════════════════


class QuoteLineIn(BaseModel):
    garment_id: str
    quantity: int


class LocationPrintIn(BaseModel):
    enabled: bool
    num_colors: int = 1


def _print_config(config: dict[PrintLocation, LocationPrintIn]) -> PrintConfiguration:
    return {location: LocationPrint(p.enabled, p.num_colors) for location, p in config.items()}


class QuoteIn(BaseModel):
    lines: list[QuoteLineIn]
    print_config: dict[PrintLocation, LocationPrintIn] = Field(default_factory=dict)
    discount_amount: Decimal = ZERO

    def to_domain(self) -> QuoteRequest:
        return QuoteRequest(
            lines=tuple(QuoteLine(line.garment_id, line.quantity) for line in self.lines),
            print_config=_print_config(self.print_config),
            discount_amount=self.discount_amount,
        )


class GarmentLineOut(BaseModel):
    garment_id: str
    name: str
    quantity: int
    cost_per_shirt: Decimal
    total: Decimal


class QuoteOut(BaseModel):
    total_quantity: int
    garment_cost_total: Decimal
    garment_cost_per_unit: Decimal
    print_cost_total: Decimal
    print_cost_per_unit: Decimal
    setup_fees: Decimal
    total_screens: int
    active_locations: int
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    deposit_amount: Decimal
    balance_due: Decimal
    per_unit_price: Decimal
    garment_breakdown: list[GarmentLineOut]
    degraded: bool
    gaps: list[str]

    @classmethod
    def from_domain(cls, quote: Quote) -> QuoteOut:
        return cls(
            total_quantity=quote.total_quantity,
            garment_cost_total=quote.garment_cost_total,
            garment_cost_per_unit=quote.garment_cost_per_unit,
            print_cost_total=quote.print_cost_total,
            print_cost_per_unit=quote.print_cost_per_unit,
            setup_fees=quote.setup_fees,
            total_screens=quote.total_screens,
            active_locations=quote.active_locations,
            subtotal=quote.subtotal,
            discount=quote.discount,
            total=quote.total,
            deposit_amount=quote.deposit_amount,
            balance_due=quote.balance_due,
            per_unit_price=quote.per_unit_price,
            garment_breakdown=[
                GarmentLineOut(
                    garment_id=line.garment_id,
                    name=line.name,
                    quantity=line.quantity,
                    cost_per_shirt=line.cost_per_shirt,
                    total=line.total,
                )
                for line in quote.garment_breakdown
            ],
            degraded=quote.degraded,
            gaps=list(quote.gaps),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


class CustomerIn(BaseModel):
    name: str
    email: str
    phone: str | None = None

    def to_domain(self) -> Customer:
        return Customer(self.name, self.email, self.phone)


class SelectionIn(BaseModel):
    garment_id: str | None = None
    color: str
    size: str
    quantity: int


class ArtworkIn(BaseModel):
    location: str
    file_reference: str
    transform: dict[str, Any] | None = None


class PendingOrderIn(BaseModel):
    """
    Checkout submission.

    Selections without garment_id are for garment_id, the primary garment.
    A discount_code is checked and turned into a flat discount here.
    """

    customer: CustomerIn
    garment_id: str | None = None
    selections: list[SelectionIn]
    print_config: dict[PrintLocation, LocationPrintIn] = Field(default_factory=dict)
    shipping_address: dict[str, str] | None = None
    artwork: list[ArtworkIn] = Field(default_factory=list)
    discount_code: str | None = None

    def to_domain(self, pending_id: str, ttl: timedelta, now: datetime | None = None) -> PendingOrder:
        return PendingOrder.create(
            pending_id,
            self.customer.to_domain(),
            tuple(Selection(s.garment_id, s.color, s.size, s.quantity) for s in self.selections),
            _print_config(self.print_config),
            ttl=ttl,
            now=now,
            garment_id=self.garment_id,
            shipping_address=self.shipping_address,
            artwork=tuple(ArtworkRef(a.location, a.file_reference, a.transform) for a in self.artwork),
            discount_code=self.discount_code,
        )


class PendingOrderOut(BaseModel):
    id: str
    expires_at: datetime
    discount_code: str | None
    discount_amount: Decimal
    quote: QuoteOut

    @classmethod
    def from_domain(cls, pending: PendingOrder, quote: Quote) -> PendingOrderOut:
        return cls(
            id=pending.id,
            expires_at=pending.expires_at,
            discount_code=pending.discount_code,
            discount_amount=pending.discount_amount,
            quote=QuoteOut.from_domain(quote),
        )


class FromPendingIn(BaseModel):
    """Body of both the confirmation poll and the payment event."""

    pending_order_id: str
    payment_reference: str


class OrderOut(BaseModel):
    id: str
    status: str
    customer_email: str
    total_quantity: int
    total_cost: Decimal
    deposit_amount: Decimal
    deposit_paid: bool
    balance_due: Decimal
    is_multi_garment: bool
    garment_quantities: dict[str, int]
    payment_reference: str | None
    pending_order_id: str | None
    campaign_id: str | None

    @classmethod
    def from_domain(cls, order: ProductionOrder) -> OrderOut:
        return cls(
            id=order.id,
            status=order.status,
            customer_email=order.customer.email,
            total_quantity=order.total_quantity,
            total_cost=order.total_cost,
            deposit_amount=order.deposit_amount,
            deposit_paid=order.deposit_paid,
            balance_due=order.balance_due,
            is_multi_garment=order.aggregated.is_multi_garment,
            garment_quantities=order.aggregated.garment_quantities(),
            payment_reference=order.payment_reference,
            pending_order_id=order.pending_order_id,
            campaign_id=order.campaign_id,
        )


class MaterializedOut(BaseModel):
    order: OrderOut
    created: bool


class ProcessingOut(BaseModel):
    """202 body: the order is being created by another request."""

    status: Literal["processing"] = "processing"
    detail: str


class PendingStateOut(BaseModel):
    pending_order_id: str
    state: Literal["exists", "consumed"]
    order_id: str | None = None

    @classmethod
    def from_domain(cls, state: PendingState) -> PendingStateOut:
        match state:
            case Exists(pending):
                return cls(pending_order_id=pending.id, state="exists")
            case Consumed(pending_id=pending_id, order_id=order_id):
                return cls(pending_order_id=pending_id, state="consumed", order_id=order_id)


class PaymentEventOut(BaseModel):
    received: bool = True
    order_id: str | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Campaigns
# ═══════════════════════════════════════════════════════════════════════════════


class CampaignOrderIn(BaseModel):
    participant: CustomerIn
    garment_id: str | None = None
    color: str
    size: str
    quantity: int = 1


class CampaignOrderOut(BaseModel):
    id: str
    campaign_id: str
    garment_id: str | None
    color: str
    size: str
    quantity: int
    status: str
    amount_paid: Decimal
    amount_due: Decimal

    @classmethod
    def from_domain(cls, order: CampaignOrder, amount_due: Decimal) -> CampaignOrderOut:
        return cls(
            id=order.id,
            campaign_id=order.campaign_id,
            garment_id=order.garment_id,
            color=order.color,
            size=order.size,
            quantity=order.quantity,
            status=order.status,
            amount_paid=order.amount_paid,
            amount_due=amount_due,
        )


class SettlementOut(BaseModel):
    order: OrderOut
    created: bool

    @classmethod
    def from_domain(cls, settlement: Settlement) -> SettlementOut:
        return cls(order=OrderOut.from_domain(settlement.order), created=settlement.created)


class CampaignStatsOut(BaseModel):
    order_count: int
    total_quantity: int
    pending_count: int
    total_revenue: Decimal

    @classmethod
    def from_domain(cls, stats: CampaignStats) -> CampaignStatsOut:
        return cls(
            order_count=stats.order_count,
            total_quantity=stats.total_quantity,
            pending_count=stats.pending_count,
            total_revenue=stats.total_revenue,
        )


class HealthOut(BaseModel):
    status: Literal["ok"] = "ok"


__all__ = (
    "QuoteLineIn",
    "LocationPrintIn",
    "QuoteIn",
    "GarmentLineOut",
    "QuoteOut",
    "CustomerIn",
    "SelectionIn",
    "ArtworkIn",
    "PendingOrderIn",
    "PendingOrderOut",
    "FromPendingIn",
    "OrderOut",
    "MaterializedOut",
    "ProcessingOut",
    "PendingStateOut",
    "PaymentEventOut",
    "CampaignOrderIn",
    "CampaignOrderOut",
    "SettlementOut",
    "CampaignStatsOut",
    "HealthOut",
)
