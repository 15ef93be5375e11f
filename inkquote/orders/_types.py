"""
Order types — pending (pre-payment) and production (durable, billable) orders.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, UTC
from enum import StrEnum
from typing import Any

from inkquote._errors import ValidationError
from inkquote._types import Money, ZERO
from inkquote.aggregate import AggregatedOrder, Selection
from inkquote.quote import GarmentLineCost, PrintConfiguration, Quote


# ═══════════════════════════════════════════════════════════════════════════════
# Shared Pieces
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Customer:
    name: str
    email: str
    phone: str | None = None


@dataclass(frozen=True, slots=True)
class ArtworkRef:
    """
    Reference to an uploaded file, as the artwork collaborator hands it over.

    Note: the engine copies references; it never opens the file.
    """

    location: str
    file_reference: str
    transform: Mapping[str, Any] | None = None


VECTOR_EXTENSIONS = (".svg", ".ai", ".eps")


class VectorizationStatus(StrEnum):
    NOT_NEEDED = "not_needed"
    PENDING = "pending"


@dataclass(frozen=True, slots=True)
class ArtworkFile:
    location: str
    file_reference: str
    transform: Mapping[str, Any] | None
    is_vector: bool
    vectorization_status: VectorizationStatus

    @classmethod
    def from_ref(cls, ref: ArtworkRef) -> ArtworkFile:
        is_vector = ref.file_reference.lower().endswith(VECTOR_EXTENSIONS)
        return cls(
            location=ref.location,
            file_reference=ref.file_reference,
            transform=ref.transform,
            is_vector=is_vector,
            vectorization_status=(
                VectorizationStatus.NOT_NEEDED if is_vector else VectorizationStatus.PENDING
            ),
        )


@dataclass(frozen=True, slots=True)
class ActivityEntry:
    action: str
    description: str
    created_at: datetime


# ═══════════════════════════════════════════════════════════════════════════════
# Pending Order
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class PendingOrder:
    """
    Checkout submission awaiting payment.

    Consumed exactly once by the materializer, then never read again.

    garment_id is the primary garment. Selections made without a garment
    id belong to it.
    """

    id: str
    customer: Customer
    selections: tuple[Selection, ...]
    print_config: PrintConfiguration
    created_at: datetime
    expires_at: datetime
    shipping_address: Mapping[str, str] | None = None
    artwork: tuple[ArtworkRef, ...] = ()
    discount_amount: Money = ZERO
    discount_code: str | None = None
    garment_id: str | None = None

    @classmethod
    def create(
        cls,
        id: str,
        customer: Customer,
        selections: tuple[Selection, ...],
        print_config: PrintConfiguration,
        *,
        ttl: timedelta,
        now: datetime | None = None,
        **extra: Any,
    ) -> PendingOrder:
        now = now if now is not None else datetime.now(UTC)
        if not selections:
            raise ValidationError("at least one selection is required", "selections")
        return cls(
            id=id,
            customer=customer,
            selections=selections,
            print_config=print_config,
            created_at=now,
            expires_at=now + ttl,
            **extra,
        )

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    @property
    def primary_garment_id(self) -> str | None:
        """garment_id, else the first garment any selection names."""
        if self.garment_id is not None:
            return self.garment_id
        return next((s.garment_id for s in self.selections if s.garment_id), None)


@dataclass(frozen=True, slots=True)
class Exists:
    pending: PendingOrder


@dataclass(frozen=True, slots=True)
class Consumed:
    """The pending order is gone. order_id is set once its order is visible."""

    pending_id: str
    order_id: str | None = None


type PendingState = Exists | Consumed


# ═══════════════════════════════════════════════════════════════════════════════
# Production Order
# ═══════════════════════════════════════════════════════════════════════════════


class OrderStatus(StrEnum):
    PENDING_ART_REVIEW = "pending_art_review"


@dataclass(frozen=True, slots=True)
class FixedPricing:
    """Breakdown of a campaign order priced at pre-negotiated per-garment prices."""

    garment_breakdown: tuple[GarmentLineCost, ...]
    total: Money
    setup_fees: Money = ZERO
    total_screens: int = 0
    is_campaign_pricing: bool = True


type PricingBreakdown = Quote | FixedPricing


@dataclass(frozen=True, slots=True)
class ProductionOrder:
    id: str
    customer: Customer
    aggregated: AggregatedOrder
    total_quantity: int
    total_cost: Money
    deposit_amount: Money
    deposit_paid: bool
    balance_due: Money
    pricing_breakdown: PricingBreakdown
    status: OrderStatus
    created_at: datetime
    payment_reference: str | None = None
    pending_order_id: str | None = None
    campaign_id: str | None = None
    shipping_address: Mapping[str, str] | None = None
    print_config: PrintConfiguration = field(default_factory=dict)
    discount_code: str | None = None
    artwork_files: tuple[ArtworkFile, ...] = ()
    activity: tuple[ActivityEntry, ...] = ()


# ═══════════════════════════════════════════════════════════════════════════════
# Claim — result of consuming a pending order
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Claimed:
    """This caller consumed the pending order and its production order is stored."""

    order: ProductionOrder


@dataclass(frozen=True, slots=True)
class Rejected:
    """The pending order's contents don't price; it was put back untouched."""

    error: ValidationError


type Claim = Claimed | Consumed | Rejected


__all__ = (
    "Customer",
    "ArtworkRef",
    "VECTOR_EXTENSIONS",
    "VectorizationStatus",
    "ArtworkFile",
    "ActivityEntry",
    "PendingOrder",
    "Exists",
    "Consumed",
    "PendingState",
    "OrderStatus",
    "FixedPricing",
    "PricingBreakdown",
    "ProductionOrder",
    "Claimed",
    "Rejected",
    "Claim",
)
