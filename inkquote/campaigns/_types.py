"""
Campaign types — group orders settled once into one production order.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum, StrEnum, auto
from typing import Any

from inkquote._errors import ValidationError
from inkquote._types import Money, ZERO
from inkquote.aggregate import Selection
from inkquote.orders import Customer, ProductionOrder
from inkquote.quote import PrintConfiguration


class PaymentStyle(StrEnum):
    EVERYONE_PAYS = "everyone_pays"
    ORGANIZER_PAYS = "organizer_pays"


class CampaignStatus(StrEnum):
    ACTIVE = "active"
    CLOSED = "closed"
    COMPLETED = "completed"


class CampaignOrderStatus(StrEnum):
    PENDING = "pending"
    PAID = "paid"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class GarmentConfig:
    """Pre-negotiated per-shirt price and offered colors for one garment."""

    price: Money | None
    colors: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Campaign:
    """
    Aggregation root.

    final_order_id is written exactly once, at settlement, and is the
    marker that the campaign is settled.
    """

    id: str
    name: str
    organizer: Customer
    garment_id: str
    garment_configs: Mapping[str, GarmentConfig]
    payment_style: PaymentStyle
    print_config: PrintConfiguration = field(default_factory=dict)
    price_per_shirt: Money | None = None
    organizer_pays_in_full: bool = False
    artwork_urls: Mapping[str, str] = field(default_factory=dict)
    artwork_transforms: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    shipping_address: Mapping[str, str] | None = None
    final_order_id: str | None = None
    status: CampaignStatus = CampaignStatus.ACTIVE

    @property
    def is_settled(self) -> bool:
        return self.final_order_id is not None

    def price_for(self, garment_id: str) -> Money:
        """
        Configured price for a garment, else the campaign-wide price.

        Raises:
            ValidationError: neither is set.
        """
        config = self.garment_configs.get(garment_id)
        if config is not None and config.price is not None:
            return config.price
        if self.price_per_shirt is not None:
            return self.price_per_shirt
        raise ValidationError("no campaign price configured", garment_id)


@dataclass(frozen=True, slots=True)
class CampaignOrder:
    """One participant's pick. Immutable once the campaign is settled."""

    id: str
    campaign_id: str
    participant: Customer
    garment_id: str | None
    color: str
    size: str
    quantity: int
    status: CampaignOrderStatus = CampaignOrderStatus.PENDING
    amount_paid: Money = ZERO

    @property
    def selection(self) -> Selection:
        return Selection(self.garment_id, self.color, self.size, self.quantity)


# ═══════════════════════════════════════════════════════════════════════════════
# Settle Claim — result of the store's atomic settlement
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Settled:
    """This call created the campaign's order."""

    order: ProductionOrder


@dataclass(frozen=True, slots=True)
class AlreadySettled:
    order: ProductionOrder


@dataclass(frozen=True, slots=True)
class Refused:
    """The campaign's orders can't be turned into an order; nothing written."""

    error: ValidationError


@dataclass(frozen=True, slots=True)
class CampaignMissing:
    campaign_id: str


type SettleClaim = Settled | AlreadySettled | Refused | CampaignMissing


# ═══════════════════════════════════════════════════════════════════════════════
# Results
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Settlement:
    order: ProductionOrder
    created: bool


class SettlementErrorKind(Enum):
    NOT_FOUND = auto()
    INVALID = auto()
    STORE_ERROR = auto()


@dataclass(frozen=True, slots=True)
class SettlementError:
    kind: SettlementErrorKind
    message: str
    cause: object | None = None


@dataclass(frozen=True, slots=True)
class CampaignStats:
    order_count: int
    total_quantity: int
    pending_count: int
    total_revenue: Money


__all__ = (
    "PaymentStyle",
    "CampaignStatus",
    "CampaignOrderStatus",
    "GarmentConfig",
    "Campaign",
    "CampaignOrder",
    "Settled",
    "AlreadySettled",
    "Refused",
    "CampaignMissing",
    "SettleClaim",
    "Settlement",
    "SettlementErrorKind",
    "SettlementError",
    "CampaignStats",
)
