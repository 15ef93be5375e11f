"""
Campaign pricing — fixed per-garment prices, no tiers, no setup fees.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime

from kungfu import Result, Ok, Error

from inkquote._config import Settings
from inkquote._errors import ValidationError
from inkquote._types import Money, ZERO, round2
from inkquote.aggregate import aggregate_selections
from inkquote.orders import (
    ActivityEntry,
    ArtworkFile,
    ArtworkRef,
    Customer,
    FixedPricing,
    OrderStatus,
    ProductionOrder,
    new_order_id,
)
from inkquote.quote import GarmentLineCost, PrintConfiguration, QuoteRequest, calculate_quote, split_deposit
from inkquote.rates import RateRepository
from inkquote.campaigns._types import (
    Campaign,
    CampaignOrder,
    CampaignOrderStatus,
    CampaignStats,
    CampaignStatus,
    PaymentStyle,
)


def is_eligible(campaign: Campaign, order: CampaignOrder) -> bool:
    """
    Whether an order is billed at settlement.

    everyone_pays: only paid orders. organizer_pays: anything not cancelled,
    the organizer's single payment confirms them all.
    """
    match campaign.payment_style:
        case PaymentStyle.EVERYONE_PAYS:
            return order.status == CampaignOrderStatus.PAID
        case PaymentStyle.ORGANIZER_PAYS:
            return order.status != CampaignOrderStatus.CANCELLED


def eligible_orders(campaign: Campaign, orders: Iterable[CampaignOrder]) -> list[CampaignOrder]:
    return [o for o in orders if o.campaign_id == campaign.id and is_eligible(campaign, o)]


def _artwork(campaign: Campaign) -> tuple[ArtworkFile, ...]:
    return tuple(
        ArtworkFile.from_ref(ArtworkRef(location, url, campaign.artwork_transforms.get(location)))
        for location, url in campaign.artwork_urls.items()
    )


def build_campaign_order(
    campaign: Campaign,
    orders: Sequence[CampaignOrder],
    settings: Settings,
    now: datetime,
) -> Result[ProductionOrder, ValidationError]:
    """
    The one production order a campaign settles into.

    Pure. The store calls it inside its settlement transaction.
    """
    eligible = eligible_orders(campaign, orders)
    if not eligible:
        return Error(ValidationError("campaign has no eligible orders", campaign.id))

    try:
        aggregated = aggregate_selections(
            (o.selection for o in eligible),
            default_garment_id=campaign.garment_id,
        )
        breakdown = tuple(
            GarmentLineCost(
                garment_id=gid,
                name=gid,
                quantity=qty,
                cost_per_shirt=campaign.price_for(gid),
                total=campaign.price_for(gid) * qty,
                tier_id=None,
            )
            for gid, qty in aggregated.garment_quantities().items()
        )
    except ValidationError as e:
        return Error(e)

    total = sum((line.total for line in breakdown), ZERO)
    fully_paid = campaign.payment_style == PaymentStyle.EVERYONE_PAYS or campaign.organizer_pays_in_full
    if fully_paid:
        deposit, balance = round2(total), ZERO
    else:
        deposit, balance = split_deposit(total, settings.deposit_percent)

    return Ok(
        ProductionOrder(
            id=new_order_id(),
            customer=campaign.organizer,
            aggregated=aggregated,
            total_quantity=aggregated.total_quantity,
            total_cost=total,
            deposit_amount=deposit,
            deposit_paid=True,
            balance_due=balance,
            pricing_breakdown=FixedPricing(breakdown, total),
            status=OrderStatus.PENDING_ART_REVIEW,
            created_at=now,
            campaign_id=campaign.id,
            shipping_address=campaign.shipping_address,
            print_config=campaign.print_config,
            artwork_files=_artwork(campaign),
            activity=(
                ActivityEntry(
                    "status_change",
                    f"Order created from campaign {campaign.name} ({len(eligible)} participant orders)",
                    now,
                ),
            ),
        )
    )


def place_campaign_order(
    campaign: Campaign,
    order_id: str,
    participant: Customer,
    garment_id: str | None,
    color: str,
    size: str,
    quantity: int = 1,
) -> Result[CampaignOrder, ValidationError]:
    """
    A participant's pick, checked against what the campaign offers.

    Orders on everyone_pays campaigns start pending until the participant
    pays. On organizer_pays campaigns they start confirmed.
    """
    if campaign.is_settled or campaign.status != CampaignStatus.ACTIVE:
        return Error(ValidationError("campaign is no longer accepting orders", campaign.id))
    if quantity <= 0:
        return Error(ValidationError(f"quantity must be positive, got {quantity}", "quantity"))

    chosen = garment_id or campaign.garment_id
    config = campaign.garment_configs.get(chosen)
    if garment_id is not None and campaign.garment_configs and config is None:
        return Error(ValidationError(f"invalid garment selection: {garment_id}", "garment_id"))
    if config is not None and config.colors and color not in config.colors:
        return Error(ValidationError(f"invalid color selection: {color}", "color"))
    try:
        campaign.price_for(chosen)
    except ValidationError as e:
        return Error(e)

    status = (
        CampaignOrderStatus.PENDING
        if campaign.payment_style == PaymentStyle.EVERYONE_PAYS
        else CampaignOrderStatus.CONFIRMED
    )
    return Ok(CampaignOrder(order_id, campaign.id, participant, chosen, color, size, quantity, status))


def amount_due(campaign: Campaign, order: CampaignOrder) -> Money:
    """
    What a participant pays for their order.

    Raises:
        ValidationError: no price configured for the order's garment.
    """
    return round2(campaign.price_for(order.garment_id or campaign.garment_id) * order.quantity)


def campaign_stats(campaign: Campaign, orders: Iterable[CampaignOrder]) -> CampaignStats:
    """
    Dashboard numbers.

    Counts and quantity use the same eligibility as settlement. pending_count
    only means something for everyone_pays; it is 0 otherwise.
    """
    orders = [o for o in orders if o.campaign_id == campaign.id]
    eligible = [o for o in orders if is_eligible(campaign, o)]
    pending = (
        sum(1 for o in orders if o.status == CampaignOrderStatus.PENDING)
        if campaign.payment_style == PaymentStyle.EVERYONE_PAYS
        else 0
    )
    return CampaignStats(
        order_count=len(eligible),
        total_quantity=sum(o.quantity for o in eligible),
        pending_count=pending,
        total_revenue=sum(
            (o.amount_paid for o in orders if o.status == CampaignOrderStatus.PAID), ZERO
        ),
    )


async def suggest_campaign_price(
    garment_id: str,
    print_config: PrintConfiguration,
    rates: RateRepository,
    settings: Settings | None = None,
) -> Result[Money, ValidationError]:
    """
    Per-shirt price to offer a campaign's participants.

    Garment and print cost per unit at the minimum order quantity's tier.
    Setup fees are left out; the shop absorbs them on campaigns.
    """
    settings = settings if settings is not None else Settings()
    request = QuoteRequest.single(garment_id, settings.min_quantity, print_config)
    match await calculate_quote(request, rates, settings):
        case Ok(quote):
            return Ok(round2(quote.garment_cost_per_unit + quote.print_cost_per_unit))
        case Error(err):
            return Error(err)


__all__ = (
    "is_eligible",
    "eligible_orders",
    "build_campaign_order",
    "place_campaign_order",
    "amount_due",
    "campaign_stats",
    "suggest_campaign_price",
)
