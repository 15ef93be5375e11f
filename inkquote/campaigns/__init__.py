"""
Campaigns — group orders at fixed per-shirt prices, settled once.

    from inkquote import campaigns as CP

    store = CP.MemoryCampaignStore()
    await store.add_campaign(campaign)
    await store.add_order(participant_order)
    await store.mark_order_paid(participant_order.id, Decimal("15.00"))

    match await CP.settle_campaign(campaign.id, store):
        case Ok(CP.Settlement(order, created)):
            ...
        case Error(err):
            ...

Note: settlement is safe to call repeatedly and concurrently. The store
decides the single winner; everyone else gets the same order back.
"""

from inkquote.campaigns._types import (
    PaymentStyle,
    CampaignStatus,
    CampaignOrderStatus,
    GarmentConfig,
    Campaign,
    CampaignOrder,
    Settled,
    AlreadySettled,
    Refused,
    CampaignMissing,
    SettleClaim,
    Settlement,
    SettlementErrorKind,
    SettlementError,
    CampaignStats,
)
from inkquote.campaigns._pricing import (
    is_eligible,
    eligible_orders,
    build_campaign_order,
    place_campaign_order,
    amount_due,
    campaign_stats,
    suggest_campaign_price,
)
from inkquote.campaigns._store import (
    SettleBuildFn,
    CampaignStore,
    check_payable,
    MemoryCampaignStore,
)
from inkquote.campaigns._settle import settle_campaign

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
    "is_eligible",
    "eligible_orders",
    "build_campaign_order",
    "place_campaign_order",
    "amount_due",
    "campaign_stats",
    "suggest_campaign_price",
    "SettleBuildFn",
    "CampaignStore",
    "check_payable",
    "MemoryCampaignStore",
    "settle_campaign",
)
