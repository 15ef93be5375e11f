"""
Campaign settlement — all participant orders into one production order, once.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime, UTC

from kungfu import Result, Ok, Error

from inkquote._config import Settings
from inkquote._errors import ValidationError
from inkquote._logging import get_logger
from inkquote.notify import Notifier, notify_safely
from inkquote.orders import ProductionOrder
from inkquote.campaigns._pricing import build_campaign_order
from inkquote.campaigns._store import CampaignStore
from inkquote.campaigns._types import (
    AlreadySettled,
    Campaign,
    CampaignMissing,
    CampaignOrder,
    Refused,
    Settled,
    Settlement,
    SettlementError,
    SettlementErrorKind,
)

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


async def settle_campaign(
    campaign_id: str,
    store: CampaignStore,
    *,
    settings: Settings | None = None,
    notifier: Notifier | None = None,
    clock: Callable[[], datetime] | None = None,
) -> Result[Settlement, SettlementError]:
    """
    Close a campaign into its single production order.

    Idempotent: once settled, every later call returns the same order with
    created=False and writes nothing. Notifications go to the organizer and
    the admin only from the call that created the order.

    Example:
        match await settle_campaign("camp_1", store):
            case Ok(Settlement(order, created=True)): ...
            case Ok(Settlement(order, created=False)): ...  # already settled
            case Error(SettlementError(kind=SettlementErrorKind.NOT_FOUND)): ...
    """
    settings = settings if settings is not None else Settings()
    now = (clock or _utcnow)()

    def build(
        campaign: Campaign, orders: Sequence[CampaignOrder]
    ) -> Result[ProductionOrder, ValidationError]:
        return build_campaign_order(campaign, orders, settings, now)

    match await store.settle(campaign_id, build):
        case Error(err):
            logger.error(f"[Campaign: {campaign_id}] settlement failed: {err.message}")
            return Error(SettlementError(SettlementErrorKind.STORE_ERROR, err.message, err.cause))
        case Ok(CampaignMissing()):
            return Error(SettlementError(SettlementErrorKind.NOT_FOUND, f"No campaign: {campaign_id}"))
        case Ok(Refused(error=error)):
            logger.warning(f"[Campaign: {campaign_id}] not settled: {error}")
            return Error(SettlementError(SettlementErrorKind.INVALID, str(error), error))
        case Ok(AlreadySettled(order=order)):
            logger.info(f"[Campaign: {campaign_id}] already settled as {order.id}")
            return Ok(Settlement(order, created=False))
        case Ok(Settled(order=order)):
            logger.info(
                f"[Campaign: {campaign_id}] settled as {order.id}: "
                f"{order.total_quantity} pieces, ${order.total_cost}"
            )
            if notifier is not None:
                await notify_safely(
                    f"Campaign: {campaign_id}",
                    notifier.order_confirmation(order, order.customer.email),
                )
                await notify_safely(f"Campaign: {campaign_id}", notifier.admin_new_order(order))
            return Ok(Settlement(order, created=True))


__all__ = ("settle_campaign",)
