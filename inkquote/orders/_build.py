"""
Production order construction from a paid pending order.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from inkquote.aggregate import AggregatedOrder
from inkquote.quote import Quote
from inkquote.orders._types import (
    ActivityEntry,
    ArtworkFile,
    OrderStatus,
    PendingOrder,
    ProductionOrder,
)


def new_order_id() -> str:
    return uuid.uuid4().hex


def build_checkout_order(
    pending: PendingOrder,
    quote: Quote,
    aggregated: AggregatedOrder,
    payment_reference: str,
    now: datetime,
) -> ProductionOrder:
    """
    The order a paid checkout becomes.

    The deposit has just been captured, so deposit_paid is True and the
    order waits for art review.
    """
    return ProductionOrder(
        id=new_order_id(),
        customer=pending.customer,
        aggregated=aggregated,
        total_quantity=aggregated.total_quantity,
        total_cost=quote.total,
        deposit_amount=quote.deposit_amount,
        deposit_paid=True,
        balance_due=quote.balance_due,
        pricing_breakdown=quote,
        status=OrderStatus.PENDING_ART_REVIEW,
        created_at=now,
        payment_reference=payment_reference,
        pending_order_id=pending.id,
        shipping_address=pending.shipping_address,
        print_config=pending.print_config,
        discount_code=pending.discount_code,
        artwork_files=tuple(ArtworkFile.from_ref(ref) for ref in pending.artwork),
        activity=(
            ActivityEntry("order_created", "Order created after successful payment", now),
            ActivityEntry("payment_received", f"Deposit payment received: ${quote.deposit_amount}", now),
        ),
    )


__all__ = ("new_order_id", "build_checkout_order")
