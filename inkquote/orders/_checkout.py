"""
Checkout pricing — what a pending order costs, before and after payment.

The same request is built when the checkout is recorded and when the paid
pending order becomes a production order, so both see one price.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from kungfu import Result, Ok, Error

from inkquote._config import Settings
from inkquote._errors import ValidationError
from inkquote._types import Money, ZERO
from inkquote.aggregate import AggregatedOrder, aggregate_selections
from inkquote.quote import (
    DiscountCodes,
    Quote,
    QuoteLine,
    QuoteRequest,
    calculate_quote,
    discount_for,
    normalize_code,
)
from inkquote.rates import RateRepository
from inkquote.orders._types import PendingOrder


def checkout_request(
    pending: PendingOrder,
    discount_amount: Money | None = None,
) -> tuple[AggregatedOrder, QuoteRequest]:
    """
    Aggregate a pending order's selections and build its quote request.

    Selections without a garment id go to the primary garment. Garments
    whose picks add up to zero get no quote line.

    Raises:
        ValidationError: a negative quantity.
    """
    aggregated = aggregate_selections(
        pending.selections,
        default_garment_id=pending.primary_garment_id,
    )
    lines = tuple(
        QuoteLine(gid, qty) for gid, qty in aggregated.garment_quantities().items() if qty > 0
    )
    discount = pending.discount_amount if discount_amount is None else discount_amount
    return aggregated, QuoteRequest(lines, pending.print_config, discount)


async def _priced(
    pending: PendingOrder,
    rates: RateRepository,
    settings: Settings,
    discount_amount: Money | None = None,
) -> Result[Quote, ValidationError]:
    try:
        _, request = checkout_request(pending, discount_amount)
    except ValidationError as e:
        return Error(e)
    return await calculate_quote(request, rates, settings)


async def price_checkout(
    pending: PendingOrder,
    rates: RateRepository,
    settings: Settings,
    codes: DiscountCodes,
    now: datetime | None = None,
) -> Result[tuple[PendingOrder, Quote], ValidationError]:
    """
    Price a checkout and settle its discount.

    A discount code is resolved against the undiscounted subtotal. The
    returned pending order carries the normalized code and the flat amount,
    which is what the materializer prices with later.
    """
    if pending.discount_code is None:
        match await _priced(pending, rates, settings):
            case Ok(quote):
                return Ok((pending, quote))
            case Error(err):
                return Error(err)

    match await _priced(pending, rates, settings, ZERO):
        case Ok(undiscounted):
            pass
        case Error(err):
            return Error(err)

    match discount_for(codes, pending.discount_code, undiscounted.subtotal, now):
        case Ok(amount):
            discounted = replace(
                pending,
                discount_code=normalize_code(pending.discount_code),
                discount_amount=amount,
            )
        case Error(err):
            return Error(err)

    match await _priced(discounted, rates, settings):
        case Ok(quote):
            return Ok((discounted, quote))
        case Error(err):
            return Error(err)


__all__ = ("checkout_request", "price_checkout")
