"""
Quote — tiered pricing for a print order.

    from inkquote import quote as Q

    request = Q.QuoteRequest.single(
        "gildan-5000",
        50,
        {Q.PrintLocation.FRONT: Q.LocationPrint(True, 2)},
    )

    match await Q.calculate_quote(request, rates, settings):
        case Ok(quote):
            if quote.degraded:
                ...  # fallback pricing, see quote.gaps
        case Error(err):
            ...  # ValidationError, show err to the shopper
"""

from inkquote.quote._types import (
    MIN_COLORS,
    MAX_COLORS,
    PrintLocation,
    LocationPrint,
    PrintConfiguration,
    enabled_locations,
    total_screens,
    max_colors,
    QuoteLine,
    QuoteRequest,
    GarmentLineCost,
    PrintCost,
    Quote,
)
from inkquote.quote._pricing import marked_up, split_deposit
from inkquote.quote._discount import (
    DiscountKind,
    DiscountCode,
    DiscountCodes,
    normalize_code,
    discount_for,
)
from inkquote.quote._graph import QuoteSpec, calculate_quote

__all__ = (
    "MIN_COLORS",
    "MAX_COLORS",
    "PrintLocation",
    "LocationPrint",
    "PrintConfiguration",
    "enabled_locations",
    "total_screens",
    "max_colors",
    "QuoteLine",
    "QuoteRequest",
    "GarmentLineCost",
    "PrintCost",
    "Quote",
    "marked_up",
    "split_deposit",
    "DiscountKind",
    "DiscountCode",
    "DiscountCodes",
    "normalize_code",
    "discount_for",
    "QuoteSpec",
    "calculate_quote",
)
