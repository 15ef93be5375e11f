import asyncio
from datetime import timedelta
from decimal import Decimal

from hypothesis import given, settings as hyp_settings, strategies as st
from kungfu import Ok, Error

from inkquote import Settings, ValidationError, round2
from inkquote.quote import (
    DiscountCode,
    DiscountKind,
    LocationPrint,
    PrintLocation,
    QuoteLine,
    QuoteRequest,
    calculate_quote,
    total_screens,
)
from inkquote.rates import MemoryRates

from conftest import FRONT_ONE, GARMENTS, NOW, PRINT_RATES, TIERS


class CountingRates(MemoryRates):
    """MemoryRates that records every lookup."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.calls: list[str] = []

    async def garments(self, ids):
        self.calls.append("garments")
        return await super().garments(ids)

    async def tier_for(self, family_id, quantity):
        self.calls.append("tier_for")
        return await super().tier_for(family_id, quantity)

    async def print_rate(self, tier_id, num_colors):
        self.calls.append(f"print_rate:{num_colors}")
        return await super().print_rate(tier_id, num_colors)


def quoted(result):
    match result:
        case Ok(quote):
            return quote
        case Error(err):
            raise AssertionError(f"expected a quote, got {err}")


def rejected(result) -> ValidationError:
    match result:
        case Error(err):
            return err
        case Ok(quote):
            raise AssertionError(f"expected rejection, got {quote}")


# ═══════════════════════════════════════════════════════════════════════════════
# Garment cost
# ═══════════════════════════════════════════════════════════════════════════════


async def test_garment_markup_at_tier(rates) -> None:
    quote = quoted(await calculate_quote(QuoteRequest.single("gildan-5000", 50, {}), rates))

    assert quote.garment_cost_per_unit == Decimal("7.50")
    assert quote.garment_cost_total == Decimal("375.00")
    assert quote.print_cost_total == 0
    assert quote.total == Decimal("375.00")
    assert not quote.degraded


async def test_higher_tier_lowers_markup(rates) -> None:
    quote = quoted(await calculate_quote(QuoteRequest.single("gildan-5000", 100, {}), rates))

    assert quote.garment_cost_per_unit == Decimal("7.00")
    assert quote.garment_breakdown[0].tier_id == "std-72"


async def test_multi_garment_lines_price_independently(rates) -> None:
    request = QuoteRequest(
        (QuoteLine("gildan-5000", 30), QuoteLine("bella-3001", 30)),
        FRONT_ONE,
    )

    quote = quoted(await calculate_quote(request, rates))

    assert [line.total for line in quote.garment_breakdown] == [Decimal("225.00"), Decimal("360.00")]
    assert quote.garment_cost_total == Decimal("585.00")
    assert quote.garment_cost_per_unit == Decimal("9.75")
    assert quote.total_quantity == 60
    # print setup charged once for the whole order
    assert quote.setup_fees == Decimal("20.00")


# ═══════════════════════════════════════════════════════════════════════════════
# Print cost
# ═══════════════════════════════════════════════════════════════════════════════


async def test_print_rate_at_max_colors_per_location() -> None:
    rates = CountingRates(TIERS, PRINT_RATES, GARMENTS)
    config = {
        PrintLocation.FRONT: LocationPrint(True, 2),
        PrintLocation.BACK: LocationPrint(True, 1),
        PrintLocation.LEFT_CHEST: LocationPrint(False, 4),
    }

    quote = quoted(await calculate_quote(QuoteRequest.single("gildan-5000", 50, config), rates))

    assert quote.total_screens == 3
    assert quote.active_locations == 2
    assert "print_rate:2" in rates.calls
    assert quote.print_cost_per_unit == Decimal("3.00")
    assert quote.setup_fees == Decimal("60.00")
    assert quote.print_cost_total == Decimal("210.00")
    assert quote.subtotal == Decimal("585.00")


@given(
    st.dictionaries(
        st.sampled_from(list(PrintLocation)),
        st.builds(LocationPrint, st.booleans(), st.integers(min_value=1, max_value=4)),
    )
)
def test_screens_sum_enabled_colors(config) -> None:
    assert total_screens(config) == sum(lp.num_colors for lp in config.values() if lp.enabled)


# ═══════════════════════════════════════════════════════════════════════════════
# Validation
# ═══════════════════════════════════════════════════════════════════════════════


async def test_below_minimum_rejected_before_any_lookup() -> None:
    rates = CountingRates(TIERS, PRINT_RATES, GARMENTS)

    err = rejected(await calculate_quote(QuoteRequest.single("gildan-5000", 20, FRONT_ONE), rates))

    assert err.field == "quantity"
    assert rates.calls == []


async def test_minimum_comes_from_settings(rates) -> None:
    result = await calculate_quote(
        QuoteRequest.single("plain-tee", 12, {}), rates, Settings().with_min_quantity(12)
    )

    assert quoted(result).total_quantity == 12


async def test_color_count_out_of_range(rates) -> None:
    config = {PrintLocation.FRONT: LocationPrint(True, 5)}

    err = rejected(await calculate_quote(QuoteRequest.single("gildan-5000", 50, config), rates))

    assert err.field == "front"


async def test_disabled_location_colors_not_checked(rates) -> None:
    config = {PrintLocation.BACK: LocationPrint(False, 9)}

    assert quoted(await calculate_quote(QuoteRequest.single("gildan-5000", 50, config), rates))


async def test_unknown_garment(rates) -> None:
    err = rejected(await calculate_quote(QuoteRequest.single("nope", 50, {}), rates))

    assert err.field == "nope"


async def test_duplicate_garment_line(rates) -> None:
    request = QuoteRequest((QuoteLine("gildan-5000", 30), QuoteLine("gildan-5000", 30)), {})

    assert rejected(await calculate_quote(request, rates)).field == "gildan-5000"


async def test_empty_request(rates) -> None:
    assert rejected(await calculate_quote(QuoteRequest((), {}), rates)).field == "lines"


# ═══════════════════════════════════════════════════════════════════════════════
# Fallback pricing
# ═══════════════════════════════════════════════════════════════════════════════


async def test_missing_tier_uses_fallback_markup(rates) -> None:
    quote = quoted(await calculate_quote(QuoteRequest.single("orphan-tee", 30, {}), rates))

    assert quote.degraded
    assert quote.garment_cost_per_unit == Decimal("6.00")
    assert quote.gaps[0].startswith("garment tier:")


async def test_missing_print_rate_uses_fallback_rates(rates) -> None:
    config = {PrintLocation.FRONT: LocationPrint(True, 2)}

    quote = quoted(await calculate_quote(QuoteRequest.single("plain-tee", 30, config), rates))

    assert quote.degraded
    assert quote.print_cost_per_unit == Decimal("1.00")
    assert quote.setup_fees == Decimal("50.00")
    assert quote.print_cost_total == Decimal("80.00")
    assert len(quote.gaps) == 1
    assert quote.gaps[0].startswith("print rate:")


async def test_fallback_values_from_settings(rates) -> None:
    settings = Settings().with_fallback(markup_percent=100)

    quote = quoted(await calculate_quote(QuoteRequest.single("orphan-tee", 30, {}), rates, settings))

    assert quote.garment_cost_per_unit == Decimal("8.00")


# ═══════════════════════════════════════════════════════════════════════════════
# Totals, deposit, discount
# ═══════════════════════════════════════════════════════════════════════════════


@hyp_settings(max_examples=40, deadline=None)
@given(
    quantity=st.integers(min_value=24, max_value=400),
    front=st.integers(min_value=0, max_value=4),
    back=st.integers(min_value=0, max_value=4),
    deposit=st.integers(min_value=0, max_value=100),
    discount=st.decimals(min_value=0, max_value=500, places=2),
)
def test_deposit_plus_balance_is_rounded_total(quantity, front, back, deposit, discount) -> None:
    config = {
        PrintLocation.FRONT: LocationPrint(front > 0, max(front, 1)),
        PrintLocation.BACK: LocationPrint(back > 0, max(back, 1)),
    }
    request = QuoteRequest.single("bella-3001", quantity, config, discount)
    rates = MemoryRates(TIERS, PRINT_RATES, GARMENTS)

    quote = quoted(asyncio.run(calculate_quote(request, rates, Settings().with_deposit_percent(deposit))))

    assert quote.deposit_amount + quote.balance_due == round2(quote.total)
    assert quote.total >= 0


async def test_deposit_default_half(rates) -> None:
    quote = quoted(await calculate_quote(QuoteRequest.single("gildan-5000", 50, {}), rates))

    assert quote.deposit_amount == Decimal("187.50")
    assert quote.balance_due == Decimal("187.50")


async def test_discount_reduces_total(rates) -> None:
    request = QuoteRequest.single("gildan-5000", 50, {}, Decimal("25.00"))

    quote = quoted(await calculate_quote(request, rates))

    assert quote.discount == Decimal("25.00")
    assert quote.total == Decimal("350.00")
    assert quote.per_unit_price == Decimal("7.00")


async def test_discount_never_drives_total_negative(rates) -> None:
    request = QuoteRequest.single("gildan-5000", 50, {}, Decimal("1000"))

    quote = quoted(await calculate_quote(request, rates))

    assert quote.total == 0
    assert quote.discount == quote.subtotal
    assert quote.deposit_amount == quote.balance_due == 0


async def test_negative_discount_rejected(rates) -> None:
    request = QuoteRequest.single("gildan-5000", 50, {}, Decimal("-1"))

    assert rejected(await calculate_quote(request, rates)).field == "discount_amount"


def test_percentage_code() -> None:
    code = DiscountCode("SPRING10", DiscountKind.PERCENTAGE, Decimal("10"))

    assert quoted(code.amount_for(Decimal("375.00"), NOW)) == Decimal("37.50")


def test_fixed_code_capped_at_subtotal() -> None:
    code = DiscountCode("BIG", DiscountKind.FIXED, Decimal("500"))

    assert quoted(code.amount_for(Decimal("120.00"), NOW)) == Decimal("120.00")


def test_inactive_and_expired_codes() -> None:
    inactive = DiscountCode("OLD", DiscountKind.FIXED, Decimal("5"), active=False)
    expired = DiscountCode("GONE", DiscountKind.FIXED, Decimal("5"), expires_at=NOW - timedelta(days=1))

    assert isinstance(inactive.amount_for(Decimal("100"), NOW), Error)
    assert isinstance(expired.amount_for(Decimal("100"), NOW), Error)


def test_percentage_over_hundred_refused() -> None:
    code = DiscountCode("ALL", DiscountKind.PERCENTAGE, Decimal("150"))

    assert isinstance(code.amount_for(Decimal("100"), NOW), Error)
