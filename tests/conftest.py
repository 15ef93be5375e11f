from datetime import datetime, timedelta, UTC
from decimal import Decimal

import pytest
from kungfu import Ok, Error

from inkquote import Settings
from inkquote.aggregate import Selection
from inkquote.orders import Customer, MemoryOrderStore, PendingOrder
from inkquote.quote import LocationPrint, PrintLocation
from inkquote.rates import Garment, MemoryRates, PrintRate, QuantityTier

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

TIERS = (
    QuantityTier("std-24", "standard", "24-71", 24, 71, Decimal("50")),
    QuantityTier("std-72", "standard", "72-143", 72, 143, Decimal("40")),
    QuantityTier("std-144", "standard", "144+", 144, None, Decimal("30")),
    QuantityTier("sparse-24", "sparse", "24+", 24, None, Decimal("45")),
)

PRINT_RATES = tuple(
    PrintRate(tier, colors, cost, Decimal("20.00"))
    for tier in ("std-24", "std-72", "std-144")
    for colors, cost in (
        (1, Decimal("1.00")),
        (2, Decimal("1.50")),
        (3, Decimal("2.00")),
        (4, Decimal("2.50")),
    )
)

GARMENTS = (
    Garment("gildan-5000", "Gildan 5000", Decimal("5.00"), "standard", ("Black", "White")),
    Garment("bella-3001", "Bella 3001", Decimal("8.00"), "standard", ("Black",)),
    # family without tiers
    Garment("orphan-tee", "Orphan Tee", Decimal("4.00"), "missing"),
    # tiers but no print rates
    Garment("plain-tee", "Plain Tee", Decimal("6.00"), "sparse"),
)

FRONT_ONE = {PrintLocation.FRONT: LocationPrint(True, 1)}


@pytest.fixture
def rates() -> MemoryRates:
    return MemoryRates(TIERS, PRINT_RATES, GARMENTS)


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def order_store() -> MemoryOrderStore:
    return MemoryOrderStore()


@pytest.fixture
def customer() -> Customer:
    return Customer("Dana Reyes", "dana@example.com")


def make_pending(
    pending_id: str = "pend_1",
    selections: tuple[Selection, ...] = (
        Selection("gildan-5000", "Black", "M", 20),
        Selection("gildan-5000", "Black", "L", 10),
    ),
    *,
    now: datetime = NOW,
    ttl: timedelta = timedelta(hours=24),
    **extra,
) -> PendingOrder:
    return PendingOrder.create(
        pending_id,
        Customer("Dana Reyes", "dana@example.com"),
        selections,
        FRONT_ONE,
        ttl=ttl,
        now=now,
        **extra,
    )


def ok(result):
    """Value of an Ok, failing the test on Error."""
    match result:
        case Ok(value):
            return value
        case Error(err):
            raise AssertionError(f"expected Ok, got Error({err!r})")
