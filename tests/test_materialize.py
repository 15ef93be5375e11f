import asyncio
from datetime import timedelta
from decimal import Decimal

from kungfu import Ok, Error

from inkquote import materialize as M
from inkquote.aggregate import Selection
from inkquote.orders import (
    ArtworkRef,
    Consumed,
    Exists,
    MemoryOrderStore,
    OrderStatus,
    VectorizationStatus,
)
from inkquote.rates import MemoryRates

from conftest import GARMENTS, NOW, PRINT_RATES, TIERS, make_pending, ok


def spec_for(store, rates, pending_id="pend_1", reference="pi_123", **kwargs) -> M.MaterializeSpec:
    return M.MaterializeSpec(
        pending_order_id=pending_id,
        payment_reference=reference,
        store=store,
        rates=rates,
        clock=lambda: NOW,
        **kwargs,
    )


def materialized(result) -> M.Materialized:
    match result:
        case Ok(m):
            return m
        case Error(err):
            raise AssertionError(f"expected an order, got {err}")


class RecordingNotifier:
    def __init__(self, fail: bool = False) -> None:
        self.sent: list[tuple[str, str]] = []
        self.fail = fail

    async def order_confirmation(self, order, recipient) -> None:
        if self.fail:
            raise ConnectionError("smtp down")
        self.sent.append((order.id, recipient))

    async def admin_new_order(self, order) -> None:
        self.sent.append((order.id, "admin"))


class ExplodingRates(MemoryRates):
    async def garments(self, ids):
        raise RuntimeError("rate database unreachable")


# ═══════════════════════════════════════════════════════════════════════════════
# Single caller
# ═══════════════════════════════════════════════════════════════════════════════


async def test_creates_order_from_pending(order_store, rates) -> None:
    artwork = (ArtworkRef("front", "uploads/logo.svg"), ArtworkRef("back", "uploads/photo.png"))
    await order_store.add_pending(make_pending(artwork=artwork, discount_code="SPRING10"))

    m = materialized(await M.materialize(spec_for(order_store, rates)))

    order = m.order
    assert m.created
    assert order.payment_reference == "pi_123"
    assert order.pending_order_id == "pend_1"
    assert order.status is OrderStatus.PENDING_ART_REVIEW
    assert order.deposit_paid
    assert order.total_quantity == 30
    assert order.total_cost == Decimal("275.00")
    assert order.deposit_amount + order.balance_due == order.total_cost
    assert order.aggregated.garments["gildan-5000"].quantities == {"Black": {"M": 20, "L": 10}}
    assert order.discount_code == "SPRING10"
    assert [a.action for a in order.activity] == ["order_created", "payment_received"]
    assert [f.vectorization_status for f in order.artwork_files] == [
        VectorizationStatus.NOT_NEEDED,
        VectorizationStatus.PENDING,
    ]


async def test_second_call_returns_same_order(order_store, rates) -> None:
    await order_store.add_pending(make_pending())
    spec = spec_for(order_store, rates)

    first = materialized(await M.materialize(spec))
    second = materialized(await M.materialize(spec))

    assert first.created and not second.created
    assert first.order.id == second.order.id


async def test_pending_state_becomes_consumed(order_store, rates) -> None:
    await order_store.add_pending(make_pending())
    assert isinstance(ok(await order_store.pending_state("pend_1")), Exists)

    m = materialized(await M.materialize(spec_for(order_store, rates)))

    match await order_store.pending_state("pend_1"):
        case Ok(Consumed(pending_id="pend_1", order_id=order_id)):
            assert order_id == m.order.id
        case other:
            raise AssertionError(other)


async def test_unknown_pending_is_retryable(order_store, rates) -> None:
    match await M.materialize(spec_for(order_store, rates, pending_id="never")):
        case Error(err):
            assert err.kind is M.MaterializeErrorKind.RETRYABLE_NOT_FOUND
            assert err.retryable
        case other:
            raise AssertionError(other)


# ═══════════════════════════════════════════════════════════════════════════════
# Pending order shapes
# ═══════════════════════════════════════════════════════════════════════════════


async def test_picks_without_garment_join_the_named_garment(order_store, rates) -> None:
    selections = (
        Selection("gildan-5000", "Black", "M", 20),
        Selection(None, "Black", "L", 10),
    )
    await order_store.add_pending(make_pending(selections=selections))

    order = materialized(await M.materialize(spec_for(order_store, rates))).order

    assert order.aggregated.garment_quantities() == {"gildan-5000": 30}
    assert not order.aggregated.is_multi_garment
    assert order.total_cost == Decimal("275.00")


async def test_legacy_pending_priced_as_its_primary_garment(order_store, rates) -> None:
    selections = (Selection(None, "Black", "M", 20), Selection(None, "Black", "L", 10))
    await order_store.add_pending(make_pending(selections=selections, garment_id="gildan-5000"))

    order = materialized(await M.materialize(spec_for(order_store, rates))).order

    assert order.aggregated.garment_id == "gildan-5000"
    assert order.total_cost == Decimal("275.00")


async def test_garment_with_zero_quantity_is_not_priced(order_store, rates) -> None:
    selections = (
        Selection("gildan-5000", "Black", "M", 30),
        Selection("bella-3001", "Black", "M", 0),
    )
    await order_store.add_pending(make_pending(selections=selections))

    order = materialized(await M.materialize(spec_for(order_store, rates))).order

    assert [line.garment_id for line in order.pricing_breakdown.garment_breakdown] == ["gildan-5000"]
    assert order.total_cost == Decimal("275.00")


async def test_multi_garment_order_shares_one_print_cost(order_store, rates) -> None:
    selections = (
        Selection("gildan-5000", "Black", "M", 30),
        Selection("bella-3001", "Black", "L", 30),
    )
    await order_store.add_pending(make_pending(selections=selections))

    order = materialized(await M.materialize(spec_for(order_store, rates))).order

    quote = order.pricing_breakdown
    assert order.aggregated.is_multi_garment
    assert order.total_quantity == 60
    # 30 × 7.50 + 30 × 12.00, then one-color print on all 60 at 1.00 plus one 20.00 screen
    assert [line.total for line in quote.garment_breakdown] == [Decimal("225.00"), Decimal("360.00")]
    assert quote.print_cost_total == Decimal("80.00")
    assert order.total_cost == Decimal("665.00")


# ═══════════════════════════════════════════════════════════════════════════════
# Concurrency
# ═══════════════════════════════════════════════════════════════════════════════


async def test_parallel_callers_create_exactly_one_order(order_store, rates) -> None:
    await order_store.add_pending(make_pending())
    spec = spec_for(order_store, rates)

    results = await asyncio.gather(*(M.materialize(spec) for _ in range(10)))

    orders = set()
    created = 0
    for result in results:
        match result:
            case Ok(m):
                orders.add(m.order.id)
                created += m.created
            case Error(err):
                assert err.retryable
    assert created == 1
    assert len(orders) == 1
    assert ok(await order_store.find_by_payment_reference("pi_123")).id in orders


async def test_retry_resolves_lost_race(order_store, rates) -> None:
    await order_store.add_pending(make_pending())
    spec = spec_for(order_store, rates)

    results = await asyncio.gather(
        *(M.materialize_with_retry(spec, attempts=5, initial_delay=0.01) for _ in range(5))
    )

    ids = {materialized(r).order.id for r in results}
    assert len(ids) == 1
    assert sum(materialized(r).created for r in results) == 1


async def test_parallel_callers_with_distinct_pendings(order_store, rates) -> None:
    for n in range(3):
        await order_store.add_pending(make_pending(f"pend_{n}"))

    results = await asyncio.gather(
        *(M.materialize(spec_for(order_store, rates, f"pend_{n}", f"pi_{n}")) for n in range(3))
    )

    assert len({materialized(r).order.id for r in results}) == 3


# ═══════════════════════════════════════════════════════════════════════════════
# Failures
# ═══════════════════════════════════════════════════════════════════════════════


async def test_unpriceable_pending_is_invalid_and_restored(order_store, rates) -> None:
    await order_store.add_pending(make_pending(selections=(Selection("nope", "Black", "M", 30),)))

    match await M.materialize(spec_for(order_store, rates)):
        case Error(err):
            assert err.kind is M.MaterializeErrorKind.INVALID
            assert not err.retryable
        case other:
            raise AssertionError(other)

    assert isinstance(ok(await order_store.pending_state("pend_1")), Exists)


async def test_build_failure_is_store_error_and_restored(order_store) -> None:
    await order_store.add_pending(make_pending())
    rates = ExplodingRates(TIERS, PRINT_RATES, GARMENTS)

    match await M.materialize(spec_for(order_store, rates)):
        case Error(err):
            assert err.kind is M.MaterializeErrorKind.STORE_ERROR
        case other:
            raise AssertionError(other)

    assert isinstance(ok(await order_store.pending_state("pend_1")), Exists)


async def test_retry_does_not_repeat_invalid(order_store, rates) -> None:
    await order_store.add_pending(make_pending(selections=(Selection("nope", "Black", "M", 30),)))

    match await M.materialize_with_retry(spec_for(order_store, rates), attempts=3, initial_delay=0.01):
        case Error(err):
            assert err.kind is M.MaterializeErrorKind.INVALID
        case other:
            raise AssertionError(other)


# ═══════════════════════════════════════════════════════════════════════════════
# Notification
# ═══════════════════════════════════════════════════════════════════════════════


async def test_confirmation_sent_once(order_store, rates) -> None:
    await order_store.add_pending(make_pending())
    notifier = RecordingNotifier()
    spec = spec_for(order_store, rates, notifier=notifier)

    m = materialized(await M.materialize(spec))
    materialized(await M.materialize(spec))

    assert notifier.sent == [(m.order.id, "dana@example.com")]


async def test_notification_failure_does_not_fail_materialization(order_store, rates) -> None:
    await order_store.add_pending(make_pending())

    m = materialized(await M.materialize(spec_for(order_store, rates, notifier=RecordingNotifier(fail=True))))

    assert m.created


# ═══════════════════════════════════════════════════════════════════════════════
# Expiry
# ═══════════════════════════════════════════════════════════════════════════════


async def test_purge_removes_only_expired(rates) -> None:
    store = MemoryOrderStore()
    await store.add_pending(make_pending("old", ttl=timedelta(hours=1)))
    await store.add_pending(make_pending("fresh", ttl=timedelta(hours=48)))

    assert ok(await store.purge_expired_pending(NOW + timedelta(hours=2))) == 1
    assert ok(await store.pending_state("old")) is None
    assert isinstance(ok(await store.pending_state("fresh")), Exists)
