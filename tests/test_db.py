import asyncio
import sqlite3
from contextlib import closing
from datetime import timedelta
from decimal import Decimal
from pathlib import Path

import pytest
from kungfu import Ok, Error

from inkquote import PrintRateNotFoundError, Settings, TierNotFoundError, ValidationError
from inkquote import campaigns as CP
from inkquote import db
from inkquote import materialize as M
from inkquote.aggregate import Selection
from inkquote.orders import Consumed, Exists, Rejected
from inkquote.quote import QuoteRequest, calculate_quote

from conftest import FRONT_ONE, GARMENTS, NOW, PRINT_RATES, TIERS, make_pending, ok
from test_campaigns import make_campaign, participant_orders


@pytest.fixture
async def session_factory():
    factory, engine = await db.create_database()
    await db.load_rates(factory, tiers=TIERS, print_rates=PRINT_RATES, garments=GARMENTS)
    yield factory
    await engine.dispose()


# ═══════════════════════════════════════════════════════════════════════════════
# Rates
# ═══════════════════════════════════════════════════════════════════════════════


async def test_tier_query(session_factory) -> None:
    rates = db.SQLAlchemyRates(session_factory)

    assert (await rates.tier_for("standard", 24)).id == "std-24"
    assert (await rates.tier_for("standard", 143)).id == "std-72"
    assert (await rates.tier_for("standard", 9999)).id == "std-144"
    with pytest.raises(TierNotFoundError):
        await rates.tier_for("standard", 10)


async def test_print_rate_and_garments(session_factory) -> None:
    rates = db.SQLAlchemyRates(session_factory)

    rate = await rates.print_rate("std-72", 3)
    garments = await rates.garments(["gildan-5000", "nope"])

    assert rate.cost_per_shirt == Decimal("2.00")
    assert garments["gildan-5000"].available_colors == ("Black", "White")
    assert set(garments) == {"gildan-5000"}
    with pytest.raises(PrintRateNotFoundError):
        await rates.print_rate("sparse-24", 1)


async def test_quote_matches_memory_rates(session_factory, rates) -> None:
    request = QuoteRequest.single("gildan-5000", 50, FRONT_ONE)

    from_db = ok(await calculate_quote(request, db.SQLAlchemyRates(session_factory)))
    from_memory = ok(await calculate_quote(request, rates))

    assert from_db.total == from_memory.total
    assert from_db.deposit_amount == from_memory.deposit_amount


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


async def test_pending_round_trip(session_factory) -> None:
    store = db.SQLAlchemyOrderStore(session_factory)
    pending = make_pending()

    ok(await store.add_pending(pending))

    match await store.pending_state("pend_1"):
        case Ok(Exists(stored)):
            assert stored == pending
        case other:
            raise AssertionError(other)


async def test_materialize_against_database(session_factory) -> None:
    store = db.SQLAlchemyOrderStore(session_factory)
    rates = db.SQLAlchemyRates(session_factory)
    ok(await store.add_pending(make_pending()))
    spec = M.MaterializeSpec("pend_1", "pi_123", store, rates, clock=lambda: NOW)

    first = ok(await M.materialize(spec))
    second = ok(await M.materialize(spec))

    assert first.created and not second.created
    assert second.order == first.order
    assert first.order.total_cost == Decimal("275.00")
    match await store.pending_state("pend_1"):
        case Ok(Consumed(order_id=order_id)):
            assert order_id == first.order.id
        case other:
            raise AssertionError(other)
    assert ok(await store.get_order(first.order.id)) == first.order


async def test_claim_twice_second_sees_consumed(session_factory, rates) -> None:
    store = db.SQLAlchemyOrderStore(session_factory)
    ok(await store.add_pending(make_pending()))
    spec = M.MaterializeSpec("pend_1", "pi_123", store, rates, clock=lambda: NOW)
    ok(await M.materialize(spec))

    async def never(_pending):
        raise AssertionError("build must not run for a consumed pending order")

    assert isinstance(ok(await store.claim_pending("pend_1", never)), Consumed)


async def test_rejected_build_rolls_back_delete(session_factory) -> None:
    store = db.SQLAlchemyOrderStore(session_factory)
    ok(await store.add_pending(make_pending()))

    async def refuse(_pending):
        return Error(ValidationError("nope"))

    assert isinstance(ok(await store.claim_pending("pend_1", refuse)), Rejected)
    assert isinstance(ok(await store.pending_state("pend_1")), Exists)


async def test_raising_build_rolls_back_delete(session_factory) -> None:
    store = db.SQLAlchemyOrderStore(session_factory)
    ok(await store.add_pending(make_pending()))

    async def explode(_pending):
        raise RuntimeError("boom")

    assert isinstance(await store.claim_pending("pend_1", explode), Error)
    assert isinstance(ok(await store.pending_state("pend_1")), Exists)


async def test_invalid_pending_restored(session_factory) -> None:
    store = db.SQLAlchemyOrderStore(session_factory)
    rates = db.SQLAlchemyRates(session_factory)
    ok(await store.add_pending(make_pending(selections=(Selection("nope", "Black", "M", 30),))))

    match await M.materialize(M.MaterializeSpec("pend_1", "pi_1", store, rates)):
        case Error(err):
            assert err.kind is M.MaterializeErrorKind.INVALID
        case other:
            raise AssertionError(other)
    assert isinstance(ok(await store.pending_state("pend_1")), Exists)


async def test_purge_expired(session_factory) -> None:
    store = db.SQLAlchemyOrderStore(session_factory)
    ok(await store.add_pending(make_pending("old", ttl=timedelta(hours=1))))
    ok(await store.add_pending(make_pending("fresh", ttl=timedelta(days=3))))

    assert ok(await store.purge_expired_pending(NOW + timedelta(hours=5))) == 1
    assert ok(await store.pending_state("old")) is None


# ═══════════════════════════════════════════════════════════════════════════════
# Campaigns
# ═══════════════════════════════════════════════════════════════════════════════


async def seeded_campaigns(session_factory) -> db.SQLAlchemyCampaignStore:
    store = db.SQLAlchemyCampaignStore(session_factory)
    ok(await store.add_campaign(make_campaign()))
    for order in participant_orders():
        ok(await store.add_order(order))
    return store


async def test_campaign_round_trip(session_factory) -> None:
    store = await seeded_campaigns(session_factory)

    campaign = ok(await store.get_campaign("camp_1"))
    orders = ok(await store.list_orders("camp_1"))

    assert campaign == make_campaign()
    assert {o.id for o in orders} == {"co_1", "co_2", "co_3", "co_4"}


async def test_settle_against_database(session_factory) -> None:
    store = await seeded_campaigns(session_factory)

    first = ok(await CP.settle_campaign("camp_1", store, clock=lambda: NOW))
    second = ok(await CP.settle_campaign("camp_1", store, clock=lambda: NOW))

    assert first.created and not second.created
    assert second.order.id == first.order.id
    campaign = ok(await store.get_campaign("camp_1"))
    assert campaign.final_order_id == first.order.id
    assert campaign.status is CP.CampaignStatus.COMPLETED
    assert ok(await store.get_production_order(first.order.id)).total_cost == Decimal("75.00")


async def test_mark_paid_against_database(session_factory) -> None:
    store = await seeded_campaigns(session_factory)

    paid = ok(await store.mark_order_paid("co_3", Decimal("18.00")))
    again = await store.mark_order_paid("co_3", Decimal("18.00"))

    assert paid.status is CP.CampaignOrderStatus.PAID
    assert isinstance(again, Error)
    stored = {o.id: o for o in ok(await store.list_orders("camp_1"))}
    assert stored["co_3"].amount_paid == Decimal("18.00")
    match await store.mark_order_paid("nope", Decimal("1.00")):
        case Error(ValidationError() as err):
            assert err.field == "nope"
        case other:
            raise AssertionError(other)


# ═══════════════════════════════════════════════════════════════════════════════
# Concurrency — file database, one connection per session
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "inkquote.db"


@pytest.fixture
async def file_factory(db_path):
    factory, engine = await db.create_database(f"sqlite+aiosqlite:///{db_path}")
    await db.load_rates(factory, tiers=TIERS, print_rates=PRINT_RATES, garments=GARMENTS)
    yield factory
    await engine.dispose()


async def test_parallel_claims_create_one_order(file_factory) -> None:
    store = db.SQLAlchemyOrderStore(file_factory)
    rates = db.SQLAlchemyRates(file_factory)
    ok(await store.add_pending(make_pending()))
    spec = M.MaterializeSpec("pend_1", "pi_123", store, rates, clock=lambda: NOW)

    async def attempt():
        return await M.materialize_with_retry(spec, attempts=5, initial_delay=0.02)

    results = [ok(r) for r in await asyncio.gather(*(attempt() for _ in range(5)))]

    assert sum(m.created for m in results) == 1
    assert len({m.order.id for m in results}) == 1
    assert isinstance(ok(await store.pending_state("pend_1")), Consumed)


async def test_parallel_settlements_create_one_order(file_factory) -> None:
    store = await seeded_campaigns(file_factory)

    results = await asyncio.gather(*(CP.settle_campaign("camp_1", store) for _ in range(5)))

    settlements = [ok(r) for r in results]
    assert sum(s.created for s in settlements) == 1
    assert len({s.order.id for s in settlements}) == 1
    assert ok(await store.get_campaign("camp_1")).final_order_id == settlements[0].order.id


async def checkout_order_id(factory) -> str:
    store = db.SQLAlchemyOrderStore(factory)
    ok(await store.add_pending(make_pending("pend_x")))
    spec = M.MaterializeSpec("pend_x", "pi_x", store, db.SQLAlchemyRates(factory), clock=lambda: NOW)
    return ok(await M.materialize(spec)).order.id


def settles_underneath(db_path: Path, winner_id: str, *, claim_campaign: bool):
    """Build that lets another writer settle camp_1 before this one writes."""

    def build(campaign, orders):
        with closing(sqlite3.connect(db_path)) as conn:
            if claim_campaign:
                conn.execute("UPDATE production_orders SET campaign_id = 'camp_1' WHERE id = ?", (winner_id,))
            conn.execute("UPDATE campaigns SET final_order_id = ? WHERE id = 'camp_1'", (winner_id,))
            conn.commit()
        return CP.build_campaign_order(campaign, orders, Settings(), NOW)

    return build


async def test_settlement_losing_conditional_update_returns_winner(file_factory, db_path) -> None:
    store = await seeded_campaigns(file_factory)
    winner_id = await checkout_order_id(file_factory)

    claim = ok(await store.settle("camp_1", settles_underneath(db_path, winner_id, claim_campaign=False)))

    match claim:
        case CP.AlreadySettled(order):
            assert order.id == winner_id
        case other:
            raise AssertionError(other)
    assert ok(await store.get_campaign("camp_1")).final_order_id == winner_id


async def test_settlement_losing_unique_insert_returns_winner(file_factory, db_path) -> None:
    store = await seeded_campaigns(file_factory)
    winner_id = await checkout_order_id(file_factory)

    claim = ok(await store.settle("camp_1", settles_underneath(db_path, winner_id, claim_campaign=True)))

    match claim:
        case CP.AlreadySettled(order):
            assert order.id == winner_id
        case other:
            raise AssertionError(other)
