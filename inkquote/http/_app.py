"""
FastAPI application — thin routes over the engine.

Routes translate HTTP to engine calls and Results back to status codes;
nothing here decides prices or order state.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Annotated

import fastapi
from fastapi import Depends, HTTPException, Request, Response, status

from kungfu import Ok, Error

from inkquote import db, materialize as M
from inkquote._config import Settings
from inkquote._errors import ValidationError
from inkquote._logging import get_logger, setup_logging
from inkquote.campaigns import (
    Campaign,
    CampaignStore,
    SettlementErrorKind,
    amount_due,
    campaign_stats,
    place_campaign_order,
    settle_campaign,
)
from inkquote.notify import LoggingNotifier, Notifier
from inkquote.orders import OrderStore, new_order_id, price_checkout
from inkquote.quote import DiscountCodes, calculate_quote
from inkquote.rates import RateRepository
from inkquote.http._models import (
    CampaignOrderIn,
    CampaignOrderOut,
    CampaignStatsOut,
    FromPendingIn,
    HealthOut,
    MaterializedOut,
    OrderOut,
    PaymentEventOut,
    PendingOrderIn,
    PendingOrderOut,
    PendingStateOut,
    ProcessingOut,
    QuoteIn,
    QuoteOut,
    SettlementOut,
)

logger = get_logger(__name__)

UNPROCESSABLE = 422


@dataclass(frozen=True)
class Services:
    """Everything a request needs. One per application."""

    rates: RateRepository
    orders: OrderStore
    campaigns: CampaignStore
    settings: Settings = field(default_factory=Settings)
    notifier: Notifier = field(default_factory=LoggingNotifier)
    discount_codes: DiscountCodes = field(default_factory=dict)
    retry_attempts: int = 3
    retry_delay: float = 0.1

    def materialize_spec(self, body: FromPendingIn) -> M.MaterializeSpec:
        return M.MaterializeSpec(
            pending_order_id=body.pending_order_id,
            payment_reference=body.payment_reference,
            store=self.orders,
            rates=self.rates,
            settings=self.settings,
            notifier=self.notifier,
        )


def get_services(request: Request) -> Services:
    return request.app.state.services


ServicesDep = Annotated[Services, Depends(get_services)]


# ═══════════════════════════════════════════════════════════════════════════════
# Routes
# ═══════════════════════════════════════════════════════════════════════════════


router = fastapi.APIRouter()


@router.get("/health")
async def health() -> HealthOut:
    return HealthOut()


@router.post("/v1/quotes")
async def create_quote(body: QuoteIn, services: ServicesDep) -> QuoteOut:
    match await calculate_quote(body.to_domain(), services.rates, services.settings):
        case Ok(quote):
            return QuoteOut.from_domain(quote)
        case Error(err):
            raise HTTPException(UNPROCESSABLE, detail=str(err))


@router.post("/v1/pending-orders", status_code=status.HTTP_201_CREATED)
async def create_pending_order(body: PendingOrderIn, services: ServicesDep) -> PendingOrderOut:
    """
    Record a checkout before the shopper pays.

    Note: the returned id goes with the payment; the payment event and the
    confirmation poll both name it.
    """
    try:
        pending = body.to_domain(new_order_id(), services.settings.pending_ttl)
    except ValidationError as e:
        raise HTTPException(UNPROCESSABLE, detail=str(e))

    match await price_checkout(pending, services.rates, services.settings, services.discount_codes):
        case Ok((priced, quote)):
            pass
        case Error(err):
            raise HTTPException(UNPROCESSABLE, detail=str(err))

    match await services.orders.add_pending(priced):
        case Ok(_):
            logger.info(f"[Pending: {priced.id}] recorded, total {quote.total}")
            return PendingOrderOut.from_domain(priced, quote)
        case Error(err):
            raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail=err.message)


@router.post(
    "/v1/orders/from-pending",
    responses={202: {"model": ProcessingOut}},
)
async def order_from_pending(
    body: FromPendingIn, services: ServicesDep, response: Response
) -> MaterializedOut | ProcessingOut:
    """
    Confirmation poll. Returns the order whether or not this call created it.

    Note: 202 means another request holds the pending order; poll again.
    """
    result = await M.materialize_with_retry(
        services.materialize_spec(body),
        attempts=services.retry_attempts,
        initial_delay=services.retry_delay,
    )
    match result:
        case Ok(M.Materialized(order, created)):
            return MaterializedOut(order=OrderOut.from_domain(order), created=created)
        case Error(err) if err.retryable:
            response.status_code = status.HTTP_202_ACCEPTED
            return ProcessingOut(detail=err.message)
        case Error(M.MaterializeError(kind=M.MaterializeErrorKind.INVALID, message=message)):
            raise HTTPException(UNPROCESSABLE, detail=message)
        case Error(err):
            raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail=err.message)


@router.get("/v1/orders/pending/{pending_order_id}")
async def pending_state(pending_order_id: str, services: ServicesDep) -> PendingStateOut:
    match await services.orders.pending_state(pending_order_id):
        case Ok(None):
            raise HTTPException(status.HTTP_404_NOT_FOUND, detail=f"No pending order: {pending_order_id}")
        case Ok(state):
            return PendingStateOut.from_domain(state)
        case Error(err):
            raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail=err.message)


@router.post("/v1/payments/events")
async def payment_event(body: FromPendingIn, services: ServicesDep) -> PaymentEventOut:
    """
    Payment processor callback.

    Note: delivery is at-least-once. Anything but a store failure is
    acknowledged so the processor stops redelivering; the client's
    confirmation poll covers what this call couldn't finish.
    """
    result = await M.materialize_with_retry(
        services.materialize_spec(body),
        attempts=services.retry_attempts,
        initial_delay=services.retry_delay,
    )
    match result:
        case Ok(M.Materialized(order)):
            return PaymentEventOut(order_id=order.id)
        case Error(M.MaterializeError(kind=M.MaterializeErrorKind.STORE_ERROR, message=message)):
            raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail=message)
        case Error(err):
            logger.warning(f"[Pending: {body.pending_order_id}] payment event not materialized: {err.message}")
            return PaymentEventOut()


async def _campaign_or_404(services: Services, campaign_id: str) -> Campaign:
    match await services.campaigns.get_campaign(campaign_id):
        case Ok(None):
            raise HTTPException(status.HTTP_404_NOT_FOUND, detail=f"No campaign: {campaign_id}")
        case Ok(campaign):
            return campaign
        case Error(err):
            raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail=err.message)


@router.post("/v1/campaigns/{campaign_id}/orders", status_code=status.HTTP_201_CREATED)
async def create_campaign_order(
    campaign_id: str, body: CampaignOrderIn, services: ServicesDep
) -> CampaignOrderOut:
    campaign = await _campaign_or_404(services, campaign_id)

    placed = place_campaign_order(
        campaign,
        new_order_id(),
        body.participant.to_domain(),
        body.garment_id,
        body.color,
        body.size,
        body.quantity,
    )
    match placed:
        case Ok(order):
            pass
        case Error(err):
            raise HTTPException(UNPROCESSABLE, detail=str(err))

    match await services.campaigns.add_order(order):
        case Ok(_):
            logger.info(f"[Campaign: {campaign_id}] order {order.id} placed, {order.quantity} × {order.garment_id}")
            return CampaignOrderOut.from_domain(order, amount_due(campaign, order))
        case Error(err):
            raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail=err.message)


@router.post("/v1/campaigns/{campaign_id}/orders/{order_id}/pay")
async def pay_campaign_order(campaign_id: str, order_id: str, services: ServicesDep) -> CampaignOrderOut:
    """
    Record a participant's payment, at the campaign's price for their garment.

    Note: only pending orders on everyone_pays campaigns take payments.
    """
    campaign = await _campaign_or_404(services, campaign_id)

    match await services.campaigns.list_orders(campaign_id):
        case Ok(orders):
            order = next((o for o in orders if o.id == order_id), None)
        case Error(err):
            raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail=err.message)
    if order is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=f"No order {order_id} in {campaign_id}")

    try:
        amount = amount_due(campaign, order)
    except ValidationError as e:
        raise HTTPException(UNPROCESSABLE, detail=str(e))

    match await services.campaigns.mark_order_paid(order_id, amount):
        case Ok(paid):
            logger.info(f"[Campaign: {campaign_id}] order {order_id} paid {amount}")
            return CampaignOrderOut.from_domain(paid, amount)
        case Error(ValidationError() as err):
            raise HTTPException(UNPROCESSABLE, detail=str(err))
        case Error(err):
            raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail=err.message)


@router.post("/v1/campaigns/{campaign_id}/settle")
async def settle(campaign_id: str, services: ServicesDep) -> SettlementOut:
    result = await settle_campaign(
        campaign_id,
        services.campaigns,
        settings=services.settings,
        notifier=services.notifier,
    )
    match result:
        case Ok(settlement):
            return SettlementOut.from_domain(settlement)
        case Error(err) if err.kind is SettlementErrorKind.NOT_FOUND:
            raise HTTPException(status.HTTP_404_NOT_FOUND, detail=err.message)
        case Error(err) if err.kind is SettlementErrorKind.INVALID:
            raise HTTPException(UNPROCESSABLE, detail=err.message)
        case Error(err):
            raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail=err.message)


@router.get("/v1/campaigns/{campaign_id}/stats")
async def stats(campaign_id: str, services: ServicesDep) -> CampaignStatsOut:
    campaign = await _campaign_or_404(services, campaign_id)

    match await services.campaigns.list_orders(campaign_id):
        case Ok(orders):
            return CampaignStatsOut.from_domain(campaign_stats(campaign, orders))
        case Error(err):
            raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail=err.message)


# ═══════════════════════════════════════════════════════════════════════════════
# Application
# ═══════════════════════════════════════════════════════════════════════════════


def _database_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: fastapi.FastAPI) -> AsyncIterator[None]:
        session_factory, engine = await db.create_database(settings.database_url)
        app.state.services = Services(
            rates=db.SQLAlchemyRates(session_factory),
            orders=db.SQLAlchemyOrderStore(session_factory),
            campaigns=db.SQLAlchemyCampaignStore(session_factory),
            settings=settings,
        )
        logger.info(f"Database ready at {settings.database_url}")
        try:
            yield
        finally:
            await engine.dispose()

    return lifespan


def create_app(services: Services | None = None, *, settings: Settings | None = None) -> fastapi.FastAPI:
    """
    Build the application.

    With services, routes use them as given (tests, embedding). Without,
    a lifespan opens the database at settings.database_url and wires the
    SQLAlchemy stores. The default URL is a SQLite file in the working
    directory; set INKQUOTE_DATABASE_URL to put it elsewhere.

    Example:
        app = create_app(Services(rates=MemoryRates(...), orders=MemoryOrderStore(),
                                  campaigns=MemoryCampaignStore()))
    """
    if services is not None:
        app = fastapi.FastAPI(title="inkquote")
        app.state.services = services
    else:
        settings = settings if settings is not None else Settings.from_env()
        setup_logging(settings.log_level)
        app = fastapi.FastAPI(title="inkquote", lifespan=_database_lifespan(settings))

    app.include_router(router)
    return app


__all__ = ("Services", "get_services", "router", "create_app")
