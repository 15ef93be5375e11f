"""
Orders — pending checkouts and the production orders they become.

    from inkquote import orders as O

    store = O.MemoryOrderStore()
    await store.add_pending(O.PendingOrder.create(
        "pend_1",
        O.Customer("Ada", "ada@example.com"),
        selections,
        print_config,
        ttl=settings.pending_ttl,
    ))

    match await store.pending_state("pend_1"):
        case Ok(O.Exists(pending)): ...
        case Ok(O.Consumed(order_id=order_id)): ...

The SQLAlchemy-backed store lives in inkquote.db.
"""

from inkquote.orders._types import (
    Customer,
    ArtworkRef,
    VECTOR_EXTENSIONS,
    VectorizationStatus,
    ArtworkFile,
    ActivityEntry,
    PendingOrder,
    Exists,
    Consumed,
    PendingState,
    OrderStatus,
    FixedPricing,
    PricingBreakdown,
    ProductionOrder,
    Claimed,
    Rejected,
    Claim,
)
from inkquote.orders._build import new_order_id, build_checkout_order
from inkquote.orders._checkout import checkout_request, price_checkout
from inkquote.orders._store import BuildFn, OrderStore, MemoryOrderStore

__all__ = (
    "Customer",
    "ArtworkRef",
    "VECTOR_EXTENSIONS",
    "VectorizationStatus",
    "ArtworkFile",
    "ActivityEntry",
    "PendingOrder",
    "Exists",
    "Consumed",
    "PendingState",
    "OrderStatus",
    "FixedPricing",
    "PricingBreakdown",
    "ProductionOrder",
    "Claimed",
    "Rejected",
    "Claim",
    "new_order_id",
    "build_checkout_order",
    "checkout_request",
    "price_checkout",
    "BuildFn",
    "OrderStore",
    "MemoryOrderStore",
)
