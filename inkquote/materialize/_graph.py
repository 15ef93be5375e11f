"""
Materializer graph — pending order to production order, exactly once.

Architecture:
    MaterializeSpec (injected)
         │
         ▼
    SpecNode
         │
         ▼
    LookupNode (by payment_reference)
         │
         ├── ExistingOrderNode ──────────────────────────┐
         ├── LookupFailedNode ───────────────────────────┤
         └── NoOrderNode                                 │
                  │                                      │
                  ▼                                      │
             ClaimNode (atomic delete-and-insert)        │
                  │                                      │
                  ├── ClaimedNode ───────────────────────┤
                  ├── RejectedClaimNode ─────────────────┼── MaterializeOutcome (@polymorphic)
                  ├── ClaimFailedNode ───────────────────┤              │
                  └── LostRaceNode (re-check lookup) ────┘              ▼
                                                                 FinalResultNode

Note: no 'from __future__ import annotations' here; nodnod resolves
dependencies from runtime type hints.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, UTC

from nodnod import NodeError, polymorphic, case

from kungfu import Result, Ok, Error

from inkquote import graph as G
from inkquote._config import Settings
from inkquote._errors import StoreError, ValidationError
from inkquote._logging import get_logger
from inkquote.notify import Notifier, notify_safely
from inkquote.orders import (
    BuildFn,
    Claim,
    Claimed,
    Consumed,
    OrderStore,
    PendingOrder,
    ProductionOrder,
    Rejected,
    build_checkout_order,
    checkout_request,
)
from inkquote.quote import calculate_quote
from inkquote.rates import RateRepository
from inkquote.materialize._types import (
    Materialized,
    MaterializeError,
    MaterializeErrorKind,
)

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ═══════════════════════════════════════════════════════════════════════════════
# Input — Spec (injected)
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class MaterializeSpec:
    """
    One materialization request.

    Both triggers (payment callback and client confirmation poll) build
    the same spec from the same pending_order_id and payment_reference.
    """

    pending_order_id: str
    payment_reference: str
    store: OrderStore
    rates: RateRepository
    settings: Settings = field(default_factory=Settings)
    notifier: Notifier | None = None
    clock: Callable[[], datetime] = _utcnow


@G.node
class SpecNode:
    def __init__(self, spec: MaterializeSpec) -> None:
        self.spec = spec

    @classmethod
    def __compose__(cls, spec: MaterializeSpec) -> "SpecNode":
        return cls(spec)


# ═══════════════════════════════════════════════════════════════════════════════
# Lookup — fast path
# ═══════════════════════════════════════════════════════════════════════════════


@G.node
class LookupNode:
    """Looks for an order already made for this payment."""

    def __init__(
        self,
        order: ProductionOrder | None,
        spec: MaterializeSpec,
        store_error: StoreError | None = None,
    ) -> None:
        self.order = order
        self.spec = spec
        self.store_error = store_error

    @classmethod
    async def __compose__(cls, spec_node: SpecNode) -> "LookupNode":
        spec = spec_node.spec
        match await spec.store.find_by_payment_reference(spec.payment_reference):
            case Ok(order):
                return cls(order, spec)
            case Error(err):
                return cls(None, spec, store_error=err)


@G.node
class ExistingOrderNode:
    """Validates: an order for this payment already exists."""

    def __init__(self, order: ProductionOrder) -> None:
        self.order = order

    @classmethod
    def __compose__(cls, lookup: LookupNode) -> "ExistingOrderNode":
        if lookup.order is None:
            raise NodeError("No order")
        return cls(lookup.order)


@G.node
class LookupFailedNode:
    """Validates: the lookup itself failed."""

    def __init__(self, error: StoreError) -> None:
        self.error = error

    @classmethod
    def __compose__(cls, lookup: LookupNode) -> "LookupFailedNode":
        if lookup.store_error is None:
            raise NodeError("No store error")
        return cls(lookup.store_error)


@G.node
class NoOrderNode:
    """Validates: lookup succeeded and found nothing."""

    def __init__(self, spec: MaterializeSpec) -> None:
        self.spec = spec

    @classmethod
    def __compose__(cls, lookup: LookupNode) -> "NoOrderNode":
        if lookup.store_error is not None:
            raise NodeError("Store error")
        if lookup.order is not None:
            raise NodeError("Order exists")
        return cls(lookup.spec)


# ═══════════════════════════════════════════════════════════════════════════════
# Claim — the mutual-exclusion point
# ═══════════════════════════════════════════════════════════════════════════════


def _builder(spec: MaterializeSpec) -> BuildFn:
    async def build(pending: PendingOrder) -> Result[ProductionOrder, ValidationError]:
        try:
            aggregated, request = checkout_request(pending)
        except ValidationError as e:
            return Error(e)

        match await calculate_quote(request, spec.rates, spec.settings):
            case Ok(quote):
                if quote.degraded:
                    logger.warning(f"[Pending: {pending.id}] priced with fallback rates: {quote.gaps}")
                return Ok(
                    build_checkout_order(pending, quote, aggregated, spec.payment_reference, spec.clock())
                )
            case Error(err):
                return Error(err)

    return build


@G.node
class ClaimNode:
    """Consumes the pending order. Runs at most once per pending order across all callers."""

    def __init__(
        self,
        claim: Claim | None,
        spec: MaterializeSpec,
        store_error: StoreError | None = None,
    ) -> None:
        self.claim = claim
        self.spec = spec
        self.store_error = store_error

    @classmethod
    async def __compose__(cls, no_order: NoOrderNode) -> "ClaimNode":
        spec = no_order.spec
        match await spec.store.claim_pending(spec.pending_order_id, _builder(spec)):
            case Ok(claim):
                return cls(claim, spec)
            case Error(err):
                return cls(None, spec, store_error=err)


@G.node
class ClaimedNode:
    """Validates: this call consumed the pending order."""

    def __init__(self, order: ProductionOrder) -> None:
        self.order = order

    @classmethod
    def __compose__(cls, claim: ClaimNode) -> "ClaimedNode":
        if not isinstance(claim.claim, Claimed):
            raise NodeError("Not claimed")
        return cls(claim.claim.order)


@G.node
class RejectedClaimNode:
    """Validates: the pending order's contents were refused."""

    def __init__(self, error: ValidationError) -> None:
        self.error = error

    @classmethod
    def __compose__(cls, claim: ClaimNode) -> "RejectedClaimNode":
        if not isinstance(claim.claim, Rejected):
            raise NodeError("Not rejected")
        return cls(claim.claim.error)


@G.node
class ClaimFailedNode:
    """Validates: the store failed during the claim; pending order untouched."""

    def __init__(self, error: StoreError) -> None:
        self.error = error

    @classmethod
    def __compose__(cls, claim: ClaimNode) -> "ClaimFailedNode":
        if claim.store_error is None:
            raise NodeError("No store error")
        return cls(claim.store_error)


@G.node
class LostRaceNode:
    """Validates: another caller consumed the pending order first."""

    def __init__(self, spec: MaterializeSpec) -> None:
        self.spec = spec

    @classmethod
    def __compose__(cls, claim: ClaimNode) -> "LostRaceNode":
        if not isinstance(claim.claim, Consumed):
            raise NodeError("Not consumed")
        return cls(claim.spec)


# ═══════════════════════════════════════════════════════════════════════════════
# Outcome
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class OutcomeOk:
    order: ProductionOrder
    created: bool


@dataclass(frozen=True)
class OutcomeError:
    kind: MaterializeErrorKind
    message: str
    cause: object | None


type Outcome = OutcomeOk | OutcomeError


def _store_failure(error: StoreError) -> OutcomeError:
    return OutcomeError(MaterializeErrorKind.STORE_ERROR, error.message, error.cause)


@polymorphic[Outcome]
class MaterializeOutcome:
    """Polymorphic router — each @case depends on one validated state node."""

    @case
    def lookup_failed(cls, node: LookupFailedNode) -> Outcome:
        return _store_failure(node.error)

    @case
    def existing(cls, node: ExistingOrderNode) -> Outcome:
        """Fast path: a previous call already finished."""
        return OutcomeOk(node.order, created=False)

    @case
    def created(cls, node: ClaimedNode) -> Outcome:
        return OutcomeOk(node.order, created=True)

    @case
    def rejected(cls, node: RejectedClaimNode) -> Outcome:
        return OutcomeError(MaterializeErrorKind.INVALID, str(node.error), node.error)

    @case
    def claim_failed(cls, node: ClaimFailedNode) -> Outcome:
        return _store_failure(node.error)

    @case
    async def lost_race(cls, node: LostRaceNode) -> Outcome:
        """
        The winner may still be mid-transaction.

        Note: absent here means "not yet", never "never". The caller backs off and retries.
        """
        spec = node.spec
        match await spec.store.find_by_payment_reference(spec.payment_reference):
            case Ok(None):
                return OutcomeError(
                    MaterializeErrorKind.RETRYABLE_NOT_FOUND,
                    f"Pending order {spec.pending_order_id} consumed, order not visible yet",
                    None,
                )
            case Ok(order):
                return OutcomeOk(order, created=False)
            case Error(err):
                return _store_failure(err)


@G.node
class FinalResultNode:
    """Converts Outcome to typed Result."""

    def __init__(self, outcome: Outcome) -> None:
        self.outcome = outcome

    @classmethod
    def __compose__(cls, outcome: MaterializeOutcome) -> "FinalResultNode":
        return cls(outcome.value)

    def to_result(self) -> Result[Materialized, MaterializeError]:
        match self.outcome:
            case OutcomeOk(order=order, created=created):
                return Ok(Materialized(order, created))
            case OutcomeError(kind=kind, message=message, cause=cause):
                return Error(MaterializeError(kind, message, cause))


# ═══════════════════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════════════════


async def materialize(spec: MaterializeSpec) -> Result[Materialized, MaterializeError]:
    """
    Turn a paid pending order into its production order.

    Safe to call any number of times, concurrently, from any trigger:
    at most one call creates the order, the rest return it or a retryable error.
    The confirmation email goes out after the order is stored; its failure
    is logged and changes nothing.
    """
    node = await G.run(FinalResultNode).inject(spec)
    result = node.to_result()

    match result:
        case Ok(Materialized(order=order, created=True)):
            logger.info(f"[Order: {order.id}] created from pending {spec.pending_order_id}")
            if spec.notifier is not None:
                await notify_safely(
                    f"Order: {order.id}",
                    spec.notifier.order_confirmation(order, order.customer.email),
                )
        case Ok(Materialized(order=order)):
            logger.info(f"[Order: {order.id}] already materialized for {spec.payment_reference}")
        case Error(err) if err.retryable:
            logger.info(f"[Pending: {spec.pending_order_id}] {err.message}")
        case Error(err):
            logger.error(f"[Pending: {spec.pending_order_id}] {err.kind.name}: {err.message}")

    return result


__all__ = (
    "MaterializeSpec",
    "SpecNode",
    "LookupNode",
    "ExistingOrderNode",
    "LookupFailedNode",
    "NoOrderNode",
    "ClaimNode",
    "ClaimedNode",
    "RejectedClaimNode",
    "ClaimFailedNode",
    "LostRaceNode",
    "OutcomeOk",
    "OutcomeError",
    "Outcome",
    "MaterializeOutcome",
    "FinalResultNode",
    "materialize",
)
