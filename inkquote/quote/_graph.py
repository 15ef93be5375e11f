"""
Quote graph — pricing as nodnod nodes.

Architecture:
    QuoteSpec (injected)
         │
         ▼
    SpecNode
         │
         ▼
    CheckedNode (pure input checks, no lookups)
         │
         ├──────────────────────┐
         ▼                      ▼
    AcceptedNode            RejectedNode ─────────────┐
         │                                            │
         ▼                                            │
    GarmentsNode (fetch)                              │
         │                                            │
         ├──────────────────────┐                     │
         ▼                      ▼                     │
    KnownGarmentsNode       UnknownGarmentNode ───────┤
         │                                            │
         ├── GarmentCostNode ─┐  (run concurrently)   │
         └── PrintCostNode ───┤                       │
                              ▼                       │
                         TotalsNode ──────── QuoteOutcomeNode (@polymorphic)
                                                      │
                                                      ▼
                                               FinalQuoteNode

Note: no 'from __future__ import annotations' here; nodnod resolves
dependencies from runtime type hints.
"""

from dataclasses import dataclass

from nodnod import NodeError, polymorphic, case

import combinators as C

from inkquote import graph as G
from inkquote._config import Settings
from inkquote._errors import ConfigurationGap, ValidationError
from inkquote._logging import get_logger
from inkquote._types import Result, Ok, Error, LazyCoroResult, Money, ZERO, round2
from inkquote.rates import Garment, RateRepository
from inkquote.quote._pricing import marked_up, split_deposit
from inkquote.quote._types import (
    MIN_COLORS,
    MAX_COLORS,
    GarmentLineCost,
    PrintCost,
    Quote,
    QuoteLine,
    QuoteRequest,
    enabled_locations,
    max_colors,
    total_screens,
)

logger = get_logger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Input — Spec (injected)
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class QuoteSpec:
    """Everything one quote computation needs."""

    request: QuoteRequest
    rates: RateRepository
    settings: Settings


@G.node
class SpecNode:
    def __init__(self, spec: QuoteSpec) -> None:
        self.spec = spec

    @classmethod
    def __compose__(cls, spec: QuoteSpec) -> "SpecNode":
        return cls(spec)


# ═══════════════════════════════════════════════════════════════════════════════
# Validation — before any lookup
# ═══════════════════════════════════════════════════════════════════════════════


def _problems(request: QuoteRequest, settings: Settings) -> list[ValidationError]:
    problems: list[ValidationError] = []

    if not request.lines:
        problems.append(ValidationError("at least one garment is required", "lines"))

    seen: set[str] = set()
    for line in request.lines:
        if line.quantity <= 0:
            problems.append(ValidationError("quantity must be positive", line.garment_id))
        if line.garment_id in seen:
            problems.append(ValidationError("garment listed twice", line.garment_id))
        seen.add(line.garment_id)

    if request.lines and request.total_quantity < settings.min_quantity:
        problems.append(
            ValidationError(
                f"minimum order is {settings.min_quantity} pieces, got {request.total_quantity}",
                "quantity",
            )
        )

    for location, lp in enabled_locations(request.print_config).items():
        if not MIN_COLORS <= lp.num_colors <= MAX_COLORS:
            problems.append(
                ValidationError(
                    f"colors must be between {MIN_COLORS} and {MAX_COLORS}, got {lp.num_colors}",
                    str(location),
                )
            )

    if request.discount_amount < ZERO:
        problems.append(ValidationError("discount cannot be negative", "discount_amount"))

    return problems


@G.node
class CheckedNode:
    def __init__(self, spec: QuoteSpec, problems: list[ValidationError]) -> None:
        self.spec = spec
        self.problems = problems

    @classmethod
    def __compose__(cls, spec_node: SpecNode) -> "CheckedNode":
        spec = spec_node.spec
        return cls(spec, _problems(spec.request, spec.settings))


@G.node
class RejectedNode:
    """Validates: input has at least one problem."""

    def __init__(self, error: ValidationError) -> None:
        self.error = error

    @classmethod
    def __compose__(cls, checked: CheckedNode) -> "RejectedNode":
        if not checked.problems:
            raise NodeError("Input valid")
        return cls(checked.problems[0])


@G.node
class AcceptedNode:
    """Validates: input passed every check."""

    def __init__(self, spec: QuoteSpec) -> None:
        self.spec = spec

    @classmethod
    def __compose__(cls, checked: CheckedNode) -> "AcceptedNode":
        if checked.problems:
            raise NodeError("Input invalid")
        return cls(checked.spec)


# ═══════════════════════════════════════════════════════════════════════════════
# Garments
# ═══════════════════════════════════════════════════════════════════════════════


@G.node
class GarmentsNode:
    """Fetches garment records for every line."""

    def __init__(self, spec: QuoteSpec, garments: dict[str, Garment], missing: tuple[str, ...]) -> None:
        self.spec = spec
        self.garments = garments
        self.missing = missing

    @classmethod
    async def __compose__(cls, accepted: AcceptedNode) -> "GarmentsNode":
        spec = accepted.spec
        found = await spec.rates.garments(spec.request.garment_ids)
        missing = tuple(gid for gid in spec.request.garment_ids if gid not in found)
        return cls(spec, dict(found), missing)


@G.node
class UnknownGarmentNode:
    """Validates: at least one line names a garment that doesn't exist."""

    def __init__(self, garment_id: str) -> None:
        self.garment_id = garment_id

    @classmethod
    def __compose__(cls, fetched: GarmentsNode) -> "UnknownGarmentNode":
        if not fetched.missing:
            raise NodeError("All garments known")
        return cls(fetched.missing[0])


@G.node
class KnownGarmentsNode:
    """Validates: every line's garment exists."""

    def __init__(self, spec: QuoteSpec, garments: dict[str, Garment]) -> None:
        self.spec = spec
        self.garments = garments

    @classmethod
    def __compose__(cls, fetched: GarmentsNode) -> "KnownGarmentsNode":
        if fetched.missing:
            raise NodeError("Unknown garment")
        return cls(fetched.spec, fetched.garments)


# ═══════════════════════════════════════════════════════════════════════════════
# Garment Cost — per line, own quantity
# ═══════════════════════════════════════════════════════════════════════════════


async def _price_line(
    line: QuoteLine,
    garment: Garment,
    rates: RateRepository,
    settings: Settings,
) -> tuple[GarmentLineCost, str | None]:
    try:
        tier = await rates.tier_for(garment.pricing_tier_id, line.quantity)
    except ConfigurationGap as gap:
        logger.warning(f"[Quote] {gap}; pricing {garment.id} with fallback markup")
        per_unit = marked_up(garment.base_cost, settings.fallback_markup_percent)
        cost = GarmentLineCost(garment.id, garment.name, line.quantity, per_unit, per_unit * line.quantity, None)
        return cost, f"garment tier: {gap}"

    per_unit = marked_up(garment.base_cost, tier.garment_markup_percent)
    cost = GarmentLineCost(garment.id, garment.name, line.quantity, per_unit, per_unit * line.quantity, tier.id)
    return cost, None


@G.node
class GarmentCostNode:
    def __init__(self, lines: tuple[GarmentLineCost, ...], gaps: tuple[str, ...]) -> None:
        self.lines = lines
        self.gaps = gaps

    @classmethod
    async def __compose__(cls, known: KnownGarmentsNode) -> "GarmentCostNode":
        spec = known.spec

        def price(line: QuoteLine) -> LazyCoroResult[tuple[GarmentLineCost, str | None], Exception]:
            return C.catching_async(
                lambda: _price_line(line, known.garments[line.garment_id], spec.rates, spec.settings),
                on_error=lambda e: e,
            )

        match await C.traverse_par(spec.request.lines, price)():
            case Ok(priced):
                lines = tuple(cost for cost, _ in priced)
                gaps = tuple(gap for _, gap in priced if gap is not None)
                return cls(lines, gaps)
            case Error(e):
                raise e


# ═══════════════════════════════════════════════════════════════════════════════
# Print Cost — once, on the combined quantity
# ═══════════════════════════════════════════════════════════════════════════════


def _fallback_print(
    colors: int, screens: int, locations: int, quantity: int, settings: Settings
) -> PrintCost:
    per_unit = colors * settings.fallback_rate_per_color * locations
    setup = screens * settings.fallback_setup_fee_per_screen
    return PrintCost(per_unit, setup, per_unit * quantity + setup, screens, locations, colors, None)


@G.node
class PrintCostNode:
    """
    Shared print cost.

    Note: the rate row is chosen at the MAXIMUM color count across enabled
    locations and charged once per location: 2-color front + 1-color back
    prices as two locations at the 2-color rate. Screens still count every color.
    The tier comes from the primary (first) garment's family.
    """

    def __init__(self, cost: PrintCost, gaps: tuple[str, ...]) -> None:
        self.cost = cost
        self.gaps = gaps

    @classmethod
    async def __compose__(cls, known: KnownGarmentsNode) -> "PrintCostNode":
        spec = known.spec
        request = spec.request
        config = request.print_config

        locations = len(enabled_locations(config))
        if locations == 0:
            return cls(PrintCost.none(), ())

        screens = total_screens(config)
        colors = max_colors(config)
        quantity = request.total_quantity
        primary = known.garments[request.primary_garment_id]

        try:
            tier = await spec.rates.tier_for(primary.pricing_tier_id, quantity)
            rate = await spec.rates.print_rate(tier.id, colors)
        except ConfigurationGap as gap:
            logger.warning(f"[Quote] {gap}; pricing print with fallback rates")
            return cls(
                _fallback_print(colors, screens, locations, quantity, spec.settings),
                (f"print rate: {gap}",),
            )

        per_unit = rate.cost_per_shirt * locations
        setup = screens * rate.setup_fee_per_screen
        cost = PrintCost(per_unit, setup, per_unit * quantity + setup, screens, locations, colors, tier.id)
        return cls(cost, ())


# ═══════════════════════════════════════════════════════════════════════════════
# Totals
# ═══════════════════════════════════════════════════════════════════════════════


def _per_unit(amount: Money, quantity: int) -> Money:
    return round2(amount / quantity) if quantity else ZERO


@G.node
class TotalsNode:
    def __init__(self, quote: Quote) -> None:
        self.quote = quote

    @classmethod
    def __compose__(
        cls,
        known: KnownGarmentsNode,
        garment_cost: GarmentCostNode,
        print_cost: PrintCostNode,
    ) -> "TotalsNode":
        spec = known.spec
        request = spec.request
        quantity = request.total_quantity
        printing = print_cost.cost

        garment_total = sum((line.total for line in garment_cost.lines), ZERO)
        subtotal = garment_total + printing.total
        discount = request.discount_amount
        total = max(ZERO, subtotal - discount)
        deposit, balance = split_deposit(total, spec.settings.deposit_percent)

        if len(garment_cost.lines) == 1:
            garment_per_unit = garment_cost.lines[0].cost_per_shirt
        else:
            garment_per_unit = _per_unit(garment_total, quantity)

        return cls(
            Quote(
                total_quantity=quantity,
                garment_cost_total=garment_total,
                garment_cost_per_unit=garment_per_unit,
                print_cost_total=printing.total,
                print_cost_per_unit=printing.per_unit,
                setup_fees=printing.setup_fees,
                total_screens=printing.total_screens,
                active_locations=printing.active_locations,
                subtotal=subtotal,
                discount=min(discount, subtotal),
                total=total,
                deposit_amount=deposit,
                balance_due=balance,
                per_unit_price=_per_unit(total, quantity),
                garment_breakdown=garment_cost.lines,
                gaps=garment_cost.gaps + print_cost.gaps,
            )
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Outcome
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class OutcomeQuoted:
    quote: Quote


@dataclass(frozen=True)
class OutcomeRejected:
    error: ValidationError


type Outcome = OutcomeQuoted | OutcomeRejected


@polymorphic[Outcome]
class QuoteOutcomeNode:
    """Routes to whichever branch validated."""

    @case
    def rejected(cls, node: RejectedNode) -> Outcome:
        return OutcomeRejected(node.error)

    @case
    def unknown_garment(cls, node: UnknownGarmentNode) -> Outcome:
        return OutcomeRejected(ValidationError("unknown garment", node.garment_id))

    @case
    def quoted(cls, totals: TotalsNode) -> Outcome:
        return OutcomeQuoted(totals.quote)


@G.node
class FinalQuoteNode:
    """Converts Outcome to typed Result."""

    def __init__(self, outcome: Outcome) -> None:
        self.outcome = outcome

    @classmethod
    def __compose__(cls, outcome: QuoteOutcomeNode) -> "FinalQuoteNode":
        return cls(outcome.value)

    def to_result(self) -> Result[Quote, ValidationError]:
        match self.outcome:
            case OutcomeQuoted(quote=quote):
                return Ok(quote)
            case OutcomeRejected(error=error):
                return Error(error)


# ═══════════════════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════════════════


async def calculate_quote(
    request: QuoteRequest,
    rates: RateRepository,
    settings: Settings | None = None,
) -> Result[Quote, ValidationError]:
    """
    Price a request.

    Read-only and stateless: safe to call concurrently and to retry.
    Missing tier or print-rate rows never fail the call; the quote comes
    back with degraded=True instead.
    """
    spec = QuoteSpec(request, rates, settings if settings is not None else Settings())
    node = await G.run(FinalQuoteNode).inject(spec)
    return node.to_result()


__all__ = (
    "QuoteSpec",
    "SpecNode",
    "CheckedNode",
    "RejectedNode",
    "AcceptedNode",
    "GarmentsNode",
    "UnknownGarmentNode",
    "KnownGarmentsNode",
    "GarmentCostNode",
    "PrintCostNode",
    "TotalsNode",
    "OutcomeQuoted",
    "OutcomeRejected",
    "Outcome",
    "QuoteOutcomeNode",
    "FinalQuoteNode",
    "calculate_quote",
)
