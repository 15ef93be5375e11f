"""
Materialize — idempotent pending → production order hand-off.

    from inkquote import materialize as M

    spec = M.MaterializeSpec(
        pending_order_id="pend_1",
        payment_reference="pi_123",
        store=store,
        rates=rates,
    )

    # Payment callback and confirmation poll can both do this, any number of times
    match await M.materialize_with_retry(spec):
        case Ok(M.Materialized(order, created)):
            ...
        case Error(err) if err.retryable:
            ...  # "still processing"
        case Error(err):
            ...
"""

from inkquote.materialize._types import (
    Materialized,
    MaterializeErrorKind,
    MaterializeError,
)
from inkquote.materialize._graph import MaterializeSpec, materialize
from inkquote.materialize._retry import materialize_lazy, materialize_with_retry

__all__ = (
    "Materialized",
    "MaterializeErrorKind",
    "MaterializeError",
    "MaterializeSpec",
    "materialize",
    "materialize_lazy",
    "materialize_with_retry",
)
