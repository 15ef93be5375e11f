"""
Retry around the lost-race outcome.
"""

from __future__ import annotations

import combinators as C
from kungfu import LazyCoroResult

from inkquote.materialize._graph import MaterializeSpec, materialize
from inkquote.materialize._types import Materialized, MaterializeError


def materialize_lazy(spec: MaterializeSpec) -> LazyCoroResult[Materialized, MaterializeError]:
    return LazyCoroResult(lambda: materialize(spec))


def materialize_with_retry(
    spec: MaterializeSpec,
    *,
    attempts: int = 3,
    initial_delay: float = 0.1,
) -> LazyCoroResult[Materialized, MaterializeError]:
    """
    materialize() with exponential backoff on RETRYABLE_NOT_FOUND only.

    Store errors and invalid pending orders come back on the first attempt.

    Example:
        match await materialize_with_retry(spec):
            case Ok(m): ...
            case Error(err) if err.retryable: ...  # still processing, tell the client to wait
    """
    return C.retry(
        materialize_lazy(spec),
        policy=C.RetryPolicy.exponential(
            times=attempts,
            initial=initial_delay,
            retry_on=lambda err: err.retryable,
        ),
    )


__all__ = ("materialize_lazy", "materialize_with_retry")
