"""
Graph runner — sugar over nodnod.

Auto-discovers nodes from the target, injects values by runtime type.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, cast
from collections.abc import Callable, Coroutine

from nodnod import Scope, Value, EventLoopAgent, Node


@dataclass(frozen=True, slots=True)
class Run[T]:
    """
    Awaitable runner for one target node.

    Example:
        node = await run(FinalQuoteNode).inject(spec)
        node = await run(FinalQuoteNode).given(spec, clock)
    """

    _target: type[T]
    _injections: tuple[tuple[type[Any], Any], ...] = ()

    def inject(self, value: object) -> Run[T]:
        """Inject a value under its runtime type."""
        return Run(self._target, (*self._injections, (type(value), value)))

    def inject_as[V](self, typ: type[V], value: V) -> Run[T]:
        """Inject under an explicit type (protocol-typed collaborators)."""
        return Run(self._target, (*self._injections, (typ, value)))

    def given(self, *values: object) -> Run[T]:
        run_ = self
        for value in values:
            run_ = run_.inject(value)
        return run_

    def __await__(self) -> Any:
        return self._execute().__await__()

    async def _execute(self) -> T:
        agent = EventLoopAgent.build({cast(type[Node[Any, Any]], self._target)})

        scope = Scope(detail="inkquote")
        async with scope:
            for typ, value in self._injections:
                scope.push(Value(typ, value))

            run_method = cast(
                Callable[[Scope, dict[type[Any], Scope]], Coroutine[Any, Any, None]],
                getattr(agent, "run"),
            )
            await run_method(scope, {})

            found = scope.get(self._target)
            if found is None:
                raise LookupError(f"{self._target.__name__} did not compose")
            return cast(T, found.value)


def run[T](target: type[T]) -> Run[T]:
    """Run a node with auto-discovery."""
    return Run(target)


__all__ = ("Run", "run")
