"""
Graph — the engine's computations as nodnod node graphs.

    from inkquote import graph as G

    @G.node
    class GarmentsNode:
        @classmethod
        async def __compose__(cls, spec: SpecNode) -> "GarmentsNode":
            return cls(await spec.rates.garments(spec.garment_ids))

    node = await G.run(FinalQuoteNode).inject(spec)

Note: graph modules must not use 'from __future__ import annotations';
nodnod reads the type hints at runtime to resolve dependencies.
"""

from nodnod import scalar_node as node

from inkquote.graph._run import Run, run

__all__ = ("node", "Run", "run")
