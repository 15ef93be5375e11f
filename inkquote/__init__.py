"""
inkquote — pricing and order engine for a custom screen-printing shop.

    from inkquote import quote as Q          # Quotes
    from inkquote import aggregate as A      # Selection aggregation
    from inkquote import materialize as M    # Pending → production order
    from inkquote import campaigns as CP     # Group-order settlement
    from inkquote import db                  # SQLAlchemy stores
"""

from inkquote import graph
from inkquote import rates
from inkquote import quote
from inkquote import aggregate
from inkquote import orders
from inkquote import materialize
from inkquote import campaigns
from inkquote._config import Settings
from inkquote._errors import (
    InkquoteError,
    ValidationError,
    ConfigurationGap,
    TierNotFoundError,
    PrintRateNotFoundError,
    StoreError,
)
from inkquote._logging import setup_logging, get_logger
from inkquote._types import Money, money, round2

__version__ = "0.1.0"

__all__ = (
    "graph",
    "rates",
    "quote",
    "aggregate",
    "orders",
    "materialize",
    "campaigns",
    "Settings",
    "InkquoteError",
    "ValidationError",
    "ConfigurationGap",
    "TierNotFoundError",
    "PrintRateNotFoundError",
    "StoreError",
    "setup_logging",
    "get_logger",
    "Money",
    "money",
    "round2",
)
