"""
SQLAlchemy (async) implementations of the rate, order and campaign stores.

    from inkquote import db

    session_factory, engine = await db.create_database("sqlite+aiosqlite:///shop.db")

    rates = db.SQLAlchemyRates(session_factory)
    orders = db.SQLAlchemyOrderStore(session_factory)
    campaigns = db.SQLAlchemyCampaignStore(session_factory)

Note: the memory stores in inkquote.orders and inkquote.campaigns implement
the same protocols for tests.
"""

from inkquote.db._tables import (
    Base,
    TierTable,
    PrintRateTable,
    GarmentTable,
    PendingOrderTable,
    ProductionOrderTable,
    CampaignTable,
    CampaignOrderTable,
    create_database,
)
from inkquote.db._rates import SQLAlchemyRates, load_rates
from inkquote.db._orders import SQLAlchemyOrderStore
from inkquote.db._campaigns import SQLAlchemyCampaignStore

__all__ = (
    "Base",
    "TierTable",
    "PrintRateTable",
    "GarmentTable",
    "PendingOrderTable",
    "ProductionOrderTable",
    "CampaignTable",
    "CampaignOrderTable",
    "create_database",
    "SQLAlchemyRates",
    "load_rates",
    "SQLAlchemyOrderStore",
    "SQLAlchemyCampaignStore",
)
