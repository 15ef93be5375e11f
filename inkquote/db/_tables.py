"""
Database layer — SQLAlchemy tables.

Note: aggregates (pending orders, production orders, campaigns) are stored
as a JSON payload next to the columns the stores query or constrain on.
The columns are authoritative where both exist.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, Numeric, String, Text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# ═══════════════════════════════════════════════════════════════════════════════
# Base
# ═══════════════════════════════════════════════════════════════════════════════


class Base(DeclarativeBase):
    pass


MONEY = Numeric(12, 4, asdecimal=True)


# ═══════════════════════════════════════════════════════════════════════════════
# Reference Data — read by the rate repository
# ═══════════════════════════════════════════════════════════════════════════════


class TierTable(Base):
    __tablename__ = "quantity_tiers"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    family_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    min_qty: Mapped[int] = mapped_column(Integer, nullable=False)
    max_qty: Mapped[int | None] = mapped_column(Integer, nullable=True)
    garment_markup_percent: Mapped[Decimal] = mapped_column(MONEY, nullable=False)


class PrintRateTable(Base):
    __tablename__ = "print_rates"

    tier_id: Mapped[str] = mapped_column(String(50), primary_key=True)
    num_colors: Mapped[int] = mapped_column(Integer, primary_key=True)
    cost_per_shirt: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    setup_fee_per_screen: Mapped[Decimal] = mapped_column(MONEY, nullable=False)


class GarmentTable(Base):
    __tablename__ = "garments"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    base_cost: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    pricing_tier_id: Mapped[str] = mapped_column(String(50), nullable=False)
    available_colors: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    color_images: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


class PendingOrderTable(Base):
    """
    Checkout awaiting payment.

    Note: the row is deleted in the same transaction that inserts its
    production order; its absence is the consumed marker.
    """

    __tablename__ = "pending_orders"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)


class ProductionOrderTable(Base):
    """
    Durable orders.

    Note: each unique column is a second line of defense against a
    duplicate order for the same payment, pending order or campaign.
    """

    __tablename__ = "production_orders"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    payment_reference: Mapped[str | None] = mapped_column(String(100), nullable=True, unique=True)
    pending_order_id: Mapped[str | None] = mapped_column(String(50), nullable=True, unique=True)
    campaign_id: Mapped[str | None] = mapped_column(String(50), nullable=True, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    payload: Mapped[str] = mapped_column(Text, nullable=False)


# ═══════════════════════════════════════════════════════════════════════════════
# Campaigns
# ═══════════════════════════════════════════════════════════════════════════════


class CampaignTable(Base):
    __tablename__ = "campaigns"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    final_order_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)


class CampaignOrderTable(Base):
    __tablename__ = "campaign_orders"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    campaign_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    amount_paid: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    payload: Mapped[str] = mapped_column(Text, nullable=False)


# ═══════════════════════════════════════════════════════════════════════════════
# Database Setup
# ═══════════════════════════════════════════════════════════════════════════════


async def create_database(
    url: str = "sqlite+aiosqlite:///:memory:",
) -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    """
    Create tables and return (session_factory, engine).

    Note: an in-memory SQLite database lives on one shared connection and
    dies with the engine. Fine for tests; serve from a file or a server
    database, where each session gets its own connection and transaction.
    """
    engine = create_async_engine(url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    return async_sessionmaker(engine, expire_on_commit=False), engine


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
)
