"""
JSON payloads for stored aggregates.

pydantic TypeAdapters over the domain dataclasses; the domain types stay
plain dataclasses and know nothing about storage.
"""

from __future__ import annotations

from datetime import datetime, UTC

from pydantic import TypeAdapter

from inkquote.campaigns import Campaign, CampaignOrder
from inkquote.orders import PendingOrder, ProductionOrder

pending_codec: TypeAdapter[PendingOrder] = TypeAdapter(PendingOrder)
order_codec: TypeAdapter[ProductionOrder] = TypeAdapter(ProductionOrder)
campaign_codec: TypeAdapter[Campaign] = TypeAdapter(Campaign)
campaign_order_codec: TypeAdapter[CampaignOrder] = TypeAdapter(CampaignOrder)


def dump[T](codec: TypeAdapter[T], value: T) -> str:
    return codec.dump_json(value).decode()


def load[T](codec: TypeAdapter[T], payload: str) -> T:
    return codec.validate_json(payload)


def naive_utc(moment: datetime) -> datetime:
    """
    UTC wall time without tzinfo, for DateTime columns.

    Note: SQLite drops offsets; every stored timestamp is UTC.
    """
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(UTC).replace(tzinfo=None)


__all__ = (
    "pending_codec",
    "order_codec",
    "campaign_codec",
    "campaign_order_codec",
    "dump",
    "load",
    "naive_utc",
)
