"""
Notification collaborator — email after an order exists.

Delivery is someone else's job; the engine only calls the protocol and
makes sure a failure never reaches the caller.
"""

from __future__ import annotations

from collections.abc import Awaitable
from typing import Protocol

from inkquote._logging import get_logger
from inkquote.orders import ProductionOrder

logger = get_logger(__name__)


class Notifier(Protocol):
    async def order_confirmation(self, order: ProductionOrder, recipient: str) -> None:
        """Confirmation with the final breakdown, to the shopper or organizer."""
        ...

    async def admin_new_order(self, order: ProductionOrder) -> None:
        ...


class LoggingNotifier:
    """Notifier that only writes log lines. Default when no mailer is wired."""

    async def order_confirmation(self, order: ProductionOrder, recipient: str) -> None:
        logger.info(f"[Order: {order.id}] confirmation to {recipient}, total ${order.total_cost}")

    async def admin_new_order(self, order: ProductionOrder) -> None:
        logger.info(f"[Order: {order.id}] new order notice, {order.total_quantity} pieces")


async def notify_safely(subject: str, call: Awaitable[None]) -> bool:
    """
    Await a notification, logging instead of raising.

    Returns False when it failed.
    """
    try:
        await call
    except Exception:
        logger.exception(f"[{subject}] notification failed")
        return False
    return True


__all__ = ("Notifier", "LoggingNotifier", "notify_safely")
