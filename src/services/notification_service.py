# src/services/notification_service.py

"""Writing notifications and marking them read."""

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

from src.models.notification import Notification
from src.models.timestamps import StoreTimestamp
from src.storage.document_store import DocumentStore

logger = logging.getLogger("gearzone.notifications")

# status -> (type, title, message template)
_ORDER_STATUS_MESSAGES: dict[str, tuple[str, str, str]] = {
    "cancelled": (
        "order_cancelled",
        "Order Cancelled",
        "Your order #{number} has been cancelled.",
    ),
    "confirmed": (
        "order_confirmed",
        "Order Confirmed",
        "Your order #{number} has been confirmed and is being processed.",
    ),
    "processing": (
        "order_processing",
        "Order Processing",
        "Your order #{number} is now being processed.",
    ),
    "shipped": (
        "order_shipped",
        "Order Shipped!",
        "Great news! Your order #{number} has been shipped.",
    ),
    "delivered": (
        "order_delivered",
        "Order Delivered!",
        "Your order #{number} has been delivered. "
        "Thank you for shopping with us!",
    ),
}


def order_status_message(
    order_number: str, status: str,
) -> tuple[str, str, str]:
    """Return ``(type, title, message)`` for an order status change."""
    template = _ORDER_STATUS_MESSAGES.get(status)
    if template is None:
        return (
            "order_update",
            "Order Updated",
            f"Your order #{order_number} status has been updated "
            f"to {status}.",
        )
    kind, title, message = template
    return kind, title, message.format(number=order_number)


async def create_notification(
    store: DocumentStore,
    user_id: str,
    kind: str,
    title: str,
    message: str,
    order_id: str | None = None,
) -> str:
    """Write an unread notification and return its id."""
    doc_id = await store.add(
        "notifications",
        {
            "userId": user_id,
            "type": kind,
            "title": title,
            "message": message,
            "orderId": order_id,
            "read": False,
            "createdAt": StoreTimestamp.now(),
        },
    )
    logger.info(
        "Created %s notification %s for user %s", kind, doc_id, user_id
    )
    return doc_id


async def notify_order_status_update(
    store: DocumentStore, order: dict[str, Any], new_status: str,
) -> str:
    """Notify an order's owner that its status changed."""
    kind, title, message = order_status_message(
        str(order.get("orderNumber", "")), new_status
    )
    return await create_notification(
        store,
        order["userId"],
        kind,
        title,
        message,
        order_id=order.get("id"),
    )


async def mark_as_read(store: DocumentStore, notification_id: str) -> None:
    await store.update("notifications", notification_id, {"read": True})
    logger.debug("Marked notification %s as read", notification_id)


async def mark_all_as_read(
    store: DocumentStore, notifications: Iterable[Notification],
) -> int:
    """Mark every unread notification in *notifications* as read.

    Updates run concurrently; the first failure cancels the rest and
    surfaces as an ``ExceptionGroup``.
    Returns the number of notifications updated.
    """
    unread = [n for n in notifications if not n.read]
    if not unread:
        return 0
    async with asyncio.TaskGroup() as tg:
        for notification in unread:
            tg.create_task(mark_as_read(store, notification.id))
    logger.info("Marked %d notifications as read", len(unread))
    return len(unread)
