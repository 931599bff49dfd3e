# src/models/notification.py

"""Notification records and the watcher's subscription state."""

from dataclasses import dataclass
from typing import Any

IDLE = "idle"
SUBSCRIBED = "subscribed"


@dataclass(frozen=True)
class Notification:
    """A single user notification as stored in ``notifications``."""

    id: str
    user_id: str
    type: str
    title: str
    message: str
    read: bool = False
    order_id: str | None = None
    created_at: Any = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Notification":
        return cls(
            id=str(record["id"]),
            user_id=str(record["userId"]),
            type=str(record.get("type", "")),
            title=str(record.get("title", "")),
            message=str(record.get("message", "")),
            read=bool(record.get("read", False)),
            order_id=record.get("orderId"),
            created_at=record.get("createdAt"),
        )


@dataclass
class NotificationSubscriptionState:
    """Mutable state owned by the notification watcher."""

    identity: str | None = None
    unread_count: int = 0
    subscription: Any = None
    phase: str = IDLE
