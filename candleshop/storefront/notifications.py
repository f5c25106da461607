# candleshop/storefront/notifications.py
import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Set

from candleshop.storefront.api import parse_timestamp
from candleshop.storefront.errors import StorefrontError

logger = logging.getLogger(__name__)

TOAST_LIMIT = 5


@dataclass
class Toast:
    id: int
    title: str
    message: str = ""
    # "default" or "destructive"
    variant: str = "default"


class Toaster:
    """Holds the toast messages currently shown to the user, newest first."""

    def __init__(self, limit: int = TOAST_LIMIT):
        self.limit = limit
        self.toasts: List[Toast] = []
        self._ids = itertools.count(1)

    def show(self, title: str, message: str = "", variant: str = "default") -> Toast:
        toast = Toast(id=next(self._ids), title=title, message=message, variant=variant)
        self.toasts.insert(0, toast)
        del self.toasts[self.limit:]
        return toast

    def success(self, title: str, message: str = "") -> Toast:
        return self.show(title, message)

    def error(self, error: StorefrontError) -> Toast:
        logger.info("%s: %s", error.title, error.message)
        return self.show(error.title, error.message, variant="destructive")

    def dismiss(self, toast_id: int):
        self.toasts = [t for t in self.toasts if t.id != toast_id]

    def clear(self):
        self.toasts = []


@dataclass
class AdminNotification:
    order_id: int
    message: str
    created_at: Optional[datetime] = None
    read: bool = False
    type: str = "order"


@dataclass
class AdminNotifications:
    """New-order notifications for the admin header.

    Built from the list of pending orders. Each order produces at most one
    notification, whether it shows up in one poll or in many, and a cleared
    notification does not come back.
    """

    items: Dict[int, AdminNotification] = field(default_factory=dict)
    dismissed: Set[int] = field(default_factory=set)

    def merge(self, orders: List[Dict]) -> List[AdminNotification]:
        """Adds notifications for orders not seen before and returns the new ones."""
        added = []
        for order in orders:
            order_id = order["id"]
            if order_id in self.items or order_id in self.dismissed:
                continue
            created_at = parse_timestamp(order.get("created_at"))
            note = AdminNotification(
                order_id=order_id,
                message=f"New order #{order_id} for {order.get('total')}",
                created_at=created_at,
            )
            self.items[order_id] = note
            added.append(note)
        return added

    async def poll(self, api) -> List[AdminNotification]:
        orders = await api.list_orders(status="pending")
        return self.merge(orders)

    @property
    def notifications(self) -> List[AdminNotification]:
        return sorted(self.items.values(), key=lambda n: n.order_id, reverse=True)

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.items.values() if not n.read)

    def mark_read(self, order_id: int):
        if order_id in self.items:
            self.items[order_id].read = True

    def mark_all_read(self):
        for note in self.items.values():
            note.read = True

    def clear(self):
        self.dismissed.update(self.items)
        self.items.clear()
