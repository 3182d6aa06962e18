"""Notification store - in-app inbox per recipient."""

import threading
from typing import Dict, List

from credit_store.models.notification import Notification


class NotificationStore:
    """In-memory notification inbox.

    Recipients are user IDs or ADMIN_RECIPIENT. Newest notifications are
    returned first.
    """

    def __init__(self):
        self._notifications: Dict[str, Notification] = {}
        self._lock = threading.RLock()

    def add(self, notification: Notification) -> None:
        """Add a notification.

        Raises:
            ValueError: If the notification ID already exists
        """
        with self._lock:
            if notification.id in self._notifications:
                raise ValueError(f"Notification '{notification.id}' already exists")
            self._notifications[notification.id] = notification.model_copy()

    def get_for(self, recipient: str) -> List[Notification]:
        """Get a recipient's notifications, newest first."""
        with self._lock:
            items = [
                n.model_copy()
                for n in self._notifications.values()
                if n.recipient == recipient
            ]
        items.reverse()
        items.sort(key=lambda n: n.created_at_millis, reverse=True)
        return items

    def unread_count(self, recipient: str) -> int:
        with self._lock:
            return sum(
                1
                for n in self._notifications.values()
                if n.recipient == recipient and not n.read
            )

    def mark_as_read(self, notification_id: str, recipient: str) -> bool:
        """Mark one notification as read.

        Returns:
            True if the recipient owns the notification, False otherwise
        """
        with self._lock:
            notification = self._notifications.get(notification_id)
            if notification is None or notification.recipient != recipient:
                return False
            notification.read = True
            return True

    def mark_all_as_read(self, recipient: str) -> int:
        """Mark every notification of a recipient as read.

        Returns:
            Number of notifications that changed
        """
        with self._lock:
            changed = 0
            for notification in self._notifications.values():
                if notification.recipient == recipient and not notification.read:
                    notification.read = True
                    changed += 1
            return changed

    def remove_for_purchase(self, recipient: str, purchase_id: str) -> int:
        """Drop a recipient's notifications about a resolved purchase.

        Returns:
            Number of notifications removed
        """
        with self._lock:
            doomed = [
                n.id
                for n in self._notifications.values()
                if n.recipient == recipient and n.related_purchase_id == purchase_id
            ]
            for notification_id in doomed:
                del self._notifications[notification_id]
            return len(doomed)

    def count(self) -> int:
        with self._lock:
            return len(self._notifications)

    def clear(self) -> None:
        with self._lock:
            self._notifications.clear()

    def __len__(self) -> int:
        return self.count()

    def __repr__(self) -> str:
        return f"NotificationStore(notifications={self.count()})"
