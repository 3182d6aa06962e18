"""Notification fan-out to the inbox, Pub/Sub and the phone relay.

The notifier is fire-and-forget: every channel failure is logged and
swallowed so a committed ledger change is never reported as failed.
"""

from typing import List, Optional

from credit_store.logging_config import get_logger
from credit_store.models.notification import ADMIN_RECIPIENT, Notification, NotificationKind
from credit_store.repositories.notification_store import NotificationStore
from credit_store.repositories.profile_store import ProfileStore
from credit_store.services.event_dispatcher import EventDispatcher
from credit_store.services.message_relay import MessageRelay
from credit_store.services.time_controller import TimeController
from credit_store.utils import id_generator
from credit_store.utils.id_generator import generate_record_id

logger = get_logger(__name__)


class Notifier:
    """Delivers notifications to users and admins.

    Args:
        inbox: in-app notification store
        profiles: profile store, used to find phone numbers
        clock: store clock
        dispatcher: optional Pub/Sub event dispatcher
        relay: optional phone message relay
        id_prefix: prefix for notification IDs
    """

    def __init__(
            self,
            inbox: NotificationStore,
            profiles: ProfileStore,
            clock: TimeController,
            dispatcher: Optional[EventDispatcher] = None,
            relay: Optional[MessageRelay] = None,
            id_prefix: Optional[str] = None,
    ):
        self._inbox = inbox
        self._profiles = profiles
        self._clock = clock
        self._dispatcher = dispatcher
        self._relay = relay
        self._id_prefix = id_prefix

    def notify(
            self,
            recipient: str,
            title: str,
            message: str,
            kind: NotificationKind,
            action_required: bool = False,
            related_purchase_id: Optional[str] = None,
    ) -> Optional[Notification]:
        """Deliver a notification on every channel. Never raises.

        Returns:
            The stored Notification, or None if the inbox write failed
        """
        notification = None
        try:
            notification = Notification(
                id=generate_record_id(id_generator.NOTIFICATION, self._id_prefix),
                recipient=recipient,
                title=title,
                message=message,
                kind=kind,
                created_at_millis=self._clock.get_current_time_millis(),
                action_required=action_required,
                related_purchase_id=related_purchase_id,
            )
            self._inbox.add(notification)
            logger.info(
                "notification_created",
                notification_id=notification.id,
                recipient=recipient,
                title=title,
            )
        except Exception as e:
            logger.error(
                "notification_create_failed",
                recipient=recipient,
                title=title,
                error=str(e),
                exc_info=True,
            )
            return None

        self._publish(notification)
        if recipient != ADMIN_RECIPIENT:
            self._relay_to_phone(recipient, f"{title}: {message}")
        return notification

    def _publish(self, notification: Notification) -> None:
        if self._dispatcher is None:
            return
        try:
            self._dispatcher.publish_store_event(notification)
        except Exception as e:
            # Log error but don't fail the operation
            logger.error(
                "event_publish_failed",
                notification_id=notification.id,
                error=str(e),
                exc_info=True,
            )

    def _relay_to_phone(self, user_id: str, text: str) -> None:
        if self._relay is None or not self._relay.is_enabled():
            return
        try:
            profile = self._profiles.find_by_id(user_id)
            if profile is None or not profile.phone_number:
                return
            self._relay.send_async(profile.phone_number, text)
        except Exception as e:
            logger.error(
                "message_relay_schedule_failed",
                user_id=user_id,
                error=str(e),
                exc_info=True,
            )

    def clear_for_purchase(self, purchase_id: str) -> None:
        """Remove admin inbox entries about a resolved purchase. Never raises."""
        try:
            removed = self._inbox.remove_for_purchase(ADMIN_RECIPIENT, purchase_id)
            if removed:
                logger.debug("admin_notifications_cleared", purchase_id=purchase_id, count=removed)
        except Exception as e:
            logger.error(
                "admin_notifications_clear_failed",
                purchase_id=purchase_id,
                error=str(e),
                exc_info=True,
            )

    # Inbox

    def list_for(self, recipient: str) -> List[Notification]:
        return self._inbox.get_for(recipient)

    def unread_count(self, recipient: str) -> int:
        return self._inbox.unread_count(recipient)

    def mark_as_read(self, notification_id: str, recipient: str) -> bool:
        return self._inbox.mark_as_read(notification_id, recipient)

    def mark_all_as_read(self, recipient: str) -> int:
        return self._inbox.mark_all_as_read(recipient)
