"""Store event publishing to Google Cloud Pub/Sub.

Responsibilities:
- Format StoreEvent messages from notifications
- Publish to the configured Pub/Sub topic
- Manage Pub/Sub client lifecycle
"""

import re
from threading import RLock
from typing import Optional

from google.cloud import pubsub_v1

from credit_store.logging_config import get_logger
from credit_store.models.catalog import EventsConfig
from credit_store.models.notification import Notification, StoreEvent

logger = get_logger(__name__)

_NON_WORD = re.compile(r"[^a-z0-9]+")


def event_type_for(title: str) -> str:
    """Convert a notification title to a snake_case event type.

    "Credits Added" -> "credits_added"
    """
    return _NON_WORD.sub("_", title.lower()).strip("_")


class EventDispatcher:
    """Publishes store events to a Google Cloud Pub/Sub topic.

    Disabled dispatchers accept every call and publish nothing.
    """

    def __init__(self, settings: EventsConfig):
        """Initialize event dispatcher.

        Args:
            settings: Events section of store.yaml
        """
        self._lock = RLock()
        self._settings = settings
        self._publisher: Optional[pubsub_v1.PublisherClient] = None
        self._topic_path: Optional[str] = None
        self._enabled = settings.enabled

        self._initialize()

    def _initialize(self) -> None:
        """Init pub/sub publisher from settings"""
        if not self._enabled:
            logger.info("event_dispatcher_disabled", message="Store events are disabled in config")
            return

        try:
            self._publisher = pubsub_v1.PublisherClient()
            self._topic_path = self._publisher.topic_path(
                self._settings.project_id, self._settings.topic
            )
            self._ensure_topic_exists()

            logger.info(
                "event_dispatcher_initialized",
                project_id=self._settings.project_id,
                topic=self._settings.topic,
                topic_path=self._topic_path,
            )

        except Exception as e:
            logger.error(
                "event_dispatcher_init_failed",
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            # Disable dispatcher if initialization fails
            self._enabled = False

    def _ensure_topic_exists(self) -> None:
        """Ensure the Pub/Sub topic exists, create it if it doesn't."""
        if not self._publisher:
            return

        try:
            self._publisher.get_topic(request={"topic": self._topic_path})
            logger.info("pubsub_topic_exists", topic_path=self._topic_path)
        except Exception:
            try:
                topic = self._publisher.create_topic(request={"name": self._topic_path})
                logger.info("pubsub_topic_created", topic_path=topic.name)
            except Exception as e:
                logger.error(
                    "pubsub_topic_create_failed",
                    topic_path=self._topic_path,
                    error=str(e),
                    error_type=type(e).__name__,
                    exc_info=True,
                )
                raise

    def is_enabled(self) -> bool:
        """Check if event dispatcher is enabled.

        Returns:
            True if events are enabled and client is initialized
        """
        return self._enabled and self._publisher is not None

    def publish_store_event(self, notification: Notification) -> bool:
        """Publish the store event for a notification.

        Args:
            notification: Notification just added to the inbox

        Returns:
            True if published successfully, False otherwise
        """
        if not self.is_enabled():
            logger.debug("event_dispatcher_disabled", message="Skipping event publication")
            return False

        event = StoreEvent(
            event_type=event_type_for(notification.title),
            recipient=notification.recipient,
            kind=notification.kind,
            title=notification.title,
            message=notification.message,
            event_time_millis=notification.created_at_millis,
            related_purchase_id=notification.related_purchase_id,
        )

        with self._lock:
            try:
                self._publish_event(event)
                logger.info(
                    "store_event_published",
                    event_type=event.event_type,
                    recipient=event.recipient,
                )
                return True

            except Exception as e:
                logger.error(
                    "store_event_publish_failed",
                    event_type=event.event_type,
                    recipient=event.recipient,
                    error=str(e),
                    error_type=type(e).__name__,
                    exc_info=True,
                )
                return False

    def _publish_event(self, event: StoreEvent) -> None:
        """Publish a store event to Pub/Sub.

        Raises:
            GoogleAPIError: If publication fails after retries
        """
        if not self._publisher or not self._topic_path:
            raise RuntimeError("Publisher is not initialized")

        message_data = event.model_dump_json().encode("utf-8")

        # Attributes for subscription filtering
        future = self._publisher.publish(
            self._topic_path,
            message_data,
            event_type=event.event_type,
            recipient=event.recipient,
        )

        message_id = future.result(timeout=5.0)
        logger.debug("pubsub_message_published", message_id=message_id)

    def shutdown(self) -> None:
        """Shutdown the event dispatcher and close connections."""
        with self._lock:
            if self._publisher:
                logger.info("event_dispatcher_shutting_down")
                self._publisher = None
                self._topic_path = None
                logger.info("event_dispatcher_shutdown_complete")
