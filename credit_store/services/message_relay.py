"""Phone message relay - sends store notifications to users' phones.

Messages are posted to an HTTP relay on a background worker pool, with
exponential backoff on transient failures. Delivery is best effort: a
failed message is logged and never affects the ledger.
"""

import os
import random
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

import requests

from credit_store.logging_config import get_logger
from credit_store.models.catalog import MessageRelayConfig

logger = get_logger(__name__)

# Retry configuration
BASE_DELAY = 1.0  # Base delay in seconds
MAX_JITTER = 0.2  # ±20% jitter
RETRY_STATUS_CODES = {429, 500, 502, 503, 504}  # HTTP codes that trigger retry


class MessageRelayError(Exception):
    """Raised when a message cannot be delivered to the relay."""

    pass


def _calculate_delay(attempt: int, base_delay: float = BASE_DELAY, max_jitter: float = MAX_JITTER) -> float:
    """Calculate exponential backoff delay with jitter."""
    exponential_delay = base_delay * (2 ** attempt)
    jitter = random.uniform(-max_jitter, max_jitter) * exponential_delay
    return max(0, exponential_delay + jitter)


class MessageRelay:
    """Client for the phone message relay.

    Args:
        settings: message_relay section of store.yaml
        base_delay: first retry delay in seconds
    """

    def __init__(self, settings: MessageRelayConfig, base_delay: float = BASE_DELAY):
        self._settings = settings
        self._base_delay = base_delay
        self._api_key = os.getenv(settings.api_key_env)
        self._executor: Optional[ThreadPoolExecutor] = None

        if settings.enabled:
            self._executor = ThreadPoolExecutor(
                max_workers=settings.max_workers,
                thread_name_prefix="message-relay",
            )
            if not self._api_key:
                logger.warning(
                    "message_relay_api_key_missing",
                    api_key_env=settings.api_key_env,
                )
            logger.info(
                "message_relay_initialized",
                base_url=settings.base_url,
                max_retries=settings.max_retries,
                max_workers=settings.max_workers,
            )
        else:
            logger.info("message_relay_disabled", message="Phone messages are disabled in config")

    def is_enabled(self) -> bool:
        return self._settings.enabled and self._executor is not None

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    def send(self, phone: str, message: str) -> None:
        """Post one message to the relay, retrying transient failures.

        Args:
            phone: Recipient phone number
            message: Message text

        Raises:
            MessageRelayError: If the message could not be delivered
        """
        if not self._api_key:
            raise MessageRelayError(
                f"Relay API key not set in environment variable {self._settings.api_key_env}"
            )

        max_retries = self._settings.max_retries
        last_error: Optional[str] = None

        for attempt in range(max_retries):
            logger.debug(
                "message_relay_request",
                phone=phone,
                attempt=attempt + 1,
                max_retries=max_retries,
            )
            try:
                response = requests.request(
                    "POST",
                    self._settings.base_url,
                    headers=self._headers(),
                    json={"phone": phone, "message": message},
                    timeout=self._settings.timeout_seconds,
                )
            except requests.exceptions.RequestException as e:
                last_error = str(e)
                logger.warning(
                    "message_relay_request_exception",
                    phone=phone,
                    error=last_error,
                    attempt=attempt + 1,
                    max_retries=max_retries,
                )
            else:
                if 200 <= response.status_code < 300:
                    logger.info("message_relay_sent", phone=phone, attempt=attempt + 1)
                    return

                last_error = f"HTTP {response.status_code}"
                if response.status_code not in RETRY_STATUS_CODES:
                    # Non-retryable status code
                    raise MessageRelayError(f"Relay rejected message: {last_error}")

                logger.warning(
                    "message_relay_request_failed",
                    phone=phone,
                    status_code=response.status_code,
                    attempt=attempt + 1,
                    max_retries=max_retries,
                )

            # Don't sleep on the last attempt
            if attempt < max_retries - 1:
                time.sleep(_calculate_delay(attempt, base_delay=self._base_delay))

        raise MessageRelayError(
            f"Relay failed after {max_retries} attempts: {last_error}"
        )

    def send_async(self, phone: str, message: str) -> Optional[Future]:
        """Queue a message for background delivery.

        Returns:
            Future resolving to True on delivery and False on failure, or
            None if the relay is disabled
        """
        if not self.is_enabled():
            logger.debug("message_relay_disabled", message="Skipping phone message")
            return None
        return self._executor.submit(self._deliver, phone, message)

    def _deliver(self, phone: str, message: str) -> bool:
        try:
            self.send(phone, message)
            return True
        except Exception as e:
            logger.error(
                "message_relay_delivery_failed",
                phone=phone,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker pool, finishing queued messages when wait is True."""
        if self._executor is not None:
            logger.info("message_relay_shutting_down")
            self._executor.shutdown(wait=wait)
            self._executor = None
