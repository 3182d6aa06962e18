"""State change logging for credit lots, grants and pending purchases.

Tracks transitions with before/after values for debugging and auditing.
"""

from typing import Any, Optional

from credit_store.logging_config import get_logger
from credit_store.utils.time_utils import millis_to_iso

logger = get_logger(__name__)


def log_lot_status_change(
    lot_id: str,
    user_id: str,
    old_status: Any,
    new_status: Any,
    reason: Optional[str] = None,
    **extra_context: Any,
) -> None:
    """Log credit lot status change.

    Args:
        lot_id: Credit lot ID
        user_id: Owner of the lot
        old_status: Previous status
        new_status: New status
        reason: Reason for the change (consumed, expired)
        **extra_context: Additional context (remaining amount, package)
    """
    logger.info(
        "credit_lot_status_changed",
        lot_id=lot_id,
        user_id=user_id,
        old_status=str(old_status),
        new_status=str(new_status),
        reason=reason,
        **extra_context,
    )


def log_lot_amount_change(
    lot_id: str,
    user_id: str,
    old_amount: int,
    new_amount: int,
    reason: Optional[str] = None,
    **extra_context: Any,
) -> None:
    """Log credit lot balance change."""
    logger.info(
        "credit_lot_amount_changed",
        lot_id=lot_id,
        user_id=user_id,
        old_amount=old_amount,
        new_amount=new_amount,
        delta=new_amount - old_amount,
        reason=reason,
        **extra_context,
    )


def log_grant_status_change(
    grant_id: str,
    product_id: str,
    old_status: Any,
    new_status: Any,
    reason: Optional[str] = None,
    **extra_context: Any,
) -> None:
    """Log product grant status change.

    Args:
        grant_id: Grant ID
        product_id: Product the grant unlocks
        old_status: Previous status
        new_status: New status
        reason: Reason for the change
        **extra_context: Additional context (user_id, expiry)
    """
    logger.info(
        "grant_status_changed",
        grant_id=grant_id,
        product_id=product_id,
        old_status=str(old_status),
        new_status=str(new_status),
        reason=reason,
        **extra_context,
    )


def log_grant_expiry_change(
    grant_id: str,
    product_id: str,
    old_expiry_millis: int,
    new_expiry_millis: int,
    reason: str,
    **extra_context: Any,
) -> None:
    """Log product grant expiry change.

    Args:
        grant_id: Grant ID
        product_id: Product the grant unlocks
        old_expiry_millis: Previous expiry time
        new_expiry_millis: New expiry time
        reason: Reason for change (renewal, auto-renewal)
        **extra_context: Additional context
    """
    logger.info(
        "grant_expiry_changed",
        grant_id=grant_id,
        product_id=product_id,
        old_expiry=millis_to_iso(old_expiry_millis),
        new_expiry=millis_to_iso(new_expiry_millis),
        extension_days=round((new_expiry_millis - old_expiry_millis) / (1000 * 86400), 2),
        reason=reason,
        **extra_context,
    )


def log_purchase_status_change(
    purchase_id: str,
    kind: Any,
    old_status: Any,
    new_status: Any,
    resolved_by: Optional[str] = None,
    **extra_context: Any,
) -> None:
    """Log pending purchase resolution."""
    logger.info(
        "pending_purchase_status_changed",
        purchase_id=purchase_id,
        kind=str(kind),
        old_status=str(old_status),
        new_status=str(new_status),
        resolved_by=resolved_by,
        **extra_context,
    )
