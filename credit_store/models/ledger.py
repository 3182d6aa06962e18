"""Credit ledger models - credit lots and usage history.

A lot is one batch of credits issued to a user by an approved package
purchase. Lots are consumed oldest-first and never deleted.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from credit_store.state_logger import log_lot_amount_change, log_lot_status_change


class LotStatus(str, Enum):
    """Credit lot status."""

    ACTIVE = "active"
    EXPIRED = "expired"  # Fully consumed or past its expiry date


class UsageAction(str, Enum):
    """Labels for usage history entries."""

    PURCHASE = "Purchase"
    RENEWAL = "Renewal"
    AUTO_RENEWAL = "Auto-Renewal"
    CREDIT_PURCHASE = "Credit Purchase"
    CREDITS_EXPIRED = "Credits Expired"


class CreditLot(BaseModel):
    """Internal record for a batch of credits owned by one user."""

    id: str = Field(..., description="Unique lot ID")
    user_id: str = Field(..., description="Owner of the credits")
    amount: int = Field(..., ge=0, description="Remaining credits")
    initial_amount: int = Field(..., ge=0, description="Credits issued")

    purchase_date_millis: int = Field(..., description="Issue time (Unix millis)")
    expiry_date_millis: int = Field(..., description="Expiry time (Unix millis)")
    status: LotStatus = Field(default=LotStatus.ACTIVE, description="Lot status")

    # Terms copied from the catalog at issue time
    source_package_id: str = Field(..., description="Credit package that produced this lot")
    source_package_name: Optional[str] = Field(None, description="Package name at issue time")
    source_purchase_id: Optional[str] = Field(None, description="Approved pending purchase")

    @property
    def is_active(self) -> bool:
        return self.status == LotStatus.ACTIVE

    def is_past_expiry(self, now_millis: int) -> bool:
        return self.expiry_date_millis < now_millis

    def deduct(self, credits: int) -> None:
        """Take credits from the lot, expiring it when it reaches zero.

        Args:
            credits: Credits to remove (must not exceed the remaining amount)

        Raises:
            ValueError: If the lot is expired or credits is out of range
        """
        if not self.is_active:
            raise ValueError(f"Cannot deduct from expired lot {self.id}")
        if credits <= 0 or credits > self.amount:
            raise ValueError(
                f"Cannot deduct {credits} credits from lot {self.id} holding {self.amount}"
            )

        old_amount = self.amount
        self.amount -= credits
        log_lot_amount_change(
            lot_id=self.id,
            user_id=self.user_id,
            old_amount=old_amount,
            new_amount=self.amount,
            reason="consumed",
        )
        if self.amount == 0:
            self.set_status(LotStatus.EXPIRED, reason="Fully consumed")

    def set_status(self, new_status: LotStatus, reason: Optional[str] = None) -> None:
        """Change lot status and log the transition.

        Args:
            new_status: New status
            reason: Reason for the change
        """
        old_status = self.status
        if old_status != new_status:
            self.status = new_status
            log_lot_status_change(
                lot_id=self.id,
                user_id=self.user_id,
                old_status=old_status.value,
                new_status=new_status.value,
                reason=reason,
                remaining=self.amount,
            )

    class Config:
        json_schema_extra = {
            "example": {
                "id": "store_lot_a1b2c3d4e5f6a7b8_1700000000000",
                "user_id": "user-1",
                "amount": 40,
                "initial_amount": 100,
                "purchase_date_millis": 1700000000000,
                "expiry_date_millis": 1702592000000,
                "status": "active",
                "source_package_id": "credit-1",
                "source_package_name": "Starter Pack",
            }
        }


class UsageHistoryRecord(BaseModel):
    """Append-only credit usage entry. Negative amounts are spending."""

    id: str = Field(..., description="Unique record ID")
    user_id: str = Field(..., description="User the entry belongs to")
    action: UsageAction = Field(..., description="What happened")
    amount: int = Field(..., description="Signed credit delta")
    timestamp_millis: int = Field(..., description="When it happened (Unix millis)")
    product_id: Optional[str] = Field(None, description="Related product")
    product_name: Optional[str] = Field(None, description="Related product name")

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "id": "store_usage_a1b2c3d4e5f6a7b8_1700000000000",
                "user_id": "user-1",
                "action": "Purchase",
                "amount": -60,
                "timestamp_millis": 1700000000000,
                "product_id": "prod-2",
                "product_name": "Stock Photo Collection",
            }
        }
