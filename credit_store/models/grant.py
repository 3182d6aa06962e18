"""Product grant model - a user's time-limited access to a digital product."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from credit_store.state_logger import log_grant_expiry_change, log_grant_status_change


class GrantStatus(str, Enum):
    """Product grant status."""

    ACTIVE = "active"
    EXPIRED = "expired"
    PENDING = "pending"  # Awaiting admin approval


class ProductGrant(BaseModel):
    """Internal record for one product purchase and its renewals."""

    id: str = Field(..., description="Unique grant ID")
    product_id: str = Field(..., description="Product this grant unlocks")
    user_id: str = Field(..., description="User holding the grant")

    purchase_date_millis: int = Field(..., description="Original purchase time (Unix millis)")
    expiry_date_millis: int = Field(..., description="Current expiry time (Unix millis)")
    status: GrantStatus = Field(default=GrantStatus.ACTIVE, description="Grant status")

    # Terms copied from the catalog at issue time
    product_name: str = Field(..., description="Product name at purchase time")
    price_credits: int = Field(..., ge=0, description="Credits paid at the last purchase or renewal")
    expiry_days: int = Field(..., gt=0, description="Access days at the last purchase or renewal")

    renewal_count: int = Field(default=0, description="Number of renewals, manual or automatic")

    def is_past_expiry(self, now_millis: int) -> bool:
        return self.expiry_date_millis < now_millis

    def set_status(self, new_status: GrantStatus, reason: Optional[str] = None) -> None:
        """Change grant status and log the transition.

        Args:
            new_status: New status
            reason: Reason for the change
        """
        old_status = self.status
        if old_status != new_status:
            self.status = new_status
            log_grant_status_change(
                grant_id=self.id,
                product_id=self.product_id,
                old_status=old_status.value,
                new_status=new_status.value,
                reason=reason,
                user_id=self.user_id,
            )

    def extend_expiry(self, new_expiry_millis: int, reason: str) -> None:
        """Move the expiry and log the change.

        Args:
            new_expiry_millis: New expiry time in milliseconds
            reason: Reason for the change (renewal, auto-renewal)
        """
        old_expiry = self.expiry_date_millis
        self.expiry_date_millis = new_expiry_millis
        log_grant_expiry_change(
            grant_id=self.id,
            product_id=self.product_id,
            old_expiry_millis=old_expiry,
            new_expiry_millis=new_expiry_millis,
            reason=reason,
            user_id=self.user_id,
            renewal_count=self.renewal_count,
        )

    class Config:
        json_schema_extra = {
            "example": {
                "id": "store_grant_a1b2c3d4e5f6a7b8_1700000000000",
                "product_id": "prod-1",
                "user_id": "user-1",
                "purchase_date_millis": 1700000000000,
                "expiry_date_millis": 1702592000000,
                "status": "active",
                "product_name": "Premium Design Templates",
                "price_credits": 50,
                "expiry_days": 30,
                "renewal_count": 0,
            }
        }
