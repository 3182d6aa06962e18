"""Pending purchase model - requests awaiting an admin decision.

Credit package purchases always go through approval because payment is
confirmed out-of-band. Product purchases only do when the engine is
configured to require it.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from credit_store.state_logger import log_purchase_status_change


class PurchaseKind(str, Enum):
    """What the purchase is for."""

    PRODUCT = "product"
    CREDIT_PACKAGE = "credit_package"


class PurchaseStatus(str, Enum):
    """Pending purchase status. Transitions once, out of PENDING."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PendingPurchase(BaseModel):
    """Internal record for a purchase request."""

    id: str = Field(..., description="Unique purchase ID")
    user_id: str = Field(..., description="Purchasing user")
    kind: PurchaseKind = Field(..., description="Product or credit package")
    referenced_item_id: str = Field(..., description="Product or package ID")
    item_name: Optional[str] = Field(None, description="Item name at request time")
    monetary_amount: float = Field(..., ge=0, description="Price at request time (money for packages, credits for products)")
    status: PurchaseStatus = Field(default=PurchaseStatus.PENDING, description="Request status")
    created_at_millis: int = Field(..., description="Request time (Unix millis)")

    resolved_at_millis: Optional[int] = Field(None, description="Approval or rejection time")
    resolved_by: Optional[str] = Field(None, description="Admin who resolved the request")

    @property
    def is_pending(self) -> bool:
        return self.status == PurchaseStatus.PENDING

    def resolve(self, new_status: PurchaseStatus, admin_id: str, at_millis: int) -> None:
        """Move the purchase out of PENDING and log the transition.

        Raises:
            ValueError: If already resolved or new_status is PENDING
        """
        if not self.is_pending:
            raise ValueError(f"Purchase {self.id} is already {self.status.value}")
        if new_status == PurchaseStatus.PENDING:
            raise ValueError("A purchase can only be resolved to approved or rejected")

        old_status = self.status
        self.status = new_status
        self.resolved_at_millis = at_millis
        self.resolved_by = admin_id
        log_purchase_status_change(
            purchase_id=self.id,
            kind=self.kind.value,
            old_status=old_status.value,
            new_status=new_status.value,
            resolved_by=admin_id,
            user_id=self.user_id,
        )

    class Config:
        json_schema_extra = {
            "example": {
                "id": "store_purchase_a1b2c3d4e5f6a7b8_1700000000000",
                "user_id": "user-1",
                "kind": "credit_package",
                "referenced_item_id": "credit-1",
                "item_name": "Starter Pack",
                "monetary_amount": 9.99,
                "status": "pending",
                "created_at_millis": 1700000000000,
            }
        }
