"""Notification models - in-app inbox entries and published store events."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

# Recipient key shared by every admin
ADMIN_RECIPIENT = "role:admin"


class NotificationKind(str, Enum):
    """Notification categories shown in the inbox."""

    PURCHASE = "purchase"
    SYSTEM = "system"
    EXPIRY = "expiry"


class Notification(BaseModel):
    """Inbox entry for a user or for the admin role."""

    id: str = Field(..., description="Unique notification ID")
    recipient: str = Field(..., description="User ID or ADMIN_RECIPIENT")
    title: str = Field(..., description="Short title")
    message: str = Field(..., description="Body text")
    kind: NotificationKind = Field(..., description="Category")
    created_at_millis: int = Field(..., description="Creation time (Unix millis)")
    read: bool = Field(default=False, description="Whether the recipient has read it")
    action_required: bool = Field(default=False, description="Needs an admin decision")
    related_purchase_id: Optional[str] = Field(None, description="Pending purchase this refers to")

    class Config:
        json_schema_extra = {
            "example": {
                "id": "store_notif_a1b2c3d4e5f6a7b8_1700000000000",
                "recipient": "role:admin",
                "title": "New Credit Purchase Request",
                "message": "Demo User has requested to purchase Starter Pack",
                "kind": "purchase",
                "created_at_millis": 1700000000000,
                "read": False,
                "action_required": True,
                "related_purchase_id": "store_purchase_a1b2c3d4e5f6a7b8_1700000000000",
            }
        }


class StoreEvent(BaseModel):
    """Message published to Pub/Sub for every notification."""

    version: str = Field(default="1.0", description="Event schema version")
    event_type: str = Field(..., description="Notification title in snake_case")
    recipient: str = Field(..., description="User ID or ADMIN_RECIPIENT")
    kind: NotificationKind = Field(..., description="Notification category")
    title: str = Field(..., description="Notification title")
    message: str = Field(..., description="Notification body")
    event_time_millis: int = Field(..., description="Event timestamp (Unix millis)")
    related_purchase_id: Optional[str] = Field(None, description="Related pending purchase")

    class Config:
        json_schema_extra = {
            "example": {
                "version": "1.0",
                "event_type": "credits_added",
                "recipient": "user-1",
                "kind": "system",
                "title": "Credits Added",
                "message": "100 credits have been added to your account.",
                "event_time_millis": 1700000000000,
            }
        }
