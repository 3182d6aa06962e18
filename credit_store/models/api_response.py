"""API response models for store and admin endpoints."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from credit_store.models.ledger import CreditLot, UsageHistoryRecord
from credit_store.models.notification import Notification


class CreditBalanceResponse(BaseModel):
    """Credit balance with the lots behind it."""

    user_id: str = Field(..., description="User ID")
    total_credits: int = Field(..., ge=0, description="Sum of active lot amounts")
    lots: List[CreditLot] = Field(default_factory=list, description="Every lot the user owns")

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "user-1",
                "total_credits": 40,
                "lots": [],
            }
        }


class UsageHistoryResponse(BaseModel):
    """Most recent usage records, newest first."""

    user_id: str = Field(..., description="User ID")
    records: List[UsageHistoryRecord] = Field(default_factory=list, description="Usage records")


class NotificationListResponse(BaseModel):
    """Notification inbox for the caller."""

    recipient: str = Field(..., description="User ID or admin role")
    unread_count: int = Field(..., ge=0, description="Unread notifications")
    notifications: List[Notification] = Field(default_factory=list, description="Newest first")


class MarkReadResponse(BaseModel):
    """Result of marking notifications as read."""

    updated: int = Field(..., ge=0, description="Notifications changed")


class TimeResponse(BaseModel):
    """Current store clock."""

    current_time_millis: int = Field(..., description="Current store time (Unix millis)")
    current_time: str = Field(..., description="Current store time (ISO 8601)")
    offset_millis: int = Field(..., description="Offset from real time")
    frozen: bool = Field(..., description="Whether the clock only moves when told to")


class AdvanceTimeResponse(BaseModel):
    """Result of moving the store clock forward."""

    old_time_millis: int = Field(..., description="Time before the change")
    new_time_millis: int = Field(..., description="Time after the change")
    time_advanced_millis: int = Field(..., description="Milliseconds advanced")
    lots_expired: List[str] = Field(default_factory=list, description="Credit lots expired")
    grants_renewed: List[str] = Field(default_factory=list, description="Grants auto-renewed")
    grants_expired: List[str] = Field(default_factory=list, description="Grants expired")

    class Config:
        json_schema_extra = {
            "example": {
                "old_time_millis": 1700000000000,
                "new_time_millis": 1702678400000,
                "time_advanced_millis": 2678400000,
                "lots_expired": [],
                "grants_renewed": ["store_grant_a1b2c3d4e5f6a7b8_1700000000000"],
                "grants_expired": [],
            }
        }


class ResetTimeResponse(BaseModel):
    """Result of resetting the store clock to real time."""

    old_time_millis: int = Field(..., description="Time before the reset")
    new_time_millis: int = Field(..., description="Real current time")


class StatusResponse(BaseModel):
    """Generic status message."""

    status: str = Field(..., description="Operation status")
    message: Optional[str] = Field(None, description="Details")


class StoreStatisticsResponse(BaseModel):
    """Ledger-wide counts for the admin dashboard."""

    lots: Dict[str, int] = Field(..., description="Credit lot counts and active credits")
    grants: Dict[str, int] = Field(..., description="Product grant counts by status")
    purchases: Dict[str, int] = Field(..., description="Purchase request counts by status")
