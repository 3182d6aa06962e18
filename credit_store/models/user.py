"""User identity models supplied by the authentication collaborator."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Role(str, Enum):
    """Store roles."""

    USER = "user"
    ADMIN = "admin"


class Actor(BaseModel):
    """Authenticated caller of an engine operation."""

    user_id: str = Field(..., min_length=1, description="Authenticated user ID")
    role: Role = Field(default=Role.USER, description="Caller role")

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class UserProfile(BaseModel):
    """Profile created when a user registers."""

    user_id: str = Field(..., min_length=1, description="User ID")
    name: str = Field(..., description="Display name")
    email: Optional[str] = Field(None, description="Email address")
    phone_number: Optional[str] = Field(None, description="Phone number for message relay")
    role: Role = Field(default=Role.USER, description="Role")
    joined_at_millis: int = Field(default=0, description="Registration time (Unix millis)")

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "user-1",
                "name": "Demo User",
                "email": "user@example.com",
                "phone_number": "+15551234567",
                "role": "user",
            }
        }
