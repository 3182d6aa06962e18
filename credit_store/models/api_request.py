"""API request models for store and admin endpoints."""

from typing import Optional

from pydantic import BaseModel, Field


class ProfileRequest(BaseModel):
    """Profile registration or update for the calling user."""

    name: str = Field(..., min_length=1, description="Display name")
    email: Optional[str] = Field(None, description="Email address")
    phone_number: Optional[str] = Field(None, description="Phone number for message relay")

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Demo User",
                "email": "user@example.com",
                "phone_number": "+15551234567",
            }
        }


class ProductCreateRequest(BaseModel):
    """Request to add a digital product to the catalog."""

    name: str = Field(..., min_length=1, description="Product name")
    description: str = Field(default="", description="Product description")
    price: int = Field(..., ge=0, description="Price in credits")
    category: str = Field(default="General", description="Catalog category")
    image: Optional[str] = Field(None, description="Image URL")
    expiry_days: int = Field(..., gt=0, description="Days of access per purchase")
    featured: bool = Field(default=False, description="Highlighted in the storefront")

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Icon Pack",
                "description": "2,000 vector icons",
                "price": 25,
                "category": "Design",
                "expiry_days": 30,
            }
        }


class ProductUpdateRequest(BaseModel):
    """Partial product update. Only fields that are set are changed."""

    name: Optional[str] = Field(None, min_length=1, description="Product name")
    description: Optional[str] = Field(None, description="Product description")
    price: Optional[int] = Field(None, ge=0, description="Price in credits")
    category: Optional[str] = Field(None, description="Catalog category")
    image: Optional[str] = Field(None, description="Image URL")
    expiry_days: Optional[int] = Field(None, gt=0, description="Days of access per purchase")
    featured: Optional[bool] = Field(None, description="Highlighted in the storefront")


class CreditPackageCreateRequest(BaseModel):
    """Request to add a credit package to the catalog."""

    name: str = Field(..., min_length=1, description="Package name")
    description: str = Field(default="", description="Package description")
    credits: int = Field(..., gt=0, description="Credits issued on approval")
    price: float = Field(..., ge=0, description="Price in currency units")
    currency: str = Field(default="USD", description="ISO 4217 currency code")
    expiry_days: int = Field(..., gt=0, description="Days until issued credits expire")
    featured: bool = Field(default=False, description="Highlighted in the storefront")

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Mega Pack",
                "credits": 3000,
                "price": 149.99,
                "expiry_days": 365,
            }
        }


class CreditPackageUpdateRequest(BaseModel):
    """Partial credit package update."""

    name: Optional[str] = Field(None, min_length=1, description="Package name")
    description: Optional[str] = Field(None, description="Package description")
    credits: Optional[int] = Field(None, gt=0, description="Credits issued on approval")
    price: Optional[float] = Field(None, ge=0, description="Price in currency units")
    currency: Optional[str] = Field(None, description="ISO 4217 currency code")
    expiry_days: Optional[int] = Field(None, gt=0, description="Days until issued credits expire")
    featured: Optional[bool] = Field(None, description="Highlighted in the storefront")


class AdvanceTimeRequest(BaseModel):
    """Request to advance the store clock."""

    days: int = Field(default=0, ge=0, description="Number of days to advance")
    hours: int = Field(default=0, ge=0, description="Number of hours to advance")
    minutes: int = Field(default=0, ge=0, description="Number of minutes to advance")

    class Config:
        json_schema_extra = {"example": {"days": 31, "hours": 0, "minutes": 0}}


class SetTimeRequest(BaseModel):
    """Request to set the store clock to a timestamp."""

    timestamp_millis: int = Field(..., description="Target time (Unix millis)")
