"""Catalog and configuration models.

Digital products and credit packages as defined in config/store.yaml
and managed by admins at runtime.
"""

from typing import Optional

from pydantic import BaseModel, Field


class DigitalProduct(BaseModel):
    """A digital product that users unlock with credits for a limited time."""

    id: str = Field(..., description="Product ID")
    name: str = Field(..., description="Human-readable name")
    description: str = Field(default="", description="Product description")
    price: int = Field(..., ge=0, description="Price in credits")
    category: str = Field(default="General", description="Catalog category")
    image: Optional[str] = Field(None, description="Image URL")
    expiry_days: int = Field(..., gt=0, description="Days of access per purchase or renewal")
    featured: bool = Field(default=False, description="Highlighted in the storefront")
    created_at_millis: int = Field(default=0, description="Creation time (Unix millis)")

    class Config:
        json_schema_extra = {
            "example": {
                "id": "prod-1",
                "name": "Premium Design Templates",
                "description": "Access to 500+ premium design templates for your projects",
                "price": 50,
                "category": "Design",
                "image": "https://picsum.photos/seed/templates/300/200",
                "expiry_days": 30,
                "featured": True,
            }
        }


class CreditPackage(BaseModel):
    """A bundle of credits sold for real money."""

    id: str = Field(..., description="Package ID")
    name: str = Field(..., description="Human-readable name")
    description: str = Field(default="", description="Package description")
    credits: int = Field(..., gt=0, description="Credits issued on approval")
    price: float = Field(..., ge=0, description="Price in currency units")
    currency: str = Field(default="USD", description="ISO 4217 currency code")
    expiry_days: int = Field(..., gt=0, description="Days until issued credits expire")
    featured: bool = Field(default=False, description="Highlighted in the storefront")

    class Config:
        json_schema_extra = {
            "example": {
                "id": "credit-2",
                "name": "Pro Pack",
                "description": "500 credits for regular users",
                "credits": 500,
                "price": 39.99,
                "currency": "USD",
                "expiry_days": 180,
                "featured": True,
            }
        }


class CatalogConfig(BaseModel):
    """Seed catalog loaded at startup."""

    products: list[DigitalProduct] = Field(default_factory=list, description="Digital products")
    credit_packages: list[CreditPackage] = Field(default_factory=list, description="Credit packages")


class EngineConfig(BaseModel):
    """Credit ledger engine behavior."""

    auto_renew_enabled: bool = Field(default=True, description="Auto-renew expired grants during sweeps")
    require_product_approval: bool = Field(
        default=False,
        description="Route product purchases through admin approval instead of settling immediately",
    )
    history_limit: int = Field(default=6, gt=0, description="Default number of usage records returned")
    id_prefix: str = Field(default="store", description="Prefix for generated record IDs")


class EventsConfig(BaseModel):
    """Pub/Sub store event publishing."""

    enabled: bool = Field(default=False, description="Publish store events to Pub/Sub")
    project_id: str = Field(default="credit-store-local", description="GCP project ID")
    topic: str = Field(default="store-events", description="Pub/Sub topic name")


class MessageRelayConfig(BaseModel):
    """External phone message relay."""

    enabled: bool = Field(default=False, description="Send phone messages for user notifications")
    base_url: str = Field(default="http://localhost:3001/messages", description="Relay endpoint URL")
    api_key_env: str = Field(default="MESSAGE_RELAY_API_KEY", description="Env var holding the relay API key")
    timeout_seconds: float = Field(default=10.0, gt=0, description="Per-request timeout")
    max_retries: int = Field(default=3, ge=1, description="Attempts per message")
    max_workers: int = Field(default=2, ge=1, description="Background sender threads")

    class Config:
        json_schema_extra = {
            "example": {
                "enabled": True,
                "base_url": "https://relay.example.com/v1/messages",
                "api_key_env": "MESSAGE_RELAY_API_KEY",
                "timeout_seconds": 10.0,
                "max_retries": 3,
                "max_workers": 2,
            }
        }


class StoreConfig(BaseModel):
    """Complete store.yaml configuration."""

    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    events: EventsConfig = Field(default_factory=EventsConfig)
    message_relay: MessageRelayConfig = Field(default_factory=MessageRelayConfig)
