"""Pydantic models for catalog, ledger records, notifications and API payloads."""

# Catalog and configuration models
from .catalog import (
    CatalogConfig,
    CreditPackage,
    DigitalProduct,
    EngineConfig,
    EventsConfig,
    MessageRelayConfig,
    StoreConfig,
)

# Ledger models
from .ledger import (
    CreditLot,
    LotStatus,
    UsageAction,
    UsageHistoryRecord,
)
from .grant import GrantStatus, ProductGrant
from .purchase import PendingPurchase, PurchaseKind, PurchaseStatus

# Notification models
from .notification import (
    ADMIN_RECIPIENT,
    Notification,
    NotificationKind,
    StoreEvent,
)

# Identity models
from .user import Actor, Role, UserProfile

# API models
from .api_request import (
    AdvanceTimeRequest,
    CreditPackageCreateRequest,
    CreditPackageUpdateRequest,
    ProductCreateRequest,
    ProductUpdateRequest,
    ProfileRequest,
    SetTimeRequest,
)
from .api_response import (
    AdvanceTimeResponse,
    CreditBalanceResponse,
    MarkReadResponse,
    NotificationListResponse,
    ResetTimeResponse,
    StatusResponse,
    StoreStatisticsResponse,
    TimeResponse,
    UsageHistoryResponse,
)

__all__ = [
    # Catalog and configuration
    "CatalogConfig",
    "CreditPackage",
    "DigitalProduct",
    "EngineConfig",
    "EventsConfig",
    "MessageRelayConfig",
    "StoreConfig",
    # Ledger
    "CreditLot",
    "LotStatus",
    "UsageAction",
    "UsageHistoryRecord",
    "GrantStatus",
    "ProductGrant",
    "PendingPurchase",
    "PurchaseKind",
    "PurchaseStatus",
    # Notifications
    "ADMIN_RECIPIENT",
    "Notification",
    "NotificationKind",
    "StoreEvent",
    # Identity
    "Actor",
    "Role",
    "UserProfile",
    # API
    "AdvanceTimeRequest",
    "CreditPackageCreateRequest",
    "CreditPackageUpdateRequest",
    "ProductCreateRequest",
    "ProductUpdateRequest",
    "ProfileRequest",
    "SetTimeRequest",
    "AdvanceTimeResponse",
    "CreditBalanceResponse",
    "MarkReadResponse",
    "NotificationListResponse",
    "ResetTimeResponse",
    "StatusResponse",
    "StoreStatisticsResponse",
    "TimeResponse",
    "UsageHistoryResponse",
]
