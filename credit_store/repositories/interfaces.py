"""Store contracts the ledger engine depends on.

The engine only talks to these protocols. Reads return detached copies
(load) and nothing is persisted until `add`/`update` is called (save), so
a durable backend can implement them without changing the engine.
"""

from __future__ import annotations

from typing import Optional, Protocol

from credit_store.models import (
    CreditLot,
    Notification,
    PendingPurchase,
    ProductGrant,
    PurchaseStatus,
    UsageHistoryRecord,
    UserProfile,
)


class CreditLotStoreInterface(Protocol):
    """Credit lots, never deleted."""

    def add(self, lot: CreditLot) -> None:  # pragma: no cover - Protocol
        ...

    def update(self, lot: CreditLot) -> None:  # pragma: no cover - Protocol
        ...

    def get_by_user(self, user_id: str) -> list[CreditLot]:  # pragma: no cover - Protocol
        ...

    def get_active_by_user(
        self, user_id: str, now_millis: Optional[int] = None
    ) -> list[CreditLot]:  # pragma: no cover - Protocol
        """Active lots, oldest purchase first; unexpired at now_millis when given."""
        ...

    def get_active_balance(self, user_id: str, now_millis: Optional[int] = None) -> int:  # pragma: no cover - Protocol
        ...

    def get_user_ids(self) -> list[str]:  # pragma: no cover - Protocol
        ...

    def get_statistics(self) -> dict[str, int]:  # pragma: no cover - Protocol
        ...


class GrantStoreInterface(Protocol):
    """Product grants, never deleted."""

    def add(self, grant: ProductGrant) -> None:  # pragma: no cover - Protocol
        ...

    def update(self, grant: ProductGrant) -> None:  # pragma: no cover - Protocol
        ...

    def get_by_user(self, user_id: str) -> list[ProductGrant]:  # pragma: no cover - Protocol
        ...

    def find_latest(
        self, user_id: str, product_id: str
    ) -> Optional[ProductGrant]:  # pragma: no cover - Protocol
        ...

    def get_active_by_user(self, user_id: str) -> list[ProductGrant]:  # pragma: no cover - Protocol
        ...

    def get_user_ids(self) -> list[str]:  # pragma: no cover - Protocol
        ...

    def get_statistics(self) -> dict[str, int]:  # pragma: no cover - Protocol
        ...


class PendingPurchaseStoreInterface(Protocol):
    """Purchase requests awaiting or past admin decision."""

    def add(self, purchase: PendingPurchase) -> None:  # pragma: no cover - Protocol
        ...

    def update(self, purchase: PendingPurchase) -> None:  # pragma: no cover - Protocol
        ...

    def get_by_id(self, purchase_id: str) -> PendingPurchase:  # pragma: no cover - Protocol
        """Raises PurchaseNotFoundError for unknown IDs."""
        ...

    def find_by_id(self, purchase_id: str) -> Optional[PendingPurchase]:  # pragma: no cover - Protocol
        ...

    def get_by_user(self, user_id: str) -> list[PendingPurchase]:  # pragma: no cover - Protocol
        ...

    def get_all(
        self, status: Optional[PurchaseStatus] = None
    ) -> list[PendingPurchase]:  # pragma: no cover - Protocol
        ...

    def get_statistics(self) -> dict[str, int]:  # pragma: no cover - Protocol
        ...


class UsageHistoryStoreInterface(Protocol):
    """Append-only usage log."""

    def append(self, record: UsageHistoryRecord) -> None:  # pragma: no cover - Protocol
        ...

    def get_recent(self, user_id: str, limit: int) -> list[UsageHistoryRecord]:  # pragma: no cover - Protocol
        """Newest first."""
        ...


class NotificationStoreInterface(Protocol):
    """In-app notification inbox."""

    def add(self, notification: Notification) -> None:  # pragma: no cover - Protocol
        ...

    def get_for(self, recipient: str) -> list[Notification]:  # pragma: no cover - Protocol
        ...

    def unread_count(self, recipient: str) -> int:  # pragma: no cover - Protocol
        ...

    def mark_as_read(self, notification_id: str, recipient: str) -> bool:  # pragma: no cover - Protocol
        ...

    def mark_all_as_read(self, recipient: str) -> int:  # pragma: no cover - Protocol
        ...

    def remove_for_purchase(self, recipient: str, purchase_id: str) -> int:  # pragma: no cover - Protocol
        ...


class ProfileStoreInterface(Protocol):
    """User profiles maintained by the authentication collaborator."""

    def upsert(self, profile: UserProfile) -> None:  # pragma: no cover - Protocol
        ...

    def get_by_id(self, user_id: str) -> UserProfile:  # pragma: no cover - Protocol
        """Raises UserNotFoundError for unknown users."""
        ...

    def find_by_id(self, user_id: str) -> Optional[UserProfile]:  # pragma: no cover - Protocol
        ...
