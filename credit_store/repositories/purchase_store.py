"""Purchase store - in-memory storage for pending purchase requests.

Thread-safe dictionary-based storage.
"""

import threading
from typing import Dict, List, Optional

from credit_store.errors import PurchaseNotFoundError
from credit_store.models.purchase import PendingPurchase, PurchaseStatus


class PurchaseStore:
    """In-memory storage for pending purchases.

    Thread-safe storage with lookup by ID, user, status and kind.
    """

    def __init__(self):
        """Initialize purchase store with empty storage."""
        self._purchases: Dict[str, PendingPurchase] = {}
        self._lock = threading.RLock()

    def add(self, purchase: PendingPurchase) -> None:
        """Add a purchase to the store.

        Args:
            purchase: PendingPurchase to store

        Raises:
            ValueError: If purchase ID already exists
        """
        with self._lock:
            if purchase.id in self._purchases:
                raise ValueError(f"Purchase with ID '{purchase.id}' already exists")
            self._purchases[purchase.id] = purchase.model_copy(deep=True)

    def get_by_id(self, purchase_id: str) -> PendingPurchase:
        """Get purchase by ID.

        Raises:
            PurchaseNotFoundError: If ID not found
        """
        with self._lock:
            purchase = self._purchases.get(purchase_id)
            if purchase is None:
                raise PurchaseNotFoundError(f"Purchase not found: {purchase_id}")
            return purchase.model_copy(deep=True)

    def find_by_id(self, purchase_id: str) -> Optional[PendingPurchase]:
        """Find purchase by ID (returns None if not found)."""
        with self._lock:
            purchase = self._purchases.get(purchase_id)
            return purchase.model_copy(deep=True) if purchase else None

    def get_by_user(self, user_id: str) -> List[PendingPurchase]:
        """Get all purchases for a specific user.

        Args:
            user_id: User identifier

        Returns:
            List of PendingPurchase objects for the user, oldest first
        """
        with self._lock:
            return [
                p.model_copy(deep=True) for p in self._purchases.values() if p.user_id == user_id
            ]

    def get_all(self, status: Optional[PurchaseStatus] = None) -> List[PendingPurchase]:
        """Get all purchases, optionally filtered by status.

        Args:
            status: Only return purchases in this status

        Returns:
            List of PendingPurchase objects, oldest first
        """
        with self._lock:
            return [
                p.model_copy(deep=True)
                for p in self._purchases.values()
                if status is None or p.status == status
            ]

    def update(self, purchase: PendingPurchase) -> None:
        """Save changes to an existing purchase.

        Raises:
            PurchaseNotFoundError: If purchase ID not found
        """
        with self._lock:
            if purchase.id not in self._purchases:
                raise PurchaseNotFoundError(f"Purchase not found: {purchase.id}")
            self._purchases[purchase.id] = purchase.model_copy(deep=True)

    def exists(self, purchase_id: str) -> bool:
        """Check if purchase ID exists."""
        with self._lock:
            return purchase_id in self._purchases

    def count(self) -> int:
        """Get total number of purchases."""
        with self._lock:
            return len(self._purchases)

    def clear(self) -> None:
        """Clear all purchases from the store.

        Warning: This removes all data. Use with caution.
        """
        with self._lock:
            self._purchases.clear()

    def get_statistics(self) -> Dict[str, int]:
        """Get purchase store statistics.

        Returns:
            Dictionary with:
            - total_purchases: Total number of purchases
            - pending / approved / rejected: Count per status
            - unique_users: Number of unique users
        """
        with self._lock:
            purchases = list(self._purchases.values())
            stats = {"total_purchases": len(purchases)}
            for status in PurchaseStatus:
                stats[status.value] = sum(1 for p in purchases if p.status == status)
            stats["unique_users"] = len(set(p.user_id for p in purchases))
            return stats

    def __len__(self) -> int:
        """Get number of purchases in store."""
        return self.count()

    def __contains__(self, purchase_id: str) -> bool:
        """Check if purchase ID exists in store."""
        return self.exists(purchase_id)

    def __repr__(self) -> str:
        """String representation of store."""
        return f"PurchaseStore(purchases={self.count()})"
