"""Grant store - in-memory storage for product access grants.

Thread-safe dictionary-based storage with lookup by user and product.
"""

import threading
from typing import Dict, List, Optional

from credit_store.errors import NotFoundError
from credit_store.models.grant import GrantStatus, ProductGrant


class GrantRecordNotFoundError(NotFoundError):
    """Raised when a grant ID is not found in the store."""

    pass


class GrantStore:
    """In-memory storage for product grants."""

    def __init__(self):
        """Initialize grant store with empty storage."""
        self._grants: Dict[str, ProductGrant] = {}
        self._lock = threading.RLock()

    def add(self, grant: ProductGrant) -> None:
        """Add a grant to the store.

        Raises:
            ValueError: If a grant with the same ID already exists
        """
        with self._lock:
            if grant.id in self._grants:
                raise ValueError(f"Grant '{grant.id}' already exists")
            self._grants[grant.id] = grant.model_copy(deep=True)

    def get_by_id(self, grant_id: str) -> ProductGrant:
        """Get grant by ID.

        Raises:
            GrantRecordNotFoundError: If grant ID not found
        """
        with self._lock:
            grant = self._grants.get(grant_id)
            if grant is None:
                raise GrantRecordNotFoundError(f"Grant not found: {grant_id}")
            return grant.model_copy(deep=True)

    def get_by_user(self, user_id: str) -> List[ProductGrant]:
        """Get all grants for a user in purchase order."""
        with self._lock:
            return [
                g.model_copy(deep=True) for g in self._grants.values() if g.user_id == user_id
            ]

    def find_latest(self, user_id: str, product_id: str) -> Optional[ProductGrant]:
        """Find the most recently purchased grant a user holds for a product.

        Args:
            user_id: User identifier
            product_id: Product ID

        Returns:
            ProductGrant if the user ever bought the product, None otherwise
        """
        with self._lock:
            latest: Optional[ProductGrant] = None
            for grant in self._grants.values():
                if grant.user_id != user_id or grant.product_id != product_id:
                    continue
                if latest is None or grant.purchase_date_millis >= latest.purchase_date_millis:
                    latest = grant
            return latest.model_copy(deep=True) if latest else None

    def get_active_by_user(self, user_id: str) -> List[ProductGrant]:
        """Get a user's active grants."""
        with self._lock:
            return [
                g.model_copy(deep=True)
                for g in self._grants.values()
                if g.user_id == user_id and g.status == GrantStatus.ACTIVE
            ]

    def get_user_ids(self) -> List[str]:
        """Get IDs of every user holding at least one grant."""
        with self._lock:
            return list(dict.fromkeys(g.user_id for g in self._grants.values()))

    def update(self, grant: ProductGrant) -> None:
        """Save changes to an existing grant.

        Raises:
            GrantRecordNotFoundError: If grant ID not found
        """
        with self._lock:
            if grant.id not in self._grants:
                raise GrantRecordNotFoundError(f"Grant not found: {grant.id}")
            self._grants[grant.id] = grant.model_copy(deep=True)

    def count(self) -> int:
        """Get total number of grants."""
        with self._lock:
            return len(self._grants)

    def clear(self) -> None:
        """Clear all grants from the store."""
        with self._lock:
            self._grants.clear()

    def get_statistics(self) -> Dict[str, int]:
        """Get grant store statistics."""
        with self._lock:
            grants = list(self._grants.values())
            return {
                "total_grants": len(grants),
                "active": sum(1 for g in grants if g.status == GrantStatus.ACTIVE),
                "expired": sum(1 for g in grants if g.status == GrantStatus.EXPIRED),
                "unique_users": len(set(g.user_id for g in grants)),
                "unique_products": len(set(g.product_id for g in grants)),
            }

    def __len__(self) -> int:
        """Get number of grants in store."""
        return self.count()

    def __repr__(self) -> str:
        """String representation of store."""
        return f"GrantStore(grants={self.count()})"
