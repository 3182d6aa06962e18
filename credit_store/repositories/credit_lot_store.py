"""Credit lot store - in-memory storage for credit lots.

Thread-safe dictionary-based storage. Reads return copies; changes are only
visible to other readers after `update`.
"""

import threading
from typing import Dict, List, Optional

from credit_store.errors import NotFoundError
from credit_store.models.ledger import CreditLot, LotStatus


class LotNotFoundError(NotFoundError):
    """Raised when a credit lot is not found in the store."""

    pass


class CreditLotStore:
    """In-memory storage for credit lots.

    Lots are kept in insertion order, which breaks ties between lots issued
    in the same millisecond when ordering by purchase date.
    """

    def __init__(self):
        """Initialize credit lot store with empty storage."""
        self._lots: Dict[str, CreditLot] = {}
        self._lock = threading.RLock()

    def add(self, lot: CreditLot) -> None:
        """Add a lot to the store.

        Raises:
            ValueError: If a lot with the same ID already exists
        """
        with self._lock:
            if lot.id in self._lots:
                raise ValueError(f"Credit lot '{lot.id}' already exists")
            self._lots[lot.id] = lot.model_copy(deep=True)

    def get_by_id(self, lot_id: str) -> CreditLot:
        """Get lot by ID.

        Raises:
            LotNotFoundError: If lot ID not found
        """
        with self._lock:
            lot = self._lots.get(lot_id)
            if lot is None:
                raise LotNotFoundError(f"Credit lot not found: {lot_id}")
            return lot.model_copy(deep=True)

    def find_by_id(self, lot_id: str) -> Optional[CreditLot]:
        """Find lot by ID (returns None if not found)."""
        with self._lock:
            lot = self._lots.get(lot_id)
            return lot.model_copy(deep=True) if lot else None

    def get_by_user(self, user_id: str) -> List[CreditLot]:
        """Get every lot a user owns, active and expired, in issue order."""
        with self._lock:
            return [
                lot.model_copy(deep=True)
                for lot in self._lots.values()
                if lot.user_id == user_id
            ]

    def _is_spendable(self, lot: CreditLot, user_id: str, now_millis: Optional[int]) -> bool:
        if lot.user_id != user_id or lot.status != LotStatus.ACTIVE:
            return False
        return now_millis is None or not lot.is_past_expiry(now_millis)

    def get_active_by_user(self, user_id: str, now_millis: Optional[int] = None) -> List[CreditLot]:
        """Get a user's active lots, oldest purchase first.

        Args:
            user_id: User identifier
            now_millis: When given, lots already past their expiry date are
                left out even if no sweep has marked them expired yet

        Returns:
            Active lots ordered by purchase date ascending (stable on issue order)
        """
        with self._lock:
            active = [
                lot.model_copy(deep=True)
                for lot in self._lots.values()
                if self._is_spendable(lot, user_id, now_millis)
            ]
        return sorted(active, key=lambda lot: lot.purchase_date_millis)

    def get_active_balance(self, user_id: str, now_millis: Optional[int] = None) -> int:
        """Sum of remaining credits over a user's active lots (unexpired at ``now_millis``)."""
        with self._lock:
            return sum(
                lot.amount
                for lot in self._lots.values()
                if self._is_spendable(lot, user_id, now_millis)
            )

    def get_user_ids(self) -> List[str]:
        """Get IDs of every user owning at least one lot."""
        with self._lock:
            return list(dict.fromkeys(lot.user_id for lot in self._lots.values()))

    def update(self, lot: CreditLot) -> None:
        """Save changes to an existing lot.

        Raises:
            LotNotFoundError: If lot ID not found
        """
        with self._lock:
            if lot.id not in self._lots:
                raise LotNotFoundError(f"Credit lot not found: {lot.id}")
            self._lots[lot.id] = lot.model_copy(deep=True)

    def count(self) -> int:
        """Get total number of lots."""
        with self._lock:
            return len(self._lots)

    def clear(self) -> None:
        """Clear all lots from the store."""
        with self._lock:
            self._lots.clear()

    def get_statistics(self) -> Dict[str, int]:
        """Get credit lot statistics.

        Returns:
            Dictionary with:
            - total_lots: Total number of lots
            - active_lots: Lots still spendable
            - unique_users: Number of users owning lots
            - active_credits: Credits across all active lots
        """
        with self._lock:
            lots = list(self._lots.values())
            active = [lot for lot in lots if lot.status == LotStatus.ACTIVE]
            return {
                "total_lots": len(lots),
                "active_lots": len(active),
                "unique_users": len(set(lot.user_id for lot in lots)),
                "active_credits": sum(lot.amount for lot in active),
            }

    def __len__(self) -> int:
        """Get number of lots in store."""
        return self.count()

    def __contains__(self, lot_id: str) -> bool:
        """Check if lot ID exists in store."""
        with self._lock:
            return lot_id in self._lots

    def __repr__(self) -> str:
        """String representation of store."""
        return f"CreditLotStore(lots={self.count()})"
