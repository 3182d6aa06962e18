"""Usage history store - append-only log of credit movements."""

import threading
from typing import Dict, List

from credit_store.models.ledger import UsageHistoryRecord


class UsageHistoryStore:
    """In-memory append-only usage log, indexed by user."""

    def __init__(self):
        self._records: Dict[str, List[UsageHistoryRecord]] = {}
        self._lock = threading.RLock()

    def append(self, record: UsageHistoryRecord) -> None:
        """Append a record to its user's log."""
        with self._lock:
            self._records.setdefault(record.user_id, []).append(record)

    def get_recent(self, user_id: str, limit: int) -> List[UsageHistoryRecord]:
        """Get the most recent records for a user, newest first.

        Records with equal timestamps keep reverse append order.

        Raises:
            ValueError: If limit is negative
        """
        if limit < 0:
            raise ValueError(f"Limit must not be negative: {limit}")
        with self._lock:
            records = list(self._records.get(user_id, []))
        records.reverse()
        records.sort(key=lambda r: r.timestamp_millis, reverse=True)
        return records[:limit]

    def get_all_for_user(self, user_id: str) -> List[UsageHistoryRecord]:
        """Get a user's full log in append order."""
        with self._lock:
            return list(self._records.get(user_id, []))

    def count(self) -> int:
        with self._lock:
            return sum(len(records) for records in self._records.values())

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        return self.count()

    def __repr__(self) -> str:
        return f"UsageHistoryStore(records={self.count()})"
