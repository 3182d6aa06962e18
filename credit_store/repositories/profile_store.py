"""Profile store - user profiles written by the authentication collaborator."""

import threading
from typing import Dict, List, Optional

from credit_store.errors import UserNotFoundError
from credit_store.models.user import Role, UserProfile


class ProfileStore:
    """In-memory user profile storage."""

    def __init__(self):
        self._profiles: Dict[str, UserProfile] = {}
        self._lock = threading.RLock()

    def upsert(self, profile: UserProfile) -> None:
        """Create or replace a profile."""
        with self._lock:
            self._profiles[profile.user_id] = profile.model_copy()

    def get_by_id(self, user_id: str) -> UserProfile:
        """Get profile by user ID.

        Raises:
            UserNotFoundError: If no profile exists for the user
        """
        profile = self.find_by_id(user_id)
        if profile is None:
            raise UserNotFoundError(f"User not found: {user_id}")
        return profile

    def find_by_id(self, user_id: str) -> Optional[UserProfile]:
        """Find profile by user ID (returns None if not found)."""
        with self._lock:
            profile = self._profiles.get(user_id)
            return profile.model_copy() if profile else None

    def get_by_role(self, role: Role) -> List[UserProfile]:
        with self._lock:
            return [p.model_copy() for p in self._profiles.values() if p.role == role]

    def exists(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._profiles

    def count(self) -> int:
        with self._lock:
            return len(self._profiles)

    def clear(self) -> None:
        with self._lock:
            self._profiles.clear()

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, user_id: str) -> bool:
        return self.exists(user_id)
