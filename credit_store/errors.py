"""Store exception hierarchy.

Every engine operation fails closed with one of these; the API maps them
to HTTP status codes.
"""


class StoreError(Exception):
    """Base exception for store errors."""

    pass


class NotFoundError(StoreError):
    """Raised when a referenced record does not exist."""

    pass


class InsufficientCreditsError(StoreError):
    """Raised when a user's active credits do not cover a price."""

    def __init__(self, user_id: str, required: int, available: int):
        self.user_id = user_id
        self.required = required
        self.available = available
        super().__init__(
            f"User {user_id} has {available} credits, {required} required"
        )


class UnauthorizedError(StoreError):
    """Raised when a non-admin calls an admin-only operation."""

    pass


class InvalidStateError(StoreError):
    """Raised when a record is in the wrong state for the operation."""

    pass


class UserNotFoundError(NotFoundError):
    """Raised when a user has no profile."""

    pass


class ProductNotFoundError(NotFoundError):
    """Raised when a product is not in the catalog."""

    pass


class PackageNotFoundError(NotFoundError):
    """Raised when a credit package is not in the catalog."""

    pass


class PurchaseNotFoundError(NotFoundError):
    """Raised when a pending purchase ID is unknown."""

    pass


class PurchaseAlreadyResolvedError(PurchaseNotFoundError, InvalidStateError):
    """Raised when approving or rejecting a purchase that is no longer pending.

    There is no pending purchase with that ID any more, and the purchase
    itself is in the wrong state, so it is both kinds of failure.
    """

    pass


class GrantNotFoundError(NotFoundError, InvalidStateError):
    """Raised when renewing a product the user never purchased."""

    pass
