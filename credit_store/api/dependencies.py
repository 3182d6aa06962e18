"""Request dependencies: caller identity, services and error mapping."""

from typing import Optional

from fastapi import Header, HTTPException, Request

from credit_store.errors import (
    InsufficientCreditsError,
    InvalidStateError,
    NotFoundError,
    PurchaseAlreadyResolvedError,
    UnauthorizedError,
)
from credit_store.logging_config import get_logger
from credit_store.models import Actor, Role
from credit_store.repositories.profile_store import ProfileStore
from credit_store.services.catalog_manager import CatalogManager
from credit_store.services.ledger_engine import CreditLedgerEngine
from credit_store.services.notifier import Notifier
from credit_store.services.time_controller import TimeController

logger = get_logger(__name__)


def get_actor(
        x_user_id: Optional[str] = Header(None),
        x_user_role: Optional[str] = Header(None),
) -> Actor:
    """Build the caller from headers set by the authentication proxy."""
    if not x_user_id:
        raise HTTPException(
            status_code=401,
            detail={"error": "Unauthenticated", "message": "X-User-Id header is required"},
        )
    try:
        role = Role(x_user_role.lower()) if x_user_role else Role.USER
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail={"error": "Invalid request", "message": f"Unknown role '{x_user_role}'"},
        )
    return Actor(user_id=x_user_id, role=role)


def get_engine(request: Request) -> CreditLedgerEngine:
    return request.app.state.engine


def get_catalog_manager(request: Request) -> CatalogManager:
    return request.app.state.catalog_manager


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


def get_time_controller(request: Request) -> TimeController:
    return request.app.state.time_controller


def get_profiles(request: Request) -> ProfileStore:
    return request.app.state.profiles


def to_http_exception(exc: Exception) -> HTTPException:
    """Map a StoreError or ValueError to an HTTPException."""
    if isinstance(exc, InsufficientCreditsError):
        status_code, error = 402, "Insufficient credits"
    elif isinstance(exc, UnauthorizedError):
        status_code, error = 403, "Forbidden"
    elif isinstance(exc, PurchaseAlreadyResolvedError):
        status_code, error = 409, "Purchase already resolved"
    elif isinstance(exc, NotFoundError):
        status_code, error = 404, "Not found"
    elif isinstance(exc, InvalidStateError):
        status_code, error = 409, "Invalid state"
    else:
        status_code, error = 400, "Invalid request"

    logger.warning(
        "request_rejected",
        status_code=status_code,
        error_type=type(exc).__name__,
        error=str(exc),
    )
    return HTTPException(status_code=status_code, detail={"error": error, "message": str(exc)})
