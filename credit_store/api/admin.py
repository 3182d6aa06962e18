"""Admin API for purchase approval, catalog management and the store clock.

Implements:
- GET  /admin/purchases - Purchase request queue
- POST /admin/purchases/{purchase_id}/approve - Approve a request
- POST /admin/purchases/{purchase_id}/reject - Reject a request
- GET  /admin/stats - Lot, grant and purchase counts
- POST/PUT/DELETE /admin/products[/{product_id}] - Manage products
- POST/PUT/DELETE /admin/credit-packages[/{package_id}] - Manage credit packages
- GET  /admin/notifications, POST .../{id}/read, POST .../read-all - Admin inbox
- GET  /admin/time, POST /admin/time/advance, /admin/time/set, /admin/time/reset - Store clock
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from credit_store.api.dependencies import (
    get_actor,
    get_catalog_manager,
    get_engine,
    get_notifier,
    get_time_controller,
    to_http_exception,
)
from credit_store.errors import StoreError, UnauthorizedError
from credit_store.logging_config import get_logger
from credit_store.models import (
    ADMIN_RECIPIENT,
    Actor,
    AdvanceTimeRequest,
    AdvanceTimeResponse,
    CreditPackage,
    CreditPackageCreateRequest,
    CreditPackageUpdateRequest,
    DigitalProduct,
    MarkReadResponse,
    NotificationListResponse,
    PendingPurchase,
    ProductCreateRequest,
    ProductUpdateRequest,
    PurchaseStatus,
    ResetTimeResponse,
    SetTimeRequest,
    StoreStatisticsResponse,
    TimeResponse,
)
from credit_store.services.catalog_manager import CatalogManager
from credit_store.services.ledger_engine import CreditLedgerEngine
from credit_store.services.notifier import Notifier
from credit_store.services.time_controller import TimeController
from credit_store.utils.time_utils import millis_to_iso

logger = get_logger(__name__)
router = APIRouter(tags=["Admin API"], prefix="/admin")


def require_admin(actor: Actor = Depends(get_actor)) -> Actor:
    """Reject callers without the admin role."""
    if not actor.is_admin:
        raise to_http_exception(
            UnauthorizedError(f"User {actor.user_id} is not an admin")
        )
    return actor


# Purchase queue


@router.get("/purchases", response_model=List[PendingPurchase], summary="List purchase requests")
def list_purchases(
        status: Optional[PurchaseStatus] = Query(None, description="Only this status"),
        actor: Actor = Depends(get_actor),
        engine: CreditLedgerEngine = Depends(get_engine),
) -> List[PendingPurchase]:
    try:
        return engine.list_pending_purchases(actor, status)
    except StoreError as e:
        raise to_http_exception(e)


@router.post(
    "/purchases/{purchase_id}/approve",
    response_model=PendingPurchase,
    summary="Approve purchase request",
)
def approve_purchase(
        purchase_id: str,
        actor: Actor = Depends(get_actor),
        engine: CreditLedgerEngine = Depends(get_engine),
) -> PendingPurchase:
    """Approve a pending purchase.

    Raises:
        403: Caller is not an admin
        404: Purchase, package or product not found
        409: Purchase already resolved
        402: User cannot pay for the product
    """
    logger.info("approve_purchase_request", purchase_id=purchase_id, admin_id=actor.user_id)
    try:
        return engine.approve_pending_purchase(purchase_id, actor)
    except StoreError as e:
        raise to_http_exception(e)


@router.post(
    "/purchases/{purchase_id}/reject",
    response_model=PendingPurchase,
    summary="Reject purchase request",
)
def reject_purchase(
        purchase_id: str,
        actor: Actor = Depends(get_actor),
        engine: CreditLedgerEngine = Depends(get_engine),
) -> PendingPurchase:
    logger.info("reject_purchase_request", purchase_id=purchase_id, admin_id=actor.user_id)
    try:
        return engine.reject_pending_purchase(purchase_id, actor)
    except StoreError as e:
        raise to_http_exception(e)


@router.get("/stats", response_model=StoreStatisticsResponse, summary="Ledger statistics")
def get_stats(
        actor: Actor = Depends(get_actor),
        engine: CreditLedgerEngine = Depends(get_engine),
) -> StoreStatisticsResponse:
    """Counts of lots, grants and purchase requests across all users."""
    try:
        return StoreStatisticsResponse(**engine.get_statistics(actor))
    except StoreError as e:
        raise to_http_exception(e)


# Products


@router.post("/products", response_model=DigitalProduct, status_code=201, summary="Add product")
def add_product(
        request: ProductCreateRequest,
        actor: Actor = Depends(get_actor),
        catalog: CatalogManager = Depends(get_catalog_manager),
) -> DigitalProduct:
    try:
        return catalog.add_product(actor, **request.model_dump())
    except (StoreError, ValueError) as e:
        raise to_http_exception(e)


@router.put("/products/{product_id}", response_model=DigitalProduct, summary="Update product")
def update_product(
        product_id: str,
        request: ProductUpdateRequest,
        actor: Actor = Depends(get_actor),
        catalog: CatalogManager = Depends(get_catalog_manager),
) -> DigitalProduct:
    try:
        return catalog.update_product(actor, product_id, **request.model_dump(exclude_unset=True))
    except (StoreError, ValueError) as e:
        raise to_http_exception(e)


@router.delete("/products/{product_id}", response_model=DigitalProduct, summary="Delete product")
def delete_product(
        product_id: str,
        actor: Actor = Depends(get_actor),
        catalog: CatalogManager = Depends(get_catalog_manager),
) -> DigitalProduct:
    try:
        return catalog.delete_product(actor, product_id)
    except StoreError as e:
        raise to_http_exception(e)


# Credit packages


@router.post(
    "/credit-packages",
    response_model=CreditPackage,
    status_code=201,
    summary="Add credit package",
)
def add_credit_package(
        request: CreditPackageCreateRequest,
        actor: Actor = Depends(get_actor),
        catalog: CatalogManager = Depends(get_catalog_manager),
) -> CreditPackage:
    try:
        return catalog.add_credit_package(actor, **request.model_dump())
    except (StoreError, ValueError) as e:
        raise to_http_exception(e)


@router.put(
    "/credit-packages/{package_id}",
    response_model=CreditPackage,
    summary="Update credit package",
)
def update_credit_package(
        package_id: str,
        request: CreditPackageUpdateRequest,
        actor: Actor = Depends(get_actor),
        catalog: CatalogManager = Depends(get_catalog_manager),
) -> CreditPackage:
    try:
        return catalog.update_credit_package(
            actor, package_id, **request.model_dump(exclude_unset=True)
        )
    except (StoreError, ValueError) as e:
        raise to_http_exception(e)


@router.delete(
    "/credit-packages/{package_id}",
    response_model=CreditPackage,
    summary="Delete credit package",
)
def delete_credit_package(
        package_id: str,
        actor: Actor = Depends(get_actor),
        catalog: CatalogManager = Depends(get_catalog_manager),
) -> CreditPackage:
    try:
        return catalog.delete_credit_package(actor, package_id)
    except StoreError as e:
        raise to_http_exception(e)


# Admin inbox


@router.get("/notifications", response_model=NotificationListResponse, summary="List admin notifications")
def list_admin_notifications(
        actor: Actor = Depends(require_admin),
        notifier: Notifier = Depends(get_notifier),
) -> NotificationListResponse:
    return NotificationListResponse(
        recipient=ADMIN_RECIPIENT,
        unread_count=notifier.unread_count(ADMIN_RECIPIENT),
        notifications=notifier.list_for(ADMIN_RECIPIENT),
    )


@router.post("/notifications/read-all", response_model=MarkReadResponse, summary="Mark admin inbox read")
def mark_all_admin_notifications_read(
        actor: Actor = Depends(require_admin),
        notifier: Notifier = Depends(get_notifier),
) -> MarkReadResponse:
    return MarkReadResponse(updated=notifier.mark_all_as_read(ADMIN_RECIPIENT))


@router.post(
    "/notifications/{notification_id}/read",
    response_model=MarkReadResponse,
    summary="Mark admin notification read",
)
def mark_admin_notification_read(
        notification_id: str,
        actor: Actor = Depends(require_admin),
        notifier: Notifier = Depends(get_notifier),
) -> MarkReadResponse:
    if not notifier.mark_as_read(notification_id, ADMIN_RECIPIENT):
        raise HTTPException(
            status_code=404,
            detail={
                "error": "Not found",
                "message": f"Notification '{notification_id}' not found",
            },
        )
    return MarkReadResponse(updated=1)


# Store clock


@router.get("/time", response_model=TimeResponse, summary="Get store time")
def get_time(
        actor: Actor = Depends(require_admin),
        clock: TimeController = Depends(get_time_controller),
) -> TimeResponse:
    now = clock.get_current_time_millis()
    return TimeResponse(
        current_time_millis=now,
        current_time=millis_to_iso(now),
        offset_millis=clock.offset_millis,
        frozen=clock.is_frozen,
    )


@router.post("/time/advance", response_model=AdvanceTimeResponse, summary="Advance store time")
def advance_time(
        request: AdvanceTimeRequest,
        actor: Actor = Depends(require_admin),
        clock: TimeController = Depends(get_time_controller),
) -> AdvanceTimeResponse:
    """Move the clock forward and sweep every user's ledger.

    Raises:
        400: Negative values
    """
    logger.info(
        "advance_time_request",
        days=request.days,
        hours=request.hours,
        minutes=request.minutes,
    )
    try:
        result = clock.advance_time(days=request.days, hours=request.hours, minutes=request.minutes)
    except ValueError as e:
        raise to_http_exception(e)
    return AdvanceTimeResponse(**result)


@router.post("/time/set", response_model=AdvanceTimeResponse, summary="Set store time")
def set_time(
        request: SetTimeRequest,
        actor: Actor = Depends(require_admin),
        clock: TimeController = Depends(get_time_controller),
) -> AdvanceTimeResponse:
    logger.info("set_time_request", timestamp_millis=request.timestamp_millis)
    try:
        result = clock.set_time(request.timestamp_millis)
    except ValueError as e:
        raise to_http_exception(e)
    return AdvanceTimeResponse(**result)


@router.post("/time/reset", response_model=ResetTimeResponse, summary="Reset store time")
def reset_time(
        actor: Actor = Depends(require_admin),
        clock: TimeController = Depends(get_time_controller),
) -> ResetTimeResponse:
    return ResetTimeResponse(**clock.reset_time())
