"""Store API for signed-in users.

Implements:
- GET  /store/products, /store/credit-packages - Browse the catalog
- GET  /store/profile, PUT /store/profile - Read or register the caller's profile
- GET  /store/credits, /store/history, /store/grants, /store/purchases - Ledger views
- POST /store/products/{product_id}/purchase - Buy product access with credits
- POST /store/products/{product_id}/renew - Renew product access
- POST /store/credit-packages/{package_id}/purchase - Request a credit package
- POST /store/sweep - Expire stale credits and products
- GET  /store/notifications, POST .../{id}/read, POST .../read-all - Inbox
"""

from typing import List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query

from credit_store.api.dependencies import (
    get_actor,
    get_catalog_manager,
    get_engine,
    get_notifier,
    get_profiles,
    to_http_exception,
)
from credit_store.errors import StoreError
from credit_store.logging_config import get_logger
from credit_store.models import (
    Actor,
    CreditBalanceResponse,
    CreditPackage,
    DigitalProduct,
    MarkReadResponse,
    NotificationListResponse,
    PendingPurchase,
    ProductGrant,
    ProfileRequest,
    UsageHistoryResponse,
    UserProfile,
)
from credit_store.repositories.profile_store import ProfileStore
from credit_store.services.catalog_manager import CatalogManager
from credit_store.services.ledger_engine import CreditLedgerEngine, SweepResult
from credit_store.services.notifier import Notifier

logger = get_logger(__name__)
router = APIRouter(tags=["Store API"], prefix="/store")


@router.get("/products", response_model=List[DigitalProduct], summary="List products")
def list_products(
        category: Optional[str] = Query(None, description="Only this category"),
        catalog: CatalogManager = Depends(get_catalog_manager),
) -> List[DigitalProduct]:
    return catalog.list_products(category)


@router.get("/credit-packages", response_model=List[CreditPackage], summary="List credit packages")
def list_credit_packages(catalog: CatalogManager = Depends(get_catalog_manager)) -> List[CreditPackage]:
    return catalog.list_credit_packages()


@router.get("/profile", response_model=UserProfile, summary="Get caller profile")
def get_profile(
        actor: Actor = Depends(get_actor),
        profiles: ProfileStore = Depends(get_profiles),
) -> UserProfile:
    try:
        return profiles.get_by_id(actor.user_id)
    except StoreError as e:
        raise to_http_exception(e)


@router.put("/profile", response_model=UserProfile, summary="Register or update caller profile")
def put_profile(
        request: ProfileRequest,
        actor: Actor = Depends(get_actor),
        profiles: ProfileStore = Depends(get_profiles),
        engine: CreditLedgerEngine = Depends(get_engine),
) -> UserProfile:
    """Register the caller, or update their profile.

    This is the session start hook, so it also sweeps the caller's
    expired credits and products.
    """
    existing = profiles.find_by_id(actor.user_id)
    profile = UserProfile(
        user_id=actor.user_id,
        name=request.name,
        email=request.email,
        phone_number=request.phone_number,
        role=actor.role,
        joined_at_millis=(
            existing.joined_at_millis if existing else engine.clock.get_current_time_millis()
        ),
    )
    profiles.upsert(profile)
    logger.info(
        "profile_saved",
        user_id=actor.user_id,
        role=actor.role.value,
        created=existing is None,
        phone=profile.phone_number,
    )

    engine.sweep_expiry(actor.user_id)
    return profile


@router.get("/credits", response_model=CreditBalanceResponse, summary="Get credit balance")
def get_credits(
        actor: Actor = Depends(get_actor),
        engine: CreditLedgerEngine = Depends(get_engine),
) -> CreditBalanceResponse:
    return CreditBalanceResponse(
        user_id=actor.user_id,
        total_credits=engine.get_total_credits(actor.user_id),
        lots=engine.get_user_lots(actor.user_id),
    )


@router.get("/history", response_model=UsageHistoryResponse, summary="Get usage history")
def get_history(
        limit: Optional[int] = Query(None, ge=0, description="Number of records (default from config)"),
        actor: Actor = Depends(get_actor),
        engine: CreditLedgerEngine = Depends(get_engine),
) -> UsageHistoryResponse:
    return UsageHistoryResponse(
        user_id=actor.user_id,
        records=engine.get_usage_history(actor.user_id, limit),
    )


@router.get("/grants", response_model=List[ProductGrant], summary="List product grants")
def get_grants(
        actor: Actor = Depends(get_actor),
        engine: CreditLedgerEngine = Depends(get_engine),
) -> List[ProductGrant]:
    return engine.get_user_grants(actor.user_id)


@router.get("/purchases", response_model=List[PendingPurchase], summary="List purchase requests")
def get_purchases(
        actor: Actor = Depends(get_actor),
        engine: CreditLedgerEngine = Depends(get_engine),
) -> List[PendingPurchase]:
    return engine.get_user_purchases(actor.user_id)


@router.post(
    "/products/{product_id}/purchase",
    response_model=Union[ProductGrant, PendingPurchase],
    status_code=201,
    summary="Purchase product access",
)
def purchase_product(
        product_id: str,
        actor: Actor = Depends(get_actor),
        engine: CreditLedgerEngine = Depends(get_engine),
) -> Union[ProductGrant, PendingPurchase]:
    """Buy access to a product with credits.

    Returns the new grant, or the pending purchase when product
    purchases need admin approval.

    Raises:
        404: User or product not found
        402: Not enough credits
    """
    logger.info("purchase_product_request", user_id=actor.user_id, product_id=product_id)
    try:
        return engine.purchase_product(actor.user_id, product_id)
    except StoreError as e:
        raise to_http_exception(e)


@router.post(
    "/products/{product_id}/renew",
    response_model=ProductGrant,
    summary="Renew product access",
)
def renew_product(
        product_id: str,
        actor: Actor = Depends(get_actor),
        engine: CreditLedgerEngine = Depends(get_engine),
) -> ProductGrant:
    """Renew access at the product's current price.

    Raises:
        404: User, product or previous grant not found
        402: Not enough credits
    """
    logger.info("renew_product_request", user_id=actor.user_id, product_id=product_id)
    try:
        return engine.renew_product_access(actor.user_id, product_id)
    except StoreError as e:
        raise to_http_exception(e)


@router.post(
    "/credit-packages/{package_id}/purchase",
    response_model=PendingPurchase,
    status_code=201,
    summary="Request a credit package",
)
def purchase_credit_package(
        package_id: str,
        actor: Actor = Depends(get_actor),
        engine: CreditLedgerEngine = Depends(get_engine),
) -> PendingPurchase:
    """File a credit package purchase. Credits arrive once an admin approves it.

    Raises:
        404: User or package not found
    """
    logger.info("purchase_credit_package_request", user_id=actor.user_id, package_id=package_id)
    try:
        return engine.purchase_credit_package(actor.user_id, package_id)
    except StoreError as e:
        raise to_http_exception(e)


@router.post("/sweep", response_model=SweepResult, summary="Sweep expired credits and products")
def sweep(
        actor: Actor = Depends(get_actor),
        engine: CreditLedgerEngine = Depends(get_engine),
) -> SweepResult:
    return engine.sweep_expiry(actor.user_id)


@router.get("/notifications", response_model=NotificationListResponse, summary="List notifications")
def list_notifications(
        actor: Actor = Depends(get_actor),
        notifier: Notifier = Depends(get_notifier),
) -> NotificationListResponse:
    return NotificationListResponse(
        recipient=actor.user_id,
        unread_count=notifier.unread_count(actor.user_id),
        notifications=notifier.list_for(actor.user_id),
    )


@router.post(
    "/notifications/read-all",
    response_model=MarkReadResponse,
    summary="Mark all notifications as read",
)
def mark_all_notifications_read(
        actor: Actor = Depends(get_actor),
        notifier: Notifier = Depends(get_notifier),
) -> MarkReadResponse:
    return MarkReadResponse(updated=notifier.mark_all_as_read(actor.user_id))


@router.post(
    "/notifications/{notification_id}/read",
    response_model=MarkReadResponse,
    summary="Mark a notification as read",
)
def mark_notification_read(
        notification_id: str,
        actor: Actor = Depends(get_actor),
        notifier: Notifier = Depends(get_notifier),
) -> MarkReadResponse:
    if not notifier.mark_as_read(notification_id, actor.user_id):
        raise HTTPException(
            status_code=404,
            detail={
                "error": "Not found",
                "message": f"Notification '{notification_id}' not found",
            },
        )
    return MarkReadResponse(updated=1)
