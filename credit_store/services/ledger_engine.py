"""Credit ledger and expiry engine.

Responsibilities:
- Issue credit lots when admins approve credit package purchases
- Consume credits oldest lot first for product purchases and renewals
- Create and renew product grants
- Expire lots and grants, auto-renewing grants the user can pay for
- Keep the usage history log

Each mutating operation runs under the affected user's lock. The
consumption plan is computed and funds are checked before any lot is
touched, so a failed operation leaves the ledger unchanged. Notifications
are collected while the lock is held and delivered after it is released.
"""

import threading
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from credit_store.errors import (
    GrantNotFoundError,
    InsufficientCreditsError,
    PurchaseAlreadyResolvedError,
    UnauthorizedError,
)
from credit_store.logging_config import get_logger
from credit_store.models import (
    ADMIN_RECIPIENT,
    Actor,
    CreditLot,
    EngineConfig,
    GrantStatus,
    LotStatus,
    NotificationKind,
    PendingPurchase,
    ProductGrant,
    PurchaseKind,
    PurchaseStatus,
    UsageAction,
    UsageHistoryRecord,
    UserProfile,
)
from credit_store.models.catalog import DigitalProduct
from credit_store.repositories.catalog_repository import CatalogRepository
from credit_store.repositories.interfaces import (
    CreditLotStoreInterface,
    GrantStoreInterface,
    PendingPurchaseStoreInterface,
    ProfileStoreInterface,
    UsageHistoryStoreInterface,
)
from credit_store.services.notifier import Notifier
from credit_store.services.time_controller import TimeController
from credit_store.utils import id_generator
from credit_store.utils.id_generator import generate_record_id
from credit_store.utils.time_utils import expiry_from, format_date

logger = get_logger(__name__)

# (lot, credits to take from it)
ConsumptionPlan = List[Tuple[CreditLot, int]]


class SweepResult(BaseModel):
    """What one expiry sweep changed for a user."""

    user_id: str = Field(..., description="User swept")
    swept_at_millis: int = Field(..., description="Sweep time (Unix millis)")
    expired_lot_ids: List[str] = Field(default_factory=list, description="Lots expired by date")
    renewed_grant_ids: List[str] = Field(default_factory=list, description="Grants auto-renewed")
    expired_grant_ids: List[str] = Field(default_factory=list, description="Grants expired")

    @property
    def changed(self) -> bool:
        return bool(self.expired_lot_ids or self.renewed_grant_ids or self.expired_grant_ids)


class CreditLedgerEngine:
    """Credit ledger engine over injected stores.

    Args:
        lots: credit lot store
        grants: product grant store
        purchases: pending purchase store
        history: usage history store
        profiles: user profile store
        catalog: catalog repository
        clock: store clock
        notifier: notification fan-out
        settings: engine section of store.yaml
    """

    def __init__(
            self,
            lots: CreditLotStoreInterface,
            grants: GrantStoreInterface,
            purchases: PendingPurchaseStoreInterface,
            history: UsageHistoryStoreInterface,
            profiles: ProfileStoreInterface,
            catalog: CatalogRepository,
            clock: TimeController,
            notifier: Notifier,
            settings: Optional[EngineConfig] = None,
    ):
        self.lots = lots
        self.grants = grants
        self.purchases = purchases
        self.history = history
        self.profiles = profiles
        self.catalog = catalog
        self.clock = clock
        self.notifier = notifier
        self.settings = settings or EngineConfig()

        self._user_locks: Dict[str, threading.RLock] = {}
        self._user_locks_guard = threading.Lock()

        logger.info(
            "ledger_engine_initialized",
            auto_renew_enabled=self.settings.auto_renew_enabled,
            require_product_approval=self.settings.require_product_approval,
        )

    # Helpers

    def _user_lock(self, user_id: str) -> threading.RLock:
        with self._user_locks_guard:
            lock = self._user_locks.get(user_id)
            if lock is None:
                lock = threading.RLock()
                self._user_locks[user_id] = lock
            return lock

    def _now(self) -> int:
        return self.clock.get_current_time_millis()

    def _new_id(self, kind: str) -> str:
        return generate_record_id(kind, self.settings.id_prefix)

    def _require_user(self, user_id: str) -> UserProfile:
        return self.profiles.get_by_id(user_id)

    def _require_admin(self, actor: Actor, operation: str) -> None:
        if not actor.is_admin:
            logger.warning("unauthorized_operation", user_id=actor.user_id, operation=operation)
            raise UnauthorizedError(f"User {actor.user_id} is not allowed to {operation}")

    def _record_usage(
            self,
            user_id: str,
            action: UsageAction,
            amount: int,
            at_millis: int,
            product_id: Optional[str] = None,
            product_name: Optional[str] = None,
    ) -> None:
        self.history.append(
            UsageHistoryRecord(
                id=self._new_id(id_generator.USAGE),
                user_id=user_id,
                action=action,
                amount=amount,
                timestamp_millis=at_millis,
                product_id=product_id,
                product_name=product_name,
            )
        )

    def _deliver(self, outbox: List[dict]) -> None:
        """Send notifications collected during a committed operation."""
        for message in outbox:
            self.notifier.notify(**message)

    # Consumption

    def _plan_consumption(self, user_id: str, cost: int, now: int) -> ConsumptionPlan:
        """Work out which lots pay for a cost, oldest purchase first.

        Lots past their expiry date at `now` are never spent, whether or not
        a sweep has marked them expired yet. Nothing is mutated here.

        Raises:
            InsufficientCreditsError: If active credits do not cover the cost
        """
        active_lots = self.lots.get_active_by_user(user_id, now_millis=now)
        available = sum(lot.amount for lot in active_lots)
        if available < cost:
            raise InsufficientCreditsError(user_id=user_id, required=cost, available=available)

        plan: ConsumptionPlan = []
        remaining = cost
        for lot in active_lots:
            if remaining == 0:
                break
            if lot.amount == 0:
                continue
            take = min(lot.amount, remaining)
            plan.append((lot, take))
            remaining -= take
        return plan

    def _apply_consumption(self, plan: ConsumptionPlan) -> None:
        for lot, take in plan:
            lot.deduct(take)
            self.lots.update(lot)

    # Read accessors

    def get_total_credits(self, user_id: str) -> int:
        """Sum of remaining credits over the user's active, unexpired lots."""
        return self.lots.get_active_balance(user_id, now_millis=self._now())

    def get_usage_history(self, user_id: str, limit: Optional[int] = None) -> List[UsageHistoryRecord]:
        """Most recent usage records for a user, newest first."""
        if limit is None:
            limit = self.settings.history_limit
        return self.history.get_recent(user_id, limit)

    def get_user_grants(self, user_id: str) -> List[ProductGrant]:
        return self.grants.get_by_user(user_id)

    def get_user_lots(self, user_id: str) -> List[CreditLot]:
        return self.lots.get_by_user(user_id)

    def get_user_purchases(self, user_id: str) -> List[PendingPurchase]:
        return self.purchases.get_by_user(user_id)

    def list_pending_purchases(
            self, actor: Actor, status: Optional[PurchaseStatus] = None
    ) -> List[PendingPurchase]:
        """List purchase requests for the admin queue.

        Raises:
            UnauthorizedError: If the actor is not an admin
        """
        self._require_admin(actor, "list purchases")
        return self.purchases.get_all(status)

    def get_statistics(self, actor: Actor) -> Dict[str, Dict[str, int]]:
        """Ledger-wide counts per store (admin only)."""
        self._require_admin(actor, "view store statistics")
        return {
            "lots": self.lots.get_statistics(),
            "grants": self.grants.get_statistics(),
            "purchases": self.purchases.get_statistics(),
        }

    # Product purchases

    def purchase_product(self, user_id: str, product_id: str):
        """Buy access to a product with credits.

        When product approval is required this only files a pending
        purchase for the admins.

        Args:
            user_id: Buying user
            product_id: Catalog product ID

        Returns:
            New ProductGrant, or PendingPurchase when approval is required

        Raises:
            UserNotFoundError: If the user has no profile
            ProductNotFoundError: If the product is not in the catalog
            InsufficientCreditsError: If active credits do not cover the price
        """
        profile = self._require_user(user_id)
        product = self.catalog.get_product(product_id)

        if self.settings.require_product_approval:
            return self._file_pending_purchase(
                profile,
                kind=PurchaseKind.PRODUCT,
                item_id=product.id,
                item_name=product.name,
                amount=product.price,
                title="New Purchase Request",
            )

        outbox: List[dict] = []
        with self._user_lock(user_id):
            grant = self._settle_product_purchase(user_id, product)
            outbox.append(
                dict(
                    recipient=user_id,
                    title="Purchase Successful",
                    message=(
                        f"You now have access to {product.name} until "
                        f"{format_date(grant.expiry_date_millis)}"
                    ),
                    kind=NotificationKind.PURCHASE,
                )
            )

        self._deliver(outbox)
        return grant

    def _settle_product_purchase(self, user_id: str, product: DigitalProduct) -> ProductGrant:
        """Charge a product's price and create the grant. Caller holds the user lock."""
        now = self._now()
        plan = self._plan_consumption(user_id, product.price, now)

        self._apply_consumption(plan)
        grant = ProductGrant(
            id=self._new_id(id_generator.GRANT),
            product_id=product.id,
            user_id=user_id,
            purchase_date_millis=now,
            expiry_date_millis=expiry_from(now, product.expiry_days),
            status=GrantStatus.ACTIVE,
            product_name=product.name,
            price_credits=product.price,
            expiry_days=product.expiry_days,
        )
        self.grants.add(grant)
        self._record_usage(
            user_id, UsageAction.PURCHASE, -product.price, now, product.id, product.name
        )

        logger.info(
            "product_purchased",
            user_id=user_id,
            product_id=product.id,
            grant_id=grant.id,
            price=product.price,
            lots_consumed=len(plan),
            expiry=format_date(grant.expiry_date_millis),
        )
        return grant

    def renew_product_access(self, user_id: str, product_id: str) -> ProductGrant:
        """Renew the user's latest grant for a product at the current catalog price.

        The new expiry is counted from now, not from the old expiry.

        Raises:
            UserNotFoundError: If the user has no profile
            ProductNotFoundError: If the product is not in the catalog
            GrantNotFoundError: If the user never bought the product
            InsufficientCreditsError: If active credits do not cover the price
        """
        self._require_user(user_id)
        product = self.catalog.get_product(product_id)

        outbox: List[dict] = []
        with self._user_lock(user_id):
            grant = self.grants.find_latest(user_id, product_id)
            if grant is None:
                raise GrantNotFoundError(
                    f"User {user_id} has no grant for product {product_id} to renew"
                )

            now = self._now()
            plan = self._plan_consumption(user_id, product.price, now)

            self._apply_consumption(plan)
            self._extend_grant(grant, product, now, reason="renewal")
            self._record_usage(
                user_id, UsageAction.RENEWAL, -product.price, now, product.id, product.name
            )

            logger.info(
                "product_renewed",
                user_id=user_id,
                product_id=product_id,
                grant_id=grant.id,
                price=product.price,
                renewal_count=grant.renewal_count,
            )
            outbox.append(
                dict(
                    recipient=user_id,
                    title="Product Renewed",
                    message=(
                        f"Your access to {product.name} has been renewed until "
                        f"{format_date(grant.expiry_date_millis)}"
                    ),
                    kind=NotificationKind.PURCHASE,
                )
            )

        self._deliver(outbox)
        return grant

    def _extend_grant(self, grant: ProductGrant, product: DigitalProduct, now: int, reason: str) -> None:
        """Restart a grant's access period from now with current catalog terms."""
        grant.renewal_count += 1
        grant.price_credits = product.price
        grant.expiry_days = product.expiry_days
        grant.product_name = product.name
        grant.extend_expiry(expiry_from(now, product.expiry_days), reason=reason)
        grant.set_status(GrantStatus.ACTIVE, reason=reason)
        self.grants.update(grant)

    # Credit packages and approval

    def purchase_credit_package(self, user_id: str, package_id: str) -> PendingPurchase:
        """File a credit package purchase for admin approval.

        No credits are issued until an admin approves it.

        Raises:
            UserNotFoundError: If the user has no profile
            PackageNotFoundError: If the package is not in the catalog
        """
        profile = self._require_user(user_id)
        package = self.catalog.get_package(package_id)
        return self._file_pending_purchase(
            profile,
            kind=PurchaseKind.CREDIT_PACKAGE,
            item_id=package.id,
            item_name=package.name,
            amount=package.price,
            title="New Credit Purchase Request",
        )

    def _file_pending_purchase(
            self,
            profile: UserProfile,
            kind: PurchaseKind,
            item_id: str,
            item_name: str,
            amount: float,
            title: str,
    ) -> PendingPurchase:
        purchase = PendingPurchase(
            id=self._new_id(id_generator.PURCHASE),
            user_id=profile.user_id,
            kind=kind,
            referenced_item_id=item_id,
            item_name=item_name,
            monetary_amount=amount,
            created_at_millis=self._now(),
        )
        self.purchases.add(purchase)

        logger.info(
            "purchase_request_created",
            purchase_id=purchase.id,
            user_id=profile.user_id,
            kind=kind.value,
            item_id=item_id,
            amount=amount,
        )
        self._deliver([
            dict(
                recipient=ADMIN_RECIPIENT,
                title=title,
                message=f"User {profile.name} has requested to purchase {item_name}",
                kind=NotificationKind.PURCHASE,
                action_required=True,
                related_purchase_id=purchase.id,
            )
        ])
        return purchase

    def _load_pending(self, purchase_id: str) -> PendingPurchase:
        purchase = self.purchases.get_by_id(purchase_id)
        if not purchase.is_pending:
            raise PurchaseAlreadyResolvedError(
                f"Purchase {purchase_id} is already {purchase.status.value}"
            )
        return purchase

    def approve_pending_purchase(self, purchase_id: str, actor: Actor) -> PendingPurchase:
        """Approve a pending purchase (admin only).

        Credit packages issue a new lot with the package's current catalog
        terms. Product purchases are charged and granted as in
        purchase_product; if the user cannot pay, nothing changes.

        Raises:
            UnauthorizedError: If the actor is not an admin
            PurchaseNotFoundError: If the purchase ID is unknown
            PurchaseAlreadyResolvedError: If the purchase is no longer pending
            PackageNotFoundError: If the package has left the catalog
            ProductNotFoundError: If the product has left the catalog
            InsufficientCreditsError: If the user cannot pay for a product
        """
        self._require_admin(actor, "approve purchases")
        user_id = self.purchases.get_by_id(purchase_id).user_id

        outbox: List[dict] = []
        with self._user_lock(user_id):
            purchase = self._load_pending(purchase_id)

            if purchase.kind == PurchaseKind.CREDIT_PACKAGE:
                package = self.catalog.get_package(purchase.referenced_item_id)
                now = self._now()
                purchase.resolve(PurchaseStatus.APPROVED, actor.user_id, now)
                self.purchases.update(purchase)

                lot = CreditLot(
                    id=self._new_id(id_generator.LOT),
                    user_id=user_id,
                    amount=package.credits,
                    initial_amount=package.credits,
                    purchase_date_millis=now,
                    expiry_date_millis=expiry_from(now, package.expiry_days),
                    status=LotStatus.ACTIVE,
                    source_package_id=package.id,
                    source_package_name=package.name,
                    source_purchase_id=purchase.id,
                )
                self.lots.add(lot)
                self._record_usage(
                    user_id, UsageAction.CREDIT_PURCHASE, package.credits, now,
                    product_name=package.name,
                )

                logger.info(
                    "credit_lot_created",
                    lot_id=lot.id,
                    user_id=user_id,
                    package_id=package.id,
                    credits=package.credits,
                    expiry=format_date(lot.expiry_date_millis),
                    purchase_id=purchase.id,
                )
                outbox.append(
                    dict(
                        recipient=user_id,
                        title="Credits Added",
                        message=(
                            f"Your purchase of {package.name} has been approved. "
                            f"{package.credits} credits have been added to your account"
                        ),
                        kind=NotificationKind.SYSTEM,
                        related_purchase_id=purchase.id,
                    )
                )
            else:
                product = self.catalog.get_product(purchase.referenced_item_id)
                self._settle_product_purchase(user_id, product)
                purchase.resolve(PurchaseStatus.APPROVED, actor.user_id, self._now())
                self.purchases.update(purchase)
                outbox.append(
                    dict(
                        recipient=user_id,
                        title="Purchase Approved",
                        message=f"Your purchase of {product.name} has been approved",
                        kind=NotificationKind.SYSTEM,
                        related_purchase_id=purchase.id,
                    )
                )

            logger.info(
                "purchase_approved",
                purchase_id=purchase.id,
                user_id=user_id,
                kind=purchase.kind.value,
                admin_id=actor.user_id,
            )

        self.notifier.clear_for_purchase(purchase_id)
        self._deliver(outbox)
        return purchase

    def reject_pending_purchase(self, purchase_id: str, actor: Actor) -> PendingPurchase:
        """Reject a pending purchase (admin only). The ledger is not touched.

        Raises:
            UnauthorizedError: If the actor is not an admin
            PurchaseNotFoundError: If the purchase ID is unknown
            PurchaseAlreadyResolvedError: If the purchase is no longer pending
        """
        self._require_admin(actor, "reject purchases")
        user_id = self.purchases.get_by_id(purchase_id).user_id

        with self._user_lock(user_id):
            purchase = self._load_pending(purchase_id)
            purchase.resolve(PurchaseStatus.REJECTED, actor.user_id, self._now())
            self.purchases.update(purchase)

            logger.info(
                "purchase_rejected",
                purchase_id=purchase.id,
                user_id=user_id,
                kind=purchase.kind.value,
                admin_id=actor.user_id,
            )

        self.notifier.clear_for_purchase(purchase_id)
        self._deliver([
            dict(
                recipient=user_id,
                title="Purchase Rejected",
                message=f"Your purchase of {purchase.item_name or 'item'} has been rejected",
                kind=NotificationKind.SYSTEM,
                related_purchase_id=purchase.id,
            )
        ])
        return purchase

    # Expiry

    def sweep_expiry(self, user_id: str) -> SweepResult:
        """Expire a user's stale lots and grants, auto-renewing grants where possible.

        Lots are expired first so auto-renewals never spend expired credits.
        Running it again without time passing changes nothing.
        """
        outbox: List[dict] = []
        with self._user_lock(user_id):
            now = self._now()
            result = SweepResult(user_id=user_id, swept_at_millis=now)

            expired_credits = 0
            for lot in self.lots.get_active_by_user(user_id):
                if not lot.is_past_expiry(now):
                    continue
                self._record_usage(user_id, UsageAction.CREDITS_EXPIRED, -lot.amount, now)
                lot.set_status(LotStatus.EXPIRED, reason="Expiry date passed")
                self.lots.update(lot)
                expired_credits += lot.amount
                result.expired_lot_ids.append(lot.id)

            expired_names: List[str] = []
            for grant in self.grants.get_active_by_user(user_id):
                if not grant.is_past_expiry(now):
                    continue
                if self._try_auto_renew(grant, now, outbox):
                    result.renewed_grant_ids.append(grant.id)
                else:
                    grant.set_status(GrantStatus.EXPIRED, reason="Expiry date passed")
                    self.grants.update(grant)
                    expired_names.append(grant.product_name)
                    result.expired_grant_ids.append(grant.id)

            if result.expired_lot_ids:
                outbox.append(
                    dict(
                        recipient=user_id,
                        title="Credits Expired",
                        message=f"{expired_credits} of your credits have expired",
                        kind=NotificationKind.EXPIRY,
                    )
                )
            if expired_names:
                outbox.append(
                    dict(
                        recipient=user_id,
                        title="Products Expired",
                        message=f"Some of your products have expired: {', '.join(expired_names)}",
                        kind=NotificationKind.EXPIRY,
                    )
                )

            if result.changed:
                logger.info(
                    "expiry_sweep_completed",
                    user_id=user_id,
                    lots_expired=len(result.expired_lot_ids),
                    credits_expired=expired_credits,
                    grants_renewed=len(result.renewed_grant_ids),
                    grants_expired=len(result.expired_grant_ids),
                )

        self._deliver(outbox)
        return result

    def _try_auto_renew(self, grant: ProductGrant, now: int, outbox: List[dict]) -> bool:
        """Renew an expired grant if enabled, still sold and affordable."""
        if not self.settings.auto_renew_enabled:
            return False

        product = self.catalog.find_product(grant.product_id)
        if product is None:
            logger.info(
                "auto_renewal_skipped",
                grant_id=grant.id,
                product_id=grant.product_id,
                reason="product_not_in_catalog",
            )
            return False

        try:
            plan = self._plan_consumption(grant.user_id, product.price, now)
        except InsufficientCreditsError as e:
            logger.info(
                "auto_renewal_skipped",
                grant_id=grant.id,
                product_id=grant.product_id,
                reason="insufficient_credits",
                required=e.required,
                available=e.available,
            )
            return False

        self._apply_consumption(plan)
        self._extend_grant(grant, product, now, reason="auto-renewal")
        self._record_usage(
            grant.user_id, UsageAction.AUTO_RENEWAL, -product.price, now, product.id, product.name
        )

        logger.info(
            "product_auto_renewed",
            user_id=grant.user_id,
            product_id=product.id,
            grant_id=grant.id,
            price=product.price,
            renewal_count=grant.renewal_count,
        )
        outbox.append(
            dict(
                recipient=grant.user_id,
                title="Product Auto-Renewed",
                message=(
                    f"Your access to {product.name} was renewed automatically for "
                    f"{product.price} credits until {format_date(grant.expiry_date_millis)}"
                ),
                kind=NotificationKind.PURCHASE,
            )
        )
        return True

    def sweep_all(self) -> List[SweepResult]:
        """Sweep every user that owns lots or grants.

        A failure for one user is logged and the sweep moves on.
        """
        user_ids = list(dict.fromkeys(self.lots.get_user_ids() + self.grants.get_user_ids()))
        results: List[SweepResult] = []

        for user_id in user_ids:
            try:
                results.append(self.sweep_expiry(user_id))
            except Exception as e:
                logger.error(
                    "expiry_sweep_failed",
                    user_id=user_id,
                    error=str(e),
                    exc_info=True,
                )

        logger.debug("expiry_sweep_all_completed", users=len(user_ids))
        return results
