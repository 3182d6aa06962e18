"""Tests for state change logging on ledger records.

Lots, grants and pending purchases log every transition they make.
"""

from unittest.mock import patch

import pytest

from credit_store.models import (
    CreditLot,
    GrantStatus,
    LotStatus,
    PendingPurchase,
    ProductGrant,
    PurchaseKind,
    PurchaseStatus,
)
from credit_store.utils.time_utils import MILLIS_PER_DAY

NOW = 1_700_000_000_000


@pytest.fixture
def lot():
    return CreditLot(
        id="lot-1",
        user_id="user-1",
        amount=100,
        initial_amount=100,
        purchase_date_millis=NOW,
        expiry_date_millis=NOW + 30 * MILLIS_PER_DAY,
        source_package_id="credit-1",
    )


@pytest.fixture
def grant():
    return ProductGrant(
        id="grant-1",
        product_id="prod-1",
        user_id="user-1",
        purchase_date_millis=NOW,
        expiry_date_millis=NOW + 30 * MILLIS_PER_DAY,
        product_name="Premium Design Templates",
        price_credits=50,
        expiry_days=30,
    )


@pytest.fixture
def purchase():
    return PendingPurchase(
        id="purchase-1",
        user_id="user-1",
        kind=PurchaseKind.CREDIT_PACKAGE,
        referenced_item_id="credit-1",
        item_name="Starter Pack",
        monetary_amount=9.99,
        created_at_millis=NOW,
    )


class TestCreditLotTransitions:
    """Deductions and status changes on credit lots."""

    def test_partial_deduct_logs_amount(self, lot):
        with patch("credit_store.models.ledger.log_lot_amount_change") as log_amount, \
                patch("credit_store.models.ledger.log_lot_status_change") as log_status:
            lot.deduct(40)

        assert lot.amount == 60
        assert lot.status == LotStatus.ACTIVE
        log_amount.assert_called_once_with(
            lot_id="lot-1", user_id="user-1", old_amount=100, new_amount=60, reason="consumed"
        )
        log_status.assert_not_called()

    def test_full_deduct_expires_lot(self, lot):
        with patch("credit_store.models.ledger.log_lot_status_change") as log_status:
            lot.deduct(100)

        assert lot.amount == 0
        assert lot.status == LotStatus.EXPIRED
        assert log_status.call_args.kwargs["new_status"] == "expired"
        assert log_status.call_args.kwargs["reason"] == "Fully consumed"

    def test_deduct_more_than_remaining(self, lot):
        with pytest.raises(ValueError):
            lot.deduct(101)
        assert lot.amount == 100

    def test_deduct_zero(self, lot):
        with pytest.raises(ValueError):
            lot.deduct(0)

    def test_deduct_from_expired_lot(self, lot):
        lot.set_status(LotStatus.EXPIRED, reason="Expiry date passed")
        with pytest.raises(ValueError):
            lot.deduct(10)

    def test_same_status_is_not_logged(self, lot):
        with patch("credit_store.models.ledger.log_lot_status_change") as log_status:
            lot.set_status(LotStatus.ACTIVE)
        log_status.assert_not_called()

    def test_past_expiry_is_strict(self, lot):
        assert lot.is_past_expiry(lot.expiry_date_millis) is False
        assert lot.is_past_expiry(lot.expiry_date_millis + 1) is True


class TestGrantTransitions:
    """Status and expiry changes on product grants."""

    def test_status_change_logged(self, grant):
        with patch("credit_store.models.grant.log_grant_status_change") as log_status:
            grant.set_status(GrantStatus.EXPIRED, reason="Expiry date passed")

        assert grant.status == GrantStatus.EXPIRED
        log_status.assert_called_once_with(
            grant_id="grant-1",
            product_id="prod-1",
            old_status="active",
            new_status="expired",
            reason="Expiry date passed",
            user_id="user-1",
        )

    def test_extend_expiry_logged(self, grant):
        new_expiry = grant.expiry_date_millis + 30 * MILLIS_PER_DAY
        with patch("credit_store.models.grant.log_grant_expiry_change") as log_expiry:
            grant.extend_expiry(new_expiry, reason="renewal")

        assert grant.expiry_date_millis == new_expiry
        assert log_expiry.call_args.kwargs["old_expiry_millis"] == NOW + 30 * MILLIS_PER_DAY
        assert log_expiry.call_args.kwargs["reason"] == "renewal"

    def test_real_logger_accepts_grant_changes(self, grant):
        grant.extend_expiry(grant.expiry_date_millis + MILLIS_PER_DAY, reason="renewal")
        grant.set_status(GrantStatus.EXPIRED)


class TestPurchaseResolution:
    """Pending purchases resolve exactly once."""

    def test_approve(self, purchase):
        with patch("credit_store.models.purchase.log_purchase_status_change") as log_change:
            purchase.resolve(PurchaseStatus.APPROVED, "admin-1", NOW + 1000)

        assert purchase.status == PurchaseStatus.APPROVED
        assert purchase.resolved_by == "admin-1"
        assert purchase.resolved_at_millis == NOW + 1000
        assert log_change.call_args.kwargs["old_status"] == "pending"
        assert log_change.call_args.kwargs["new_status"] == "approved"

    def test_cannot_resolve_twice(self, purchase):
        purchase.resolve(PurchaseStatus.REJECTED, "admin-1", NOW)

        with pytest.raises(ValueError, match="already rejected"):
            purchase.resolve(PurchaseStatus.APPROVED, "admin-1", NOW)

        assert purchase.status == PurchaseStatus.REJECTED

    def test_cannot_resolve_to_pending(self, purchase):
        with pytest.raises(ValueError):
            purchase.resolve(PurchaseStatus.PENDING, "admin-1", NOW)
        assert purchase.resolved_by is None
