"""Tests for CreditLotStore."""

import threading

import pytest

from credit_store.errors import NotFoundError
from credit_store.models import CreditLot, LotStatus
from credit_store.repositories.credit_lot_store import CreditLotStore, LotNotFoundError
from credit_store.utils.time_utils import MILLIS_PER_DAY

NOW = 1_700_000_000_000


def make_lot(lot_id, user_id="user-1", amount=100, purchase_date_millis=NOW, status=LotStatus.ACTIVE):
    return CreditLot(
        id=lot_id,
        user_id=user_id,
        amount=amount,
        initial_amount=amount,
        purchase_date_millis=purchase_date_millis,
        expiry_date_millis=purchase_date_millis + 30 * MILLIS_PER_DAY,
        status=status,
        source_package_id="credit-1",
    )


@pytest.fixture
def store():
    return CreditLotStore()


class TestAddAndGet:
    """Storing and reading lots."""

    def test_add_and_get(self, store):
        store.add(make_lot("lot-1"))

        lot = store.get_by_id("lot-1")

        assert lot.amount == 100
        assert "lot-1" in store
        assert len(store) == 1

    def test_duplicate_id(self, store):
        store.add(make_lot("lot-1"))
        with pytest.raises(ValueError, match="already exists"):
            store.add(make_lot("lot-1"))

    def test_missing_lot(self, store):
        with pytest.raises(LotNotFoundError):
            store.get_by_id("lot-missing")

    def test_missing_lot_is_not_found_error(self, store):
        with pytest.raises(NotFoundError):
            store.get_by_id("lot-missing")

    def test_find_missing_returns_none(self, store):
        assert store.find_by_id("lot-missing") is None


class TestIsolation:
    """Changes only land through update."""

    def test_mutating_read_does_not_change_store(self, store):
        store.add(make_lot("lot-1"))

        lot = store.get_by_id("lot-1")
        lot.deduct(30)

        assert store.get_by_id("lot-1").amount == 100

    def test_mutating_added_object_does_not_change_store(self, store):
        lot = make_lot("lot-1")
        store.add(lot)
        lot.amount = 5

        assert store.get_by_id("lot-1").amount == 100

    def test_update(self, store):
        store.add(make_lot("lot-1"))
        lot = store.get_by_id("lot-1")
        lot.deduct(30)

        store.update(lot)

        assert store.get_by_id("lot-1").amount == 70

    def test_update_missing(self, store):
        with pytest.raises(LotNotFoundError):
            store.update(make_lot("lot-missing"))


class TestUserQueries:
    """Per-user lookups."""

    def test_active_lots_oldest_purchase_first(self, store):
        store.add(make_lot("newer", purchase_date_millis=NOW + 1000))
        store.add(make_lot("older", purchase_date_millis=NOW))
        store.add(make_lot("same-as-older", purchase_date_millis=NOW))

        ids = [lot.id for lot in store.get_active_by_user("user-1")]

        assert ids == ["older", "same-as-older", "newer"]

    def test_active_lots_skip_expired_and_other_users(self, store):
        store.add(make_lot("mine"))
        store.add(make_lot("expired", status=LotStatus.EXPIRED))
        store.add(make_lot("theirs", user_id="user-2"))

        assert [lot.id for lot in store.get_active_by_user("user-1")] == ["mine"]

    def test_get_by_user_includes_expired(self, store):
        store.add(make_lot("mine"))
        store.add(make_lot("expired", status=LotStatus.EXPIRED))

        assert [lot.id for lot in store.get_by_user("user-1")] == ["mine", "expired"]

    def test_active_balance(self, store):
        store.add(make_lot("a", amount=30))
        store.add(make_lot("b", amount=50))
        store.add(make_lot("c", amount=70, status=LotStatus.EXPIRED))

        assert store.get_active_balance("user-1") == 80
        assert store.get_active_balance("user-2") == 0

    def test_lapsed_lots_left_out_when_time_given(self, store):
        # expires at NOW + 30 days
        store.add(make_lot("lapsed", amount=40))
        store.add(make_lot("fresh", amount=60, purchase_date_millis=NOW + 10 * MILLIS_PER_DAY))
        later = NOW + 31 * MILLIS_PER_DAY

        assert [lot.id for lot in store.get_active_by_user("user-1", now_millis=later)] == ["fresh"]
        assert store.get_active_balance("user-1", now_millis=later) == 60
        assert store.get_active_balance("user-1") == 100

    def test_lot_expiring_exactly_now_still_counts(self, store):
        store.add(make_lot("edge", amount=40))

        assert store.get_active_balance("user-1", now_millis=NOW + 30 * MILLIS_PER_DAY) == 40

    def test_user_ids(self, store):
        store.add(make_lot("a", user_id="user-1"))
        store.add(make_lot("b", user_id="user-2"))
        store.add(make_lot("c", user_id="user-1"))

        assert store.get_user_ids() == ["user-1", "user-2"]


class TestStatistics:
    """Counts and statistics."""

    def test_statistics(self, store):
        store.add(make_lot("a", amount=30))
        store.add(make_lot("b", amount=50, user_id="user-2"))
        store.add(make_lot("c", amount=70, status=LotStatus.EXPIRED))

        assert store.get_statistics() == {
            "total_lots": 3,
            "active_lots": 2,
            "unique_users": 2,
            "active_credits": 80,
        }

    def test_clear(self, store):
        store.add(make_lot("a"))
        store.clear()
        assert store.count() == 0
        assert repr(store) == "CreditLotStore(lots=0)"


class TestConcurrency:
    """Concurrent writers."""

    def test_concurrent_adds(self, store):
        def add_many(prefix):
            for i in range(50):
                store.add(make_lot(f"{prefix}-{i}"))

        threads = [threading.Thread(target=add_many, args=(f"t{n}",)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(store) == 200
        assert store.get_active_balance("user-1") == 200 * 100
