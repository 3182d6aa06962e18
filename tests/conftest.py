"""Shared fixtures: a ledger engine over fresh stores and a frozen clock."""

from unittest.mock import MagicMock

import pytest

from credit_store.models import (
    Actor,
    CatalogConfig,
    CreditLot,
    CreditPackage,
    DigitalProduct,
    EngineConfig,
    Role,
    UserProfile,
)
from credit_store.repositories.catalog_repository import CatalogRepository
from credit_store.repositories.credit_lot_store import CreditLotStore
from credit_store.repositories.grant_store import GrantStore
from credit_store.repositories.notification_store import NotificationStore
from credit_store.repositories.profile_store import ProfileStore
from credit_store.repositories.purchase_store import PurchaseStore
from credit_store.repositories.usage_history_store import UsageHistoryStore
from credit_store.services.ledger_engine import CreditLedgerEngine
from credit_store.services.notifier import Notifier
from credit_store.services.time_controller import TimeController
from credit_store.utils.time_utils import expiry_from

START_TIME_MILLIS = 1_700_000_000_000


@pytest.fixture
def catalog_config():
    """Mock configuration carrying a small test catalog."""
    config = MagicMock()
    config.catalog = CatalogConfig(
        products=[
            DigitalProduct(id="prod-templates", name="Premium Design Templates", price=50, expiry_days=30),
            DigitalProduct(id="prod-photos", name="Stock Photo Collection", price=60, expiry_days=45),
            DigitalProduct(id="prod-fonts", name="Font Library", price=40, expiry_days=60),
        ],
        credit_packages=[
            CreditPackage(id="credit-starter", name="Starter Pack", credits=100, price=9.99, expiry_days=30),
            CreditPackage(id="credit-pro", name="Pro Pack", credits=500, price=39.99, expiry_days=180),
        ],
    )
    return config


@pytest.fixture
def catalog(catalog_config):
    return CatalogRepository(config=catalog_config)


@pytest.fixture
def clock():
    """Frozen clock so expiry only happens when a test moves time."""
    return TimeController(start_time_millis=START_TIME_MILLIS, frozen=True)


@pytest.fixture
def profiles():
    return ProfileStore()


@pytest.fixture
def inbox():
    return NotificationStore()


@pytest.fixture
def notifier(inbox, profiles, clock):
    return Notifier(inbox=inbox, profiles=profiles, clock=clock)


@pytest.fixture
def engine_settings():
    return EngineConfig()


@pytest.fixture
def engine(profiles, catalog, clock, notifier, engine_settings):
    engine = CreditLedgerEngine(
        lots=CreditLotStore(),
        grants=GrantStore(),
        purchases=PurchaseStore(),
        history=UsageHistoryStore(),
        profiles=profiles,
        catalog=catalog,
        clock=clock,
        notifier=notifier,
        settings=engine_settings,
    )
    clock.attach_engine(engine)
    return engine


@pytest.fixture
def admin():
    return Actor(user_id="admin-1", role=Role.ADMIN)


@pytest.fixture
def user(profiles):
    """A registered user with a phone number on file."""
    profiles.upsert(
        UserProfile(user_id="user-1", name="Demo User", email="user@example.com", phone_number="+15551234567")
    )
    return "user-1"


@pytest.fixture
def add_lot(engine):
    """Factory putting credit lots straight into the engine's lot store."""

    def _add_lot(user_id, amount, expiry_days=30, purchase_date_millis=None, package_id="credit-starter"):
        purchase_date = purchase_date_millis or engine.clock.get_current_time_millis()
        lot = CreditLot(
            id=f"lot-{user_id}-{len(engine.lots)}",
            user_id=user_id,
            amount=amount,
            initial_amount=amount,
            purchase_date_millis=purchase_date,
            expiry_date_millis=expiry_from(purchase_date, expiry_days),
            source_package_id=package_id,
        )
        engine.lots.add(lot)
        return lot

    return _add_lot
