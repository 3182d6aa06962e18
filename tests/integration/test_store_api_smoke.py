"""Smoke tests for the store and admin API endpoints.

Quick validation tests to ensure basic functionality works end to end
over HTTP with the bundled store.yaml catalog.
"""

import pytest
from fastapi.testclient import TestClient

from credit_store.config import Config
from credit_store.main import create_app
from credit_store.services.time_controller import TimeController

START = 1_700_000_000_000
USER = {"X-User-Id": "user-1", "X-User-Role": "user"}
ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "admin"}
DAY_MILLIS = 86_400_000


@pytest.fixture
def client():
    """Create a test client over a fresh app with a frozen clock."""
    app = create_app(
        config=Config("config/store.yaml"),
        clock=TimeController(start_time_millis=START, frozen=True),
    )
    return TestClient(app)


@pytest.fixture
def registered(client):
    response = client.put(
        "/store/profile",
        headers=USER,
        json={"name": "Demo User", "email": "user@example.com", "phone_number": "+15551234567"},
    )
    assert response.status_code == 200
    return client


def buy_credits(client, package_id="credit-1"):
    """Request a package and have the admin approve it."""
    purchase = client.post(f"/store/credit-packages/{package_id}/purchase", headers=USER).json()
    response = client.post(f"/admin/purchases/{purchase['id']}/approve", headers=ADMIN)
    assert response.status_code == 200
    return purchase


def test_root_and_health(client):
    assert client.get("/").json()["service"] == "digital-credit-store"

    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert health["pubsub"] == "disabled"
    assert health["message_relay"] == "disabled"
    assert health["catalog"] == "loaded (4 products, 3 credit packages)"


def test_browse_catalog(client):
    products = client.get("/store/products").json()
    assert [p["id"] for p in products] == ["prod-1", "prod-2", "prod-3", "prod-4"]

    design = client.get("/store/products", params={"category": "Design"}).json()
    assert {p["id"] for p in design} == {"prod-1", "prod-3"}

    packages = client.get("/store/credit-packages").json()
    assert packages[0]["credits"] == 100


def test_identity_headers_required(client):
    response = client.get("/store/credits")
    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "Unauthenticated"


def test_unknown_role_rejected(client):
    response = client.get("/store/credits", headers={"X-User-Id": "user-1", "X-User-Role": "root"})
    assert response.status_code == 400


def test_profile_roundtrip(registered):
    profile = registered.get("/store/profile", headers=USER).json()

    assert profile["name"] == "Demo User"
    assert profile["joined_at_millis"] == START


def test_missing_profile(client):
    response = client.get("/store/profile", headers=USER)
    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "Not found"


def test_credit_package_approval_flow(registered):
    purchase = registered.post("/store/credit-packages/credit-1/purchase", headers=USER)
    assert purchase.status_code == 201
    purchase_id = purchase.json()["id"]
    assert purchase.json()["status"] == "pending"

    admin_inbox = registered.get("/admin/notifications", headers=ADMIN).json()
    assert admin_inbox["unread_count"] == 1
    assert admin_inbox["notifications"][0]["related_purchase_id"] == purchase_id

    queue = registered.get("/admin/purchases", params={"status": "pending"}, headers=ADMIN).json()
    assert [p["id"] for p in queue] == [purchase_id]

    approved = registered.post(f"/admin/purchases/{purchase_id}/approve", headers=ADMIN)
    assert approved.status_code == 200
    assert approved.json()["status"] == "approved"

    credits = registered.get("/store/credits", headers=USER).json()
    assert credits["total_credits"] == 100
    assert credits["lots"][0]["expiry_date_millis"] == START + 90 * DAY_MILLIS

    assert registered.get("/admin/notifications", headers=ADMIN).json()["notifications"] == []

    again = registered.post(f"/admin/purchases/{purchase_id}/approve", headers=ADMIN)
    assert again.status_code == 409


def test_reject_flow(registered):
    purchase_id = registered.post("/store/credit-packages/credit-1/purchase", headers=USER).json()["id"]

    response = registered.post(f"/admin/purchases/{purchase_id}/reject", headers=ADMIN)

    assert response.json()["status"] == "rejected"
    assert registered.get("/store/credits", headers=USER).json()["total_credits"] == 0
    inbox = registered.get("/store/notifications", headers=USER).json()
    assert inbox["notifications"][0]["title"] == "Purchase Rejected"


def test_user_cannot_approve(registered):
    purchase_id = registered.post("/store/credit-packages/credit-1/purchase", headers=USER).json()["id"]

    response = registered.post(f"/admin/purchases/{purchase_id}/approve", headers=USER)

    assert response.status_code == 403
    assert response.json()["detail"]["error"] == "Forbidden"


def test_unknown_purchase(client):
    assert client.post("/admin/purchases/nope/approve", headers=ADMIN).status_code == 404


def test_purchase_product(registered):
    buy_credits(registered)

    response = registered.post("/store/products/prod-1/purchase", headers=USER)

    assert response.status_code == 201
    assert response.json()["product_id"] == "prod-1"
    assert registered.get("/store/credits", headers=USER).json()["total_credits"] == 50

    history = registered.get("/store/history", headers=USER).json()["records"]
    assert history[0]["action"] == "Purchase"
    assert history[0]["amount"] == -50
    assert history[1]["action"] == "Credit Purchase"

    grants = registered.get("/store/grants", headers=USER).json()
    assert grants[0]["expiry_date_millis"] == START + 30 * DAY_MILLIS


def test_insufficient_credits(registered):
    response = registered.post("/store/products/prod-2/purchase", headers=USER)

    assert response.status_code == 402
    assert response.json()["detail"]["error"] == "Insufficient credits"


def test_unknown_product(registered):
    assert registered.post("/store/products/prod-missing/purchase", headers=USER).status_code == 404


def test_renew_without_grant(registered):
    buy_credits(registered)
    assert registered.post("/store/products/prod-1/renew", headers=USER).status_code == 404


def test_history_limit(registered):
    buy_credits(registered)
    registered.post("/store/products/prod-3/purchase", headers=USER)

    records = registered.get("/store/history", params={"limit": 1}, headers=USER).json()["records"]

    assert len(records) == 1


def test_notifications_read_state(registered):
    buy_credits(registered)
    inbox = registered.get("/store/notifications", headers=USER).json()
    assert inbox["unread_count"] == 1
    notification_id = inbox["notifications"][0]["id"]

    assert registered.post(f"/store/notifications/{notification_id}/read", headers=USER).json() == {"updated": 1}
    assert registered.get("/store/notifications", headers=USER).json()["unread_count"] == 0
    assert registered.post("/store/notifications/missing/read", headers=USER).status_code == 404
    assert registered.post("/store/notifications/read-all", headers=USER).json() == {"updated": 0}


def test_admin_catalog_management(client):
    created = client.post(
        "/admin/products",
        headers=ADMIN,
        json={"name": "Icon Pack", "price": 25, "expiry_days": 30},
    )
    assert created.status_code == 201
    product_id = created.json()["id"]

    updated = client.put(f"/admin/products/{product_id}", headers=ADMIN, json={"price": 35})
    assert updated.json()["price"] == 35
    assert updated.json()["name"] == "Icon Pack"

    assert client.delete(f"/admin/products/{product_id}", headers=ADMIN).status_code == 200
    assert client.delete(f"/admin/products/{product_id}", headers=ADMIN).status_code == 404


def test_admin_catalog_validation(client):
    response = client.post(
        "/admin/credit-packages",
        headers=ADMIN,
        json={"name": "Broken", "credits": 0, "price": 1.0, "expiry_days": 30},
    )
    assert response.status_code == 422

    response = client.post(
        "/admin/products",
        headers=USER,
        json={"name": "Sneaky", "price": 1, "expiry_days": 1},
    )
    assert response.status_code == 403


def test_store_clock(registered):
    buy_credits(registered)

    assert registered.get("/admin/time", headers=ADMIN).json()["current_time_millis"] == START
    assert registered.get("/admin/time", headers=USER).status_code == 403

    advanced = registered.post("/admin/time/advance", headers=ADMIN, json={"days": 91}).json()

    assert advanced["new_time_millis"] == START + 91 * DAY_MILLIS
    assert len(advanced["lots_expired"]) == 1
    assert registered.get("/store/credits", headers=USER).json()["total_credits"] == 0


def test_set_time_backwards(client):
    response = client.post("/admin/time/set", headers=ADMIN, json={"timestamp_millis": START - 1})
    assert response.status_code == 400


def test_request_id_echoed(client):
    assert client.get("/", headers={"X-Request-ID": "req-123"}).headers["X-Request-ID"] == "req-123"
    assert client.get("/").headers["X-Request-ID"]


def test_admin_stats(registered):
    buy_credits(registered)
    registered.post("/store/products/prod-3/purchase", headers=USER)

    stats = registered.get("/admin/stats", headers=ADMIN).json()

    assert stats["lots"]["active_credits"] == 70
    assert stats["grants"]["total_grants"] == 1
    assert stats["purchases"]["approved"] == 1
    assert registered.get("/admin/stats", headers=USER).status_code == 403
