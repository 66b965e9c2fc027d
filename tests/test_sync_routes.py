from datetime import timedelta

from app.version import API_PREFIX
from models import SyncLock, db, utcnow
from models.storefront import StorefrontBrand, StorefrontProduct
from conftest import make_brand, make_price

SYNC = f"{API_PREFIX}/sync"


def test_requires_bearer_key(client, fake_erpnext):
    assert client.post(f"{SYNC}/run").status_code == 401
    resp = client.post(f"{SYNC}/run", headers={"Authorization": "Bearer wrong"})
    assert resp.status_code == 401
    assert resp.get_json()["status"] == "error"


def test_missing_server_key_is_a_server_error(app, client, monkeypatch):
    monkeypatch.setitem(app.config, "SYNC_API_KEY", None)
    resp = client.get(f"{SYNC}/stats", headers={"Authorization": "Bearer anything"})
    assert resp.status_code == 500


def test_manual_run_returns_full_result(client, fake_erpnext, auth_headers):
    fake_erpnext.brands = [make_brand("Sol-Ark", custom_show_in_website=1)]

    resp = client.post(f"{SYNC}/run", headers=auth_headers)

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "success"
    assert body["brands"]["created"] == 1
    assert body["products"]["entity_type"] == "product"
    assert StorefrontBrand.query.count() == 1


def test_manual_dry_run_writes_nothing(client, fake_erpnext, auth_headers):
    fake_erpnext.brands = [make_brand("Sol-Ark")]

    resp = client.post(f"{SYNC}/run?dry_run=1", headers=auth_headers)

    assert resp.status_code == 200
    assert resp.get_json()["brands"]["created"] == 1
    assert StorefrontBrand.query.count() == 0


def test_manual_run_error_body(client, fake_erpnext, auth_headers):
    def boom():
        raise RuntimeError("ERPNext unreachable")

    fake_erpnext.get_brands = boom
    resp = client.post(f"{SYNC}/run", headers=auth_headers)

    assert resp.status_code == 500
    assert resp.get_json() == {"status": "error", "error": "ERPNext unreachable"}


def test_manual_run_conflicts_with_running_sync(client, fake_erpnext, auth_headers):
    db.session.add(SyncLock(name="full_sync", owner="worker", expires_at=utcnow() + timedelta(minutes=5)))
    db.session.commit()

    resp = client.post(f"{SYNC}/run", headers=auth_headers)

    assert resp.status_code == 409
    assert resp.get_json()["status"] == "error"


def test_product_webhook_creates_then_skips(client, fake_erpnext, auth_headers):
    fake_erpnext.prices = {"BAT-1": [make_price("BAT-1", "Standard Selling", 42.0)]}
    payload = {"name": "BAT-1", "item_code": "BAT-1", "item_name": "Battery", "unknown_field": "ignored"}

    first = client.post(f"{SYNC}/products", json=payload, headers=auth_headers)
    second = client.post(f"{SYNC}/products", json=payload, headers=auth_headers)

    assert first.status_code == 200
    assert first.get_json()["action"] == "created"
    assert second.get_json() == {"status": "success", "action": "skipped", "id": first.get_json()["id"]}
    assert StorefrontProduct.query.one().price == 42.0


def test_product_webhook_tolerates_price_failure(client, fake_erpnext, auth_headers):
    fake_erpnext.price_failures = {"BAT-2"}
    resp = client.post(
        f"{SYNC}/products",
        json={"name": "BAT-2", "item_code": "BAT-2", "standard_rate": 5.0},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    assert StorefrontProduct.query.one().price == 5.0


def test_webhook_rejects_invalid_body(client, fake_erpnext, auth_headers):
    resp = client.post(f"{SYNC}/brands", json={"brand": "No name"}, headers=auth_headers)
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["status"] == "error"
    assert body["errors"][0]["loc"] == ["name"]


def test_brand_and_category_webhooks(client, fake_erpnext, auth_headers):
    brand = client.post(f"{SYNC}/brands", json={"name": "Sol-Ark"}, headers=auth_headers)
    category = client.post(
        f"{SYNC}/categories",
        json={"name": "Batteries", "parent_item_group": "All Item Groups"},
        headers=auth_headers,
    )
    assert brand.get_json()["action"] == "created"
    assert category.get_json()["action"] == "created"


def test_stats_endpoint(client, fake_erpnext, auth_headers):
    client.post(f"{SYNC}/brands", json={"name": "Sol-Ark"}, headers=auth_headers)

    resp = client.get(f"{SYNC}/stats", headers=auth_headers)

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["brands"] == 1
    assert data["products"] == 0
