"""
Settings, uploads, analytics, dashboard and health endpoints.
"""

import redis

from qrmenu.core.config import get_settings
from qrmenu.defaults import DEFAULT_SETTINGS
from tests.conftest import create_category, create_item


# =============================================================================
# SETTINGS
# =============================================================================

async def test_settings_are_public_and_camel_cased(client):
    settings = (await client.get("/api/settings")).json()
    assert settings["primaryColor"] == DEFAULT_SETTINGS["primary_color"]
    assert settings["ossLimitTo3Orders"] is False
    assert len(settings) == len(DEFAULT_SETTINGS)


async def test_update_settings(admin_client, client):
    response = await admin_client.patch(
        "/api/settings",
        json={"restaurantName": "Trattoria", "qrAnimatedTexts": ["Welcome", "Buon appetito"]},
    )
    assert response.status_code == 200
    assert response.json()["restaurantName"] == "Trattoria"

    settings = (await client.get("/api/settings")).json()
    assert settings["qrAnimatedTexts"] == ["Welcome", "Buon appetito"]
    assert settings["currencySymbol"] == DEFAULT_SETTINGS["currency_symbol"]


async def test_update_settings_rejects_unknown_and_bad_values(admin_client):
    response = await admin_client.patch("/api/settings", json={"spaceshipMode": True})
    assert response.status_code == 422
    assert "spaceshipMode" in response.json()["detail"]

    response = await admin_client.patch("/api/settings", json={"kdShowClock": "sometimes"})
    assert response.status_code == 422


async def test_reset_settings(admin_client, client):
    await admin_client.patch("/api/settings", json={"ossHeaderText": "Now serving"})

    response = await admin_client.post("/api/settings/reset")
    assert response.json()["ossHeaderText"] == DEFAULT_SETTINGS["oss_header_text"]
    assert (await client.get("/api/settings")).json() == response.json()


# =============================================================================
# UPLOADS
# =============================================================================

async def test_upload_image(admin_client):
    response = await admin_client.post(
        "/api/upload",
        files={"file": ("logo.PNG", b"\x89PNG fake", "image/png")},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["url"] == f"/uploads/{body['filename']}"
    assert body["filename"].startswith("file-")
    assert body["filename"].endswith(".png")

    stored = get_settings().upload_directory
    with open(f"{stored}/{body['filename']}", "rb") as f:
        assert f.read() == b"\x89PNG fake"

    served = await admin_client.get(body["url"])
    assert served.status_code == 200
    assert served.content == b"\x89PNG fake"


async def test_upload_rejects_other_file_types(admin_client):
    response = await admin_client.post(
        "/api/upload",
        files={"file": ("notes.txt", b"hello", "text/plain")},
    )
    assert response.status_code == 400


async def test_upload_rejects_large_files(admin_client):
    too_big = b"0" * (get_settings().upload_max_bytes + 1)
    response = await admin_client.post(
        "/api/upload",
        files={"file": ("big.jpg", too_big, "image/jpeg")},
    )
    assert response.status_code == 400


async def test_upload_requires_login(client):
    response = await client.post(
        "/api/upload",
        files={"file": ("logo.png", b"x", "image/png")},
    )
    assert response.status_code == 401


# =============================================================================
# ANALYTICS & DASHBOARD
# =============================================================================

async def test_visit_gets_cookie_backed_session(client, storage):
    first = await client.post("/api/analytics/visit", json={"pagePath": "/menu"}, headers={"User-Agent": "qr-test"})
    assert first.status_code == 201
    second = await client.post("/api/analytics/visit", json={})

    assert first.json()["sessionId"]
    assert first.json()["sessionId"] == second.json()["sessionId"]
    assert first.json()["userAgent"] == "qr-test"

    explicit = await client.post("/api/analytics/visit", json={"sessionId": "kiosk-7"})
    assert explicit.json()["sessionId"] == "kiosk-7"
    assert len(await storage.list_visits()) == 3


async def test_dashboard_metrics(admin_client, client):
    category = await create_category(admin_client)
    item = await create_item(admin_client, category["id"], "Margherita", 10.0)
    await create_item(admin_client, category["id"], "Sold Out", available=False)

    order = (await client.post(
        "/api/orders",
        json={"branchId": "1", "items": [{"menuItemId": item["id"], "quantity": 3}]},
    )).json()
    await admin_client.patch(f"/api/orders/{order['id']}", json={"status": "ready"})
    await admin_client.patch(f"/api/orders/{order['id']}", json={"status": "served"})
    await client.post("/api/analytics/visit", json={})

    metrics = (await admin_client.get("/api/dashboard/metrics")).json()
    assert metrics["totalItems"] == 2
    assert metrics["availableItems"] == 1
    assert metrics["totalCategories"] == 1
    assert metrics["salesDay"] == 30.0
    assert metrics["menuViewsDay"] == 1
    assert metrics["customersDay"] == 1
    assert metrics["bestSellers"] == [{"itemId": item["id"], "name": "Margherita", "count": 3}]
    assert len(metrics["salesChart"]) == 7


# =============================================================================
# ROOT & HEALTH
# =============================================================================

async def test_root(client):
    body = (await client.get("/")).json()
    assert body["kitchen"] == "/kitchen"
    assert body["version"] == get_settings().app_version


async def test_health_reports_storage(client, monkeypatch):
    class FakeRedis:
        def ping(self):
            raise redis.ConnectionError("connection refused")

        def close(self):
            pass

    monkeypatch.setattr(redis.Redis, "from_url", classmethod(lambda cls, *a, **kw: FakeRedis()))

    body = (await client.get("/health")).json()
    assert body["storage"] == "healthy (memory)"
    assert body["redis"].startswith("unhealthy")
    assert body["status"] == "degraded"
