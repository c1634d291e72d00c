"""
Kitchen Display / Order Status Screen pages and their websocket feeds.

Websockets run through Starlette's synchronous TestClient so the socket and
the HTTP calls that trigger events share one event loop.
"""

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from qrmenu.main import app
from tests.conftest import ADMIN_CREDENTIALS, create_category, create_item


@pytest.fixture
def sync_client():
    with TestClient(app) as c:
        yield c


def place_order(client: TestClient, item_id: str, branch_id: str = "1") -> dict:
    response = client.post(
        "/api/orders",
        json={"branchId": branch_id, "items": [{"menuItemId": item_id, "quantity": 1}]},
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def item_id(sync_client):
    sync_client.post("/api/auth/login", json=ADMIN_CREDENTIALS)
    category = sync_client.post("/api/categories", json={"generalName": "Pizza"}).json()
    item = sync_client.post(
        "/api/items", json={"categoryId": category["id"], "generalName": "Margherita", "price": 9}
    ).json()
    return item["id"]


# =============================================================================
# PAGES
# =============================================================================

async def test_order_status_page_is_public(client, admin_client):
    await admin_client.patch("/api/settings", json={"ossHeaderText": "Now Serving", "ossReadyColor": "#123456"})

    response = await client.get("/order-status", params={"branchId": "2"})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "Now Serving" in response.text
    assert "#123456" in response.text
    assert "/api/order-status-screen" in response.text


async def test_kitchen_page_requires_kitchen_permission(client, admin_client):
    assert (await client.get("/kitchen")).status_code == 401

    response = await admin_client.get("/kitchen")
    assert response.status_code == 200
    assert "Kitchen Display" in response.text


# =============================================================================
# WEBSOCKETS
# =============================================================================

def test_order_status_socket_streams_events(sync_client, item_id):
    existing = place_order(sync_client, item_id)

    with sync_client.websocket_connect("/ws/order-status") as ws:
        snapshot = ws.receive_json()
        assert snapshot["type"] == "snapshot"
        assert [o["id"] for o in snapshot["orders"]] == [existing["id"]]

        created = place_order(sync_client, item_id)
        event = ws.receive_json()
        assert event["type"] == "order.created"
        assert event["order"]["id"] == created["id"]

        sync_client.patch(f"/api/orders/{created['id']}", json={"status": "ready"})
        event = ws.receive_json()
        assert event["type"] == "order.updated"
        assert event["order"]["status"] == "ready"


def test_socket_filters_by_branch(sync_client, item_id):
    with sync_client.websocket_connect("/ws/order-status?branchId=2") as ws:
        assert ws.receive_json()["orders"] == []

        place_order(sync_client, item_id, branch_id="1")
        uptown = place_order(sync_client, item_id, branch_id="2")

        event = ws.receive_json()
        assert event["order"]["id"] == uptown["id"]


def test_kitchen_socket_requires_session():
    with TestClient(app) as anonymous:
        with pytest.raises(WebSocketDisconnect) as excinfo:
            with anonymous.websocket_connect("/ws/kitchen") as ws:
                ws.receive_json()
        assert excinfo.value.code == 1008


def test_kitchen_socket_snapshot_for_staff(sync_client, item_id):
    order = place_order(sync_client, item_id)

    with sync_client.websocket_connect("/ws/kitchen") as ws:
        snapshot = ws.receive_json()
        assert [o["orderNumber"] for o in snapshot["orders"]] == [order["orderNumber"]]
