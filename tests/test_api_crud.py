"""
Back-office CRUD endpoints and the public menu.
"""

import pytest

from tests.conftest import create_category, create_item, create_table


# =============================================================================
# BRANCHES & TABLES
# =============================================================================

async def test_branch_crud(admin_client, client):
    response = await admin_client.post(
        "/api/branches",
        json={"name": "Airport Branch", "address": "Terminal 2", "ownerPhone": "555-0100"},
    )
    assert response.status_code == 201
    branch = response.json()
    assert branch["ownerPhone"] == "555-0100"
    assert branch["isActive"] is True

    response = await admin_client.patch(f"/api/branches/{branch['id']}", json={"phone": "555-0199"})
    assert response.json()["phone"] == "555-0199"
    assert response.json()["name"] == "Airport Branch"

    names = {b["name"] for b in (await client.get("/api/branches")).json()}
    assert names == {"Downtown Branch", "Uptown Branch", "Airport Branch"}

    assert (await admin_client.delete(f"/api/branches/{branch['id']}")).json() == {"message": "Branch deleted"}
    assert (await client.get(f"/api/branches/{branch['id']}")).status_code == 404


async def test_branch_update_rejects_null_name(admin_client):
    response = await admin_client.patch("/api/branches/1", json={"name": None})
    assert response.status_code == 422
    assert (await admin_client.get("/api/branches/1")).json()["name"] == "Downtown Branch"

    response = await admin_client.patch("/api/branches/1", json={"owner": None, "ownerPhone": None})
    assert response.status_code == 200
    assert response.json()["owner"] is None


async def test_deleting_branch_deletes_its_tables(admin_client):
    table = await create_table(admin_client, branch_id="2", number="U1")
    await admin_client.delete("/api/branches/2")

    assert (await admin_client.get(f"/api/tables/{table['id']}")).status_code == 404


async def test_tables_filter_and_branch_check(admin_client):
    await create_table(admin_client, branch_id="1", number="T1")
    await create_table(admin_client, branch_id="2", number="U1")

    tables = (await admin_client.get("/api/tables", params={"branchId": "2"})).json()
    assert [t["tableNumber"] for t in tables] == ["U1"]

    response = await admin_client.post("/api/tables", json={"tableNumber": "X1", "branchId": "nope"})
    assert response.status_code == 400

    response = await admin_client.patch(f"/api/tables/{tables[0]['id']}", json={"branchId": "nope"})
    assert response.status_code == 400

    response = await admin_client.patch(f"/api/tables/{tables[0]['id']}", json={"capacity": 8})
    assert response.json()["capacity"] == 8

    assert (await admin_client.delete(f"/api/tables/{tables[0]['id']}")).json() == {"message": "Table deleted"}


async def test_table_qrcode_png(admin_client):
    table = await create_table(admin_client)
    response = await admin_client.get(f"/api/tables/{table['id']}/qrcode")

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert response.content.startswith(b"\x89PNG\r\n\x1a\n")


# =============================================================================
# MENU
# =============================================================================

async def test_category_and_item_crud(admin_client, client):
    category = await create_category(admin_client, "Desserts", order=3)
    assert category["order"] == 3
    assert category["name"] == {"en": "Desserts"}

    item = await create_item(admin_client, category["id"], "Tiramisu", 7.5, discountedPrice=6.0, maxSelect=2)
    assert item["discountedPrice"] == 6.0
    assert item["maxSelect"] == 2
    assert item["available"] is True

    response = await admin_client.patch(f"/api/items/{item['id']}", json={"suggested": True, "isNew": True})
    assert response.json()["suggested"] is True
    assert response.json()["isNew"] is True

    listed = (await client.get("/api/items", params={"categoryId": category["id"]})).json()
    assert [i["id"] for i in listed] == [item["id"]]

    assert (await admin_client.delete(f"/api/items/{item['id']}")).json() == {"message": "Item deleted"}
    assert (await admin_client.delete(f"/api/categories/{category['id']}")).json() == {"message": "Category deleted"}
    assert (await client.get(f"/api/categories/{category['id']}")).status_code == 404


async def test_item_requires_existing_category(admin_client):
    response = await admin_client.post("/api/items", json={"categoryId": "missing", "generalName": "Ghost"})
    assert response.status_code == 400

    category = await create_category(admin_client)
    item = await create_item(admin_client, category["id"])
    response = await admin_client.patch(f"/api/items/{item['id']}", json={"categoryId": "missing"})
    assert response.status_code == 400


async def test_negative_price_is_rejected(admin_client):
    category = await create_category(admin_client)
    response = await admin_client.post(
        "/api/items", json={"categoryId": category["id"], "generalName": "Bad", "price": -1}
    )
    assert response.status_code == 422


async def test_item_update_clears_only_optional_fields(admin_client):
    category = await create_category(admin_client)
    item = await create_item(admin_client, category["id"], "Tiramisu", 7.5, discountedPrice=6.0)

    response = await admin_client.patch(f"/api/items/{item['id']}", json={"discountedPrice": None})
    assert response.status_code == 200
    assert response.json()["discountedPrice"] is None

    for field in ("price", "categoryId", "available"):
        response = await admin_client.patch(f"/api/items/{item['id']}", json={field: None})
        assert response.status_code == 422, field
    assert (await admin_client.get(f"/api/items/{item['id']}")).json()["price"] == 7.5


@pytest.mark.parametrize(
    "path, payload, message",
    [
        ("/api/food-types", {"generalName": "Vegan", "name": {"en": "Vegan"}, "color": "#00FF00"}, "Food type deleted"),
        ("/api/materials", {"generalName": "Tomato", "name": {"en": "Tomato"}}, "Material deleted"),
    ],
)
async def test_taxonomy_crud(admin_client, client, path, payload, message):
    response = await admin_client.post(path, json=payload)
    assert response.status_code == 201
    record = response.json()

    response = await admin_client.patch(f"{path}/{record['id']}", json={"isActive": False})
    assert response.json()["isActive"] is False
    assert (await client.get(f"{path}/{record['id']}")).json()["generalName"] == payload["generalName"]

    assert (await admin_client.delete(f"{path}/{record['id']}")).json() == {"message": message}
    assert (await admin_client.delete(f"{path}/{record['id']}")).status_code == 404


# =============================================================================
# LANGUAGES
# =============================================================================

async def test_language_crud(admin_client, client):
    response = await admin_client.post(
        "/api/languages",
        json={"code": "en", "name": "English", "isDefault": True, "textOverrides": {"menu": "Menu"}},
    )
    assert response.status_code == 201
    english = response.json()

    response = await admin_client.post(
        "/api/languages",
        json={"code": "fa", "name": "Persian", "nativeName": "فارسی", "direction": "rtl"},
    )
    persian = response.json()
    assert persian["direction"] == "rtl"

    assert (await admin_client.post("/api/languages", json={"code": "en", "name": "Again"})).status_code == 409

    response = await admin_client.delete(f"/api/languages/{english['id']}")
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot delete the default language"

    # Promoting Persian demotes English, which can then be deleted
    await admin_client.patch(f"/api/languages/{persian['id']}", json={"isDefault": True})
    languages = {l["code"]: l for l in (await client.get("/api/languages")).json()}
    assert languages["en"]["isDefault"] is False
    assert languages["fa"]["isDefault"] is True

    assert (await admin_client.delete(f"/api/languages/{english['id']}")).json() == {"message": "Language deleted"}


# =============================================================================
# PUBLIC MENU
# =============================================================================

async def test_public_menu_shows_only_orderable_items(admin_client, client):
    pizza = await create_category(admin_client, "Pizza", order=1)
    hidden = await create_category(admin_client, "Secret", order=2, isActive=False)
    margherita = await create_item(admin_client, pizza["id"], "Margherita", suggested=True)
    await create_item(admin_client, pizza["id"], "Sold Out", available=False)
    await create_item(admin_client, hidden["id"], "Hidden Dish", suggested=True)

    menu = (await client.get("/api/menu")).json()

    assert [c["id"] for c in menu["categories"]] == [pizza["id"]]
    assert [i["id"] for i in menu["categories"][0]["items"]] == [margherita["id"]]
    assert [i["id"] for i in menu["suggested"]] == [margherita["id"]]
    assert menu["settings"]["currencySymbol"] == "$"


async def test_waiter_requests(admin_client, client):
    table = await create_table(admin_client, branch_id="2", number="U4")

    response = await client.post("/api/waiter-request", json={"tableId": table["id"]})
    assert response.status_code == 201
    request = response.json()
    assert request["branchId"] == "2"
    assert request["status"] == "pending"

    assert (await client.post("/api/waiter-request", json={"tableId": "missing"})).status_code == 400

    pending = (await admin_client.get("/api/waiter-requests", params={"status": "pending"})).json()
    assert [r["id"] for r in pending] == [request["id"]]

    response = await admin_client.patch(f"/api/waiter-requests/{request['id']}", json={"status": "completed"})
    assert response.json()["status"] == "completed"
    assert (await admin_client.get("/api/waiter-requests", params={"status": "pending"})).json() == []
