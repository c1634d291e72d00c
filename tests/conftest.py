"""
Shared pytest fixtures.

The app runs against the in-memory storage; each test gets a freshly
seeded store (two branches plus the admin account) and a fresh event
broker. Celery is never contacted: the export task is replaced with a mock.
"""

import os
import tempfile
from pathlib import Path
from typing import AsyncGenerator
from unittest.mock import MagicMock

# Set environment BEFORE any qrmenu imports; settings are cached on first use.
_TEST_ROOT = Path(tempfile.mkdtemp(prefix="qrmenu-tests-"))
os.environ["ENV_MODE"] = "development"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["PASSWORD_HASH_ROUNDS"] = "4"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "admin123"
os.environ["UPLOAD_DIRECTORY"] = str(_TEST_ROOT / "uploads")
os.environ["DATA_DIRECTORY"] = str(_TEST_ROOT / "data")
os.environ["UPLOAD_MAX_BYTES"] = "1024"
os.environ["EXPORT_SERVED_ORDERS"] = "true"

import httpx
import pytest
from httpx import ASGITransport

from qrmenu.core.config import get_settings
from qrmenu.services.events import reset_event_broker
from qrmenu.storage import get_storage, reset_storage

get_settings.cache_clear()

from qrmenu.main import app  # noqa: E402

ADMIN_CREDENTIALS = {"username": "admin", "password": "admin123"}


@pytest.fixture(autouse=True)
def fresh_state():
    """Fresh storage and event broker for every test."""
    reset_storage()
    reset_event_broker()
    yield
    reset_storage()
    reset_event_broker()


@pytest.fixture(autouse=True)
def export_task(monkeypatch) -> MagicMock:
    """Replace the Celery export task so nothing talks to Redis."""
    task = MagicMock()
    monkeypatch.setattr("qrmenu.services.orders.export_order_to_excel", task)
    return task


@pytest.fixture
def storage():
    return get_storage()


@pytest.fixture
async def client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """Anonymous client (a customer scanning a table QR)."""
    transport = ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def admin_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """Client holding an admin session cookie."""
    transport = ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        response = await c.post("/api/auth/login", json=ADMIN_CREDENTIALS)
        assert response.status_code == 200, response.text
        yield c


async def login_as(client: httpx.AsyncClient, username: str, password: str) -> httpx.Response:
    return await client.post("/api/auth/login", json={"username": username, "password": password})


# =============================================================================
# DATA HELPERS
# =============================================================================

async def create_category(client: httpx.AsyncClient, name: str = "Pizza", **extra) -> dict:
    response = await client.post(
        "/api/categories",
        json={"generalName": name, "name": {"en": name}, **extra},
    )
    assert response.status_code == 201, response.text
    return response.json()


async def create_item(client: httpx.AsyncClient, category_id: str, name: str = "Margherita", price: float = 10.0, **extra) -> dict:
    response = await client.post(
        "/api/items",
        json={"categoryId": category_id, "generalName": name, "name": {"en": name}, "price": price, **extra},
    )
    assert response.status_code == 201, response.text
    return response.json()


async def create_table(client: httpx.AsyncClient, branch_id: str = "1", number: str = "T1") -> dict:
    response = await client.post("/api/tables", json={"tableNumber": number, "branchId": branch_id})
    assert response.status_code == 201, response.text
    return response.json()


async def create_user(client: httpx.AsyncClient, username: str, role: str, password: str = "secret123") -> dict:
    response = await client.post(
        "/api/users",
        json={"username": username, "password": password, "role": role, "name": username.title()},
    )
    assert response.status_code == 201, response.text
    return response.json()
