"""
SQLAlchemy storage against a throwaway SQLite database (aiosqlite).
"""

import asyncio

import pytest
from pydantic import ValidationError

from qrmenu.core.security import verify_password
from qrmenu.schemas import OrderCreate, OrderUpdate
from qrmenu.services.events import OrderEventBroker
from qrmenu.services.orders import OrderService
from qrmenu.storage.relational import SqlAlchemyStorage


@pytest.fixture
async def store(tmp_path):
    storage = SqlAlchemyStorage(f"sqlite+aiosqlite:///{tmp_path / 'qrmenu.db'}")
    await storage.startup()
    yield storage
    await storage.shutdown()


async def test_startup_seeds_once(store):
    assert await store.ping() is True
    assert {b.name for b in await store.list_branches()} == {"Downtown Branch", "Uptown Branch"}

    # A second startup must not duplicate seed rows
    await store.startup()
    assert len(await store.list_branches()) == 2
    assert len(await store.list_users()) == 1

    admin = await store.get_user_by_username("admin")
    assert verify_password("admin123", admin.password_hash)


async def test_entity_round_trip(store):
    category = await store.create_category({"general_name": "Pizza", "name": {"en": "Pizza", "fa": "پیتزا"}})
    item = await store.create_item({
        "category_id": category.id,
        "general_name": "Margherita",
        "price": 11.0,
        "materials": ["m1", "m2"],
    })

    loaded = await store.get_item(item.id)
    assert loaded.materials == ["m1", "m2"]
    assert (await store.get_category(category.id)).name["fa"] == "پیتزا"

    updated = await store.update_item(item.id, {"available": False})
    assert updated.available is False
    assert updated.price == 11.0

    assert await store.update_item("missing", {"available": True}) is None
    assert await store.delete_item(item.id) is True
    assert await store.delete_item(item.id) is False


async def test_update_keeps_records_valid(store):
    with pytest.raises(ValidationError):
        await store.update_branch("1", {"name": None})
    assert (await store.get_branch("1")).name == "Downtown Branch"


async def test_deleting_branch_removes_its_tables(store):
    await store.create_table({"table_number": "T1", "branch_id": "1"})
    kept = await store.create_table({"table_number": "U1", "branch_id": "2"})

    assert await store.delete_branch("1") is True
    assert await store.delete_branch("1") is False
    assert [t.id for t in await store.list_tables()] == [kept.id]


async def test_single_default_language(store):
    english = await store.create_language({"code": "en", "name": "English", "is_default": True})
    arabic = await store.create_language({"code": "ar", "name": "Arabic", "direction": "rtl", "is_default": True})

    assert (await store.get_language(english.id)).is_default is False
    loaded = await store.get_language_by_code("ar")
    assert loaded.is_default is True
    assert loaded.direction == "rtl"
    assert loaded.id == arabic.id


async def test_orders_persist_through_lifecycle(store):
    category = await store.create_category({"general_name": "Pizza"})
    item = await store.create_item({"category_id": category.id, "general_name": "Margherita", "price": 8.5})
    service = OrderService(store, OrderEventBroker())

    order = await service.place_order(OrderCreate(branch_id="1", items=[{"menu_item_id": item.id, "quantity": 2}]))
    await service.update_order(order.id, OrderUpdate(status="preparing"))

    loaded = await store.get_order(order.id)
    assert loaded.order_number == "ORD-001"
    assert loaded.status == "preparing"
    assert loaded.total_amount == 17.0
    assert loaded.items[0].status == "preparing"
    assert loaded.created_at.tzinfo is not None

    assert [o.id for o in await store.list_orders(statuses=["preparing"])] == [order.id]
    assert await store.list_orders(branch_id="2") == []


async def test_concurrent_order_numbers_are_unique(store):
    numbers = await asyncio.gather(*(store.next_order_number() for _ in range(20)))
    assert len(set(numbers)) == 20
    assert sorted(numbers)[0] == "ORD-001"


async def test_order_number_taken_by_another_process(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'shared.db'}"
    first, second = SqlAlchemyStorage(url), SqlAlchemyStorage(url)
    await first.startup()
    await second.startup()
    try:
        category = await first.create_category({"general_name": "Pizza"})
        item = await first.create_item({"category_id": category.id, "general_name": "Margherita", "price": 5})
        cart = OrderCreate(branch_id="1", items=[{"menu_item_id": item.id}])

        # Both workers start from an empty table and reserve ORD-001
        assert await second.next_order_number() == "ORD-001"
        busy = OrderService(first, OrderEventBroker())
        assert (await busy.place_order(cart)).order_number == "ORD-001"
        assert (await busy.place_order(cart)).order_number == "ORD-002"

        late = await OrderService(second, OrderEventBroker()).place_order(cart)
        assert late.order_number == "ORD-003"
        assert (await second.get_order(late.id)).order_number == "ORD-003"

        numbers = sorted(o.order_number for o in await first.list_orders())
        assert numbers == ["ORD-001", "ORD-002", "ORD-003"]
    finally:
        await first.shutdown()
        await second.shutdown()


async def test_order_sequence_resumes_after_restart(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'restart.db'}"
    first = SqlAlchemyStorage(url)
    await first.startup()
    category = await first.create_category({"general_name": "Pizza"})
    item = await first.create_item({"category_id": category.id, "general_name": "Margherita", "price": 5})
    service = OrderService(first, OrderEventBroker())
    await service.place_order(OrderCreate(branch_id="1", items=[{"menu_item_id": item.id}]))
    await first.shutdown()

    second = SqlAlchemyStorage(url)
    await second.startup()
    try:
        assert await second.next_order_number() == "ORD-002"
    finally:
        await second.shutdown()


async def test_waiter_requests_and_visits(store):
    request = await store.create_waiter_request({"table_id": "t1", "branch_id": "1"})
    assert request.status == "pending"

    handled = await store.update_waiter_request(request.id, "completed")
    assert handled.status == "completed"
    assert await store.list_waiter_requests(status="pending") == []

    await store.record_visit({"page_path": "/menu", "session_id": "abc"})
    visits = await store.list_visits()
    assert len(visits) == 1
    assert visits[0].session_id == "abc"


async def test_settings_persist(store):
    await store.update_settings({"restaurantName": "Chez Test"})
    assert (await store.get_settings()).restaurant_name == "Chez Test"

    await store.reset_settings()
    assert (await store.get_settings()).restaurant_name is None
