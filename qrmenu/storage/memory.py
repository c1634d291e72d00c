"""
In-Memory Storage

Keeps every entity in process-local dictionaries. Used in development and
by the test suite; nothing survives a restart.

Seeded with two branches and the configured administrator account.
"""

import itertools
import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, TypeVar

from pydantic import BaseModel

from qrmenu.core.config import get_settings
from qrmenu.core.security import hash_password
from qrmenu.defaults import SEED_ADMIN_PROFILE, SEED_BRANCHES
from qrmenu.schemas import (
    Branch,
    Category,
    DiningTable,
    FoodType,
    Language,
    Material,
    MenuItem,
    MenuVisit,
    Order,
    UserRecord,
    WaiterRequest,
)
from qrmenu.storage.base import BaseStorage, format_order_number, new_id

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class MemoryStorage(BaseStorage):
    """Dictionary-backed storage."""

    def __init__(self, seed: bool = True):
        self.users: dict[str, UserRecord] = {}
        self.branches: dict[str, Branch] = {}
        self.tables: dict[str, DiningTable] = {}
        self.categories: dict[str, Category] = {}
        self.items: dict[str, MenuItem] = {}
        self.languages: dict[str, Language] = {}
        self.food_types: dict[str, FoodType] = {}
        self.materials: dict[str, Material] = {}
        self.orders: dict[str, Order] = {}
        self.waiter_requests: dict[str, WaiterRequest] = {}
        self.visits: dict[str, MenuVisit] = {}
        self.settings: Optional[dict[str, Any]] = None
        self._order_sequence = itertools.count(1)

        if seed:
            self._seed()
        logger.info(f"MemoryStorage initialized (seeded={seed})")

    @property
    def backend_name(self) -> str:
        return "memory"

    async def ping(self) -> bool:
        """Memory is always reachable."""
        return True

    def _seed(self) -> None:
        settings = get_settings()
        for branch in SEED_BRANCHES:
            self.branches[branch["id"]] = Branch.model_validate(branch)

        admin = UserRecord(
            id=new_id(),
            username=settings.admin_username,
            password_hash=hash_password(settings.admin_password),
            created_at=datetime.now(timezone.utc),
            **SEED_ADMIN_PROFILE,
        )
        self.users[admin.id] = admin

    # =========================================================================
    # GENERIC HELPERS
    # =========================================================================

    @staticmethod
    def _create(collection: dict[str, RecordT], schema: type[RecordT], data: dict[str, Any]) -> RecordT:
        record = schema.model_validate({**data, "id": new_id()})
        collection[record.id] = record
        return record

    @staticmethod
    def _update(collection: dict[str, RecordT], record_id: str, changes: dict[str, Any]) -> Optional[RecordT]:
        record = collection.get(record_id)
        if record is None:
            return None
        updated = type(record).model_validate({**record.model_dump(), **changes})
        collection[record_id] = updated
        return updated

    @staticmethod
    def _delete(collection: dict[str, Any], record_id: str) -> bool:
        return collection.pop(record_id, None) is not None

    # =========================================================================
    # USERS
    # =========================================================================

    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        return self.users.get(user_id)

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        return next((u for u in self.users.values() if u.username == username), None)

    async def list_users(self) -> list[UserRecord]:
        return list(self.users.values())

    async def create_user(self, data: dict[str, Any]) -> UserRecord:
        data = {"created_at": datetime.now(timezone.utc), **data}
        return self._create(self.users, UserRecord, data)

    async def update_user(self, user_id: str, changes: dict[str, Any]) -> Optional[UserRecord]:
        return self._update(self.users, user_id, changes)

    async def delete_user(self, user_id: str) -> bool:
        return self._delete(self.users, user_id)

    # =========================================================================
    # BRANCHES & TABLES
    # =========================================================================

    async def get_branch(self, branch_id: str) -> Optional[Branch]:
        return self.branches.get(branch_id)

    async def list_branches(self) -> list[Branch]:
        return list(self.branches.values())

    async def create_branch(self, data: dict[str, Any]) -> Branch:
        return self._create(self.branches, Branch, data)

    async def update_branch(self, branch_id: str, changes: dict[str, Any]) -> Optional[Branch]:
        return self._update(self.branches, branch_id, changes)

    async def delete_branch(self, branch_id: str) -> bool:
        if not self._delete(self.branches, branch_id):
            return False
        orphaned = [t.id for t in self.tables.values() if t.branch_id == branch_id]
        for table_id in orphaned:
            del self.tables[table_id]
        logger.info(f"Branch {branch_id} deleted with {len(orphaned)} table(s)")
        return True

    async def get_table(self, table_id: str) -> Optional[DiningTable]:
        return self.tables.get(table_id)

    async def list_tables(self, branch_id: Optional[str] = None) -> list[DiningTable]:
        tables = self.tables.values()
        if branch_id is not None:
            tables = [t for t in tables if t.branch_id == branch_id]
        return list(tables)

    async def create_table(self, data: dict[str, Any]) -> DiningTable:
        return self._create(self.tables, DiningTable, data)

    async def update_table(self, table_id: str, changes: dict[str, Any]) -> Optional[DiningTable]:
        return self._update(self.tables, table_id, changes)

    async def delete_table(self, table_id: str) -> bool:
        return self._delete(self.tables, table_id)

    # =========================================================================
    # MENU TAXONOMY
    # =========================================================================

    async def get_category(self, category_id: str) -> Optional[Category]:
        return self.categories.get(category_id)

    async def list_categories(self) -> list[Category]:
        return sorted(self.categories.values(), key=lambda c: c.order)

    async def create_category(self, data: dict[str, Any]) -> Category:
        return self._create(self.categories, Category, data)

    async def update_category(self, category_id: str, changes: dict[str, Any]) -> Optional[Category]:
        return self._update(self.categories, category_id, changes)

    async def delete_category(self, category_id: str) -> bool:
        return self._delete(self.categories, category_id)

    async def get_item(self, item_id: str) -> Optional[MenuItem]:
        return self.items.get(item_id)

    async def list_items(self, category_id: Optional[str] = None) -> list[MenuItem]:
        items = self.items.values()
        if category_id is not None:
            items = [i for i in items if i.category_id == category_id]
        return list(items)

    async def create_item(self, data: dict[str, Any]) -> MenuItem:
        return self._create(self.items, MenuItem, data)

    async def update_item(self, item_id: str, changes: dict[str, Any]) -> Optional[MenuItem]:
        return self._update(self.items, item_id, changes)

    async def delete_item(self, item_id: str) -> bool:
        return self._delete(self.items, item_id)

    def _clear_default_language(self, keep_id: str) -> None:
        for language_id, language in self.languages.items():
            if language_id != keep_id and language.is_default:
                self.languages[language_id] = language.model_copy(update={"is_default": False})

    async def get_language(self, language_id: str) -> Optional[Language]:
        return self.languages.get(language_id)

    async def get_language_by_code(self, code: str) -> Optional[Language]:
        return next((l for l in self.languages.values() if l.code == code), None)

    async def list_languages(self) -> list[Language]:
        return sorted(self.languages.values(), key=lambda l: l.order)

    async def create_language(self, data: dict[str, Any]) -> Language:
        language = self._create(self.languages, Language, data)
        if language.is_default:
            self._clear_default_language(language.id)
        return language

    async def update_language(self, language_id: str, changes: dict[str, Any]) -> Optional[Language]:
        language = self._update(self.languages, language_id, changes)
        if language is not None and language.is_default:
            self._clear_default_language(language.id)
        return language

    async def delete_language(self, language_id: str) -> bool:
        return self._delete(self.languages, language_id)

    async def get_food_type(self, food_type_id: str) -> Optional[FoodType]:
        return self.food_types.get(food_type_id)

    async def list_food_types(self) -> list[FoodType]:
        return sorted(self.food_types.values(), key=lambda f: f.order)

    async def create_food_type(self, data: dict[str, Any]) -> FoodType:
        return self._create(self.food_types, FoodType, data)

    async def update_food_type(self, food_type_id: str, changes: dict[str, Any]) -> Optional[FoodType]:
        return self._update(self.food_types, food_type_id, changes)

    async def delete_food_type(self, food_type_id: str) -> bool:
        return self._delete(self.food_types, food_type_id)

    async def get_material(self, material_id: str) -> Optional[Material]:
        return self.materials.get(material_id)

    async def list_materials(self) -> list[Material]:
        return sorted(self.materials.values(), key=lambda m: m.order)

    async def create_material(self, data: dict[str, Any]) -> Material:
        return self._create(self.materials, Material, data)

    async def update_material(self, material_id: str, changes: dict[str, Any]) -> Optional[Material]:
        return self._update(self.materials, material_id, changes)

    async def delete_material(self, material_id: str) -> bool:
        return self._delete(self.materials, material_id)

    # =========================================================================
    # ORDERS
    # =========================================================================

    async def get_order(self, order_id: str) -> Optional[Order]:
        order = self.orders.get(order_id)
        return order.model_copy(deep=True) if order else None

    async def list_orders(
        self,
        branch_id: Optional[str] = None,
        statuses: Optional[Iterable[str]] = None,
    ) -> list[Order]:
        wanted = set(statuses) if statuses is not None else None
        orders = [
            o.model_copy(deep=True)
            for o in self.orders.values()
            if (branch_id is None or o.branch_id == branch_id)
            and (wanted is None or o.status in wanted)
        ]
        return sorted(orders, key=lambda o: o.created_at)

    async def next_order_number(self) -> str:
        return format_order_number(next(self._order_sequence))

    async def create_order(self, order: Order) -> Order:
        self.orders[order.id] = order.model_copy(deep=True)
        return order

    async def save_order(self, order: Order) -> Optional[Order]:
        if order.id not in self.orders:
            return None
        self.orders[order.id] = order.model_copy(deep=True)
        return order

    # =========================================================================
    # WAITER REQUESTS & ANALYTICS
    # =========================================================================

    async def create_waiter_request(self, data: dict[str, Any]) -> WaiterRequest:
        data = {"timestamp": datetime.now(timezone.utc), "status": "pending", **data}
        return self._create(self.waiter_requests, WaiterRequest, data)

    async def list_waiter_requests(self, status: Optional[str] = None) -> list[WaiterRequest]:
        requests = [r for r in self.waiter_requests.values() if status is None or r.status == status]
        return sorted(requests, key=lambda r: r.timestamp)

    async def update_waiter_request(self, request_id: str, status: str) -> Optional[WaiterRequest]:
        return self._update(self.waiter_requests, request_id, {"status": status})

    async def record_visit(self, data: dict[str, Any]) -> MenuVisit:
        data = {"created_at": datetime.now(timezone.utc), **data}
        return self._create(self.visits, MenuVisit, data)

    async def list_visits(self, since: Optional[datetime] = None) -> list[MenuVisit]:
        return [v for v in self.visits.values() if since is None or v.created_at >= since]

    # =========================================================================
    # SETTINGS
    # =========================================================================

    async def _load_settings(self) -> Optional[dict[str, Any]]:
        return dict(self.settings) if self.settings is not None else None

    async def _store_settings(self, data: dict[str, Any]) -> None:
        self.settings = dict(data)
