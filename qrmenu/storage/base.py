"""
Storage Abstract Base Class

Defines the persistence contract for every entity of the platform.
Implemented by an in-memory backend (development, tests) and a relational
backend (SQLAlchemy async).

Conventions:
    - ``get_*`` returns ``None`` on a miss
    - ``update_*`` merges only the given keys and returns ``None`` on a miss
    - ``delete_*`` returns ``False`` on a miss
"""

import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Iterable, Optional

from qrmenu.defaults import DEFAULT_SETTINGS
from qrmenu.schemas import (
    AppSettings,
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


def new_id() -> str:
    """Generate an opaque record identifier."""
    return uuid.uuid4().hex


def format_order_number(sequence: int) -> str:
    return f"ORD-{sequence:03d}"


def parse_order_number(order_number: str) -> int:
    """Inverse of ``format_order_number``."""
    return int(order_number.rsplit("-", 1)[-1])


class BaseStorage(ABC):
    """Abstract base class for storage backends."""

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend name."""
        pass

    async def startup(self) -> None:
        """Prepare the backend (create schema, seed data)."""

    async def shutdown(self) -> None:
        """Release backend resources."""

    @abstractmethod
    async def ping(self) -> bool:
        """Check backend connectivity."""
        pass

    # =========================================================================
    # USERS
    # =========================================================================

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        pass

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        pass

    @abstractmethod
    async def list_users(self) -> list[UserRecord]:
        pass

    @abstractmethod
    async def create_user(self, data: dict[str, Any]) -> UserRecord:
        """Create a user; ``data`` carries ``password_hash``, never a password."""
        pass

    @abstractmethod
    async def update_user(self, user_id: str, changes: dict[str, Any]) -> Optional[UserRecord]:
        pass

    @abstractmethod
    async def delete_user(self, user_id: str) -> bool:
        pass

    # =========================================================================
    # BRANCHES & TABLES
    # =========================================================================

    @abstractmethod
    async def get_branch(self, branch_id: str) -> Optional[Branch]:
        pass

    @abstractmethod
    async def list_branches(self) -> list[Branch]:
        pass

    @abstractmethod
    async def create_branch(self, data: dict[str, Any]) -> Branch:
        pass

    @abstractmethod
    async def update_branch(self, branch_id: str, changes: dict[str, Any]) -> Optional[Branch]:
        pass

    @abstractmethod
    async def delete_branch(self, branch_id: str) -> bool:
        """Delete a branch together with all of its tables."""
        pass

    @abstractmethod
    async def get_table(self, table_id: str) -> Optional[DiningTable]:
        pass

    @abstractmethod
    async def list_tables(self, branch_id: Optional[str] = None) -> list[DiningTable]:
        pass

    @abstractmethod
    async def create_table(self, data: dict[str, Any]) -> DiningTable:
        pass

    @abstractmethod
    async def update_table(self, table_id: str, changes: dict[str, Any]) -> Optional[DiningTable]:
        pass

    @abstractmethod
    async def delete_table(self, table_id: str) -> bool:
        pass

    # =========================================================================
    # MENU TAXONOMY
    # =========================================================================

    @abstractmethod
    async def get_category(self, category_id: str) -> Optional[Category]:
        pass

    @abstractmethod
    async def list_categories(self) -> list[Category]:
        """Categories sorted by their display order."""
        pass

    @abstractmethod
    async def create_category(self, data: dict[str, Any]) -> Category:
        pass

    @abstractmethod
    async def update_category(self, category_id: str, changes: dict[str, Any]) -> Optional[Category]:
        pass

    @abstractmethod
    async def delete_category(self, category_id: str) -> bool:
        pass

    @abstractmethod
    async def get_item(self, item_id: str) -> Optional[MenuItem]:
        pass

    @abstractmethod
    async def list_items(self, category_id: Optional[str] = None) -> list[MenuItem]:
        pass

    @abstractmethod
    async def create_item(self, data: dict[str, Any]) -> MenuItem:
        pass

    @abstractmethod
    async def update_item(self, item_id: str, changes: dict[str, Any]) -> Optional[MenuItem]:
        pass

    @abstractmethod
    async def delete_item(self, item_id: str) -> bool:
        pass

    @abstractmethod
    async def get_language(self, language_id: str) -> Optional[Language]:
        pass

    @abstractmethod
    async def get_language_by_code(self, code: str) -> Optional[Language]:
        pass

    @abstractmethod
    async def list_languages(self) -> list[Language]:
        """Languages sorted by their display order."""
        pass

    @abstractmethod
    async def create_language(self, data: dict[str, Any]) -> Language:
        """Create a language; a new default clears the flag on all others."""
        pass

    @abstractmethod
    async def update_language(self, language_id: str, changes: dict[str, Any]) -> Optional[Language]:
        """Update a language; becoming default clears the flag on all others."""
        pass

    @abstractmethod
    async def delete_language(self, language_id: str) -> bool:
        pass

    @abstractmethod
    async def get_food_type(self, food_type_id: str) -> Optional[FoodType]:
        pass

    @abstractmethod
    async def list_food_types(self) -> list[FoodType]:
        pass

    @abstractmethod
    async def create_food_type(self, data: dict[str, Any]) -> FoodType:
        pass

    @abstractmethod
    async def update_food_type(self, food_type_id: str, changes: dict[str, Any]) -> Optional[FoodType]:
        pass

    @abstractmethod
    async def delete_food_type(self, food_type_id: str) -> bool:
        pass

    @abstractmethod
    async def get_material(self, material_id: str) -> Optional[Material]:
        pass

    @abstractmethod
    async def list_materials(self) -> list[Material]:
        pass

    @abstractmethod
    async def create_material(self, data: dict[str, Any]) -> Material:
        pass

    @abstractmethod
    async def update_material(self, material_id: str, changes: dict[str, Any]) -> Optional[Material]:
        pass

    @abstractmethod
    async def delete_material(self, material_id: str) -> bool:
        pass

    # =========================================================================
    # ORDERS
    # =========================================================================

    @abstractmethod
    async def get_order(self, order_id: str) -> Optional[Order]:
        pass

    @abstractmethod
    async def list_orders(
        self,
        branch_id: Optional[str] = None,
        statuses: Optional[Iterable[str]] = None,
    ) -> list[Order]:
        """Orders sorted oldest first."""
        pass

    @abstractmethod
    async def next_order_number(self) -> str:
        """Reserve the next sequential ``ORD-NNN`` number."""
        pass

    @abstractmethod
    async def create_order(self, order: Order) -> Order:
        pass

    @abstractmethod
    async def save_order(self, order: Order) -> Optional[Order]:
        """Persist status, notes and items of an existing order."""
        pass

    # =========================================================================
    # WAITER REQUESTS & ANALYTICS
    # =========================================================================

    @abstractmethod
    async def create_waiter_request(self, data: dict[str, Any]) -> WaiterRequest:
        pass

    @abstractmethod
    async def list_waiter_requests(self, status: Optional[str] = None) -> list[WaiterRequest]:
        pass

    @abstractmethod
    async def update_waiter_request(self, request_id: str, status: str) -> Optional[WaiterRequest]:
        pass

    @abstractmethod
    async def record_visit(self, data: dict[str, Any]) -> MenuVisit:
        pass

    @abstractmethod
    async def list_visits(self, since: Optional[datetime] = None) -> list[MenuVisit]:
        pass

    # =========================================================================
    # SETTINGS
    # =========================================================================

    @abstractmethod
    async def _load_settings(self) -> Optional[dict[str, Any]]:
        """Raw stored settings, or ``None`` when never written."""
        pass

    @abstractmethod
    async def _store_settings(self, data: dict[str, Any]) -> None:
        pass

    async def get_settings(self) -> AppSettings:
        """Stored settings layered over the defaults."""
        stored = await self._load_settings() or {}
        data = dict(DEFAULT_SETTINGS)
        data.update({k: v for k, v in stored.items() if k in DEFAULT_SETTINGS})
        return AppSettings.model_validate(data)

    async def update_settings(self, changes: dict[str, Any]) -> AppSettings:
        """
        Merge ``changes`` into the settings record.

        Raises:
            ValueError: on unknown keys
            pydantic.ValidationError: on values of the wrong type
        """
        current = await self.get_settings()
        updated = current.merged(changes)
        await self._store_settings(updated.model_dump(mode="json"))
        return updated

    async def reset_settings(self) -> AppSettings:
        """Restore every field to ``DEFAULT_SETTINGS``."""
        defaults = AppSettings.model_validate(DEFAULT_SETTINGS)
        await self._store_settings(defaults.model_dump(mode="json"))
        return defaults
