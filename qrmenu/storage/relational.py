"""
Relational Storage (SQLAlchemy)

Persists every entity through the async SQLAlchemy engine. Works against
PostgreSQL (psycopg) in production and SQLite (aiosqlite) in tests.

Rows are converted to the Pydantic records at the storage boundary; nothing
outside this module sees ORM objects.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, TypeVar

from pydantic import BaseModel
from sqlalchemy import delete, func, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from qrmenu import models
from qrmenu.core.config import get_settings
from qrmenu.core.security import hash_password
from qrmenu.database import create_engine, create_session_maker, init_db
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
from qrmenu.storage.base import (
    BaseStorage,
    format_order_number,
    new_id,
    parse_order_number,
)

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)

SETTINGS_ROW_ID = 1

# Inserts retried when another worker took the same order number
ORDER_NUMBER_ATTEMPTS = 5


class SqlAlchemyStorage(BaseStorage):
    """Storage backed by a relational database."""

    def __init__(self, database_url: str, echo: bool = False):
        self.engine = create_engine(database_url, echo=echo)
        self.session_maker = create_session_maker(self.engine)
        self._order_lock = asyncio.Lock()
        self._last_sequence: Optional[int] = None
        logger.info(f"SqlAlchemyStorage initialized ({self.engine.url.drivername})")

    @property
    def backend_name(self) -> str:
        return "database"

    async def startup(self) -> None:
        """Create tables and seed an empty database."""
        await init_db(self.engine)
        await self._seed()

    async def shutdown(self) -> None:
        await self.engine.dispose()
        logger.info("Database connections closed")

    async def ping(self) -> bool:
        try:
            async with self.session_maker() as session:
                await session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database ping failed: {e}")
            return False

    async def _seed(self) -> None:
        settings = get_settings()
        async with self.session_maker() as session:
            if not await session.scalar(select(func.count()).select_from(models.Branch)):
                session.add_all(models.Branch(**branch) for branch in SEED_BRANCHES)
                logger.info(f"Seeded {len(SEED_BRANCHES)} branches")

            if not await session.scalar(select(func.count()).select_from(models.User)):
                session.add(models.User(
                    id=new_id(),
                    username=settings.admin_username,
                    password_hash=hash_password(settings.admin_password),
                    created_at=datetime.now(timezone.utc),
                    **SEED_ADMIN_PROFILE,
                ))
                logger.info(f"Seeded admin user '{settings.admin_username}'")

            await session.commit()

    # =========================================================================
    # GENERIC HELPERS
    # =========================================================================

    async def _get(self, model, schema: type[RecordT], record_id: str) -> Optional[RecordT]:
        async with self.session_maker() as session:
            row = await session.get(model, record_id)
            return schema.model_validate(row) if row is not None else None

    async def _list(self, model, schema: type[RecordT], *criteria, order_by=None) -> list[RecordT]:
        stmt = select(model).where(*criteria)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        async with self.session_maker() as session:
            rows = (await session.scalars(stmt)).all()
        return [schema.model_validate(row) for row in rows]

    async def _create(self, model, schema: type[RecordT], data: dict[str, Any]) -> RecordT:
        record = schema.model_validate({**data, "id": new_id()})
        async with self.session_maker() as session:
            session.add(model(**record.model_dump()))
            await session.commit()
        return record

    async def _update(self, model, schema: type[RecordT], record_id: str, changes: dict[str, Any]) -> Optional[RecordT]:
        async with self.session_maker() as session:
            row = await session.get(model, record_id)
            if row is None:
                return None
            record = schema.model_validate({**schema.model_validate(row).model_dump(), **changes})
            for key in changes:
                setattr(row, key, getattr(record, key))
            await session.commit()
            return record

    async def _delete(self, model, record_id: str) -> bool:
        async with self.session_maker() as session:
            result = await session.execute(delete(model).where(model.id == record_id))
            await session.commit()
            return result.rowcount > 0

    # =========================================================================
    # USERS
    # =========================================================================

    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        return await self._get(models.User, UserRecord, user_id)

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        users = await self._list(models.User, UserRecord, models.User.username == username)
        return users[0] if users else None

    async def list_users(self) -> list[UserRecord]:
        return await self._list(models.User, UserRecord, order_by=models.User.created_at)

    async def create_user(self, data: dict[str, Any]) -> UserRecord:
        data = {"created_at": datetime.now(timezone.utc), **data}
        return await self._create(models.User, UserRecord, data)

    async def update_user(self, user_id: str, changes: dict[str, Any]) -> Optional[UserRecord]:
        return await self._update(models.User, UserRecord, user_id, changes)

    async def delete_user(self, user_id: str) -> bool:
        return await self._delete(models.User, user_id)

    # =========================================================================
    # BRANCHES & TABLES
    # =========================================================================

    async def get_branch(self, branch_id: str) -> Optional[Branch]:
        return await self._get(models.Branch, Branch, branch_id)

    async def list_branches(self) -> list[Branch]:
        return await self._list(models.Branch, Branch, order_by=models.Branch.name)

    async def create_branch(self, data: dict[str, Any]) -> Branch:
        return await self._create(models.Branch, Branch, data)

    async def update_branch(self, branch_id: str, changes: dict[str, Any]) -> Optional[Branch]:
        return await self._update(models.Branch, Branch, branch_id, changes)

    async def delete_branch(self, branch_id: str) -> bool:
        async with self.session_maker() as session:
            result = await session.execute(delete(models.Branch).where(models.Branch.id == branch_id))
            if result.rowcount == 0:
                await session.rollback()
                return False
            tables = await session.execute(
                delete(models.DiningTable).where(models.DiningTable.branch_id == branch_id)
            )
            await session.commit()
        logger.info(f"Branch {branch_id} deleted with {tables.rowcount} table(s)")
        return True

    async def get_table(self, table_id: str) -> Optional[DiningTable]:
        return await self._get(models.DiningTable, DiningTable, table_id)

    async def list_tables(self, branch_id: Optional[str] = None) -> list[DiningTable]:
        criteria = []
        if branch_id is not None:
            criteria.append(models.DiningTable.branch_id == branch_id)
        return await self._list(
            models.DiningTable, DiningTable, *criteria, order_by=models.DiningTable.table_number
        )

    async def create_table(self, data: dict[str, Any]) -> DiningTable:
        return await self._create(models.DiningTable, DiningTable, data)

    async def update_table(self, table_id: str, changes: dict[str, Any]) -> Optional[DiningTable]:
        return await self._update(models.DiningTable, DiningTable, table_id, changes)

    async def delete_table(self, table_id: str) -> bool:
        return await self._delete(models.DiningTable, table_id)

    # =========================================================================
    # MENU TAXONOMY
    # =========================================================================

    async def get_category(self, category_id: str) -> Optional[Category]:
        return await self._get(models.Category, Category, category_id)

    async def list_categories(self) -> list[Category]:
        return await self._list(models.Category, Category, order_by=models.Category.order)

    async def create_category(self, data: dict[str, Any]) -> Category:
        return await self._create(models.Category, Category, data)

    async def update_category(self, category_id: str, changes: dict[str, Any]) -> Optional[Category]:
        return await self._update(models.Category, Category, category_id, changes)

    async def delete_category(self, category_id: str) -> bool:
        return await self._delete(models.Category, category_id)

    async def get_item(self, item_id: str) -> Optional[MenuItem]:
        return await self._get(models.MenuItem, MenuItem, item_id)

    async def list_items(self, category_id: Optional[str] = None) -> list[MenuItem]:
        criteria = []
        if category_id is not None:
            criteria.append(models.MenuItem.category_id == category_id)
        return await self._list(models.MenuItem, MenuItem, *criteria, order_by=models.MenuItem.general_name)

    async def create_item(self, data: dict[str, Any]) -> MenuItem:
        return await self._create(models.MenuItem, MenuItem, data)

    async def update_item(self, item_id: str, changes: dict[str, Any]) -> Optional[MenuItem]:
        return await self._update(models.MenuItem, MenuItem, item_id, changes)

    async def delete_item(self, item_id: str) -> bool:
        return await self._delete(models.MenuItem, item_id)

    async def _clear_default_language(self, keep_id: str) -> None:
        async with self.session_maker() as session:
            await session.execute(
                update(models.Language)
                .where(models.Language.id != keep_id)
                .values(is_default=False)
            )
            await session.commit()

    async def get_language(self, language_id: str) -> Optional[Language]:
        return await self._get(models.Language, Language, language_id)

    async def get_language_by_code(self, code: str) -> Optional[Language]:
        languages = await self._list(models.Language, Language, models.Language.code == code)
        return languages[0] if languages else None

    async def list_languages(self) -> list[Language]:
        return await self._list(models.Language, Language, order_by=models.Language.order)

    async def create_language(self, data: dict[str, Any]) -> Language:
        language = await self._create(models.Language, Language, data)
        if language.is_default:
            await self._clear_default_language(language.id)
        return language

    async def update_language(self, language_id: str, changes: dict[str, Any]) -> Optional[Language]:
        language = await self._update(models.Language, Language, language_id, changes)
        if language is not None and language.is_default:
            await self._clear_default_language(language.id)
        return language

    async def delete_language(self, language_id: str) -> bool:
        return await self._delete(models.Language, language_id)

    async def get_food_type(self, food_type_id: str) -> Optional[FoodType]:
        return await self._get(models.FoodType, FoodType, food_type_id)

    async def list_food_types(self) -> list[FoodType]:
        return await self._list(models.FoodType, FoodType, order_by=models.FoodType.order)

    async def create_food_type(self, data: dict[str, Any]) -> FoodType:
        return await self._create(models.FoodType, FoodType, data)

    async def update_food_type(self, food_type_id: str, changes: dict[str, Any]) -> Optional[FoodType]:
        return await self._update(models.FoodType, FoodType, food_type_id, changes)

    async def delete_food_type(self, food_type_id: str) -> bool:
        return await self._delete(models.FoodType, food_type_id)

    async def get_material(self, material_id: str) -> Optional[Material]:
        return await self._get(models.Material, Material, material_id)

    async def list_materials(self) -> list[Material]:
        return await self._list(models.Material, Material, order_by=models.Material.order)

    async def create_material(self, data: dict[str, Any]) -> Material:
        return await self._create(models.Material, Material, data)

    async def update_material(self, material_id: str, changes: dict[str, Any]) -> Optional[Material]:
        return await self._update(models.Material, Material, material_id, changes)

    async def delete_material(self, material_id: str) -> bool:
        return await self._delete(models.Material, material_id)

    # =========================================================================
    # ORDERS
    # =========================================================================

    async def get_order(self, order_id: str) -> Optional[Order]:
        return await self._get(models.Order, Order, order_id)

    async def list_orders(
        self,
        branch_id: Optional[str] = None,
        statuses: Optional[Iterable[str]] = None,
    ) -> list[Order]:
        criteria = []
        if branch_id is not None:
            criteria.append(models.Order.branch_id == branch_id)
        if statuses is not None:
            criteria.append(models.Order.status.in_(list(statuses)))
        return await self._list(models.Order, Order, *criteria, order_by=models.Order.created_at)

    async def next_order_number(self) -> str:
        async with self._order_lock:
            if self._last_sequence is None:
                async with self.session_maker() as session:
                    self._last_sequence = await session.scalar(select(func.max(models.Order.sequence))) or 0
            self._last_sequence += 1
            return format_order_number(self._last_sequence)

    async def _resync_sequence(self) -> None:
        """Move the cached sequence past numbers other processes stored."""
        async with self._order_lock:
            async with self.session_maker() as session:
                stored = await session.scalar(select(func.max(models.Order.sequence))) or 0
            self._last_sequence = max(stored, self._last_sequence or 0)

    async def create_order(self, order: Order) -> Order:
        """
        Insert a new order.

        The cached sequence is per process. When another process sharing the
        database already used the number, the unique ``sequence`` column
        rejects the insert; the cache is moved past the stored numbers and
        the order renumbered.
        """
        for attempt in range(1, ORDER_NUMBER_ATTEMPTS + 1):
            try:
                async with self.session_maker() as session:
                    session.add(models.Order(
                        sequence=parse_order_number(order.order_number),
                        **order.model_dump(exclude={"items"}),
                        items=[item.model_dump() for item in order.items],
                    ))
                    await session.commit()
                return order
            except IntegrityError:
                if attempt == ORDER_NUMBER_ATTEMPTS:
                    raise
                taken = order.order_number
                await self._resync_sequence()
                order = order.model_copy(update={"order_number": await self.next_order_number()})
                logger.warning(f"{taken} already taken, retrying as {order.order_number}")

    async def save_order(self, order: Order) -> Optional[Order]:
        async with self.session_maker() as session:
            row = await session.get(models.Order, order.id)
            if row is None:
                return None
            row.status = order.status
            row.notes = order.notes
            row.items = [item.model_dump() for item in order.items]
            row.total_amount = order.total_amount
            row.updated_at = order.updated_at
            await session.commit()
        return order

    # =========================================================================
    # WAITER REQUESTS & ANALYTICS
    # =========================================================================

    async def create_waiter_request(self, data: dict[str, Any]) -> WaiterRequest:
        data = {"timestamp": datetime.now(timezone.utc), "status": "pending", **data}
        return await self._create(models.WaiterRequest, WaiterRequest, data)

    async def list_waiter_requests(self, status: Optional[str] = None) -> list[WaiterRequest]:
        criteria = []
        if status is not None:
            criteria.append(models.WaiterRequest.status == status)
        return await self._list(
            models.WaiterRequest, WaiterRequest, *criteria, order_by=models.WaiterRequest.timestamp
        )

    async def update_waiter_request(self, request_id: str, status: str) -> Optional[WaiterRequest]:
        return await self._update(models.WaiterRequest, WaiterRequest, request_id, {"status": status})

    async def record_visit(self, data: dict[str, Any]) -> MenuVisit:
        data = {"created_at": datetime.now(timezone.utc), **data}
        return await self._create(models.MenuVisit, MenuVisit, data)

    async def list_visits(self, since: Optional[datetime] = None) -> list[MenuVisit]:
        criteria = []
        if since is not None:
            criteria.append(models.MenuVisit.created_at >= since)
        return await self._list(models.MenuVisit, MenuVisit, *criteria)

    # =========================================================================
    # SETTINGS
    # =========================================================================

    async def _load_settings(self) -> Optional[dict[str, Any]]:
        async with self.session_maker() as session:
            row = await session.get(models.SettingsRow, SETTINGS_ROW_ID)
            return dict(row.data) if row is not None else None

    async def _store_settings(self, data: dict[str, Any]) -> None:
        async with self.session_maker() as session:
            row = await session.get(models.SettingsRow, SETTINGS_ROW_ID)
            if row is None:
                session.add(models.SettingsRow(id=SETTINGS_ROW_ID, data=data))
            else:
                row.data = data
            await session.commit()
