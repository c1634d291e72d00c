"""
SQLAlchemy Database Models

Tables backing the relational storage implementation. Column names match
the Pydantic schema attributes so rows validate straight into schemas
(``Branch.model_validate(row)``).

Multi-language text and order lines are stored as JSON.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Float, DateTime, Text, Boolean, JSON
from qrmenu.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """Back-office account (admin, manager, chef, accountant)."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    username = Column(String(50), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False, default="")
    email = Column(String(255), nullable=False, default="")
    role = Column(String(20), nullable=False, default="chef")
    avatar = Column(Text, nullable=True)
    phone = Column(String(30), nullable=True)
    branch_id = Column(String(36), nullable=True, index=True)
    language = Column(String(10), nullable=False, default="en")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    def __repr__(self):
        return f"<User {self.username} ({self.role})>"


class Branch(Base):
    """Restaurant location; owns tables."""
    __tablename__ = "branches"

    id = Column(String(36), primary_key=True)
    name = Column(String(100), nullable=False)
    address = Column(String(255), nullable=False, default="")
    phone = Column(String(30), nullable=False, default="")
    owner = Column(String(100), nullable=True)
    owner_phone = Column(String(30), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<Branch {self.name}>"


class DiningTable(Base):
    __tablename__ = "tables"

    id = Column(String(36), primary_key=True)
    table_number = Column(String(20), nullable=False)
    branch_id = Column(String(36), nullable=False, index=True)
    capacity = Column(Integer, nullable=False, default=4)
    location = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False, default="available")
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<Table {self.table_number} @ {self.branch_id}>"


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True)
    general_name = Column(String(100), nullable=False, default="")
    name = Column(JSON, nullable=False, default=dict)
    image = Column(Text, nullable=True)
    order = Column(Integer, nullable=False, default=1)
    is_active = Column(Boolean, nullable=False, default=True)


class MenuItem(Base):
    __tablename__ = "items"

    id = Column(String(36), primary_key=True)
    category_id = Column(String(36), nullable=False, index=True)
    general_name = Column(String(100), nullable=False, default="")
    name = Column(JSON, nullable=False, default=dict)
    short_description = Column(JSON, nullable=False, default=dict)
    long_description = Column(JSON, nullable=False, default=dict)
    price = Column(Float, nullable=False, default=0.0)
    discounted_price = Column(Float, nullable=True)
    max_select = Column(Integer, nullable=True)
    image = Column(Text, nullable=True)
    available = Column(Boolean, nullable=False, default=True)
    suggested = Column(Boolean, nullable=False, default=False)
    is_new = Column(Boolean, nullable=False, default=False)
    materials = Column(JSON, nullable=False, default=list)  # material ids
    types = Column(JSON, nullable=False, default=list)  # food type ids


class Language(Base):
    __tablename__ = "languages"

    id = Column(String(36), primary_key=True)
    code = Column(String(10), nullable=False, unique=True)
    name = Column(String(50), nullable=False)
    native_name = Column(String(50), nullable=True)
    direction = Column(String(3), nullable=False, default="ltr")
    flag_image = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_default = Column(Boolean, nullable=False, default=False)
    order = Column(Integer, nullable=False, default=1)
    text_overrides = Column(JSON, nullable=False, default=dict)


class FoodType(Base):
    __tablename__ = "food_types"

    id = Column(String(36), primary_key=True)
    general_name = Column(String(100), nullable=False, default="")
    name = Column(JSON, nullable=False, default=dict)
    description = Column(JSON, nullable=False, default=dict)
    icon = Column(String(50), nullable=False, default="leaf")
    color = Column(String(20), nullable=False, default="#4CAF50")
    is_active = Column(Boolean, nullable=False, default=True)
    order = Column(Integer, nullable=False, default=1)


class Material(Base):
    __tablename__ = "materials"

    id = Column(String(36), primary_key=True)
    general_name = Column(String(100), nullable=False, default="")
    name = Column(JSON, nullable=False, default=dict)
    icon = Column(String(50), nullable=True)
    color = Column(String(20), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    order = Column(Integer, nullable=False, default=1)


class Order(Base):
    """
    Placed order.

    ``items`` holds the order lines (with their kitchen status) as a JSON
    array; ``sequence`` backs the human-readable ``order_number``.
    """
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True)
    sequence = Column(Integer, nullable=False, unique=True)
    order_number = Column(String(20), nullable=False, index=True)
    branch_id = Column(String(36), nullable=False, index=True)
    table_id = Column(String(36), nullable=True)
    table_number = Column(String(20), nullable=True)
    items = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default="pending", index=True)
    total_amount = Column(Float, nullable=False, default=0.0)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self):
        return f"<Order {self.order_number} - {self.status}>"


class WaiterRequest(Base):
    __tablename__ = "waiter_requests"

    id = Column(String(36), primary_key=True)
    table_id = Column(String(36), nullable=True)
    branch_id = Column(String(36), nullable=True)
    status = Column(String(20), nullable=False, default="pending")
    timestamp = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class MenuVisit(Base):
    """One public menu page view (QR scan)."""
    __tablename__ = "analytics"

    id = Column(String(36), primary_key=True)
    page_path = Column(String(255), nullable=False, default="/menu")
    referrer = Column(String(500), nullable=True)
    user_agent = Column(String(500), nullable=True)
    language = Column(String(10), nullable=True)
    session_id = Column(String(100), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)


class SettingsRow(Base):
    """Single-row key/value settings record."""
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True)
    data = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
