"""
Password hashing and role-based access rules.
"""

import bcrypt

from qrmenu.core.config import get_settings

ROLE_LABELS: dict[str, str] = {
    "admin": "Administrator",
    "manager": "Manager",
    "chef": "Chef",
    "accountant": "Accountant",
}

# "all" grants every admin area
ROLE_PERMISSIONS: dict[str, list[str]] = {
    "admin": ["all"],
    "manager": [
        "dashboard",
        "restaurant",
        "categories",
        "items",
        "tables",
        "qrcode",
        "materials",
        "types",
        "branches",
        "orders",
        "kitchen",
    ],
    "chef": ["dashboard", "categories", "items", "materials", "kitchen", "orders"],
    "accountant": ["dashboard", "restaurant", "orders"],
}


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    salt = bcrypt.gensalt(rounds=get_settings().password_hash_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in storage
        return False


def has_permission(role: str, area: str) -> bool:
    """Check whether ``role`` may access the admin ``area``."""
    granted = ROLE_PERMISSIONS.get(role, [])
    return "all" in granted or area in granted
