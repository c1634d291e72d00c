"""
Storage Factory

Returns the in-memory or the relational storage backend based on
STORAGE_BACKEND / ENV_MODE.
"""

import logging
from functools import lru_cache

from qrmenu.core.config import get_settings
from qrmenu.storage.base import BaseStorage
from qrmenu.storage.memory import MemoryStorage
from qrmenu.storage.relational import SqlAlchemyStorage

logger = logging.getLogger(__name__)


@lru_cache()
def get_storage() -> BaseStorage:
    """Get the configured storage backend."""
    settings = get_settings()

    if settings.use_database:
        logger.info(f"Storage: Using SqlAlchemyStorage ({settings.env_mode.value} mode)")
        return SqlAlchemyStorage(settings.database_url, echo=settings.database_echo)
    else:
        logger.info("Storage: Using MemoryStorage (development mode)")
        return MemoryStorage()


def reset_storage() -> None:
    """Clear the cached storage instance."""
    get_storage.cache_clear()


__all__ = [
    "get_storage",
    "reset_storage",
    "BaseStorage",
    "MemoryStorage",
    "SqlAlchemyStorage",
]
