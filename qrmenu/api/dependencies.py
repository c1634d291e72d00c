"""
Shared FastAPI dependencies: storage, services and session authentication.
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from qrmenu.core.security import has_permission
from qrmenu.schemas import UserRecord
from qrmenu.services.events import OrderEventBroker, get_event_broker
from qrmenu.services.orders import OrderService
from qrmenu.storage import BaseStorage, get_storage

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"


def get_store() -> BaseStorage:
    return get_storage()


def get_order_service(
    storage: BaseStorage = Depends(get_store),
    broker: OrderEventBroker = Depends(get_event_broker),
) -> OrderService:
    return OrderService(storage, broker)


async def load_session_user(session: dict, storage: BaseStorage) -> Optional[UserRecord]:
    """Active user referenced by a session, if any."""
    user_id = session.get(SESSION_USER_KEY)
    if not user_id:
        return None
    user = await storage.get_user(user_id)
    if user is None or not user.is_active:
        return None
    return user


async def get_current_user(
    request: Request,
    storage: BaseStorage = Depends(get_store),
) -> UserRecord:
    """Resolve the user stored in the signed session cookie."""
    user = await load_session_user(request.session, storage)
    if user is None:
        request.session.clear()
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user


def require_permission(area: str):
    """Dependency factory: the current user's role must grant ``area``."""
    async def permission_checker(user: UserRecord = Depends(get_current_user)) -> UserRecord:
        if not has_permission(user.role, area):
            logger.warning(f"User {user.username} ({user.role}) denied access to '{area}'")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {area}",
            )
        return user
    return permission_checker


require_admin = require_permission("all")


def not_found(entity: str, entity_id: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{entity} {entity_id} not found")
