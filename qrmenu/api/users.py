"""
Back-office user management (admin only).
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from qrmenu.api.dependencies import get_store, not_found, require_admin
from qrmenu.core.security import ROLE_LABELS, ROLE_PERMISSIONS, hash_password
from qrmenu.schemas import (
    MessageResponse,
    RoleInfo,
    UserCreate,
    UserRecord,
    UserResponse,
    UserUpdate,
)
from qrmenu.storage import BaseStorage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Users"])

# Sent by the user form to mean "every branch"
ALL_BRANCHES = "all"


@router.get("/users", response_model=list[UserResponse])
async def list_users(
    _: UserRecord = Depends(require_admin),
    storage: BaseStorage = Depends(get_store),
) -> list[UserResponse]:
    return [UserResponse.from_record(u) for u in await storage.list_users()]


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    _: UserRecord = Depends(require_admin),
    storage: BaseStorage = Depends(get_store),
) -> UserResponse:
    if await storage.get_user_by_username(payload.username):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists")

    data = payload.model_dump(exclude={"password"})
    if data.get("branch_id") == ALL_BRANCHES:
        data["branch_id"] = None
    data["password_hash"] = hash_password(payload.password)

    user = await storage.create_user(data)
    logger.info(f"User {user.username} created ({user.role})")
    return UserResponse.from_record(user)


@router.patch("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    payload: UserUpdate,
    _: UserRecord = Depends(require_admin),
    storage: BaseStorage = Depends(get_store),
) -> UserResponse:
    changes = payload.model_dump(exclude_unset=True, exclude={"password"})
    if changes.get("branch_id") == ALL_BRANCHES:
        changes["branch_id"] = None
    if payload.password:
        changes["password_hash"] = hash_password(payload.password)

    user = await storage.update_user(user_id, changes)
    if user is None:
        raise not_found("User", user_id)
    return UserResponse.from_record(user)


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    current_user: UserRecord = Depends(require_admin),
    storage: BaseStorage = Depends(get_store),
) -> MessageResponse:
    if user_id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete your own account")
    if not await storage.delete_user(user_id):
        raise not_found("User", user_id)
    logger.info(f"User {user_id} deleted")
    return MessageResponse(message="User deleted")


@router.get("/roles", response_model=list[RoleInfo])
async def list_roles(_: UserRecord = Depends(require_admin)) -> list[RoleInfo]:
    return [
        RoleInfo(role=role, label=label, permissions=ROLE_PERMISSIONS[role])
        for role, label in ROLE_LABELS.items()
    ]
