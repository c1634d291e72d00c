"""
Session authentication and self-service profile endpoints.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from qrmenu.api.dependencies import SESSION_USER_KEY, get_current_user, get_store
from qrmenu.core.security import hash_password, verify_password
from qrmenu.schemas import (
    LanguagePreference,
    LoginRequest,
    MessageResponse,
    PasswordChange,
    ProfileUpdate,
    UserRecord,
    UserResponse,
)
from qrmenu.storage import BaseStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])

# Languages the back-office UI is translated into
UI_LANGUAGES = ("en", "fa", "tr", "ar")


@router.post("/login", response_model=UserResponse)
async def login(
    credentials: LoginRequest,
    request: Request,
    storage: BaseStorage = Depends(get_store),
) -> UserResponse:
    user = await storage.get_user_by_username(credentials.username)
    if user is None or not verify_password(credentials.password, user.password_hash):
        logger.info(f"Failed login for '{credentials.username}'")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled")

    request.session[SESSION_USER_KEY] = user.id
    logger.info(f"User {user.username} logged in")
    return UserResponse.from_record(user)


@router.post("/logout", response_model=MessageResponse)
async def logout(request: Request) -> MessageResponse:
    request.session.clear()
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserResponse)
async def me(user: UserRecord = Depends(get_current_user)) -> UserResponse:
    return UserResponse.from_record(user)


@router.patch("/me", response_model=UserResponse)
async def update_profile(
    changes: ProfileUpdate,
    user: UserRecord = Depends(get_current_user),
    storage: BaseStorage = Depends(get_store),
) -> UserResponse:
    updated = await storage.update_user(user.id, changes.model_dump(exclude_unset=True))
    return UserResponse.from_record(updated)


@router.patch("/update-language", response_model=UserResponse)
async def update_language(
    preference: LanguagePreference,
    user: UserRecord = Depends(get_current_user),
    storage: BaseStorage = Depends(get_store),
) -> UserResponse:
    if preference.language not in UI_LANGUAGES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported language. Options: {list(UI_LANGUAGES)}",
        )
    updated = await storage.update_user(user.id, {"language": preference.language})
    return UserResponse.from_record(updated)


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    payload: PasswordChange,
    user: UserRecord = Depends(get_current_user),
    storage: BaseStorage = Depends(get_store),
) -> MessageResponse:
    if not verify_password(payload.current_password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")

    await storage.update_user(user.id, {"password_hash": hash_password(payload.new_password)})
    logger.info(f"User {user.username} changed their password")
    return MessageResponse(message="Password updated")
