"""
Menu languages. Exactly one language may be the default; it cannot be
deleted.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from qrmenu.api.dependencies import get_store, not_found, require_admin
from qrmenu.schemas import (
    Language,
    LanguageCreate,
    LanguageUpdate,
    MessageResponse,
    UserRecord,
)
from qrmenu.storage import BaseStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/languages", tags=["Languages"])


async def _ensure_code_free(storage: BaseStorage, code: str, language_id: Optional[str] = None) -> None:
    existing = await storage.get_language_by_code(code)
    if existing is not None and existing.id != language_id:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Language code '{code}' already exists",
        )


@router.get("", response_model=list[Language])
async def list_languages(storage: BaseStorage = Depends(get_store)) -> list[Language]:
    return await storage.list_languages()


@router.get("/{language_id}", response_model=Language)
async def get_language(language_id: str, storage: BaseStorage = Depends(get_store)) -> Language:
    language = await storage.get_language(language_id)
    if language is None:
        raise not_found("Language", language_id)
    return language


@router.post("", response_model=Language, status_code=status.HTTP_201_CREATED)
async def create_language(
    payload: LanguageCreate,
    _: UserRecord = Depends(require_admin),
    storage: BaseStorage = Depends(get_store),
) -> Language:
    await _ensure_code_free(storage, payload.code)
    language = await storage.create_language(payload.model_dump())
    logger.info(f"Language {language.code} created (default={language.is_default})")
    return language


@router.patch("/{language_id}", response_model=Language)
async def update_language(
    language_id: str,
    payload: LanguageUpdate,
    _: UserRecord = Depends(require_admin),
    storage: BaseStorage = Depends(get_store),
) -> Language:
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("code"):
        await _ensure_code_free(storage, changes["code"], language_id)
    language = await storage.update_language(language_id, changes)
    if language is None:
        raise not_found("Language", language_id)
    return language


@router.delete("/{language_id}", response_model=MessageResponse)
async def delete_language(
    language_id: str,
    _: UserRecord = Depends(require_admin),
    storage: BaseStorage = Depends(get_store),
) -> MessageResponse:
    language = await storage.get_language(language_id)
    if language is None:
        raise not_found("Language", language_id)
    if language.is_default:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete the default language",
        )
    await storage.delete_language(language_id)
    return MessageResponse(message="Language deleted")
