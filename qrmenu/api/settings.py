"""
Restaurant settings record.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import ValidationError

from qrmenu.api.dependencies import get_store, require_admin
from qrmenu.schemas import AppSettings, UserRecord
from qrmenu.storage import BaseStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("", response_model=AppSettings)
async def get_settings(storage: BaseStorage = Depends(get_store)) -> AppSettings:
    return await storage.get_settings()


@router.patch("", response_model=AppSettings)
async def update_settings(
    changes: dict[str, Any] = Body(..., examples=[{"primaryColor": "#E91E63", "currencySymbol": "€"}]),
    _: UserRecord = Depends(require_admin),
    storage: BaseStorage = Depends(get_store),
) -> AppSettings:
    """Merge the given keys (camelCase or snake_case) into the settings."""
    try:
        updated = await storage.update_settings(changes)
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail=e.errors(include_url=False, include_context=False),
        ) from e
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    logger.info(f"Settings updated: {sorted(changes)}")
    return updated


@router.post("/reset", response_model=AppSettings)
async def reset_settings(
    _: UserRecord = Depends(require_admin),
    storage: BaseStorage = Depends(get_store),
) -> AppSettings:
    logger.info("Settings reset to defaults")
    return await storage.reset_settings()
