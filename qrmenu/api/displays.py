"""
HTML pages for the Kitchen Display and the Order Status Screen.

Both pages render their styling from the settings record and refresh from
the JSON views (``/api/kitchen/orders``, ``/api/order-status-screen``).
"""

from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from qrmenu.api.dependencies import get_store, require_permission
from qrmenu.schemas import UserRecord
from qrmenu.storage import BaseStorage

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

router = APIRouter(tags=["Displays"])

# Seconds between refreshes of the JSON views
POLL_INTERVAL = 5


@router.get("/kitchen", response_class=HTMLResponse)
async def kitchen_page(
    request: Request,
    branch_id: Optional[str] = Query(None, alias="branchId"),
    _: UserRecord = Depends(require_permission("kitchen")),
    storage: BaseStorage = Depends(get_store),
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "kitchen.html",
        {
            "settings": await storage.get_settings(),
            "branch_id": branch_id or "",
            "poll_interval": POLL_INTERVAL,
        },
    )


@router.get("/order-status", response_class=HTMLResponse)
async def order_status_page(
    request: Request,
    branch_id: Optional[str] = Query(None, alias="branchId"),
    storage: BaseStorage = Depends(get_store),
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "order_status.html",
        {
            "settings": await storage.get_settings(),
            "branch_id": branch_id or "",
            "poll_interval": POLL_INTERVAL,
        },
    )
