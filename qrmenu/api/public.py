"""
Customer-facing endpoints behind the table QR codes: the menu, call-waiter
requests and visit tracking. Also hosts media upload and the dashboard
aggregates.
"""

import logging
import secrets
import time
from pathlib import Path
from typing import Optional

from fastapi import (
    APIRouter,
    Depends,
    File,
    HTTPException,
    Query,
    Request,
    UploadFile,
    status,
)

from qrmenu.api.dependencies import get_current_user, get_store, not_found, require_permission
from qrmenu.core.config import get_settings
from qrmenu.schemas import (
    DashboardMetrics,
    MenuCategory,
    MenuVisit,
    MenuVisitCreate,
    PublicMenu,
    UploadResponse,
    UserRecord,
    WaiterRequest,
    WaiterRequestCreate,
    WaiterRequestStatus,
    WaiterRequestUpdate,
)
from qrmenu.services.metrics import dashboard_metrics
from qrmenu.storage import BaseStorage
from qrmenu.storage.base import new_id

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Public"])

ALLOWED_UPLOAD_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif", ".webp", ".mp4", ".webm"}

VISITOR_SESSION_KEY = "visitor_id"


# =============================================================================
# MENU
# =============================================================================

@router.get("/menu", response_model=PublicMenu)
async def public_menu(storage: BaseStorage = Depends(get_store)) -> PublicMenu:
    """Active categories with their available items, plus menu metadata."""
    categories = [c for c in await storage.list_categories() if c.is_active]
    items = [i for i in await storage.list_items() if i.available]

    by_category: dict[str, list] = {}
    for item in items:
        by_category.setdefault(item.category_id, []).append(item)

    active_ids = {c.id for c in categories}
    return PublicMenu(
        categories=[
            MenuCategory(**c.model_dump(), items=by_category.get(c.id, []))
            for c in categories
        ],
        suggested=[i for i in items if i.suggested and i.category_id in active_ids],
        food_types=[f for f in await storage.list_food_types() if f.is_active],
        materials=[m for m in await storage.list_materials() if m.is_active],
        languages=[l for l in await storage.list_languages() if l.is_active],
        settings=await storage.get_settings(),
    )


# =============================================================================
# WAITER REQUESTS
# =============================================================================

@router.post("/waiter-request", response_model=WaiterRequest, status_code=status.HTTP_201_CREATED)
async def call_waiter(
    payload: WaiterRequestCreate,
    storage: BaseStorage = Depends(get_store),
) -> WaiterRequest:
    if payload.table_id:
        table = await storage.get_table(payload.table_id)
        if table is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown table")
        if payload.branch_id is None:
            payload.branch_id = table.branch_id

    waiter_request = await storage.create_waiter_request(payload.model_dump())
    logger.info(f"Waiter called to table {payload.table_id or '-'} @ branch {payload.branch_id or '-'}")
    return waiter_request


@router.get("/waiter-requests", response_model=list[WaiterRequest])
async def list_waiter_requests(
    request_status: Optional[WaiterRequestStatus] = Query(None, alias="status"),
    _: UserRecord = Depends(require_permission("orders")),
    storage: BaseStorage = Depends(get_store),
) -> list[WaiterRequest]:
    return await storage.list_waiter_requests(status=request_status.value if request_status else None)


@router.patch("/waiter-requests/{request_id}", response_model=WaiterRequest)
async def update_waiter_request(
    request_id: str,
    payload: WaiterRequestUpdate,
    _: UserRecord = Depends(require_permission("orders")),
    storage: BaseStorage = Depends(get_store),
) -> WaiterRequest:
    waiter_request = await storage.update_waiter_request(request_id, payload.status)
    if waiter_request is None:
        raise not_found("Waiter request", request_id)
    return waiter_request


# =============================================================================
# ANALYTICS
# =============================================================================

@router.post("/analytics/visit", response_model=MenuVisit, status_code=status.HTTP_201_CREATED)
async def record_visit(
    payload: MenuVisitCreate,
    request: Request,
    storage: BaseStorage = Depends(get_store),
) -> MenuVisit:
    """Record one menu view; visitors without a session id get a cookie-backed one."""
    data = payload.model_dump()
    if not data.get("session_id"):
        data["session_id"] = request.session.setdefault(VISITOR_SESSION_KEY, new_id())
    if not data.get("user_agent"):
        data["user_agent"] = request.headers.get("user-agent")
    return await storage.record_visit(data)


@router.get("/dashboard/metrics", response_model=DashboardMetrics)
async def get_dashboard_metrics(
    _: UserRecord = Depends(require_permission("dashboard")),
    storage: BaseStorage = Depends(get_store),
) -> DashboardMetrics:
    return await dashboard_metrics(storage)


# =============================================================================
# UPLOADS
# =============================================================================

async def _read_upload(upload: UploadFile, max_bytes: int) -> bytes:
    """Read upload content enforcing a maximum size."""
    data = await upload.read()
    if len(data) > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File size {len(data)} exceeds limit of {max_bytes} bytes",
        )
    return data


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_media(
    file: UploadFile = File(...),
    user: UserRecord = Depends(get_current_user),
) -> UploadResponse:
    """Store an image or video; the returned URL is served from /uploads."""
    settings = get_settings()
    extension = Path(file.filename or "").suffix.lower()
    if extension not in ALLOWED_UPLOAD_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only image and video files are allowed",
        )

    content = await _read_upload(file, settings.upload_max_bytes)

    upload_dir = Path(settings.upload_directory)
    upload_dir.mkdir(parents=True, exist_ok=True)
    filename = f"file-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{extension}"
    (upload_dir / filename).write_bytes(content)

    logger.info(f"{user.username} uploaded {filename} ({len(content)} bytes)")
    return UploadResponse(url=f"/uploads/{filename}", filename=filename)
