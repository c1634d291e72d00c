"""
Branches and their dining tables.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response

from qrmenu.api.dependencies import get_store, not_found, require_permission
from qrmenu.schemas import (
    Branch,
    BranchCreate,
    BranchUpdate,
    DiningTable,
    DiningTableCreate,
    DiningTableUpdate,
    MessageResponse,
    UserRecord,
)
from qrmenu.services.qr import render_table_qr
from qrmenu.storage import BaseStorage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Branches"])


async def _require_branch(storage: BaseStorage, branch_id: str) -> Branch:
    branch = await storage.get_branch(branch_id)
    if branch is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Branch {branch_id} does not exist",
        )
    return branch


# =============================================================================
# BRANCHES
# =============================================================================

@router.get("/branches", response_model=list[Branch])
async def list_branches(storage: BaseStorage = Depends(get_store)) -> list[Branch]:
    return await storage.list_branches()


@router.get("/branches/{branch_id}", response_model=Branch)
async def get_branch(branch_id: str, storage: BaseStorage = Depends(get_store)) -> Branch:
    branch = await storage.get_branch(branch_id)
    if branch is None:
        raise not_found("Branch", branch_id)
    return branch


@router.post("/branches", response_model=Branch, status_code=status.HTTP_201_CREATED)
async def create_branch(
    payload: BranchCreate,
    _: UserRecord = Depends(require_permission("branches")),
    storage: BaseStorage = Depends(get_store),
) -> Branch:
    branch = await storage.create_branch(payload.model_dump())
    logger.info(f"Branch '{branch.name}' created")
    return branch


@router.patch("/branches/{branch_id}", response_model=Branch)
async def update_branch(
    branch_id: str,
    payload: BranchUpdate,
    _: UserRecord = Depends(require_permission("branches")),
    storage: BaseStorage = Depends(get_store),
) -> Branch:
    branch = await storage.update_branch(branch_id, payload.model_dump(exclude_unset=True))
    if branch is None:
        raise not_found("Branch", branch_id)
    return branch


@router.delete("/branches/{branch_id}", response_model=MessageResponse)
async def delete_branch(
    branch_id: str,
    _: UserRecord = Depends(require_permission("branches")),
    storage: BaseStorage = Depends(get_store),
) -> MessageResponse:
    if not await storage.delete_branch(branch_id):
        raise not_found("Branch", branch_id)
    return MessageResponse(message="Branch deleted")


# =============================================================================
# TABLES
# =============================================================================

@router.get("/tables", response_model=list[DiningTable])
async def list_tables(
    branch_id: Optional[str] = Query(None, alias="branchId"),
    _: UserRecord = Depends(require_permission("tables")),
    storage: BaseStorage = Depends(get_store),
) -> list[DiningTable]:
    return await storage.list_tables(branch_id=branch_id)


@router.get("/tables/{table_id}", response_model=DiningTable)
async def get_table(
    table_id: str,
    _: UserRecord = Depends(require_permission("tables")),
    storage: BaseStorage = Depends(get_store),
) -> DiningTable:
    table = await storage.get_table(table_id)
    if table is None:
        raise not_found("Table", table_id)
    return table


@router.post("/tables", response_model=DiningTable, status_code=status.HTTP_201_CREATED)
async def create_table(
    payload: DiningTableCreate,
    _: UserRecord = Depends(require_permission("tables")),
    storage: BaseStorage = Depends(get_store),
) -> DiningTable:
    await _require_branch(storage, payload.branch_id)
    table = await storage.create_table(payload.model_dump())
    logger.info(f"Table {table.table_number} created @ branch {table.branch_id}")
    return table


@router.patch("/tables/{table_id}", response_model=DiningTable)
async def update_table(
    table_id: str,
    payload: DiningTableUpdate,
    _: UserRecord = Depends(require_permission("tables")),
    storage: BaseStorage = Depends(get_store),
) -> DiningTable:
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("branch_id") is not None:
        await _require_branch(storage, changes["branch_id"])
    table = await storage.update_table(table_id, changes)
    if table is None:
        raise not_found("Table", table_id)
    return table


@router.delete("/tables/{table_id}", response_model=MessageResponse)
async def delete_table(
    table_id: str,
    _: UserRecord = Depends(require_permission("tables")),
    storage: BaseStorage = Depends(get_store),
) -> MessageResponse:
    if not await storage.delete_table(table_id):
        raise not_found("Table", table_id)
    return MessageResponse(message="Table deleted")


@router.get(
    "/tables/{table_id}/qrcode",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}}},
)
async def table_qrcode(
    table_id: str,
    _: UserRecord = Depends(require_permission("qrcode")),
    storage: BaseStorage = Depends(get_store),
) -> Response:
    """PNG QR code linking to the public menu for this table."""
    table = await storage.get_table(table_id)
    if table is None:
        raise not_found("Table", table_id)
    design = await storage.get_settings()
    png = render_table_qr(table, design)
    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": f'inline; filename="table-{table.table_number}.png"'},
    )
