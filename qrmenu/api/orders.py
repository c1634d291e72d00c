"""
Order endpoints, the Kitchen Display / Order Status Screen views and their
live websocket feeds.
"""

import asyncio
import logging
from typing import Optional

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    WebSocket,
    WebSocketDisconnect,
    status,
)

from qrmenu.api.dependencies import (
    get_order_service,
    get_store,
    load_session_user,
    require_permission,
)
from qrmenu.core.security import has_permission
from qrmenu.schemas import (
    Order,
    OrderCreate,
    OrderItemStatusUpdate,
    OrderStatus,
    OrderUpdate,
    UserRecord,
)
from qrmenu.services.events import get_event_broker
from qrmenu.services.orders import OrderError, OrderService
from qrmenu.storage import BaseStorage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Orders"])

# Mounted at the application root: /ws/kitchen, /ws/order-status
ws_router = APIRouter(tags=["Displays"])


def _http_error(error: OrderError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=str(error))


# =============================================================================
# ORDERS
# =============================================================================

@router.get("/orders", response_model=list[Order])
async def list_orders(
    branch_id: Optional[str] = Query(None, alias="branchId"),
    order_status: Optional[OrderStatus] = Query(None, alias="status"),
    _: UserRecord = Depends(require_permission("orders")),
    service: OrderService = Depends(get_order_service),
) -> list[Order]:
    status_value = order_status.value if order_status else None
    return await service.list_orders(branch_id=branch_id, status=status_value)


@router.get("/orders/{order_id}", response_model=Order)
async def get_order(
    order_id: str,
    _: UserRecord = Depends(require_permission("orders")),
    service: OrderService = Depends(get_order_service),
) -> Order:
    try:
        return await service.get_order(order_id)
    except OrderError as e:
        raise _http_error(e) from e


@router.post("/orders", response_model=Order, status_code=status.HTTP_201_CREATED)
async def place_order(
    payload: OrderCreate,
    service: OrderService = Depends(get_order_service),
) -> Order:
    """Place an order from the public menu cart."""
    try:
        return await service.place_order(payload)
    except OrderError as e:
        raise _http_error(e) from e


@router.patch("/orders/{order_id}", response_model=Order)
async def update_order(
    order_id: str,
    payload: OrderUpdate,
    _: UserRecord = Depends(require_permission("orders")),
    service: OrderService = Depends(get_order_service),
) -> Order:
    try:
        return await service.update_order(order_id, payload)
    except OrderError as e:
        raise _http_error(e) from e


@router.patch("/orders/{order_id}/items/{item_id}", response_model=Order)
async def update_order_item(
    order_id: str,
    item_id: str,
    payload: OrderItemStatusUpdate,
    _: UserRecord = Depends(require_permission("kitchen")),
    service: OrderService = Depends(get_order_service),
) -> Order:
    try:
        return await service.update_item_status(order_id, item_id, payload.status)
    except OrderError as e:
        raise _http_error(e) from e


# =============================================================================
# DISPLAY VIEWS
# =============================================================================

@router.get("/kitchen/orders", response_model=list[Order])
async def kitchen_orders(
    branch_id: Optional[str] = Query(None, alias="branchId"),
    _: UserRecord = Depends(require_permission("kitchen")),
    service: OrderService = Depends(get_order_service),
) -> list[Order]:
    return await service.kitchen_orders(branch_id=branch_id)


@router.get("/order-status-screen", response_model=list[Order])
async def order_status_screen(
    branch_id: Optional[str] = Query(None, alias="branchId"),
    service: OrderService = Depends(get_order_service),
) -> list[Order]:
    return await service.order_status_screen(branch_id=branch_id)


# =============================================================================
# WEBSOCKETS
# =============================================================================

async def _stream_events(websocket: WebSocket, snapshot: list[Order], branch_id: Optional[str]) -> None:
    """Send the current orders, then every order event until the client leaves."""
    broker = get_event_broker()
    queue = broker.subscribe()

    async def watch_disconnect():
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(None)

    watcher = asyncio.create_task(watch_disconnect())
    try:
        await websocket.send_json({
            "type": "snapshot",
            "orders": [o.model_dump(mode="json", by_alias=True) for o in snapshot],
        })
        while True:
            event = await queue.get()
            if event is None:
                break
            if branch_id and event["order"]["branchId"] != branch_id:
                continue
            await websocket.send_json(event)
    except WebSocketDisconnect:
        pass
    finally:
        watcher.cancel()
        broker.unsubscribe(queue)
        logger.debug("Display websocket closed")


@ws_router.websocket("/ws/kitchen")
async def kitchen_ws(websocket: WebSocket, branch_id: Optional[str] = Query(None, alias="branchId")) -> None:
    storage: BaseStorage = get_store()
    user = await load_session_user(websocket.session, storage)
    if user is None or not has_permission(user.role, "kitchen"):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    service = OrderService(storage, get_event_broker())
    await _stream_events(websocket, await service.kitchen_orders(branch_id=branch_id), branch_id)


@ws_router.websocket("/ws/order-status")
async def order_status_ws(websocket: WebSocket, branch_id: Optional[str] = Query(None, alias="branchId")) -> None:
    await websocket.accept()
    service = OrderService(get_store(), get_event_broker())
    await _stream_events(websocket, await service.order_status_screen(branch_id=branch_id), branch_id)
