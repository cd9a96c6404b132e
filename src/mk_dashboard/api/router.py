"""Dashboard API router.

All HTTP endpoints return ApiResponse. request_id is read from
request.state (injected by RequestLogMiddleware). Every endpoint except
POST /dashboard/session needs an open session for the caller.

The WebSocket at /dashboard/ws pushes rendered sections, new-order notices
and notification updates, and accepts commands as
``{"action": "...", "params": {...}}``.
"""

import logging
from typing import Annotated, Any

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    Query,
    Request,
    UploadFile,
    WebSocket,
    WebSocketDisconnect,
)
from pydantic import ValidationError

from src.mk_auth.dependencies import get_current_identity, identity_from_token
from src.mk_auth.identity import Identity
from src.mk_common.enums import DashboardSection, StockFilter
from src.mk_common.errors import AppError, InvalidCredentialsError, InvalidInputError
from src.mk_common.response import ApiResponse, from_app_error, success_response
from src.mk_dashboard.application.controller import DashboardController
from src.mk_dashboard.application.schemas import (
    AdvanceOrderRequest,
    CommandRequest,
    StoreSettingsRequest,
)
from src.mk_dashboard.application.service import get_registry, get_session_events
from src.mk_dashboard.application.views import (
    render_earnings,
    render_notifications,
    render_order_detail,
    render_orders,
    render_overview,
    render_products,
    render_settings,
)
from src.mk_order.application.dispatch import DispatchPhoto

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

# Close code sent when the socket's token is rejected
WS_POLICY_VIOLATION = 4401


def _get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "req_unknown")


def _respond(request: Request, data: Any, message: str = "success") -> ApiResponse:
    return success_response(data, message, _get_request_id(request))


async def get_controller(
    identity: Annotated[Identity, Depends(get_current_identity)],
) -> DashboardController:
    return get_registry().get(identity.user_id)


Controller = Annotated[DashboardController, Depends(get_controller)]


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


@router.post("/session", response_model=ApiResponse, summary="Open dashboard session")
async def open_session(
    request: Request,
    identity: Annotated[Identity, Depends(get_current_identity)],
) -> ApiResponse:
    await get_session_events().signed_in(identity)
    controller = await get_registry().open(identity)
    view = render_overview(controller.state, controller.inbox.unread_count)
    return _respond(request, view.model_dump(mode="json"), "Dashboard session open")


@router.delete("/session", response_model=ApiResponse, summary="Close dashboard session")
async def close_session(
    request: Request,
    identity: Annotated[Identity, Depends(get_current_identity)],
) -> ApiResponse:
    closed = await get_registry().close(identity.user_id)
    return _respond(request, {"closed": closed})


# ---------------------------------------------------------------------------
# Read-only views
# ---------------------------------------------------------------------------


@router.get("/overview", response_model=ApiResponse)
async def overview(request: Request, controller: Controller) -> ApiResponse:
    view = render_overview(controller.state, controller.inbox.unread_count)
    return _respond(request, view.model_dump(mode="json"))


@router.get("/orders", response_model=ApiResponse)
async def list_orders(
    request: Request,
    controller: Controller,
    status: str | None = Query(None, description="Order status, or 'all'"),
    q: str = Query("", max_length=100, description="Search order id, number or buyer"),
) -> ApiResponse:
    await controller.set_order_filter(status, q)
    view = render_orders(controller.state)
    return _respond(request, view.model_dump(mode="json"))


@router.get("/orders/{order_id}", response_model=ApiResponse)
async def get_order(request: Request, order_id: str, controller: Controller) -> ApiResponse:
    order = controller.get_order(order_id)
    view = render_order_detail(controller.state, order)
    return _respond(request, view.model_dump(mode="json"))


@router.get("/products", response_model=ApiResponse)
async def list_products(
    request: Request,
    controller: Controller,
    stock: StockFilter = Query(StockFilter.ALL),
) -> ApiResponse:
    await controller.set_stock_filter(stock)
    view = render_products(controller.state)
    return _respond(request, view.model_dump(mode="json"))


@router.get("/earnings", response_model=ApiResponse)
async def earnings(request: Request, controller: Controller) -> ApiResponse:
    await controller.switch_section(DashboardSection.EARNINGS)
    return _respond(request, render_earnings(controller.state).model_dump(mode="json"))


@router.get("/notifications", response_model=ApiResponse)
async def notifications(request: Request, controller: Controller) -> ApiResponse:
    view = render_notifications(controller.notifications, controller.inbox.unread_count)
    return _respond(request, view.model_dump(mode="json"))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@router.post("/orders/{order_id}/advance", response_model=ApiResponse)
async def advance_order(
    request: Request,
    order_id: str,
    body: AdvanceOrderRequest,
    controller: Controller,
) -> ApiResponse:
    result = await controller.advance(order_id, body.target_status)
    view = render_order_detail(controller.state, result.order)
    message = "Order updated" if result.changed else "Order already in requested status"
    data = {
        "changed": result.changed,
        "retried": result.retried,
        "order": view.model_dump(mode="json"),
    }
    return _respond(request, data, message)


@router.post("/orders/{order_id}/dispatch", response_model=ApiResponse)
async def dispatch_order(
    request: Request,
    order_id: str,
    controller: Controller,
    photo: UploadFile = File(...),
    note: str = Form(""),
) -> ApiResponse:
    workflow = controller.dispatch_workflow
    if workflow is None or workflow.order_id != order_id or not workflow.is_open:
        controller.open_dispatch_workflow(order_id)
    data = await photo.read()
    dispatch_photo = DispatchPhoto(
        filename=photo.filename or "dispatch.jpg",
        content_type=photo.content_type or "application/octet-stream",
        data=data,
    )
    result = await controller.submit_dispatch(dispatch_photo, note)
    view = render_order_detail(controller.state, result.order)
    return _respond(request, {"order": view.model_dump(mode="json")}, "Order dispatched successfully")


@router.post("/notifications/{notification_id}/read", response_model=ApiResponse)
async def mark_notification_read(
    request: Request, notification_id: str, controller: Controller
) -> ApiResponse:
    notification = await controller.mark_notification_read(notification_id)
    return _respond(
        request,
        {"notification_id": notification.id, "unread_count": controller.inbox.unread_count},
    )


@router.post("/commands/{action}", response_model=ApiResponse)
async def run_command(
    request: Request, action: str, body: CommandRequest, controller: Controller
) -> ApiResponse:
    data = await controller.dispatch(action, body.params)
    return _respond(request, data)


@router.put("/settings", response_model=ApiResponse)
async def update_settings(
    request: Request, body: StoreSettingsRequest, controller: Controller
) -> ApiResponse:
    await controller.update_store_settings(
        store_name=body.store_name,
        store_description=body.store_description,
        location=body.location,
        phone=body.phone,
        processing_time=body.processing_time.value if body.processing_time else None,
    )
    view = render_settings(controller.state)
    return _respond(request, view.model_dump(mode="json"), "Store settings saved")


# ---------------------------------------------------------------------------
# WebSocket
# ---------------------------------------------------------------------------


def _ws_error(exc: AppError) -> dict[str, Any]:
    return {"type": "error", **from_app_error(exc).model_dump()}


@router.websocket("/ws")
async def dashboard_socket(websocket: WebSocket, token: str = Query("")) -> None:
    try:
        identity = identity_from_token(token)
    except InvalidCredentialsError:
        await websocket.close(code=WS_POLICY_VIOLATION)
        return

    await websocket.accept()
    try:
        controller = await get_registry().open(identity)
    except AppError as exc:
        await websocket.send_json(_ws_error(exc))
        await websocket.close()
        return

    remove_listener = controller.add_listener(websocket.send_json)
    try:
        await websocket.send_json({"type": "render", **controller.render()})
        while True:
            try:
                message = await websocket.receive_json()
            except (ValueError, KeyError):
                # Not a JSON text frame
                await websocket.send_json(_ws_error(InvalidInputError("message must be a JSON object")))
                continue
            if not isinstance(message, dict):
                await websocket.send_json(_ws_error(InvalidInputError("message must be a JSON object")))
                continue
            action = message.get("action")
            params = message.get("params")
            try:
                data = await controller.dispatch(str(action or ""), params if isinstance(params, dict) else {})
            except AppError as exc:
                await websocket.send_json(_ws_error(exc))
                continue
            except (ValueError, ValidationError) as exc:
                await websocket.send_json(_ws_error(InvalidInputError(str(exc))))
                continue
            await websocket.send_json({"type": "result", "action": action, "data": data})
    except WebSocketDisconnect:
        logger.debug("Dashboard socket closed for %s", identity.user_id)
    finally:
        remove_listener()
