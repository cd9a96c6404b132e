# src/mk_dashboard/application/controller.py
"""DashboardController: one per open seller session.

Owns the session's SellerViewState and is the only thing that mutates it.
Inputs arrive two ways: gateway snapshot callbacks (orders, notifications)
and commands from the HTTP/WebSocket surface. After each of them the
aggregates are recomputed and the active section is pushed to listeners.
"""
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

from src.mk_auth.identity import Identity
from src.mk_auth.profile import ProfileRepository
from src.mk_common.datetime_utils import utc_now
from src.mk_common.enums import DashboardSection, OrderStatus, StockFilter
from src.mk_common.errors import DispatchNotOpenError, InvalidInputError
from src.mk_common.sanitize import sanitize_text, validate_phone
from src.mk_dashboard.application.alerts import AlertDispatcher, NewOrderNotice, log_notice
from src.mk_dashboard.application.reconciler import OrderReconciler
from src.mk_dashboard.application.state import SellerViewState
from src.mk_dashboard.application.views import render_notifications, render_section
from src.mk_gateway.domain.models import Subscription
from src.mk_gateway.domain.protocol import DocumentGatewayProtocol
from src.mk_listing.domain.models import Product
from src.mk_listing.infrastructure.persistence import ListingRepository
from src.mk_notification.application.fanout import NotificationFanout
from src.mk_notification.application.inbox import NotificationInbox
from src.mk_notification.domain.models import Notification
from src.mk_notification.infrastructure.persistence import NotificationRepository
from src.mk_order.application.dispatch import DispatchPhoto, DispatchWorkflow
from src.mk_order.application.lifecycle import OrderLifecycleEngine, TransitionResult
from src.mk_order.domain.aggregates import DashboardAggregates, compute_aggregates, sort_newest_first
from src.mk_order.domain.models import Order
from src.mk_order.infrastructure.persistence import OrderRepository
from src.mk_storage.domain.models import ObjectStorageProtocol

logger = logging.getLogger(__name__)

RenderListener = Callable[[dict[str, Any]], Awaitable[None]]
CommandHandler = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]

STORE_TEXT_MAX_LENGTH = 200
STORE_DESCRIPTION_MAX_LENGTH = 2000


def _parse_enum(enum_type: type, value: Any, name: str) -> Any:
    try:
        return enum_type(value)
    except ValueError:
        raise InvalidInputError(f"unknown {name} {value!r}") from None


def _param(params: dict[str, Any], name: str) -> str:
    value = params.get(name)
    if not isinstance(value, str) or not value:
        raise InvalidInputError(f"'{name}' is required")
    return value


def _transition_data(result: TransitionResult) -> dict[str, Any]:
    return {
        "order_id": result.order.id,
        "status": result.order.status.value,
        "changed": result.changed,
        "retried": result.retried,
    }


class DashboardController:
    def __init__(
        self,
        identity: Identity,
        gateway: DocumentGatewayProtocol,
        storage: ObjectStorageProtocol,
        profiles: ProfileRepository | None = None,
        listings: ListingRepository | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.state = SellerViewState(identity=identity)
        self._clock = clock
        self._storage = storage
        self._orders = OrderRepository(gateway)
        self._profiles = profiles or ProfileRepository(gateway)
        self._listings = listings or ListingRepository(gateway)
        notifications = NotificationRepository(gateway)

        self.engine = OrderLifecycleEngine(
            self.state, self._orders, NotificationFanout(notifications), clock
        )
        self.alerts = AlertDispatcher([log_notice, self._push_notice])
        self._reconciler = OrderReconciler(self.state, self.alerts)
        self.inbox = NotificationInbox(notifications, identity.user_id, on_change=self._push_notifications)

        self.dispatch_workflow: DispatchWorkflow | None = None
        self._subscriptions: list[Subscription] = []
        self._listeners: list[RenderListener] = []
        self.started = False

        self._commands: dict[str, CommandHandler] = {
            "accept": self._cmd_accept,
            "cancel": self._cmd_cancel,
            "deliver": self._cmd_deliver,
            "advance": self._cmd_advance,
            "open_dispatch": self._cmd_open_dispatch,
            "close_dispatch": self._cmd_close_dispatch,
            "mark_notification_read": self._cmd_mark_notification_read,
            "switch_section": self._cmd_switch_section,
            "filter_orders": self._cmd_filter_orders,
            "filter_products": self._cmd_filter_products,
        }

    @property
    def seller_id(self) -> str:
        return self.state.seller_id

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        if self.started:
            return
        try:
            self.state.profile = await self._profiles.get_profile(self.seller_id)
            self.state.products = await self._listings.list_by_seller(self.seller_id)
            await self._reconciler.apply_snapshot(await self._orders.list_all())
            self._subscriptions.append(await self._orders.subscribe(self._on_orders))
            await self.inbox.start()
        except Exception:
            await self.stop()
            raise
        self.started = True
        self._recompute()
        logger.info(
            "Dashboard session started for %s: %d orders, %d products",
            self.seller_id,
            len(self.state.orders),
            len(self.state.products),
        )

    async def stop(self) -> None:
        self.close_dispatch_workflow()
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            try:
                await subscription.unsubscribe()
            except Exception:
                logger.exception("Failed to unsubscribe dashboard session of %s", self.seller_id)
        await self.inbox.stop()
        self._listeners.clear()
        if self.started:
            logger.info("Dashboard session stopped for %s", self.seller_id)
        self.started = False

    # ------------------------------------------------------------------
    # Listeners and refresh
    # ------------------------------------------------------------------

    def add_listener(self, listener: RenderListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def _emit(self, payload: dict[str, Any]) -> None:
        for listener in list(self._listeners):
            try:
                await listener(payload)
            except Exception:
                logger.exception("Render listener failed for %s", self.seller_id)

    def _recompute(self) -> None:
        self.state.aggregates = compute_aggregates(
            self.state.orders.values(), self.state.products, self.seller_id, self._clock()
        )

    def render(self) -> dict[str, Any]:
        view = render_section(self.state, self.inbox.unread_count, self._clock())
        return view.model_dump(mode="json")

    async def _refresh(self) -> None:
        self._recompute()
        if self._listeners:
            await self._emit({"type": "render", **self.render()})

    async def _on_orders(self, orders: list[Order]) -> None:
        await self._reconciler.apply_snapshot(orders)
        await self._refresh()

    async def _push_notice(self, notice: NewOrderNotice) -> None:
        await self._emit(
            {
                "type": "new_orders",
                "message": notice.message,
                "order_ids": list(notice.order_ids),
                "play_sound": notice.play_sound,
            }
        )

    async def _push_notifications(self) -> None:
        if self._listeners:
            view = render_notifications(self.inbox.notifications, self.inbox.unread_count, self._clock())
            await self._emit({"type": "notifications", **view.model_dump(mode="json")})

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    @property
    def orders(self) -> list[Order]:
        return sort_newest_first(self.state.orders.values())

    @property
    def products(self) -> list[Product]:
        return list(self.state.products)

    @property
    def aggregates(self) -> DashboardAggregates:
        return self.state.aggregates

    @property
    def notifications(self) -> list[Notification]:
        return list(self.inbox.notifications)

    def get_order(self, order_id: str) -> Order:
        return self.engine.seller_order(order_id)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def advance(self, order_id: str, target: OrderStatus | str) -> TransitionResult:
        target_status = _parse_enum(OrderStatus, target, "order status")
        try:
            return await self.engine.advance(order_id, target_status)
        finally:
            await self._refresh()

    def open_dispatch_workflow(self, order_id: str) -> DispatchWorkflow:
        self.engine.seller_order(order_id)
        workflow = DispatchWorkflow.open(order_id, self.state, self.engine, self._storage, self._clock)
        self.close_dispatch_workflow()
        self.dispatch_workflow = workflow
        return workflow

    def _require_workflow(self) -> DispatchWorkflow:
        if self.dispatch_workflow is None or not self.dispatch_workflow.is_open:
            raise DispatchNotOpenError()
        return self.dispatch_workflow

    def select_dispatch_photo(self, photo: DispatchPhoto) -> None:
        self._require_workflow().select_photo(photo)

    async def submit_dispatch(
        self, photo: DispatchPhoto | None = None, note: str | None = ""
    ) -> TransitionResult:
        workflow = self._require_workflow()
        try:
            return await workflow.submit(photo, note)
        finally:
            if not workflow.is_open and self.dispatch_workflow is workflow:
                self.dispatch_workflow = None
            await self._refresh()

    def close_dispatch_workflow(self) -> None:
        if self.dispatch_workflow is not None:
            self.dispatch_workflow.close()
            self.dispatch_workflow = None

    async def mark_notification_read(self, notification_id: str) -> Notification:
        notification = await self.inbox.mark_read(notification_id)
        await self._push_notifications()
        return notification

    async def switch_section(self, section: DashboardSection | str) -> dict[str, Any]:
        self.state.section = _parse_enum(DashboardSection, section, "section")
        await self._refresh()
        return self.render()

    async def set_order_filter(
        self, status: OrderStatus | str | None = None, query: str = ""
    ) -> dict[str, Any]:
        self.state.order_status_filter = (
            _parse_enum(OrderStatus, status, "order status") if status not in (None, "", "all") else None
        )
        self.state.order_query = sanitize_text(query, max_length=100)
        self.state.section = DashboardSection.ORDERS
        await self._refresh()
        return self.render()

    async def set_stock_filter(self, stock_filter: StockFilter | str) -> dict[str, Any]:
        self.state.stock_filter = _parse_enum(StockFilter, stock_filter, "stock filter")
        self.state.section = DashboardSection.PRODUCTS
        await self._refresh()
        return self.render()

    async def update_store_settings(
        self,
        store_name: str = "",
        store_description: str = "",
        location: str = "",
        phone: str = "",
        processing_time: str | None = None,
    ) -> None:
        fields: dict[str, Any] = {
            "storeName": sanitize_text(store_name, STORE_TEXT_MAX_LENGTH),
            "storeDescription": sanitize_text(store_description, STORE_DESCRIPTION_MAX_LENGTH),
            "location": sanitize_text(location, STORE_TEXT_MAX_LENGTH),
        }
        if phone and phone.strip():
            normalized = validate_phone(phone)
            if normalized is None:
                raise InvalidInputError("phone must be a Kenyan mobile number")
            fields["phone"] = normalized
        else:
            fields["phone"] = ""
        if processing_time:
            fields["processingTime"] = str(processing_time)

        await self._profiles.update_store_settings(self.seller_id, fields)
        self.state.profile = await self._profiles.get_profile(self.seller_id)
        await self._refresh()

    # ------------------------------------------------------------------
    # Command dispatch table
    # ------------------------------------------------------------------

    @property
    def actions(self) -> list[str]:
        return sorted(self._commands)

    async def dispatch(self, action: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        handler = self._commands.get(action)
        if handler is None:
            raise InvalidInputError(f"unknown action {action!r}")
        logger.debug("Seller %s command %s %s", self.seller_id, action, params)
        return await handler(params or {})

    async def _cmd_accept(self, params: dict[str, Any]) -> dict[str, Any]:
        return _transition_data(await self.advance(_param(params, "order_id"), OrderStatus.CONFIRMED))

    async def _cmd_cancel(self, params: dict[str, Any]) -> dict[str, Any]:
        return _transition_data(await self.advance(_param(params, "order_id"), OrderStatus.CANCELLED))

    async def _cmd_deliver(self, params: dict[str, Any]) -> dict[str, Any]:
        return _transition_data(await self.advance(_param(params, "order_id"), OrderStatus.DELIVERED))

    async def _cmd_advance(self, params: dict[str, Any]) -> dict[str, Any]:
        result = await self.advance(_param(params, "order_id"), _param(params, "target_status"))
        return _transition_data(result)

    async def _cmd_open_dispatch(self, params: dict[str, Any]) -> dict[str, Any]:
        workflow = self.open_dispatch_workflow(_param(params, "order_id"))
        return {"order_id": workflow.order_id, "open": workflow.is_open}

    async def _cmd_close_dispatch(self, params: dict[str, Any]) -> dict[str, Any]:
        self.close_dispatch_workflow()
        return {"open": False}

    async def _cmd_mark_notification_read(self, params: dict[str, Any]) -> dict[str, Any]:
        notification = await self.mark_notification_read(_param(params, "notification_id"))
        if notification.order_id:
            await self.switch_section(DashboardSection.ORDERS)
        return {
            "notification_id": notification.id,
            "order_id": notification.order_id,
            "unread_count": self.inbox.unread_count,
        }

    async def _cmd_switch_section(self, params: dict[str, Any]) -> dict[str, Any]:
        return await self.switch_section(_param(params, "section"))

    async def _cmd_filter_orders(self, params: dict[str, Any]) -> dict[str, Any]:
        query = params.get("query") or ""
        if not isinstance(query, str):
            raise InvalidInputError("'query' must be a string")
        return await self.set_order_filter(params.get("status"), query)

    async def _cmd_filter_products(self, params: dict[str, Any]) -> dict[str, Any]:
        return await self.set_stock_filter(_param(params, "stock"))
