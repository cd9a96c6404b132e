# src/mk_order/application/lifecycle.py
"""Order Lifecycle Engine: validated status transitions with optimistic local state.

Ordering inside one ``advance``:
  1. local overlay (tagged pending) is applied to the seller view-state
  2. the order write is issued
  3. after a successful write, the buyer notification is written

A failed write leaves the overlay visible but tagged ``failed``; calling
``advance`` again with the same target retries the stored change. The
dispatch transition instead rolls its overlay back, since photo and status
must land together.
"""
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from src.mk_common.datetime_utils import utc_now
from src.mk_common.enums import OrderStatus, SyncState
from src.mk_common.errors import (
    AppError,
    DispatchPhotoRequiredError,
    NotOrderSellerError,
    OrderNotFoundError,
    RemoteOperationError,
)
from src.mk_dashboard.application.state import SellerViewState
from src.mk_notification.application.fanout import NotificationFanout
from src.mk_order.domain.models import Order, OrderChange, PendingMutation
from src.mk_order.domain.repository import OrderRepositoryProtocol
from src.mk_order.domain.state_machine import check_transition, timestamp_field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionResult:
    order: Order
    changed: bool
    retried: bool = False


class OrderLifecycleEngine:
    def __init__(
        self,
        state: SellerViewState,
        repository: OrderRepositoryProtocol,
        fanout: NotificationFanout,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._state = state
        self._repository = repository
        self._fanout = fanout
        self._clock = clock

    def seller_order(self, order_id: str) -> Order:
        """The visible order, provided the session seller sells at least one of its items."""
        order = self._state.orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if not order.involves_seller(self._state.seller_id):
            raise NotOrderSellerError(order_id)
        return order

    async def advance(
        self,
        order_id: str,
        target: OrderStatus,
        change: OrderChange | None = None,
        rollback_on_failure: bool = False,
    ) -> TransitionResult:
        order = self.seller_order(order_id)
        existing = self._state.mutations.get(order_id)
        failed = existing if existing and existing.sync_state == SyncState.FAILED else None

        if order.status == target:
            if failed is not None and failed.target_status == target:
                logger.info("Retrying %s -> %s for order %s", failed.previous_status.value, target.value, order_id)
                return await self._commit(failed, rollback_on_failure, retried=True)
            return TransitionResult(order=order, changed=False)

        # A failed overlay never reached the server; validate against what the server holds
        base = failed.base if failed is not None else order
        check_transition(order_id, base.status, target)
        if target == OrderStatus.OUT_FOR_DELIVERY and (change is None or not change.dispatch_photo):
            raise DispatchPhotoRequiredError(order_id)

        if change is None:
            change = OrderChange(
                target_status=target,
                timestamp_field=timestamp_field(target),
                committed_at=self._clock(),
            )
        mutation = PendingMutation(
            order_id=order_id,
            previous_status=base.status,
            change=change,
            base=base,
        )
        self._state.mutations[order_id] = mutation
        self._state.orders[order_id] = change.apply(base)
        return await self._commit(mutation, rollback_on_failure)

    async def _commit(
        self, mutation: PendingMutation, rollback_on_failure: bool, retried: bool = False
    ) -> TransitionResult:
        order_id = mutation.order_id
        mutation.sync_state = SyncState.PENDING
        try:
            await self._repository.apply_change(order_id, mutation.change)
        except Exception as exc:
            self._on_write_failed(mutation, rollback_on_failure)
            if isinstance(exc, AppError):
                raise
            raise RemoteOperationError(f"update order {order_id}", str(exc)) from exc

        if self._state.mutations.get(order_id) is mutation:
            # Acknowledged by the write itself; a later snapshot carries the same status
            mutation.sync_state = SyncState.SYNCED
            del self._state.mutations[order_id]
        order = self._state.orders.get(order_id) or mutation.change.apply(mutation.base)
        logger.info(
            "Order %s: %s -> %s by %s",
            order_id,
            mutation.previous_status.value,
            mutation.target_status.value,
            self._state.seller_id,
        )

        await self._fanout.notify_status_change(order, mutation.target_status)
        return TransitionResult(order=order, changed=True, retried=retried)

    def _on_write_failed(self, mutation: PendingMutation, rollback: bool) -> None:
        order_id = mutation.order_id
        if self._state.mutations.get(order_id) is not mutation:
            # A snapshot already settled this order
            return
        if rollback:
            del self._state.mutations[order_id]
            if order_id in self._state.orders:
                self._state.orders[order_id] = mutation.base
            logger.warning("Order %s write failed; %s rolled back", order_id, mutation.target_status.value)
            return
        mutation.sync_state = SyncState.FAILED
        logger.warning(
            "Order %s write failed; %s kept locally and flagged for retry",
            order_id,
            mutation.target_status.value,
        )
