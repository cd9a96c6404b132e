# src/mk_dashboard/application/reconciler.py
"""Snapshot reconciliation.

Each ``Orders`` snapshot is the full result set. It replaces the held order
subset, except that unacknowledged local transitions are merged in:

  - server status == mutation target   -> acknowledged, tag dropped
  - server status == mutation previous -> local change overlaid on the server copy
  - anything else                      -> server wins, mutation discarded
"""
import logging
from dataclasses import dataclass, field

from src.mk_common.enums import OrderStatus
from src.mk_dashboard.application.alerts import AlertDispatcher, NewOrderNotice
from src.mk_dashboard.application.state import SellerViewState
from src.mk_order.domain.models import Order

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    new_pending_ids: list[str] = field(default_factory=list)
    removed_ids: list[str] = field(default_factory=list)
    acknowledged_ids: list[str] = field(default_factory=list)
    conflict_ids: list[str] = field(default_factory=list)


class OrderReconciler:
    def __init__(self, state: SellerViewState, alerts: AlertDispatcher) -> None:
        self._state = state
        self._alerts = alerts

    async def apply_snapshot(self, orders: list[Order]) -> ReconcileResult:
        state = self._state
        result = ReconcileResult()
        mine = [order for order in orders if order.involves_seller(state.seller_id)]

        previous_ids = set(state.orders)
        merged: dict[str, Order] = {}
        for server_order in mine:
            merged[server_order.id] = self._merge(server_order, result)

        for order_id in list(state.mutations):
            if order_id not in merged:
                logger.warning("Order %s vanished with an unacknowledged change", order_id)
                del state.mutations[order_id]

        result.removed_ids = sorted(previous_ids - set(merged))
        if state.primed:
            result.new_pending_ids = [
                order.id
                for order in mine
                if order.id not in previous_ids and order.status == OrderStatus.PENDING
            ]

        state.orders = merged
        state.primed = True

        if result.new_pending_ids:
            await self._alerts.emit(
                NewOrderNotice(seller_id=state.seller_id, order_ids=tuple(result.new_pending_ids))
            )
        return result

    def _merge(self, server_order: Order, result: ReconcileResult) -> Order:
        mutation = self._state.mutations.get(server_order.id)
        if mutation is None:
            return server_order
        if server_order.status == mutation.target_status:
            del self._state.mutations[server_order.id]
            result.acknowledged_ids.append(server_order.id)
            return server_order
        if server_order.status == mutation.previous_status:
            mutation.base = server_order
            return mutation.change.apply(server_order)

        logger.warning(
            "Order %s: local %s -> %s discarded, server moved to %s",
            server_order.id,
            mutation.previous_status.value,
            mutation.target_status.value,
            server_order.status.value,
        )
        del self._state.mutations[server_order.id]
        result.conflict_ids.append(server_order.id)
        return server_order
