# src/mk_notification/application/fanout.py
"""Buyer notification on every seller-initiated status change.

Delivery is best-effort: a failed write is logged and never reaches the
caller, so it cannot fail or undo the transition that triggered it.
"""
import logging

from src.mk_common.enums import OrderStatus
from src.mk_notification.domain.templates import build_status_notification
from src.mk_notification.infrastructure.persistence import NotificationRepository
from src.mk_order.domain.models import Order

logger = logging.getLogger(__name__)


class NotificationFanout:
    def __init__(self, repository: NotificationRepository) -> None:
        self._repository = repository

    async def notify_status_change(self, order: Order, status: OrderStatus) -> str | None:
        """Write the buyer notification for ``status``; returns its id or None."""
        if not order.buyer.user_id:
            logger.warning("Order %s has no buyer id; skipping %s notification", order.id, status.value)
            return None
        draft = build_status_notification(order, status)
        if draft is None:
            return None
        try:
            return await self._repository.create(draft)
        except Exception:
            logger.exception("Failed to notify buyer of order %s (%s)", order.id, status.value)
            return None
