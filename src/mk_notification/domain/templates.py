"""Buyer-facing notification text per order status."""
from dataclasses import dataclass

from src.mk_common.enums import NotificationType, OrderStatus
from src.mk_notification.domain.models import NotificationDraft
from src.mk_order.domain.models import Order


@dataclass(frozen=True)
class StatusTemplate:
    type: NotificationType
    title: str
    message: str  # formatted with {product}


STATUS_TEMPLATES: dict[OrderStatus, StatusTemplate] = {
    OrderStatus.CONFIRMED: StatusTemplate(
        NotificationType.ORDER_CONFIRMED,
        "Order Confirmed! 🎉",
        "{product} has been confirmed by the seller and is being prepared.",
    ),
    OrderStatus.OUT_FOR_DELIVERY: StatusTemplate(
        NotificationType.ORDER_SHIPPED,
        "Order Dispatched! 🚚",
        "{product} is on its way to you.",
    ),
    OrderStatus.DELIVERED: StatusTemplate(
        NotificationType.ORDER_DELIVERED,
        "Order Delivered! 📦",
        "{product} has been marked as delivered. Please confirm receipt.",
    ),
    OrderStatus.CANCELLED: StatusTemplate(
        NotificationType.ORDER_CANCELLED,
        "Order Cancelled ❌",
        "{product} has been cancelled by the seller.",
    ),
}


def build_status_notification(order: Order, status: OrderStatus) -> NotificationDraft | None:
    """Map a status change to the buyer notification, or None when there is none to send.

    ``pending`` is the creation state and has no template; an order without a
    buyer id has nobody to address.
    """
    template = STATUS_TEMPLATES.get(status)
    if template is None or not order.buyer.user_id:
        return None
    return NotificationDraft(
        user_id=order.buyer.user_id,
        type=template.type,
        title=template.title,
        message=template.message.format(product=order.product_name),
        order_id=order.id,
        amount=order.total_amount,
    )
