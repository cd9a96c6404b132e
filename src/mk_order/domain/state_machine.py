"""Order status graph.

    pending ──► confirmed ──► out_for_delivery ──► delivered
       │            │
       └────────────┴──► cancelled

``delivered`` and ``cancelled`` are terminal.
"""
from src.mk_common.enums import OrderStatus
from src.mk_common.errors import IllegalTransitionError

ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.OUT_FOR_DELIVERY, OrderStatus.CANCELLED}),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

TIMESTAMP_FIELDS: dict[OrderStatus, str] = {
    OrderStatus.CONFIRMED: "confirmedAt",
    OrderStatus.OUT_FOR_DELIVERY: "dispatchedAt",
    OrderStatus.DELIVERED: "deliveredAt",
    OrderStatus.CANCELLED: "cancelledAt",
}

STATUS_LABELS: dict[OrderStatus, str] = {
    OrderStatus.PENDING: "Pending",
    OrderStatus.CONFIRMED: "Confirmed",
    OrderStatus.OUT_FOR_DELIVERY: "Dispatched",
    OrderStatus.DELIVERED: "Delivered",
    OrderStatus.CANCELLED: "Cancelled",
}

QUICK_ACTIONS: dict[OrderStatus, tuple[str, ...]] = {
    OrderStatus.PENDING: ("accept", "cancel"),
    OrderStatus.CONFIRMED: ("dispatch", "cancel"),
    OrderStatus.OUT_FOR_DELIVERY: ("deliver",),
    OrderStatus.DELIVERED: (),
    OrderStatus.CANCELLED: (),
}


def is_valid_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def check_transition(order_id: str, current: OrderStatus, target: OrderStatus) -> None:
    if not is_valid_transition(current, target):
        raise IllegalTransitionError(order_id, current.value, target.value)


def timestamp_field(status: OrderStatus) -> str:
    """Name of the document field stamped when ``status`` is entered."""
    return TIMESTAMP_FIELDS[status]


def status_label(status: OrderStatus) -> str:
    return STATUS_LABELS[status]


def quick_actions(status: OrderStatus) -> tuple[str, ...]:
    return QUICK_ACTIONS[status]
