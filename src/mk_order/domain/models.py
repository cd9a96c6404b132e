"""Order domain model: pure dataclasses, no gateway dependency.

An order is written once by checkout and afterwards only its status and
dispatch fields change. ``items`` and ``buyer`` are frozen.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime

from src.mk_common.enums import OrderStatus, SyncState

FALLBACK_PRODUCT_NAME = "Your order"


@dataclass(frozen=True)
class Variation:
    title: str
    value: str

    @property
    def label(self) -> str:
        return f"{self.title}: {self.value}" if self.title else self.value


@dataclass(frozen=True)
class LineItem:
    listing_id: str
    seller_id: str
    product_name: str
    unit_price: int  # cents
    quantity: int
    variation: Variation | None = None
    image_url: str | None = None

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class BuyerRef:
    user_id: str | None
    name: str
    phone: str = ""
    delivery_address: str = ""


@dataclass
class Order:
    id: str
    buyer: BuyerRef
    items: tuple[LineItem, ...]
    status: OrderStatus
    created_at: datetime | None = None
    order_number: str = ""
    total_amount: int = 0  # cents, as written by checkout
    dispatch_photo: str | None = None
    dispatch_note: str | None = None
    dispatched_by: str | None = None
    # One entry per transition taken: {"confirmedAt": ..., "deliveredAt": ...}
    timestamps: dict[str, datetime] = field(default_factory=dict)

    @property
    def display_number(self) -> str:
        return self.order_number or self.id[:8]

    @property
    def product_name(self) -> str:
        if self.items and self.items[0].product_name:
            return self.items[0].product_name
        return FALLBACK_PRODUCT_NAME

    def involves_seller(self, seller_id: str) -> bool:
        return any(item.seller_id == seller_id for item in self.items)

    def seller_items(self, seller_id: str) -> list[LineItem]:
        return [item for item in self.items if item.seller_id == seller_id]

    def seller_total(self, seller_id: str) -> int:
        return sum(item.line_total for item in self.seller_items(seller_id))

    def seller_quantity(self, seller_id: str) -> int:
        return sum(item.quantity for item in self.seller_items(seller_id))


@dataclass(frozen=True)
class OrderChange:
    """One status transition as it is written to the order document."""
    target_status: OrderStatus
    timestamp_field: str
    committed_at: datetime
    dispatch_photo: str | None = None
    dispatch_note: str | None = None
    dispatched_by: str | None = None

    def apply(self, order: Order) -> Order:
        timestamps = dict(order.timestamps)
        timestamps.setdefault(self.timestamp_field, self.committed_at)
        changed = replace(order, status=self.target_status, timestamps=timestamps)
        if self.dispatch_photo is not None:
            changed.dispatch_photo = self.dispatch_photo
            changed.dispatch_note = self.dispatch_note
            changed.dispatched_by = self.dispatched_by
        return changed


@dataclass
class PendingMutation:
    """A local transition not yet acknowledged by a snapshot.

    ``base`` is the order as it stood before the optimistic overlay.
    """
    order_id: str
    previous_status: OrderStatus
    change: OrderChange
    base: Order
    sync_state: SyncState = SyncState.PENDING

    @property
    def target_status(self) -> OrderStatus:
        return self.change.target_status
