# src/mk_dashboard/application/schemas.py
"""Request bodies and rendered view models for the dashboard surface.

View models carry display-ready values: free text is HTML-escaped, image URLs
are sanitised and amounts are formatted. Raw cents travel alongside for
clients that compute.
"""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from src.mk_common.enums import DashboardSection, OrderStatus, ProcessingTime, StockFilter, SyncState

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class AdvanceOrderRequest(BaseModel):
    target_status: OrderStatus


class StoreSettingsRequest(BaseModel):
    store_name: str = Field("", max_length=200)
    store_description: str = Field("", max_length=2000)
    location: str = Field("", max_length=200)
    phone: str = ""
    processing_time: ProcessingTime | None = None


class CommandRequest(BaseModel):
    params: dict[str, Any] = Field(default_factory=dict)

    @field_validator("params")
    @classmethod
    def string_keys(cls, v: dict[str, Any]) -> dict[str, Any]:
        if any(not isinstance(key, str) or not key for key in v):
            raise ValueError("command params must have non-empty string keys")
        return v


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


class LineItemView(BaseModel):
    product_name: str
    variation: str | None = None
    quantity: int
    unit_price: str
    line_total: str
    image_url: str


class OrderCardView(BaseModel):
    id: str
    order_number: str
    status: OrderStatus
    status_label: str
    sync_state: SyncState
    buyer_name: str
    item_count: int
    total: str
    total_cents: int
    created_at: datetime | None = None
    time_ago: str = ""
    items: list[LineItemView]
    quick_actions: list[str]


class OrderDetailView(OrderCardView):
    buyer_phone: str = ""
    delivery_address: str = ""
    dispatch_photo: str | None = None
    dispatch_note: str | None = None
    timestamps: dict[str, datetime] = Field(default_factory=dict)


class EarningsView(BaseModel):
    available: str
    pending: str
    lifetime: str
    available_cents: int
    pending_cents: int
    lifetime_cents: int


class SalesView(BaseModel):
    total_sales: int
    total_revenue: str
    month_sales: int
    month_revenue: str


class ProductView(BaseModel):
    id: str
    name: str
    price: str
    image_url: str
    stock: int
    stock_label: str
    stock_class: str


class OverviewView(BaseModel):
    seller_name: str
    store_name: str
    verified: bool
    profile_photo: str
    pending_count: int
    total_products: int
    average_rating: str
    unread_notifications: int
    earnings: EarningsView
    sales: SalesView
    recent_orders: list[OrderCardView]
    low_stock: list[ProductView]


class OrdersView(BaseModel):
    status_filter: OrderStatus | None = None
    query: str = ""
    pending_count: int
    orders: list[OrderCardView]


class ProductsView(BaseModel):
    stock_filter: StockFilter
    products: list[ProductView]


class NotificationView(BaseModel):
    id: str
    title: str
    message: str
    time_ago: str
    unread: bool
    order_id: str | None = None
    type: str | None = None


class NotificationsView(BaseModel):
    unread_count: int
    badge: str
    notifications: list[NotificationView]


class SettingsView(BaseModel):
    store_name: str
    store_description: str
    location: str
    phone: str
    processing_time: str


class SectionView(BaseModel):
    section: DashboardSection
    data: dict[str, Any]
