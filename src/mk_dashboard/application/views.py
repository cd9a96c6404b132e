# src/mk_dashboard/application/views.py
"""Dashboard View Renderer: pure projections of SellerViewState into view models.

Nothing here mutates state.
"""
from datetime import datetime

from src.mk_common.datetime_utils import time_ago, utc_now
from src.mk_common.enums import DashboardSection
from src.mk_common.money import cents_to_display
from src.mk_common.sanitize import escape_html, sanitize_url
from src.mk_dashboard.application.schemas import (
    EarningsView,
    LineItemView,
    NotificationsView,
    NotificationView,
    OrderCardView,
    OrderDetailView,
    OrdersView,
    OverviewView,
    ProductsView,
    ProductView,
    SalesView,
    SectionView,
    SettingsView,
)
from src.mk_dashboard.application.state import SellerViewState
from src.mk_listing.domain.models import Product
from src.mk_notification.domain.models import Notification
from src.mk_order.domain.aggregates import filter_orders, filter_products, recent_orders
from src.mk_order.domain.models import LineItem, Order
from src.mk_order.domain.state_machine import quick_actions, status_label

PRODUCT_IMAGE_FALLBACK = "images/product-placeholder.png"
AVATAR_FALLBACK = "images/default-avatar.png"
CARD_ITEM_PREVIEW = 2


def _line_item_view(item: LineItem) -> LineItemView:
    return LineItemView(
        product_name=escape_html(item.product_name or "Product"),
        variation=escape_html(item.variation.label) if item.variation else None,
        quantity=item.quantity,
        unit_price=cents_to_display(item.unit_price),
        line_total=cents_to_display(item.line_total),
        image_url=sanitize_url(item.image_url, PRODUCT_IMAGE_FALLBACK),
    )


def _card_fields(state: SellerViewState, order: Order, now: datetime, preview: int | None) -> dict:
    seller_items = order.seller_items(state.seller_id)
    shown = seller_items if preview is None else seller_items[:preview]
    total = order.seller_total(state.seller_id)
    return {
        "id": order.id,
        "order_number": escape_html(order.display_number),
        "status": order.status,
        "status_label": status_label(order.status),
        "sync_state": state.sync_state(order.id),
        "buyer_name": escape_html(order.buyer.name),
        "item_count": order.seller_quantity(state.seller_id),
        "total": cents_to_display(total),
        "total_cents": total,
        "created_at": order.created_at,
        "time_ago": time_ago(order.created_at, now),
        "items": [_line_item_view(item) for item in shown],
        "quick_actions": list(quick_actions(order.status)),
    }


def render_order_card(state: SellerViewState, order: Order, now: datetime | None = None) -> OrderCardView:
    return OrderCardView(**_card_fields(state, order, now or utc_now(), CARD_ITEM_PREVIEW))


def render_order_detail(state: SellerViewState, order: Order, now: datetime | None = None) -> OrderDetailView:
    return OrderDetailView(
        **_card_fields(state, order, now or utc_now(), None),
        buyer_phone=escape_html(order.buyer.phone),
        delivery_address=escape_html(order.buyer.delivery_address),
        dispatch_photo=sanitize_url(order.dispatch_photo, "") or None,
        dispatch_note=escape_html(order.dispatch_note) if order.dispatch_note else None,
        timestamps=dict(order.timestamps),
    )


def render_product(product: Product) -> ProductView:
    first_image = product.image_urls[0] if product.image_urls else None
    return ProductView(
        id=product.id,
        name=escape_html(product.name),
        price=cents_to_display(product.price),
        image_url=sanitize_url(first_image, PRODUCT_IMAGE_FALLBACK),
        stock=product.total_stock,
        stock_label=product.stock_label,
        stock_class=product.stock_class,
    )


def render_earnings(state: SellerViewState) -> EarningsView:
    earnings = state.aggregates.earnings
    return EarningsView(
        available=cents_to_display(earnings.available),
        pending=cents_to_display(earnings.pending),
        lifetime=cents_to_display(earnings.lifetime),
        available_cents=earnings.available,
        pending_cents=earnings.pending,
        lifetime_cents=earnings.lifetime,
    )


def render_overview(
    state: SellerViewState, unread_notifications: int = 0, now: datetime | None = None
) -> OverviewView:
    now = now or utc_now()
    aggregates = state.aggregates
    profile = state.profile
    sales = aggregates.sales
    rating = aggregates.average_rating
    return OverviewView(
        seller_name=escape_html(profile.name if profile and profile.name else state.identity.display_name),
        store_name=escape_html(profile.store_name if profile else ""),
        verified=bool(profile and profile.verified),
        profile_photo=sanitize_url(profile.photo_url if profile else None, AVATAR_FALLBACK),
        pending_count=aggregates.pending_count,
        total_products=aggregates.total_products,
        average_rating=f"{rating:.1f}" if rating is not None else "N/A",
        unread_notifications=unread_notifications,
        earnings=render_earnings(state),
        sales=SalesView(
            total_sales=sales.total_sales,
            total_revenue=cents_to_display(sales.total_revenue),
            month_sales=sales.month_sales,
            month_revenue=cents_to_display(sales.month_revenue),
        ),
        recent_orders=[render_order_card(state, o, now) for o in recent_orders(state.orders.values())],
        low_stock=[render_product(p) for p in aggregates.low_stock],
    )


def render_orders(state: SellerViewState, now: datetime | None = None) -> OrdersView:
    now = now or utc_now()
    matched = filter_orders(state.orders.values(), state.order_status_filter, state.order_query)
    return OrdersView(
        status_filter=state.order_status_filter,
        query=escape_html(state.order_query),
        pending_count=state.aggregates.pending_count,
        orders=[render_order_card(state, o, now) for o in matched],
    )


def render_products(state: SellerViewState) -> ProductsView:
    return ProductsView(
        stock_filter=state.stock_filter,
        products=[render_product(p) for p in filter_products(state.products, state.stock_filter)],
    )


def render_notifications(
    notifications: list[Notification], unread_count: int, now: datetime | None = None
) -> NotificationsView:
    now = now or utc_now()
    return NotificationsView(
        unread_count=unread_count,
        badge="99+" if unread_count > 99 else str(unread_count) if unread_count else "",
        notifications=[
            NotificationView(
                id=n.id,
                title=escape_html(n.title),
                message=escape_html(n.message),
                time_ago=time_ago(n.created_at, now) if n.created_at else "Recently",
                unread=not n.read,
                order_id=n.order_id,
                type=n.type.value if n.type else None,
            )
            for n in notifications
        ],
    )


def render_settings(state: SellerViewState) -> SettingsView:
    profile = state.profile
    if profile is None:
        return SettingsView(store_name="", store_description="", location="", phone="", processing_time="")
    return SettingsView(
        store_name=escape_html(profile.store_name or profile.name),
        store_description=escape_html(profile.store_description),
        location=escape_html(profile.location),
        phone=escape_html(profile.phone),
        processing_time=profile.processing_time,
    )


def render_section(
    state: SellerViewState, unread_notifications: int = 0, now: datetime | None = None
) -> SectionView:
    section = state.section
    if section == DashboardSection.ORDERS:
        view = render_orders(state, now)
    elif section == DashboardSection.PRODUCTS:
        view = render_products(state)
    elif section == DashboardSection.EARNINGS:
        view = render_earnings(state)
    elif section == DashboardSection.SETTINGS:
        view = render_settings(state)
    else:
        view = render_overview(state, unread_notifications, now)
    return SectionView(section=section, data=view.model_dump(mode="json"))
