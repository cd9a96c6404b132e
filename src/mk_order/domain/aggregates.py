"""Derived dashboard figures: pure functions over the seller's order and product sets.

All amounts are int cents and only count the seller's own line items.
"""
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from config.settings import settings
from src.mk_common.enums import OrderStatus, StockFilter
from src.mk_listing.domain.models import Product
from src.mk_order.domain.models import Order

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)

_PENDING_EARNING_STATES = frozenset({OrderStatus.CONFIRMED, OrderStatus.OUT_FOR_DELIVERY})


@dataclass(frozen=True)
class EarningsBreakdown:
    available: int = 0
    pending: int = 0

    @property
    def lifetime(self) -> int:
        return self.available + self.pending


@dataclass(frozen=True)
class SalesStats:
    total_sales: int = 0
    total_revenue: int = 0
    month_sales: int = 0
    month_revenue: int = 0


@dataclass(frozen=True)
class DashboardAggregates:
    pending_count: int = 0
    earnings: EarningsBreakdown = field(default_factory=EarningsBreakdown)
    sales: SalesStats = field(default_factory=SalesStats)
    low_stock: tuple[Product, ...] = ()
    average_rating: float | None = None
    total_products: int = 0


def pending_count(orders: Iterable[Order]) -> int:
    return sum(1 for order in orders if order.status == OrderStatus.PENDING)


def earnings_breakdown(orders: Iterable[Order], seller_id: str) -> EarningsBreakdown:
    available = 0
    pending = 0
    for order in orders:
        if order.status == OrderStatus.DELIVERED:
            available += order.seller_total(seller_id)
        elif order.status in _PENDING_EARNING_STATES:
            pending += order.seller_total(seller_id)
    return EarningsBreakdown(available=available, pending=pending)


def sales_stats(orders: Iterable[Order], seller_id: str, now: datetime) -> SalesStats:
    """Delivered sales, with a 'this calendar month' split by order creation date."""
    total_sales = total_revenue = month_sales = month_revenue = 0
    for order in orders:
        if order.status != OrderStatus.DELIVERED or not order.involves_seller(seller_id):
            continue
        revenue = order.seller_total(seller_id)
        total_sales += 1
        total_revenue += revenue
        created = order.created_at
        if created is not None and (created.year, created.month) == (now.year, now.month):
            month_sales += 1
            month_revenue += revenue
    return SalesStats(total_sales, total_revenue, month_sales, month_revenue)


def low_stock(
    products: Iterable[Product],
    threshold: int = settings.LOW_STOCK_THRESHOLD,
    limit: int = settings.LOW_STOCK_DISPLAY_LIMIT,
) -> list[Product]:
    """Out-of-stock products first, then 0 < stock < threshold, capped at ``limit``."""
    products = list(products)
    out_of_stock = [p for p in products if p.total_stock == 0]
    running_low = [p for p in products if 0 < p.total_stock < threshold]
    return (out_of_stock + running_low)[:limit]


def average_rating(products: Iterable[Product]) -> float | None:
    ratings = [p.avg_rating for p in products if p.avg_rating]
    if not ratings:
        return None
    return round(sum(ratings) / len(ratings), 1)


def sort_newest_first(orders: Iterable[Order]) -> list[Order]:
    return sorted(orders, key=lambda o: o.created_at or _EPOCH, reverse=True)


def filter_orders(
    orders: Iterable[Order],
    status: OrderStatus | None = None,
    query: str = "",
) -> list[Order]:
    """Exact status match plus case-insensitive search on id, order number or buyer name."""
    needle = query.strip().lower()
    matched = []
    for order in orders:
        if status is not None and order.status != status:
            continue
        if needle and not (
            needle in order.id.lower()
            or needle in order.order_number.lower()
            or needle in order.buyer.name.lower()
        ):
            continue
        matched.append(order)
    return sort_newest_first(matched)


def recent_orders(orders: Iterable[Order], limit: int = settings.RECENT_ORDERS_LIMIT) -> list[Order]:
    return sort_newest_first(orders)[:limit]


def filter_products(
    products: Iterable[Product],
    stock_filter: StockFilter = StockFilter.ALL,
    threshold: int = settings.LOW_STOCK_THRESHOLD,
) -> list[Product]:
    if stock_filter == StockFilter.IN_STOCK:
        return [p for p in products if p.total_stock >= threshold]
    if stock_filter == StockFilter.LOW_STOCK:
        return [p for p in products if 0 < p.total_stock < threshold]
    if stock_filter == StockFilter.OUT_OF_STOCK:
        return [p for p in products if p.total_stock == 0]
    return list(products)


def compute_aggregates(
    orders: Iterable[Order],
    products: Iterable[Product],
    seller_id: str,
    now: datetime,
) -> DashboardAggregates:
    orders = list(orders)
    products = list(products)
    return DashboardAggregates(
        pending_count=pending_count(orders),
        earnings=earnings_breakdown(orders, seller_id),
        sales=sales_stats(orders, seller_id, now),
        low_stock=tuple(low_stock(products)),
        average_rating=average_rating(products),
        total_products=len(products),
    )
