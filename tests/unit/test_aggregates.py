"""Tests for dashboard aggregate figures."""
from datetime import UTC, datetime

from src.mk_common.enums import OrderStatus, StockFilter
from src.mk_listing.domain.models import Product
from src.mk_order.domain.aggregates import (
    average_rating,
    compute_aggregates,
    earnings_breakdown,
    filter_orders,
    filter_products,
    low_stock,
    pending_count,
    recent_orders,
    sales_stats,
)
from src.mk_order.domain.models import BuyerRef, LineItem, Order
from tests.factories import NOW, OTHER_SELLER_ID, SELLER_ID


def _make_item(price: int, quantity: int = 1, seller_id: str = SELLER_ID) -> LineItem:
    return LineItem(
        listing_id="l1",
        seller_id=seller_id,
        product_name="Item",
        unit_price=price,
        quantity=quantity,
    )


def _make_order(
    order_id: str,
    status: OrderStatus,
    items: tuple[LineItem, ...] | None = None,
    created_at: datetime | None = None,
    buyer_name: str = "Amina Buyer",
    order_number: str = "",
) -> Order:
    return Order(
        id=order_id,
        buyer=BuyerRef(user_id="b1", name=buyer_name),
        items=items if items is not None else (_make_item(10_000),),
        status=status,
        created_at=created_at,
        order_number=order_number,
    )


def _make_product(name: str, stock: int, rating: float | None = None) -> Product:
    return Product(
        id=name, name=name, price=50_000, total_stock=stock, seller_id=SELLER_ID, avg_rating=rating
    )


class TestEarnings:
    def test_delivered_counts_as_available(self) -> None:
        order = _make_order(
            "o1", OrderStatus.DELIVERED, (_make_item(10_000, 2), _make_item(5_000, 1))
        )
        earnings = earnings_breakdown([order], SELLER_ID)
        assert earnings.available == 25_000
        assert earnings.pending == 0
        assert earnings.lifetime == 25_000

    def test_in_flight_counts_as_pending(self) -> None:
        orders = [
            _make_order("o1", OrderStatus.CONFIRMED),
            _make_order("o2", OrderStatus.OUT_FOR_DELIVERY),
            _make_order("o3", OrderStatus.PENDING),
            _make_order("o4", OrderStatus.CANCELLED),
        ]
        earnings = earnings_breakdown(orders, SELLER_ID)
        assert earnings.pending == 20_000
        assert earnings.available == 0

    def test_only_own_items_count(self) -> None:
        order = _make_order(
            "o1",
            OrderStatus.DELIVERED,
            (_make_item(10_000), _make_item(99_000, seller_id=OTHER_SELLER_ID)),
        )
        assert earnings_breakdown([order], SELLER_ID).available == 10_000


class TestSalesStats:
    def test_month_split_by_creation_date(self) -> None:
        orders = [
            _make_order("o1", OrderStatus.DELIVERED, created_at=datetime(2026, 10, 2, tzinfo=UTC)),
            _make_order("o2", OrderStatus.DELIVERED, created_at=datetime(2026, 9, 28, tzinfo=UTC)),
            _make_order("o3", OrderStatus.CONFIRMED, created_at=datetime(2026, 10, 3, tzinfo=UTC)),
        ]
        stats = sales_stats(orders, SELLER_ID, NOW)
        assert stats.total_sales == 2
        assert stats.total_revenue == 20_000
        assert stats.month_sales == 1
        assert stats.month_revenue == 10_000


class TestCounts:
    def test_pending_count(self) -> None:
        orders = [
            _make_order("o1", OrderStatus.PENDING),
            _make_order("o2", OrderStatus.PENDING),
            _make_order("o3", OrderStatus.CONFIRMED),
        ]
        assert pending_count(orders) == 2

    def test_average_rating_ignores_unrated(self) -> None:
        products = [_make_product("a", 5, 4.0), _make_product("b", 5, 4.6), _make_product("c", 5)]
        assert average_rating(products) == 4.3
        assert average_rating([_make_product("c", 5)]) is None


class TestLowStock:
    def test_out_of_stock_first_and_capped(self) -> None:
        products = [
            _make_product("plenty", 40),
            _make_product("few", 3),
            _make_product("none", 0),
            _make_product("edge", 10),
        ]
        assert [p.name for p in low_stock(products)] == ["none", "few"]
        assert len(low_stock([_make_product(f"p{i}", 1) for i in range(8)])) == 5

    def test_filter_products(self) -> None:
        products = [_make_product("plenty", 40), _make_product("few", 3), _make_product("none", 0)]
        assert [p.name for p in filter_products(products, StockFilter.IN_STOCK)] == ["plenty"]
        assert [p.name for p in filter_products(products, StockFilter.LOW_STOCK)] == ["few"]
        assert [p.name for p in filter_products(products, StockFilter.OUT_OF_STOCK)] == ["none"]
        assert len(filter_products(products)) == 3

    def test_stock_labels(self) -> None:
        assert _make_product("a", 0).stock_label == "Out of stock"
        assert _make_product("a", 3).stock_label == "3 left"
        assert _make_product("a", 30).stock_label == "30 in stock"
        assert _make_product("a", 3).stock_class == "low-stock"


class TestOrderFilters:
    def test_status_and_search(self) -> None:
        orders = [
            _make_order("o1", OrderStatus.PENDING, buyer_name="Amina Buyer",
                        created_at=datetime(2026, 10, 1, tzinfo=UTC)),
            _make_order("o2", OrderStatus.PENDING, buyer_name="Brian Otieno",
                        created_at=datetime(2026, 10, 5, tzinfo=UTC), order_number="ORD-77"),
            _make_order("o3", OrderStatus.DELIVERED, buyer_name="amina two"),
        ]
        assert [o.id for o in filter_orders(orders, OrderStatus.PENDING)] == ["o2", "o1"]
        assert [o.id for o in filter_orders(orders, query="AMINA")] == ["o1", "o3"]
        assert [o.id for o in filter_orders(orders, query="ord-77")] == ["o2"]
        assert filter_orders(orders, OrderStatus.CANCELLED) == []

    def test_recent_orders_newest_first_undated_last(self) -> None:
        orders = [
            _make_order("old", OrderStatus.PENDING, created_at=datetime(2026, 1, 1, tzinfo=UTC)),
            _make_order("undated", OrderStatus.PENDING),
            _make_order("new", OrderStatus.PENDING, created_at=datetime(2026, 10, 1, tzinfo=UTC)),
        ]
        assert [o.id for o in recent_orders(orders, limit=2)] == ["new", "old"]


class TestComputeAggregates:
    def test_bundle(self) -> None:
        orders = [_make_order("o1", OrderStatus.PENDING), _make_order("o2", OrderStatus.DELIVERED)]
        products = [_make_product("a", 0, 5.0), _make_product("b", 50)]
        aggregates = compute_aggregates(orders, products, SELLER_ID, NOW)

        assert aggregates.pending_count == 1
        assert aggregates.earnings.available == 10_000
        assert aggregates.total_products == 2
        assert [p.name for p in aggregates.low_stock] == ["a"]
        assert aggregates.average_rating == 5.0
