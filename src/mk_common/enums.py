"""Global enums: values match the document fields written by checkout and the dashboard."""

from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class NotificationType(str, Enum):
    ORDER_CONFIRMED = "order_confirmed"
    ORDER_SHIPPED = "order_shipped"
    ORDER_DELIVERED = "order_delivered"
    ORDER_CANCELLED = "order_cancelled"


class SyncState(str, Enum):
    """Whether a locally shown order state has been acknowledged by the gateway."""
    SYNCED = "synced"
    PENDING = "pending"
    FAILED = "failed"


class DashboardSection(str, Enum):
    OVERVIEW = "overview"
    ORDERS = "orders"
    PRODUCTS = "products"
    EARNINGS = "earnings"
    SETTINGS = "settings"


class StockFilter(str, Enum):
    ALL = "all"
    IN_STOCK = "in_stock"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"


class ProcessingTime(str, Enum):
    SAME_DAY = "same_day"
    ONE_TWO_DAYS = "1_2_days"
    THREE_FIVE_DAYS = "3_5_days"
    ONE_WEEK = "1_week"
