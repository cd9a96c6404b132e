"""Listing domain model: read-mostly product data owned by the seller's listings."""
from dataclasses import dataclass, field

from config.settings import settings


@dataclass
class Product:
    id: str
    name: str
    price: int  # cents
    total_stock: int
    seller_id: str
    image_urls: list[str] = field(default_factory=list)
    avg_rating: float | None = None

    @property
    def is_out_of_stock(self) -> bool:
        return self.total_stock == 0

    @property
    def is_low_stock(self) -> bool:
        return 0 < self.total_stock < settings.LOW_STOCK_THRESHOLD

    @property
    def stock_label(self) -> str:
        if self.is_out_of_stock:
            return "Out of stock"
        if self.is_low_stock:
            return f"{self.total_stock} left"
        return f"{self.total_stock} in stock"

    @property
    def stock_class(self) -> str:
        if self.is_out_of_stock:
            return "out-of-stock"
        if self.is_low_stock:
            return "low-stock"
        return "in-stock"
