# src/mk_listing/infrastructure/persistence.py
"""ListingRepository: the seller's ``Listings`` documents, cached per seller."""
import logging

from config.settings import settings
from src.mk_common.cache import RedisCacheBackend, TimedCache
from src.mk_common.money import to_cents
from src.mk_common.sanitize import validate_price, validate_quantity
from src.mk_gateway.domain.models import Document, Predicate
from src.mk_gateway.domain.protocol import DocumentGatewayProtocol
from src.mk_listing.domain.models import Product

logger = logging.getLogger(__name__)

LISTINGS_COLLECTION = "Listings"


def _record_to_product(record: Document) -> Product:
    images = record.get("imageUrls") or []
    rating = validate_price(record.get("avgRating"), max_value=5)
    return Product(
        id=str(record["id"]),
        name=str(record.get("name") or ""),
        price=to_cents(record.get("originalPrice") or record.get("price")),
        total_stock=validate_quantity(record.get("totalStock")) or 0,
        seller_id=str(record.get("uploaderId") or ""),
        image_urls=[str(url) for url in images if isinstance(url, str)],
        avg_rating=rating or None,
    )


def build_listing_cache() -> TimedCache:
    persistent = None
    if settings.GATEWAY_BACKEND == "postgres":
        persistent = RedisCacheBackend("listings", settings.LISTING_CACHE_TTL_SECONDS)
    return TimedCache(
        settings.LISTING_CACHE_TTL_SECONDS,
        max_entries=settings.CACHE_MAX_ENTRIES,
        persistent=persistent,
    )


class ListingRepository:
    def __init__(self, gateway: DocumentGatewayProtocol, cache: TimedCache | None = None) -> None:
        self._gateway = gateway
        self._cache = cache or build_listing_cache()

    async def list_by_seller(self, seller_id: str) -> list[Product]:
        async def load() -> list[Document]:
            return await self._gateway.query_documents(
                LISTINGS_COLLECTION, [Predicate("uploaderId", "==", seller_id)]
            )

        records = await self._cache.fetch(seller_id, load)
        products = []
        for record in records:
            if "id" not in record:
                logger.warning("Skipping listing without id for seller %s", seller_id)
                continue
            products.append(_record_to_product(record))
        return products
