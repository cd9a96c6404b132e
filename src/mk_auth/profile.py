"""Seller profiles: ``Users`` documents, read through a TimedCache."""
import logging
from dataclasses import dataclass
from typing import Any

from config.settings import settings
from src.mk_common.cache import RedisCacheBackend, TimedCache
from src.mk_gateway.domain.models import SERVER_TIMESTAMP, Document
from src.mk_gateway.domain.protocol import DocumentGatewayProtocol

logger = logging.getLogger(__name__)

USERS_COLLECTION = "Users"


@dataclass
class SellerProfile:
    user_id: str
    name: str = ""
    photo_url: str | None = None
    verified: bool = False
    store_name: str = ""
    store_description: str = ""
    location: str = ""
    phone: str = ""
    processing_time: str = ""


def _record_to_profile(user_id: str, record: Document) -> SellerProfile:
    return SellerProfile(
        user_id=user_id,
        name=str(record.get("name") or ""),
        photo_url=record.get("profilePicUrl"),
        verified=bool(record.get("verified") or record.get("isVerified")),
        store_name=str(record.get("storeName") or ""),
        store_description=str(record.get("storeDescription") or ""),
        location=str(record.get("location") or ""),
        phone=str(record.get("phone") or ""),
        processing_time=str(record.get("processingTime") or ""),
    )


def build_profile_cache() -> TimedCache:
    persistent = None
    if settings.GATEWAY_BACKEND == "postgres":
        persistent = RedisCacheBackend("users", settings.USER_CACHE_TTL_SECONDS)
    return TimedCache(
        settings.USER_CACHE_TTL_SECONDS,
        max_entries=settings.CACHE_MAX_ENTRIES,
        persistent=persistent,
    )


class ProfileRepository:
    def __init__(self, gateway: DocumentGatewayProtocol, cache: TimedCache | None = None) -> None:
        self._gateway = gateway
        self._cache = cache or build_profile_cache()

    async def get_profile(self, user_id: str) -> SellerProfile | None:
        async def load() -> Document | None:
            return await self._gateway.get_document(USERS_COLLECTION, user_id)

        record = await self._cache.fetch(user_id, load)
        if record is None:
            await self._cache.invalidate(user_id)
            return None
        return _record_to_profile(user_id, record)

    async def update_store_settings(self, user_id: str, fields: dict[str, Any]) -> None:
        """Merge store settings into the user's document and drop the cached copy."""
        payload = dict(fields)
        payload["updatedAt"] = SERVER_TIMESTAMP
        await self._gateway.write_document(USERS_COLLECTION, user_id, payload)
        await self._cache.invalidate(user_id)
        logger.info("Store settings updated for %s: %s", user_id, sorted(fields))
