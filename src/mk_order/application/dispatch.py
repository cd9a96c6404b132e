# src/mk_order/application/dispatch.py
"""Dispatch Workflow: photo evidence gating confirmed -> out_for_delivery.

Upload first, then a single order write carrying status, photo URL, note,
dispatchedAt and dispatchedBy. If anything fails the order stays confirmed
and the workflow stays open for another attempt. An upload orphaned by a
failed order write is left in storage.
"""
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import PurePosixPath

from config.settings import settings
from src.mk_common.datetime_utils import utc_now
from src.mk_common.enums import OrderStatus, SyncState
from src.mk_common.errors import (
    AppError,
    DispatchNotOpenError,
    DispatchPhotoRequiredError,
    InvalidDispatchPhotoError,
    OrderNotDispatchableError,
    OrderNotFoundError,
)
from src.mk_common.ids import upload_token
from src.mk_common.sanitize import sanitize_text
from src.mk_dashboard.application.state import SellerViewState
from src.mk_order.application.lifecycle import OrderLifecycleEngine, TransitionResult
from src.mk_order.domain.models import OrderChange
from src.mk_order.domain.state_machine import timestamp_field
from src.mk_storage.domain.models import ObjectStorageProtocol

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
    "image/heic": "heic",
}


@dataclass(frozen=True)
class DispatchPhoto:
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        known = _EXTENSIONS.get(self.content_type.lower())
        if known:
            return known
        suffix = PurePosixPath(self.filename).suffix.lstrip(".").lower()
        return suffix if suffix.isalnum() else "jpg"


def validate_photo(photo: DispatchPhoto) -> None:
    """Reject non-images and files over the size cap."""
    if not photo.content_type.lower().startswith("image/"):
        raise InvalidDispatchPhotoError("Please select an image file")
    if photo.size == 0:
        raise InvalidDispatchPhotoError("The selected image is empty")
    if photo.size > settings.DISPATCH_PHOTO_MAX_BYTES:
        limit_mb = settings.DISPATCH_PHOTO_MAX_BYTES // (1024 * 1024)
        raise InvalidDispatchPhotoError(f"Image must be under {limit_mb}MB")


def dispatch_photo_path(seller_id: str, order_id: str, extension: str) -> str:
    return f"dispatch/{seller_id}/{order_id}_{upload_token()}.{extension}"


class DispatchWorkflow:
    def __init__(
        self,
        order_id: str,
        state: SellerViewState,
        engine: OrderLifecycleEngine,
        storage: ObjectStorageProtocol,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.order_id = order_id
        self._state = state
        self._engine = engine
        self._storage = storage
        self._clock = clock
        self.photo: DispatchPhoto | None = None
        self.is_open = True
        self.submitting = False

    @classmethod
    def open(
        cls,
        order_id: str,
        state: SellerViewState,
        engine: OrderLifecycleEngine,
        storage: ObjectStorageProtocol,
        clock: Callable[[], datetime] = utc_now,
    ) -> "DispatchWorkflow":
        cls._require_confirmed(state, order_id)
        return cls(order_id, state, engine, storage, clock)

    @staticmethod
    def _require_confirmed(state: SellerViewState, order_id: str) -> None:
        order = state.orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if order.status != OrderStatus.CONFIRMED:
            raise OrderNotDispatchableError(order_id, order.status.value)
        mutation = state.mutations.get(order_id)
        if mutation is not None and mutation.sync_state == SyncState.FAILED:
            # The visible "confirmed" is an overlay the server never accepted
            server_status = mutation.base.status
            if server_status != OrderStatus.CONFIRMED:
                raise OrderNotDispatchableError(
                    order_id, server_status.value, "retry the confirmation first"
                )

    def select_photo(self, photo: DispatchPhoto) -> None:
        if not self.is_open:
            raise DispatchNotOpenError()
        validate_photo(photo)
        self.photo = photo

    async def submit(self, photo: DispatchPhoto | None = None, note: str | None = "") -> TransitionResult:
        if not self.is_open:
            raise DispatchNotOpenError()
        if photo is not None:
            self.select_photo(photo)
        if self.photo is None:
            raise DispatchPhotoRequiredError(self.order_id)
        validate_photo(self.photo)
        self._require_confirmed(self._state, self.order_id)

        seller_id = self._state.seller_id
        clean_note = sanitize_text(note, max_length=settings.DISPATCH_NOTE_MAX_LENGTH)
        path = dispatch_photo_path(seller_id, self.order_id, self.photo.extension)

        self.submitting = True
        try:
            handle = await self._storage.upload(path, self.photo.data, self.photo.content_type)
            photo_url = await self._storage.get_retrievable_url(handle)
            change = OrderChange(
                target_status=OrderStatus.OUT_FOR_DELIVERY,
                timestamp_field=timestamp_field(OrderStatus.OUT_FOR_DELIVERY),
                committed_at=self._clock(),
                dispatch_photo=photo_url,
                dispatch_note=clean_note,
                dispatched_by=seller_id,
            )
            try:
                result = await self._engine.advance(
                    self.order_id,
                    OrderStatus.OUT_FOR_DELIVERY,
                    change=change,
                    rollback_on_failure=True,
                )
            except AppError:
                logger.warning("Dispatch of order %s failed after upload; %s left orphaned", self.order_id, path)
                raise
        finally:
            self.submitting = False

        self.close()
        logger.info("Order %s dispatched by %s with photo %s", self.order_id, seller_id, path)
        return result

    def close(self) -> None:
        """Discard the workflow; an upload already in flight still completes."""
        self.is_open = False
        self.photo = None
