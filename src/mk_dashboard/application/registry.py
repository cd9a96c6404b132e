# src/mk_dashboard/application/registry.py
"""DashboardSessionRegistry: at most one controller per seller."""
import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable
from datetime import datetime

from src.mk_auth.identity import Identity, SessionEvents
from src.mk_auth.profile import ProfileRepository
from src.mk_common.datetime_utils import utc_now
from src.mk_common.errors import SessionNotOpenError
from src.mk_dashboard.application.controller import DashboardController
from src.mk_gateway.domain.protocol import DocumentGatewayProtocol
from src.mk_listing.infrastructure.persistence import ListingRepository
from src.mk_storage.domain.models import ObjectStorageProtocol

logger = logging.getLogger(__name__)


class DashboardSessionRegistry:
    def __init__(
        self,
        gateway: DocumentGatewayProtocol,
        storage: ObjectStorageProtocol,
        session_events: SessionEvents,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._gateway = gateway
        self._storage = storage
        self._clock = clock
        # Shared across sessions so profile and listing lookups hit one cache
        self._profiles = ProfileRepository(gateway)
        self._listings = ListingRepository(gateway)
        self._sessions: dict[str, DashboardController] = {}
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._remove_listener = session_events.add_listener(self._on_session_event)

    def __len__(self) -> int:
        return len(self._sessions)

    async def open(self, identity: Identity) -> DashboardController:
        async with self._locks[identity.user_id]:
            existing = self._sessions.get(identity.user_id)
            if existing is not None:
                return existing
            controller = DashboardController(
                identity,
                self._gateway,
                self._storage,
                profiles=self._profiles,
                listings=self._listings,
                clock=self._clock,
            )
            await controller.start()
            self._sessions[identity.user_id] = controller
            return controller

    def get(self, user_id: str) -> DashboardController:
        controller = self._sessions.get(user_id)
        if controller is None:
            raise SessionNotOpenError(user_id)
        return controller

    async def close(self, user_id: str) -> bool:
        async with self._locks[user_id]:
            controller = self._sessions.pop(user_id, None)
            if controller is None:
                return False
            await controller.stop()
        self._locks.pop(user_id, None)
        return True

    async def close_all(self) -> None:
        for user_id in list(self._sessions):
            await self.close(user_id)
        self._remove_listener()

    async def _on_session_event(self, user_id: str, identity: Identity | None) -> None:
        if identity is None and await self.close(user_id):
            logger.info("Closed dashboard session of %s after sign-out", user_id)
