"""Authenticated identity and the session-change event stream."""
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    user_id: str
    display_name: str = ""


SessionListener = Callable[[str, Identity | None], Awaitable[None]]


class SessionEvents:
    """Fan-out of sign-in / sign-out events.

    Listeners receive ``(user_id, identity)`` on sign-in and
    ``(user_id, None)`` on sign-out. A failing listener is logged and does
    not stop delivery to the others.
    """

    def __init__(self) -> None:
        self._listeners: list[SessionListener] = []

    def add_listener(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def signed_in(self, identity: Identity) -> None:
        await self._emit(identity.user_id, identity)

    async def signed_out(self, user_id: str) -> None:
        await self._emit(user_id, None)

    async def _emit(self, user_id: str, identity: Identity | None) -> None:
        for listener in list(self._listeners):
            try:
                await listener(user_id, identity)
            except Exception:
                logger.exception("Session listener failed for user %s", user_id)
