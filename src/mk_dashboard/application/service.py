# src/mk_dashboard/application/service.py
"""Process wiring: the session-event stream and the session registry."""
from src.mk_auth.identity import SessionEvents
from src.mk_dashboard.application.registry import DashboardSessionRegistry
from src.mk_gateway.application.service import get_document_gateway
from src.mk_storage.application.service import get_object_storage

_session_events: SessionEvents | None = None
_registry: DashboardSessionRegistry | None = None


def get_session_events() -> SessionEvents:
    global _session_events  # noqa: PLW0603
    if _session_events is None:
        _session_events = SessionEvents()
    return _session_events


def get_registry() -> DashboardSessionRegistry:
    global _registry  # noqa: PLW0603
    if _registry is None:
        _registry = DashboardSessionRegistry(
            get_document_gateway(), get_object_storage(), get_session_events()
        )
    return _registry


async def shutdown_registry() -> None:
    """Close every open session; the next ``get_registry`` builds a fresh one."""
    global _registry  # noqa: PLW0603
    if _registry is not None:
        await _registry.close_all()
        _registry = None
