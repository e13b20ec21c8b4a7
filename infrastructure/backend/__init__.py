"""Backend adapters for the hosted data-and-auth service."""

import logging

from infrastructure.backend.base import AuthBackendError, Backend, BackendError, RecordNotFoundError, Subscription
from infrastructure.settings import BackendSettings

log = logging.getLogger(__name__)

__all__ = [
    "AuthBackendError",
    "Backend",
    "BackendError",
    "RecordNotFoundError",
    "Subscription",
    "create_backend",
]


def create_backend(settings: BackendSettings) -> Backend:
    """Build the backend for one browser session.

    In demo mode every call returns a fresh in-memory backend. It holds a single
    signed-in session, so sessions never share it: accounts and rows created in
    one browser are not visible in another and are lost when the session ends.
    """
    if settings.demo_mode:
        from infrastructure.backend.demo_backend import DemoBackend

        log.warning("EQUAL_ACCESS_DEMO_MODE is on: using the in-memory demo backend.")
        return DemoBackend.with_sample_data()

    from infrastructure.backend.supabase_backend import SupabaseBackend

    return SupabaseBackend(settings.url, settings.anon_key, service_role_key=settings.service_role_key)
