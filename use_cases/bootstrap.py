"""Startup orchestration: wiring of settings, backend and session store per browser session."""

import logging
from dataclasses import dataclass
from typing import Literal, Optional, Tuple

from infrastructure.backend import AuthBackendError, BackendError, create_backend
from infrastructure.backend.base import Backend
from infrastructure.settings import ConfigurationError, get_secret, load_settings
from use_cases.domain_models import PROFILES_TABLE
from use_cases.session_models import Profile, Role
from use_cases.session_store import SessionStore
from utils import session_manager

log = logging.getLogger(__name__)

StartupStatus = Literal["CONTINUE", "STOP"]


@dataclass(frozen=True)
class StartupResult:
    """Result contract for startup/bootstrap orchestration."""

    status: StartupStatus
    planned_steps: Tuple[str, ...]
    error: Optional[str] = None


def bootstrap_admin(backend: Backend) -> bool:
    """Seed an admin account in the demo backend from DEMO_ADMIN_EMAIL / DEMO_ADMIN_PASSWORD."""
    email = get_secret("DEMO_ADMIN_EMAIL")
    password = get_secret("DEMO_ADMIN_PASSWORD")
    if not email or not password:
        return False

    metadata = {"first_name": "Demo", "last_name": "Admin", "role": Role.ADMIN.value}
    try:
        account = backend.provision_account(email, password, metadata)
    except AuthBackendError as e:
        log.info("Demo admin not created: %s", e.message)
        return False
    profile = Profile(id=account.id, email=email, role=Role.ADMIN, first_name="Demo", last_name="Admin")
    try:
        backend.insert(PROFILES_TABLE, profile.to_row())
    except BackendError as e:
        log.error("Demo admin profile not created: %s", e.message)
        return False
    log.info("Demo admin %s seeded", email)
    return True


def run_startup() -> StartupResult:
    """Wire this browser session's backend and session store, once per session."""
    executed_steps = []

    session_manager.init_session_state()
    executed_steps.append("init_session_state")

    try:
        settings = load_settings()
    except ConfigurationError as e:
        log.error("Configuration error: %s", e)
        return StartupResult(status="STOP", planned_steps=tuple(executed_steps), error=str(e))
    executed_steps.append("load_settings")

    state = session_manager.st.session_state
    if state.backend is not None and state.backend_fingerprint != settings.fingerprint:
        log.info("Backend settings changed, reconnecting")
        session_manager.teardown_session()
        executed_steps.append("teardown_stale_backend")

    if state.backend is None:
        backend = create_backend(settings)
        state.backend = backend
        state.backend_fingerprint = settings.fingerprint
        executed_steps.append("create_backend")
        if settings.demo_mode and bootstrap_admin(backend):
            executed_steps.append("bootstrap_admin")

    if state.session_store is None:
        store = SessionStore(state.backend)
        state.session_store = store
        store.initialize()
        executed_steps.append("initialize_session_store")

    return StartupResult(status="CONTINUE", planned_steps=tuple(executed_steps))
