"""Session store: who is signed in, kept in step with backend auth-change events.

One store exists per browser session and is owned by that session's state;
there is no module-level instance.

Ordering contract: the auth listener is registered before the initial
session check. Every update (the initial check or an event) claims a
generation number before calling the backend, and its result is committed
only while no newer update has started. An event that lands while the
initial check is in flight therefore supersedes the initial snapshot.
"""

import logging
import threading
from dataclasses import replace
from typing import Callable, Optional

from infrastructure.backend.base import Backend, BackendError, Subscription
from use_cases.domain_models import PROFILES_TABLE
from use_cases.session_models import AuthSession, Profile, SessionState

log = logging.getLogger(__name__)

SETTLE_TIMEOUT_SECONDS = 5.0


class SessionStore:
    def __init__(self, backend: Backend):
        self._backend = backend
        self._lock = threading.RLock()
        self._changed = threading.Condition(self._lock)
        self._state = SessionState()
        self._generation = 0
        self._subscription: Optional[Subscription] = None
        self._initialized = False

    # --- snapshots ---
    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    @property
    def user(self):
        return self.state.user

    @property
    def profile(self):
        return self.state.profile

    @property
    def session(self):
        return self.state.session

    @property
    def loading(self) -> bool:
        return self.state.loading

    @property
    def is_subscribed(self) -> bool:
        with self._lock:
            return self._subscription is not None

    # --- lifecycle ---
    def initialize(self) -> None:
        with self._lock:
            if self._initialized:
                return
            self._initialized = True

        log.info("Setting up auth listener and checking session")
        try:
            subscription = self._backend.on_auth_state_change(self._handle_auth_event)
            with self._lock:
                self._subscription = subscription

            generation = self._claim_generation()
            try:
                session = self._backend.get_current_session()
            except BackendError as e:
                log.error("Error getting session: %s", e.message)
                session = None
            profile = self._fetch_profile(session) if session is not None else None
            if not self._commit(generation, session, profile):
                log.debug("Initial session snapshot superseded by an auth event")
        except Exception:
            log.exception("Critical error in auth setup")
            raise
        finally:
            self.set_loading(False)

    def teardown(self) -> None:
        with self._lock:
            subscription, self._subscription = self._subscription, None
        if subscription is not None:
            log.info("Cleaning up auth subscription")
            subscription.unsubscribe()

    # --- updates ---
    def _claim_generation(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def _commit(self, generation: int, session: Optional[AuthSession], profile: Optional[Profile]) -> bool:
        with self._lock:
            if generation != self._generation:
                return False
            if session is None:
                self._state = replace(self._state, user=None, profile=None, session=None)
            else:
                self._state = replace(self._state, user=session.account, profile=profile, session=session)
            self._changed.notify_all()
            return True

    def _fetch_profile(self, session: AuthSession) -> Optional[Profile]:
        account_id = session.account.id
        log.info("Fetching profile for user %s", account_id)
        try:
            row = self._backend.select_one(PROFILES_TABLE, {"id": account_id})
        except BackendError as e:
            log.error("Error fetching profile for %s: %s", account_id, e.message)
            return None
        if row is None:
            log.warning("No profile row for user %s", account_id)
            return None
        try:
            return Profile.from_row(row)
        except (KeyError, ValueError) as e:
            log.error("Unusable profile row for %s: %s", account_id, e)
            return None

    def _handle_auth_event(self, event: str, session: Optional[AuthSession]) -> None:
        log.info("Auth state changed, event: %s", event)
        generation = self._claim_generation()
        profile = self._fetch_profile(session) if session is not None else None
        self._commit(generation, session, profile)

    def refresh_profile(self) -> Optional[Profile]:
        """Re-read the profile of the signed-in account."""
        generation = self._claim_generation()
        session = self.session
        if session is None:
            return None
        profile = self._fetch_profile(session)
        self._commit(generation, session, profile)
        return profile

    def discard_local_session(self) -> None:
        generation = self._claim_generation()
        self._commit(generation, None, None)

    def set_loading(self, loading: bool) -> None:
        with self._lock:
            self._state = replace(self._state, loading=loading)
            self._changed.notify_all()

    def wait_until_settled(
        self,
        predicate: Optional[Callable[[SessionState], bool]] = None,
        timeout: float = SETTLE_TIMEOUT_SECONDS,
    ) -> bool:
        """Block until loading is over and ``predicate`` holds for the state.

        Callers use this after sign-in instead of assuming the store already
        reflects the new session.
        """
        def _settled() -> bool:
            return not self._state.loading and (predicate is None or predicate(self._state))

        with self._changed:
            return self._changed.wait_for(_settled, timeout=timeout)
