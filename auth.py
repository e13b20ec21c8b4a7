"""Credentialed actions against the backend auth service.

Each operation toggles the store's shared loading flag for its whole span and
reports its outcome to the user through the notifier. Session state itself is
only ever updated by the store's auth-change subscription.
"""

import logging
from contextlib import contextmanager
from typing import Optional

from infrastructure.backend.base import AuthBackendError, Backend, BackendError
from use_cases.domain_models import PROFILES_TABLE
from use_cases.session_models import Account, AuthSession, Profile, Role, is_admin
from use_cases.session_store import SessionStore

log = logging.getLogger(__name__)

APP_NAME = "Equal Access"

# Roles an anonymous visitor may pick for themselves; the rest are granted by an admin.
SELF_SERVICE_ROLES = (Role.AGENT,)


class AuthOperationError(Exception):
    pass


class InvalidCredentialsError(AuthOperationError):
    pass


class AccountCreationError(AuthOperationError):
    pass


class PermissionDeniedError(AuthOperationError):
    pass


class AuthOperations:
    def __init__(self, backend: Backend, store: SessionStore, notifier):
        self._backend = backend
        self._store = store
        self._notifier = notifier

    @contextmanager
    def _loading(self):
        self._store.set_loading(True)
        try:
            yield
        finally:
            self._store.set_loading(False)

    def sign_in(self, email: str, password: str) -> AuthSession:
        with self._loading():
            log.info("Attempting sign in for %s", email)
            try:
                session = self._backend.sign_in_with_password(email, password)
            except AuthBackendError as e:
                log.error("Authentication failed for %s: %s", email, e.message)
                self._notifier.error("Authentication failed", e.message)
                raise InvalidCredentialsError(e.message) from e
            log.info("Sign in successful for %s", email)
            self._notifier.success(f"Welcome to {APP_NAME}!", "You've successfully signed in.")
            return session

    def sign_up(self, email: str, password: str, first_name: str, last_name: str, role) -> Optional[Profile]:
        role = Role.parse(role)
        with self._loading():
            if role not in SELF_SERVICE_ROLES:
                log.warning("Self-registration refused for %s with role %s", email, role.value)
                message = f"The {role.value} role is granted by an administrator."
                self._notifier.error("Account creation failed", message)
                raise PermissionDeniedError(message)
            log.info("Creating new user account: %s (%s)", email, role.value)
            try:
                account = self._backend.sign_up(email, password, _metadata(first_name, last_name, role))
            except AuthBackendError as e:
                log.error("Account creation failed for %s: %s", email, e.message)
                self._notifier.error("Account creation failed", e.message)
                raise AccountCreationError(e.message) from e
            if account is None:
                return None
            return self._create_profile(
                account, email, first_name, last_name, role,
                success_message=f"Welcome to {APP_NAME}, {first_name}!",
            )

    def create_user_account(self, email: str, password: str, first_name: str, last_name: str, role) -> Optional[Profile]:
        """Admin-initiated account creation through the privileged provisioning path."""
        role = Role.parse(role)
        with self._loading():
            caller = self._store.profile
            if not is_admin(caller):
                log.warning("Account creation refused for non-admin caller %s", caller.id if caller else None)
                self._notifier.error("Account creation failed", "Only administrators can create user accounts.")
                raise PermissionDeniedError("Only administrators can create user accounts.")

            log.info("Admin %s creating user account: %s (%s)", caller.id, email, role.value)
            try:
                account = self._backend.provision_account(email, password, _metadata(first_name, last_name, role))
            except AuthBackendError as e:
                log.error("Account creation failed for %s: %s", email, e.message)
                self._notifier.error("Account creation failed", e.message)
                raise AccountCreationError(e.message) from e
            return self._create_profile(
                account, email, first_name, last_name, role,
                success_message=f"{first_name} {last_name} ({role.value}) has been added to {APP_NAME}.",
            )

    def _create_profile(self, account: Account, email, first_name, last_name, role: Role, success_message) -> Optional[Profile]:
        profile = Profile(id=account.id, email=email, role=role, first_name=first_name, last_name=last_name)
        log.info("Account %s created, now creating profile", account.id)
        try:
            self._backend.insert(PROFILES_TABLE, profile.to_row())
        except BackendError as e:
            # The account exists without a profile; role-gated pages treat it as having no role.
            log.error("Profile creation failed for %s: %s", account.id, e.message)
            self._notifier.error("Profile creation failed", e.message)
            return None

        log.info("Profile created for %s", account.id)
        self._notifier.success("Account created", success_message)
        current = self._store.user
        if current is not None and current.id == account.id:
            self._store.refresh_profile()
        return profile

    def sign_out(self) -> None:
        with self._loading():
            log.info("Signing out user")
            try:
                self._backend.sign_out()
            except BackendError as e:
                log.error("Error signing out: %s", e.message)
                self._notifier.error("Error signing out", f"An error occurred while signing out: {e.message}")
                self._store.discard_local_session()
                return
            log.info("Sign out successful")
            self._notifier.success("Signed out", f"You've been successfully signed out of {APP_NAME}.")


def _metadata(first_name: str, last_name: str, role: Role):
    return {"first_name": first_name, "last_name": last_name, "role": role.value}
