import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx
from supabase import AuthError, Client, ClientOptions, PostgrestAPIError, create_client

from infrastructure.backend.base import AuthBackendError, AuthCallback, Backend, BackendError, Filters, Subscription
from use_cases.session_models import Account, AuthSession

log = logging.getLogger(__name__)


def _error_message(exc: Exception) -> str:
    return getattr(exc, "message", None) or str(exc)


def to_account(user) -> Optional[Account]:
    if user is None:
        return None
    return Account(id=str(user.id), email=user.email or "")


def to_auth_session(session) -> Optional[AuthSession]:
    if session is None or session.user is None:
        return None
    return AuthSession(
        account=to_account(session.user),
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_at=session.expires_at,
    )


class _SupabaseSubscription(Subscription):
    def __init__(self, inner):
        self._inner = inner

    def unsubscribe(self) -> None:
        self._inner.unsubscribe()


class SupabaseBackend(Backend):
    """Backend adapter over one supabase-py client.

    The client keeps the signed-in session in memory, so one instance belongs
    to exactly one browser session.
    Transport failures (connection refused, timeouts) surface as the same
    backend errors as API rejections.
    """

    def __init__(self, url: str, anon_key: str, service_role_key: Optional[str] = None, client: Optional[Client] = None):
        self._url = url
        self._service_role_key = service_role_key
        self._client = client or create_client(url, anon_key)
        self._admin_client: Optional[Client] = None

    # --- auth ---
    def get_current_session(self) -> Optional[AuthSession]:
        try:
            return to_auth_session(self._client.auth.get_session())
        except (AuthError, httpx.HTTPError) as e:
            raise AuthBackendError(_error_message(e)) from e

    def on_auth_state_change(self, callback: AuthCallback) -> Subscription:
        def _relay(event, session):
            callback(str(event), to_auth_session(session))

        return _SupabaseSubscription(self._client.auth.on_auth_state_change(_relay))

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        try:
            resp = self._client.auth.sign_in_with_password({"email": email, "password": password})
        except (AuthError, httpx.HTTPError) as e:
            raise AuthBackendError(_error_message(e)) from e
        session = to_auth_session(resp.session)
        if session is None:
            raise AuthBackendError("Sign in did not return a session")
        return session

    def sign_up(self, email: str, password: str, metadata: Mapping[str, Any]) -> Optional[Account]:
        try:
            resp = self._client.auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": dict(metadata)},
            })
        except (AuthError, httpx.HTTPError) as e:
            raise AuthBackendError(_error_message(e)) from e
        return to_account(resp.user)

    def sign_out(self) -> None:
        try:
            self._client.auth.sign_out()
        except (AuthError, httpx.HTTPError) as e:
            raise AuthBackendError(_error_message(e)) from e

    def _admin(self) -> Client:
        if not self._service_role_key:
            raise AuthBackendError("Privileged account provisioning is not configured (SUPABASE_SERVICE_ROLE_KEY).")
        if self._admin_client is None:
            self._admin_client = create_client(
                self._url,
                self._service_role_key,
                options=ClientOptions(auto_refresh_token=False, persist_session=False),
            )
        return self._admin_client

    def provision_account(self, email: str, password: str, metadata: Mapping[str, Any]) -> Account:
        admin = self._admin()
        try:
            resp = admin.auth.admin.create_user({
                "email": email,
                "password": password,
                "email_confirm": True,
                "user_metadata": dict(metadata),
            })
        except (AuthError, httpx.HTTPError) as e:
            raise AuthBackendError(_error_message(e)) from e
        account = to_account(resp.user)
        if account is None:
            raise AuthBackendError("Provisioning did not return an account")
        return account

    # --- tables ---
    @staticmethod
    def _apply_filters(query, filters: Filters):
        for column, value in (filters or {}).items():
            query = query.is_(column, "null") if value is None else query.eq(column, value)
        return query

    def select(self, table, filters=None, order_by=None, descending=False, columns="*") -> List[Dict[str, Any]]:
        query = self._apply_filters(self._client.table(table).select(columns), filters)
        if order_by:
            query = query.order(order_by, desc=descending)
        try:
            return query.execute().data or []
        except (PostgrestAPIError, httpx.HTTPError) as e:
            raise BackendError(_error_message(e)) from e

    def insert(self, table, rows) -> List[Dict[str, Any]]:
        payload = [dict(r) for r in rows] if isinstance(rows, list) else dict(rows)
        try:
            return self._client.table(table).insert(payload).execute().data or []
        except (PostgrestAPIError, httpx.HTTPError) as e:
            raise BackendError(_error_message(e)) from e

    def update(self, table, values, filters) -> List[Dict[str, Any]]:
        query = self._apply_filters(self._client.table(table).update(dict(values)), filters)
        try:
            return query.execute().data or []
        except (PostgrestAPIError, httpx.HTTPError) as e:
            raise BackendError(_error_message(e)) from e

    def delete(self, table, filters) -> None:
        query = self._apply_filters(self._client.table(table).delete(), filters)
        try:
            query.execute()
        except (PostgrestAPIError, httpx.HTTPError) as e:
            raise BackendError(_error_message(e)) from e

    def count(self, table, filters=None) -> int:
        query = self._apply_filters(self._client.table(table).select("id", count="exact"), filters)
        try:
            return query.execute().count or 0
        except (PostgrestAPIError, httpx.HTTPError) as e:
            raise BackendError(_error_message(e)) from e
