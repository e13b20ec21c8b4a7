"""In-memory backend for the offline demo. Enabled only through EQUAL_ACCESS_DEMO_MODE."""

import copy
import hashlib
import hmac
import logging
import os
import secrets
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from infrastructure.backend.base import AuthBackendError, AuthCallback, Backend, BackendError, Filters, Subscription
from use_cases.session_models import Account, AuthSession

log = logging.getLogger(__name__)

PASSWORD_ITERATIONS = 200_000
MIN_PASSWORD_LENGTH = 6
SESSION_TTL_SECONDS = 3600

# Tables whose rows get a server-side created_at, as the hosted schema does.
_TIMESTAMPED_TABLES = {"clients", "case_notes"}
_UNIQUE_ID_TABLES = {"profiles"}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _hash_password(password, salt_hex):
    salt = bytes.fromhex(salt_hex)
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PASSWORD_ITERATIONS).hex()


def _make_password(password):
    salt_hex = os.urandom(16).hex()
    return salt_hex, _hash_password(password, salt_hex)


def _verify_password(password, salt_hex, expected_hash):
    candidate = _hash_password(password, salt_hex)
    return hmac.compare_digest(candidate, expected_hash)


SAMPLE_CLIENTS = [
    {
        "id": "c1",
        "title": "mr",
        "surname": "Doe",
        "first_name": "John",
        "whatsapp_number": "+263771234567",
        "sex": "male",
        "date_of_birth": "1985-05-15",
        "id_number": "AB123456",
        "address": "123 Main St, Harare",
        "marital_status": "married",
        "phone": "+263771234567",
        "email": "john.doe@example.com",
        "case_status": "open",
        "agent_id": None,
        "date_joined": "2023-01-15",
        "form_number": "F12345",
        "policy_number": "POL-12345",
    },
    {
        "id": "c2",
        "title": "mrs",
        "surname": "Smith",
        "first_name": "Jane",
        "whatsapp_number": "+263772345678",
        "sex": "female",
        "date_of_birth": "1990-10-20",
        "id_number": "CD789012",
        "address": "456 Park Ave, Bulawayo",
        "marital_status": "single",
        "phone": "+263772345678",
        "email": "jane.smith@example.com",
        "case_status": "pending",
        "agent_id": None,
        "date_joined": "2023-02-20",
        "form_number": "F67890",
        "policy_number": "POL-67890",
    },
]

SAMPLE_CASES = [
    {
        "id": "case1",
        "client_id": "c1",
        "case_type": "Labour Dispute",
        "description": "Unfair dismissal from XYZ Company",
        "status": "open",
        "opened_at": "2023-03-10T12:00:00+00:00",
        "closed_at": None,
        "lawyer_id": None,
    },
    {
        "id": "case2",
        "client_id": "c2",
        "case_type": "Property Dispute",
        "description": "Land boundary dispute with neighbor",
        "status": "pending",
        "opened_at": "2023-02-15T10:30:00+00:00",
        "closed_at": None,
        "lawyer_id": None,
    },
]

SAMPLE_PAYMENTS = [
    {
        "id": "p1",
        "client_id": "c1",
        "case_id": "case1",
        "amount": 50.0,
        "payment_date": "2023-03-11T09:00:00+00:00",
        "payment_method": "ecocash",
        "status": "paid",
        "reference": "EC-1001",
    },
    {
        "id": "p2",
        "client_id": "c2",
        "case_id": "case2",
        "amount": 35.0,
        "payment_date": "2023-03-20T09:00:00+00:00",
        "payment_method": "bank",
        "status": "pending",
        "reference": "BT-2044",
    },
]


class _DemoSubscription(Subscription):
    def __init__(self, backend: "DemoBackend", callback: AuthCallback):
        self._backend = backend
        self.callback = callback

    def unsubscribe(self) -> None:
        self._backend._remove_listener(self)


def _matches(row: Mapping[str, Any], filters: Filters) -> bool:
    return all(row.get(k) == v for k, v in (filters or {}).items())


class DemoBackend(Backend):
    """Auth and tables held in process memory, emitting auth events synchronously.

    One instance tracks one signed-in session, so each browser session gets its own.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._accounts: Dict[str, Dict[str, Any]] = {}
        self._tables: Dict[str, List[Dict[str, Any]]] = {}
        self._session: Optional[AuthSession] = None
        self._listeners: List[_DemoSubscription] = []

    @classmethod
    def with_sample_data(cls) -> "DemoBackend":
        backend = cls()
        backend._tables["clients"] = copy.deepcopy(SAMPLE_CLIENTS)
        backend._tables["cases"] = copy.deepcopy(SAMPLE_CASES)
        backend._tables["payments"] = copy.deepcopy(SAMPLE_PAYMENTS)
        return backend

    # --- auth ---
    def _emit(self, event: str, session: Optional[AuthSession]) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for sub in listeners:
            sub.callback(event, session)

    def _remove_listener(self, sub: _DemoSubscription) -> None:
        with self._lock:
            if sub in self._listeners:
                self._listeners.remove(sub)

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def get_current_session(self) -> Optional[AuthSession]:
        with self._lock:
            return self._session

    def on_auth_state_change(self, callback: AuthCallback) -> Subscription:
        sub = _DemoSubscription(self, callback)
        with self._lock:
            self._listeners.append(sub)
        return sub

    def _create_account(self, email: str, password: str, metadata: Mapping[str, Any]) -> Account:
        email = email.strip().lower()
        if not email or "@" not in email:
            raise AuthBackendError("Unable to validate email address: invalid format")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise AuthBackendError(f"Password should be at least {MIN_PASSWORD_LENGTH} characters.")
        with self._lock:
            if email in self._accounts:
                raise AuthBackendError("User already registered")
            salt_hex, pw_hash = _make_password(password)
            account = Account(id=str(uuid.uuid4()), email=email)
            self._accounts[email] = {
                "account": account,
                "password_salt": salt_hex,
                "password_hash": pw_hash,
                "metadata": dict(metadata),
            }
        return account

    def _start_session(self, account: Account) -> AuthSession:
        session = AuthSession(
            account=account,
            access_token=secrets.token_urlsafe(32),
            refresh_token=secrets.token_urlsafe(32),
            expires_at=int(datetime.now(timezone.utc).timestamp()) + SESSION_TTL_SECONDS,
        )
        with self._lock:
            self._session = session
        self._emit("SIGNED_IN", session)
        return session

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        with self._lock:
            record = self._accounts.get((email or "").strip().lower())
        if record is None or not _verify_password(password or "", record["password_salt"], record["password_hash"]):
            raise AuthBackendError("Invalid login credentials")
        return self._start_session(record["account"])

    def sign_up(self, email: str, password: str, metadata: Mapping[str, Any]) -> Optional[Account]:
        # Mirrors a hosted project with email confirmation disabled: sign-up signs in.
        account = self._create_account(email, password, metadata)
        self._start_session(account)
        return account

    def sign_out(self) -> None:
        with self._lock:
            had_session = self._session is not None
            self._session = None
        if had_session:
            self._emit("SIGNED_OUT", None)

    def provision_account(self, email: str, password: str, metadata: Mapping[str, Any]) -> Account:
        return self._create_account(email, password, metadata)

    # --- tables ---
    def select(self, table, filters=None, order_by=None, descending=False, columns="*") -> List[Dict[str, Any]]:
        with self._lock:
            rows = [copy.deepcopy(r) for r in self._tables.get(table, []) if _matches(r, filters)]
        if order_by:
            present = [r for r in rows if r.get(order_by) is not None]
            missing = [r for r in rows if r.get(order_by) is None]
            present.sort(key=lambda r: r[order_by], reverse=descending)
            rows = present + missing
        return rows

    def insert(self, table, rows) -> List[Dict[str, Any]]:
        batch = [dict(r) for r in rows] if isinstance(rows, list) else [dict(rows)]
        stored = []
        with self._lock:
            existing = self._tables.setdefault(table, [])
            for row in batch:
                row.setdefault("id", str(uuid.uuid4()))
                if table in _TIMESTAMPED_TABLES:
                    row.setdefault("created_at", _now_iso())
                if table in _UNIQUE_ID_TABLES and any(r["id"] == row["id"] for r in existing):
                    raise BackendError(f'duplicate key value violates unique constraint "{table}_pkey"')
                stored.append(row)
            existing.extend(stored)
            return copy.deepcopy(stored)

    def update(self, table, values, filters) -> List[Dict[str, Any]]:
        changed = []
        with self._lock:
            for row in self._tables.get(table, []):
                if _matches(row, filters):
                    row.update(values)
                    changed.append(copy.deepcopy(row))
        return changed

    def delete(self, table, filters) -> None:
        with self._lock:
            rows = self._tables.get(table, [])
            self._tables[table] = [r for r in rows if not _matches(r, filters)]

    def count(self, table, filters=None) -> int:
        with self._lock:
            return sum(1 for r in self._tables.get(table, []) if _matches(r, filters))
