from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import httpx
import pytest
from supabase import AuthError, PostgrestAPIError

import auth
from infrastructure.backend.base import AuthBackendError, BackendError
from infrastructure.backend.supabase_backend import SupabaseBackend, to_auth_session
from use_cases.session_store import SessionStore

from conftest import RecordingNotifier


def _session(user_id="u1", email="u1@test.com"):
    return SimpleNamespace(
        user=SimpleNamespace(id=user_id, email=email),
        access_token="access",
        refresh_token="refresh",
        expires_at=1700000000,
    )


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def backend(client):
    return SupabaseBackend("https://project.supabase.co", "anon", client=client)


def test_to_auth_session_maps_fields():
    session = to_auth_session(_session())
    assert session.account.id == "u1"
    assert session.access_token == "access"
    assert to_auth_session(None) is None


def test_sign_in_maps_auth_error(backend, client):
    client.auth.sign_in_with_password.side_effect = AuthError("Invalid login credentials", None)
    with pytest.raises(AuthBackendError) as excinfo:
        backend.sign_in_with_password("a@test.com", "bad")
    assert excinfo.value.message == "Invalid login credentials"


def test_sign_up_passes_metadata(backend, client):
    client.auth.sign_up.return_value = SimpleNamespace(user=SimpleNamespace(id="u9", email="n@test.com"), session=None)
    account = backend.sign_up("n@test.com", "secret123", {"role": "agent"})
    assert account.id == "u9"
    sent = client.auth.sign_up.call_args.args[0]
    assert sent["options"]["data"] == {"role": "agent"}


def test_auth_events_are_relayed_as_domain_sessions(backend, client):
    received = []
    backend.on_auth_state_change(lambda event, session: received.append((event, session)))
    relay = client.auth.on_auth_state_change.call_args.args[0]

    relay("SIGNED_IN", _session())
    relay("SIGNED_OUT", None)

    assert received[0][0] == "SIGNED_IN"
    assert received[0][1].account.email == "u1@test.com"
    assert received[1] == ("SIGNED_OUT", None)


def test_provision_requires_service_role_key(backend):
    with pytest.raises(AuthBackendError, match="SUPABASE_SERVICE_ROLE_KEY"):
        backend.provision_account("n@test.com", "secret123", {})


def test_provision_uses_admin_client(client):
    admin = MagicMock()
    admin.auth.admin.create_user.return_value = SimpleNamespace(user=SimpleNamespace(id="u5", email="n@test.com"))
    backend = SupabaseBackend("https://project.supabase.co", "anon", service_role_key="service", client=client)
    with patch("infrastructure.backend.supabase_backend.create_client", return_value=admin) as mock_create:
        account = backend.provision_account("n@test.com", "secret123", {"role": "accountant"})
    assert account.id == "u5"
    assert mock_create.call_args.args[:2] == ("https://project.supabase.co", "service")
    client.auth.sign_in_with_password.assert_not_called()


def test_select_applies_filters_and_order(backend, client):
    query = client.table.return_value.select.return_value
    query.eq.return_value = query
    query.is_.return_value = query
    query.order.return_value = query
    query.execute.return_value = SimpleNamespace(data=[{"id": "c1"}])

    rows = backend.select("clients", {"agent_id": "u1", "deleted_at": None}, order_by="surname")

    assert rows == [{"id": "c1"}]
    query.eq.assert_called_once_with("agent_id", "u1")
    query.is_.assert_called_once_with("deleted_at", "null")
    query.order.assert_called_once_with("surname", desc=False)


def test_postgrest_error_becomes_backend_error(backend, client):
    client.table.return_value.insert.return_value.execute.side_effect = PostgrestAPIError(
        {"message": "permission denied for table profiles", "code": "42501"}
    )
    with pytest.raises(BackendError, match="permission denied"):
        backend.insert("profiles", {"id": "u1"})


def test_count_uses_exact_count(backend, client):
    query = client.table.return_value.select.return_value
    query.execute.return_value = SimpleNamespace(data=[], count=7)
    assert backend.count("clients") == 7
    client.table.return_value.select.assert_called_with("id", count="exact")


def _refused():
    return httpx.ConnectError("[Errno 111] Connection refused")


def test_unreachable_auth_server_becomes_auth_backend_error(backend, client):
    client.auth.sign_in_with_password.side_effect = _refused()
    with pytest.raises(AuthBackendError, match="Connection refused"):
        backend.sign_in_with_password("a@test.com", "secret123")

    client.auth.get_session.side_effect = _refused()
    with pytest.raises(AuthBackendError):
        backend.get_current_session()

    client.auth.sign_out.side_effect = _refused()
    with pytest.raises(AuthBackendError):
        backend.sign_out()


def test_unreachable_database_becomes_backend_error(backend, client):
    table = client.table.return_value
    table.select.return_value.execute.side_effect = _refused()
    table.insert.return_value.execute.side_effect = httpx.ReadTimeout("timed out")

    with pytest.raises(BackendError, match="Connection refused"):
        backend.select("clients")
    with pytest.raises(BackendError, match="timed out"):
        backend.insert("clients", {"first_name": "Thabo"})
    with pytest.raises(BackendError):
        backend.count("clients")


def test_sign_in_while_offline_reports_failure(backend, client):
    client.auth.get_session.return_value = None
    client.auth.sign_in_with_password.side_effect = _refused()
    store = SessionStore(backend)
    store.initialize()
    notifier = RecordingNotifier()
    ops = auth.AuthOperations(backend, store, notifier)

    with pytest.raises(auth.InvalidCredentialsError):
        ops.sign_in("agent@test.com", "secret123")

    assert notifier.messages[-1][:2] == ("error", "Authentication failed")
    assert store.user is None
    assert store.loading is False


def test_startup_with_unreachable_server_is_signed_out(backend, client):
    client.auth.get_session.side_effect = _refused()
    store = SessionStore(backend)

    store.initialize()

    assert store.user is None
    assert store.loading is False


def test_sign_out_while_offline_clears_local_session(backend, client):
    client.auth.get_session.return_value = None
    query = client.table.return_value.select.return_value
    query.eq.return_value = query
    query.execute.return_value = SimpleNamespace(data=[])
    store = SessionStore(backend)
    store.initialize()
    relay = client.auth.on_auth_state_change.call_args.args[0]
    relay("SIGNED_IN", _session())
    assert store.user.id == "u1"

    client.auth.sign_out.side_effect = _refused()
    notifier = RecordingNotifier()
    auth.AuthOperations(backend, store, notifier).sign_out()

    assert store.user is None
    assert notifier.messages[-1][:2] == ("error", "Error signing out")
    assert store.loading is False
