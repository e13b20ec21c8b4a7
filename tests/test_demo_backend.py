import pytest

from infrastructure.backend import create_backend
from infrastructure.backend.base import AuthBackendError, BackendError
from infrastructure.backend.demo_backend import DemoBackend
from infrastructure.settings import BackendSettings


def test_sample_data_is_isolated_per_instance():
    a = DemoBackend.with_sample_data()
    b = DemoBackend.with_sample_data()
    a.update("clients", {"first_name": "Changed"}, {"id": "c1"})
    assert b.select_one("clients", {"id": "c1"})["first_name"] == "John"


def test_sign_up_emits_signed_in_and_rejects_duplicates():
    backend = DemoBackend()
    events = []
    backend.on_auth_state_change(lambda event, session: events.append((event, session.account.email)))

    backend.sign_up("New@Test.com", "secret123", {"role": "agent"})

    assert events == [("SIGNED_IN", "new@test.com")]
    with pytest.raises(AuthBackendError, match="already registered"):
        backend.sign_up("new@test.com", "secret123", {})


def test_short_password_is_rejected():
    with pytest.raises(AuthBackendError, match="at least 6"):
        DemoBackend().sign_up("a@test.com", "123", {})


def test_sign_in_checks_password():
    backend = DemoBackend()
    backend.provision_account("a@test.com", "secret123", {})
    with pytest.raises(AuthBackendError, match="Invalid login credentials"):
        backend.sign_in_with_password("a@test.com", "nope-nope")
    assert backend.get_current_session() is None
    assert backend.sign_in_with_password("a@test.com", "secret123").account.email == "a@test.com"


def test_provision_does_not_touch_current_session():
    backend = DemoBackend()
    backend.sign_up("admin@test.com", "secret123", {})
    backend.provision_account("other@test.com", "secret123", {})
    assert backend.get_current_session().account.email == "admin@test.com"


def test_sign_out_emits_only_with_a_session():
    backend = DemoBackend()
    events = []
    backend.on_auth_state_change(lambda event, session: events.append(event))
    backend.sign_out()
    backend.sign_up("a@test.com", "secret123", {})
    backend.sign_out()
    assert events == ["SIGNED_IN", "SIGNED_OUT"]


def test_unsubscribe_stops_events():
    backend = DemoBackend()
    events = []
    sub = backend.on_auth_state_change(lambda event, session: events.append(event))
    sub.unsubscribe()
    sub.unsubscribe()
    backend.sign_up("a@test.com", "secret123", {})
    assert events == []
    assert backend.listener_count == 0


def test_select_orders_and_filters():
    backend = DemoBackend.with_sample_data()
    cases = backend.select("cases", order_by="opened_at", descending=True)
    assert [c["id"] for c in cases] == ["case1", "case2"]
    assert [p["id"] for p in backend.select("payments", {"status": "pending"})] == ["p2"]


def test_profiles_reject_duplicate_ids():
    backend = DemoBackend()
    backend.insert("profiles", {"id": "u1", "role": "agent"})
    with pytest.raises(BackendError, match="duplicate key"):
        backend.insert("profiles", {"id": "u1", "role": "admin"})


def test_insert_list_update_delete_count():
    backend = DemoBackend()
    rows = backend.insert("dependants", [{"name": "A"}, {"name": "B"}])
    assert len(rows) == 2 and all(r["id"] for r in rows)
    assert backend.update("dependants", {"name": "C"}, {"id": rows[0]["id"]})[0]["name"] == "C"
    backend.delete("dependants", {"id": rows[1]["id"]})
    assert backend.count("dependants") == 1
    assert backend.update("dependants", {"name": "D"}, {"id": "missing"}) == []


def test_demo_mode_gives_each_session_its_own_backend():
    settings = BackendSettings(None, None, demo_mode=True)
    first = create_backend(settings)
    second = create_backend(settings)
    assert first is not second

    first.sign_up("agent@test.com", "secret123", {"role": "agent"})

    assert first.get_current_session().account.email == "agent@test.com"
    assert second.get_current_session() is None
    with pytest.raises(AuthBackendError):
        second.sign_in_with_password("agent@test.com", "secret123")
