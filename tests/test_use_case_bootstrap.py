from unittest.mock import patch

import streamlit as st

from infrastructure.backend.demo_backend import DemoBackend
from infrastructure.settings import BackendSettings, ConfigurationError
from use_cases import bootstrap

DEMO = BackendSettings(url=None, anon_key=None, demo_mode=True)
SECRETS = {"DEMO_ADMIN_EMAIL": "boss@equalaccess.test", "DEMO_ADMIN_PASSWORD": "secret123"}


@patch("use_cases.bootstrap.get_secret", return_value=None)
@patch("use_cases.bootstrap.load_settings", return_value=DEMO)
def test_run_startup_wires_backend_and_store(_mock_settings, _mock_secret):
    result = bootstrap.run_startup()

    assert result.status == "CONTINUE"
    assert isinstance(st.session_state.backend, DemoBackend)
    store = st.session_state.session_store
    assert store.loading is False
    assert store.is_subscribed is True
    assert result.planned_steps.index("create_backend") < result.planned_steps.index("initialize_session_store")


@patch("use_cases.bootstrap.get_secret", return_value=None)
@patch("use_cases.bootstrap.load_settings", return_value=DEMO)
def test_run_startup_is_idempotent_per_session(_mock_settings, _mock_secret):
    bootstrap.run_startup()
    backend = st.session_state.backend
    store = st.session_state.session_store

    result = bootstrap.run_startup()

    assert st.session_state.backend is backend
    assert st.session_state.session_store is store
    assert "create_backend" not in result.planned_steps
    assert backend.listener_count == 1


@patch("use_cases.bootstrap.get_secret", return_value=None)
def test_run_startup_reconnects_when_settings_change(_mock_secret):
    with patch("use_cases.bootstrap.load_settings", return_value=DEMO):
        bootstrap.run_startup()
    old_backend = st.session_state.backend

    st.session_state.backend_fingerprint = "supabase:https://old.example"
    with patch("use_cases.bootstrap.load_settings", return_value=DEMO):
        result = bootstrap.run_startup()

    assert "teardown_stale_backend" in result.planned_steps
    assert old_backend.listener_count == 0
    assert st.session_state.backend is not old_backend


@patch("use_cases.bootstrap.load_settings", side_effect=ConfigurationError("SUPABASE_URL missing"))
def test_run_startup_stops_on_configuration_error(_mock_settings):
    result = bootstrap.run_startup()

    assert result.status == "STOP"
    assert "SUPABASE_URL" in result.error
    assert st.session_state.backend is None


@patch("use_cases.bootstrap.get_secret", side_effect=SECRETS.get)
@patch("use_cases.bootstrap.load_settings", return_value=DEMO)
def test_demo_admin_is_seeded_and_can_sign_in(_mock_settings, _mock_secret):
    result = bootstrap.run_startup()

    assert "bootstrap_admin" in result.planned_steps
    backend = st.session_state.backend
    backend.sign_in_with_password("boss@equalaccess.test", "secret123")
    assert st.session_state.session_store.profile.role.value == "admin"


@patch("use_cases.bootstrap.get_secret", side_effect=SECRETS.get)
def test_bootstrap_admin_twice_is_harmless(_mock_secret):
    backend = DemoBackend()
    assert bootstrap.bootstrap_admin(backend) is True
    assert bootstrap.bootstrap_admin(backend) is False
    assert len(backend.select("profiles")) == 1
