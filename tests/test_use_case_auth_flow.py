from unittest.mock import patch

import streamlit as st

from use_cases import auth_flow
from use_cases.route_flow import Route
from use_cases.session_models import Role
from utils import session_manager

from conftest import add_staff


def _install(store):
    session_manager.init_session_state()
    st.session_state.session_store = store


@patch("use_cases.auth_flow.session_manager.navigate")
def test_guard_redirects_anonymous_user_and_remembers_route(mock_navigate, store):
    _install(store)

    result = auth_flow.guard_route(Route.CASES)

    assert result.status == "REDIRECT"
    assert result.route is Route.SIGN_IN
    assert st.session_state.redirect_from == "/cases"
    mock_navigate.assert_called_once_with("/signin")


@patch("use_cases.auth_flow.session_manager.navigate")
def test_guard_sends_wrong_role_to_dashboard(mock_navigate, store, backend):
    _install(store)
    add_staff(backend, "acc@test.com", Role.ACCOUNTANT)
    backend.sign_in_with_password("acc@test.com", "secret123")

    result = auth_flow.guard_route(Route.ADMIN_USERS)

    assert result.status == "REDIRECT"
    assert result.reason == "wrong_role"
    mock_navigate.assert_called_once_with("/dashboard")


@patch("use_cases.auth_flow.session_manager.navigate")
def test_guard_reports_loading_without_redirect(mock_navigate, store):
    _install(store)
    store.set_loading(True)

    result = auth_flow.guard_route(Route.PAYMENTS)

    assert result.status == "LOADING"
    mock_navigate.assert_not_called()


def test_guard_allows_matching_role(store, backend):
    _install(store)
    account = add_staff(backend, "acc@test.com", Role.ACCOUNTANT)
    backend.sign_in_with_password("acc@test.com", "secret123")

    result = auth_flow.guard_route(Route.PAYMENTS)

    assert result.status == "CONTINUE"
    assert result.user_id == account.id


def test_sign_in_route_is_public(store):
    _install(store)
    assert auth_flow.guard_route(Route.SIGN_IN).status == "CONTINUE"


def test_consume_redirect_target_is_single_use():
    session_manager.init_session_state()
    st.session_state.redirect_from = "/payments"

    assert auth_flow.consume_redirect_target() is Route.PAYMENTS
    assert auth_flow.consume_redirect_target() is Route.DASHBOARD


def test_consume_redirect_target_ignores_sign_in_and_unknown_paths():
    session_manager.init_session_state()
    st.session_state.redirect_from = "/signin"
    assert auth_flow.consume_redirect_target() is Route.DASHBOARD
    st.session_state.redirect_from = "/elsewhere"
    assert auth_flow.consume_redirect_target() is Route.DASHBOARD
