import logging
from datetime import datetime, timezone

import sentry_sdk
import streamlit as st

from infrastructure.observability import setup_observability
setup_observability()

import auth
import ui
from use_cases import auth_flow, bootstrap
from use_cases.route_flow import ROUTE_LABELS, Route, navigation_for, select_route
from utils import session_manager
from views import admin_view, cases_view, clients_view, dashboard_view, login_view, payments_view, settings_view

log = logging.getLogger(__name__)

st.set_page_config(page_title=auth.APP_NAME, page_icon="⚖️", layout="wide", initial_sidebar_state="expanded")

# Health Check (Basic load-balancer heartbeat)
if st.query_params.get("health") == "1":
    st.write({"status": "ok", "version": "1.0", "time": datetime.now(timezone.utc).isoformat()})
    st.stop()

ui.setup_style()

# --- STARTUP ORCHESTRATION ---
startup_result = bootstrap.run_startup()
if startup_result.status == "STOP":
    st.error(f"🚨 {startup_result.error}")
    st.stop()

store = session_manager.get_store()
notifier = ui.StreamlitNotifier()
ops = session_manager.get_auth_ops(notifier)
ctx = session_manager.get_data_context(notifier)

# --- ROUTING ---
requested = st.query_params.get("page")
route = select_route(requested if requested else st.session_state.nav_route)
if route.value != st.session_state.nav_route:
    st.session_state.nav_route = route.value

result = auth_flow.guard_route(route)
if result.status == "LOADING":
    ui.show_loading()
    st.stop()
if result.status == "REDIRECT":
    st.rerun()

if route == Route.SIGN_IN:
    if store.user is not None:
        session_manager.navigate(auth_flow.consume_redirect_target().value)
        st.rerun()
    login_view.render_auth_screen()
    ui.flush_notifications()
    st.stop()

if sentry_sdk.get_client().is_active():
    sentry_sdk.set_user({"id": store.user.id, "role": store.profile.role.value if store.profile else None})
    sentry_sdk.set_tag("app.route", route.value)

# --- SIDEBAR ---
with st.sidebar:
    st.markdown(f"## ⚖️ {auth.APP_NAME}")
    profile = store.profile
    st.caption(profile.full_name if profile else store.user.email)
    if profile:
        st.markdown(ui.role_badge(profile.role), unsafe_allow_html=True)
    st.divider()
    for item in navigation_for(profile):
        active = item == route or route.value.startswith(item.value + "/")
        if st.button(ROUTE_LABELS[item], key=f"nav_{item.name}", use_container_width=True,
                     type="primary" if active else "secondary"):
            session_manager.navigate(item.value)
            st.rerun()
    st.divider()
    if st.button("Sign out", key="nav_sign_out", use_container_width=True):
        ops.sign_out()
        session_manager.get_cache().clear()
        st.rerun()

# --- PAGES ---
if route == Route.DASHBOARD:
    dashboard_view.render_dashboard(store, ctx)
elif route == Route.CLIENTS:
    clients_view.render_clients(store, ctx)
elif route == Route.CLIENT_NEW:
    clients_view.render_new_client(store, ctx)
elif route == Route.CASES:
    cases_view.render_cases(store, ctx)
elif route == Route.CASE_NEW:
    cases_view.render_new_case(store, ctx)
elif route == Route.PAYMENTS:
    payments_view.render_payments(store, ctx)
elif route == Route.ADMIN_USERS:
    admin_view.render_admin_panel(store, ctx, ops)
elif route == Route.SETTINGS:
    settings_view.render_settings(store, ops)

ui.flush_notifications()
