import logging

import streamlit as st

from services.query_cache import QueryCache

log = logging.getLogger(__name__)

"""
SESSION STATE CONTRACT

Streamlit session state is the provider boundary for everything scoped to one
browser session. Nothing here is shared between browser sessions.

backend: Backend | None
    backend client owning this browser session's auth session
    default: None
    owner: bootstrap

backend_fingerprint: str | None
    settings fingerprint the backend was built from
    default: None
    owner: bootstrap

session_store: SessionStore | None
    current identity and loading flag
    default: None
    owner: bootstrap / session_manager

nav_route: str
    path of the page being shown
    default: "/dashboard"
    owner: auth_flow / views

redirect_from: str | None
    protected path the user asked for before being sent to sign in
    default: None
    owner: auth_flow

view_cache: QueryCache
    cached query results for data pages
    default: empty cache
    owner: services

pending_notifications: list
    toasts queued for the next render
    default: []
    owner: ui
"""

DEFAULT_ROUTE = "/dashboard"


def init_session_state():
    if "backend" not in st.session_state:
        st.session_state.backend = None
    if "backend_fingerprint" not in st.session_state:
        st.session_state.backend_fingerprint = None
    if "session_store" not in st.session_state:
        st.session_state.session_store = None
    if "nav_route" not in st.session_state:
        st.session_state.nav_route = DEFAULT_ROUTE
    if "redirect_from" not in st.session_state:
        st.session_state.redirect_from = None
    if "view_cache" not in st.session_state:
        st.session_state.view_cache = QueryCache()
    if "pending_notifications" not in st.session_state:
        st.session_state.pending_notifications = []


def get_store():
    return st.session_state.get("session_store")


def get_backend():
    return st.session_state.get("backend")


def get_cache() -> QueryCache:
    cache = st.session_state.get("view_cache")
    if cache is None:
        cache = QueryCache()
        st.session_state.view_cache = cache
    return cache


def navigate(path: str):
    st.session_state.nav_route = path
    st.query_params["page"] = path.lstrip("/")


def teardown_session():
    """Unsubscribe the auth listener and drop everything bound to the backend."""
    store = st.session_state.get("session_store")
    if store is not None:
        store.teardown()
    st.session_state.session_store = None
    st.session_state.backend = None
    st.session_state.backend_fingerprint = None
    st.session_state.view_cache = QueryCache()
    log.info("Session resources released")


def get_auth_ops(notifier):
    import auth

    return auth.AuthOperations(get_backend(), get_store(), notifier)


def get_data_context(notifier):
    from services.data_context import DataContext

    return DataContext(backend=get_backend(), notifier=notifier, cache=get_cache())
