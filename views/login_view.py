import logging

import streamlit as st

import auth
import ui
from use_cases import auth_flow
from use_cases.session_models import Role
from utils import session_manager

log = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def _finish_sign_in():
    store = session_manager.get_store()
    settled = store.wait_until_settled(lambda s: s.user is not None)
    if not settled:
        log.warning("Session did not settle after sign in")
        st.warning("Signed in, but your session is still loading. Refresh in a moment.")
        return
    session_manager.navigate(auth_flow.consume_redirect_target().value)
    st.rerun()


def render_auth_screen():
    st.title(f"⚖️ {auth.APP_NAME}")
    st.caption("Case management for legal-aid agents, accountants and administrators.")
    notifier = ui.StreamlitNotifier()
    ops = session_manager.get_auth_ops(notifier)

    tab_login, tab_register = st.tabs(["Sign in", "Register"])

    with tab_login:
        with st.form("login_form", clear_on_submit=False):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Sign in", type="primary")
        if submitted:
            if not email.strip() or not password:
                st.error("Enter your email and password.")
            else:
                try:
                    ops.sign_in(email.strip(), password)
                except auth.InvalidCredentialsError as e:
                    st.error(str(e))
                else:
                    _finish_sign_in()

    with tab_register:
        st.caption("Self-registration creates an agent account. Accountant and admin accounts are created by an administrator.")
        with st.form("register_form", clear_on_submit=False):
            c1, c2 = st.columns(2)
            first_name = c1.text_input("First name *")
            last_name = c2.text_input("Last name *")
            email = st.text_input("Email *")
            password = st.text_input("Password *", type="password")
            password_confirm = st.text_input("Confirm password *", type="password")
            submitted = st.form_submit_button("Create account")
        if submitted:
            if not all([first_name.strip(), last_name.strip(), email.strip(), password, password_confirm]):
                st.error("Fill in all required fields.")
            elif password != password_confirm:
                st.error("Passwords do not match.")
            elif len(password) < MIN_PASSWORD_LENGTH:
                st.error(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
            else:
                try:
                    ops.sign_up(email.strip(), password, first_name.strip(), last_name.strip(), Role.AGENT)
                except auth.AuthOperationError as e:
                    st.error(str(e))
                else:
                    if session_manager.get_store().user is None:
                        st.info("Check your inbox to confirm your email, then sign in.")
                    else:
                        _finish_sign_in()
