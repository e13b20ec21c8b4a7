import streamlit as st

import ui
from utils import session_manager


def render_settings(store, ops):
    st.title("Settings")
    profile = store.profile
    user = store.user

    st.subheader("Account")
    st.write(f"**Email:** {user.email}")
    if profile is not None:
        st.write(f"**Name:** {profile.full_name}")
        st.markdown(f"**Role:** {ui.role_badge(profile.role)}", unsafe_allow_html=True)
    else:
        st.info("No profile is linked to this account.")

    st.subheader("Session")
    c1, c2 = st.columns(2)
    if c1.button("🔄 Reload profile"):
        store.refresh_profile()
        session_manager.get_cache().clear()
        st.rerun()
    if c2.button("🔌 Reconnect"):
        # Next run rebuilds the backend and re-reads the stored session.
        session_manager.teardown_session()
        st.rerun()

    if st.button("Sign out", type="secondary"):
        ops.sign_out()
        session_manager.get_cache().clear()
        st.rerun()
