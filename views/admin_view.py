import pandas as pd
import streamlit as st

import auth
import ui
from infrastructure.backend.base import BackendError
from services import profile_service
from use_cases.domain_models import PROFILES_TABLE
from use_cases.session_models import Role

MIN_PASSWORD_LENGTH = 6


def render_admin_panel(store, ctx, ops):
    st.title("⚙️ User management")
    tab_users, tab_create = st.tabs(["👥 Staff", "➕ Create account"])

    with tab_users:
        try:
            profiles = profile_service.list_profiles(ctx)
        except BackendError:
            st.error("Users could not be loaded.")
        else:
            df = pd.DataFrame(
                [{"name": p.full_name, "email": p.email, "role": p.role.value} for p in profiles],
                columns=["name", "email", "role"],
            )
            st.caption(f"{len(df)} staff accounts")
            ui.render_aggrid(df, height=380, pagination=True)

    with tab_create:
        with st.form("create_user_form", clear_on_submit=True):
            c1, c2 = st.columns(2)
            first_name = c1.text_input("First name *")
            last_name = c2.text_input("Last name *")
            email = st.text_input("Email *")
            role = st.selectbox("Role *", [r.value for r in Role], format_func=str.capitalize)
            password = st.text_input("Temporary password *", type="password")
            submitted = st.form_submit_button("Create account", type="primary")
        if submitted:
            if not all([first_name.strip(), last_name.strip(), email.strip(), password]):
                st.error("Fill in all required fields.")
            elif len(password) < MIN_PASSWORD_LENGTH:
                st.error(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
            else:
                try:
                    profile = ops.create_user_account(email.strip(), password, first_name.strip(), last_name.strip(), role)
                except auth.AuthOperationError as e:
                    st.error(str(e))
                else:
                    if profile is not None:
                        ctx.cache.invalidate((PROFILES_TABLE,))
                        st.rerun()
