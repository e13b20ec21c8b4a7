import plotly.express as px
import streamlit as st

import ui
from infrastructure.backend.base import BackendError
from services import dashboard_service, payment_service
from use_cases.session_models import Role, has_role


def render_dashboard(store, ctx):
    profile = store.profile
    name = profile.first_name if profile else store.user.email
    st.title(f"Welcome back, {name}")
    if profile is None:
        st.warning("Your account has no profile yet, so role-specific pages are hidden. Contact an administrator.")
    else:
        st.markdown(ui.role_badge(profile.role), unsafe_allow_html=True)

    agent_id = store.user.id if has_role(profile, Role.AGENT) else None
    try:
        stats = dashboard_service.dashboard_stats(ctx, agent_id=agent_id)
    except BackendError:
        st.error("Dashboard data is unavailable right now.")
        return

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Clients", stats.total_clients)
    c2.metric("Open cases", stats.active_cases)
    c3.metric("Pending payments", stats.pending_payments)
    c4.metric("Outstanding", payment_service.format_currency(stats.pending_amount))

    if has_role(profile, Role.AGENT):
        return

    payments = payment_service.payments_frame(payment_service.list_payments(ctx))
    if payments.empty:
        return
    by_status = payments.groupby("status", as_index=False)["amount"].sum()
    fig = px.pie(by_status, names="status", values="amount", hole=0.55, title="Payments by status")
    st.plotly_chart(ui.update_chart_layout(fig), use_container_width=True)
