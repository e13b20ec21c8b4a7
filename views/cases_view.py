import pandas as pd
import streamlit as st

import ui
from infrastructure.backend.base import BackendError, RecordNotFoundError
from services import case_service, client_service, payment_service
from use_cases.domain_models import CaseStatus
from use_cases.route_flow import Route
from use_cases.session_models import Role, has_role
from utils import session_manager

CASE_TYPES = ["Labour", "Civil", "Criminal", "Family", "Other"]
CASE_COLUMNS = ["id", "case_type", "status", "client_name", "opened_at", "closed_at"]


def _client_lookup(store, ctx):
    agent_id = store.user.id if has_role(store.profile, Role.AGENT) else None
    return {c["id"]: c for c in client_service.list_clients(ctx, agent_id=agent_id)}


def render_cases(store, ctx):
    st.title("Cases")
    if st.button("➕ Open case", type="primary"):
        session_manager.navigate(Route.CASE_NEW.value)
        st.rerun()

    try:
        clients = _client_lookup(store, ctx)
        cases = case_service.list_cases(ctx)
    except BackendError:
        st.error("Cases could not be loaded.")
        return

    if has_role(store.profile, Role.AGENT):
        cases = [c for c in cases if c.get("client_id") in clients]

    status = st.selectbox("Status", ["all"] + [s.value for s in CaseStatus])
    rows = [
        {**c, "client_name": client_service.client_label(clients[c["client_id"]]) if c.get("client_id") in clients else ""}
        for c in cases
        if status == "all" or c.get("status") == status
    ]
    df = pd.DataFrame(rows, columns=CASE_COLUMNS)
    selected = ui.render_aggrid(df, height=380, pagination=True, hidden_columns=("id",), selectable=True, key="cases_grid")
    if selected:
        _render_case_detail(store, ctx, selected["id"])


def _render_case_detail(store, ctx, case_id):
    try:
        case = case_service.get_case(ctx, case_id)
        notes = case_service.list_case_notes(ctx, case_id)
    except RecordNotFoundError:
        st.info("This case no longer exists.")
        return
    except BackendError:
        return

    client = case.get("client") or {}
    st.subheader(f"{case.get('case_type') or 'Case'} · {client.get('first_name', '')} {client.get('surname', '')}")
    st.write(case.get("description") or "")

    statuses = [s.value for s in CaseStatus]
    c1, c2 = st.columns([3, 1])
    new_status = c1.selectbox("Status", statuses, index=statuses.index(case["status"]) if case.get("status") in statuses else 0)
    if c2.button("Update status", disabled=new_status == case.get("status")):
        try:
            case_service.update_case_status(ctx, case_id, new_status, author_id=store.user.id)
            st.rerun()
        except BackendError:
            pass

    payments = payment_service.payments_frame(case.get("payments") or [])
    st.caption(f"Payments: {len(payments)} · total {payment_service.format_currency(float(payments['amount'].sum()))}")

    st.markdown("#### Notes")
    with st.form(f"note_{case_id}", clear_on_submit=True):
        content = st.text_area("Add a note")
        if st.form_submit_button("Add note") and content.strip():
            try:
                case_service.add_case_note(ctx, case_id, content.strip(), store.user.id)
                st.rerun()
            except BackendError:
                pass
    for note in notes:
        st.markdown(f"**{note['author_name']}** · {note.get('created_at') or ''}  \n{note.get('content')}")


def render_new_case(store, ctx):
    st.title("Open case")
    try:
        clients = _client_lookup(store, ctx)
    except BackendError:
        st.error("Clients could not be loaded.")
        return
    if not clients:
        st.info("Register a client before opening a case.")
        return

    with st.form("new_case_form"):
        client_id = st.selectbox(
            "Client *", list(clients), format_func=lambda cid: client_service.client_label(clients[cid]),
        )
        case_type = st.selectbox("Case type *", CASE_TYPES)
        description = st.text_area("Description *")
        submitted = st.form_submit_button("Open case", type="primary")

    if not submitted:
        return
    if not description.strip():
        st.error("Description is required")
        return
    try:
        case_service.create_case(ctx, {"client_id": client_id, "case_type": case_type, "description": description.strip()})
    except BackendError:
        return
    session_manager.navigate(Route.CASES.value)
    st.rerun()
