import streamlit as st

import ui
from infrastructure.backend.base import BackendError, RecordNotFoundError
from services import case_service, client_service
from use_cases.domain_models import validate_client_form
from use_cases.route_flow import Route
from use_cases.session_models import Role, has_role
from utils import session_manager

TITLES = ["", "Mr", "Mrs", "Ms", "Dr"]
MAX_DEPENDANTS = 4


def _scope(store):
    """Agents work with their own clients; admins see everyone."""
    return store.user.id if has_role(store.profile, Role.AGENT) else None


def render_clients(store, ctx):
    st.title("Clients")
    if st.button("➕ Register client", type="primary"):
        session_manager.navigate(Route.CLIENT_NEW.value)
        st.rerun()

    try:
        rows = client_service.list_clients(ctx, agent_id=_scope(store))
    except BackendError:
        st.error("Clients could not be loaded.")
        return

    query = st.text_input("Search", placeholder="Name, ID number, phone or email")
    df = client_service.clients_frame(rows)
    if query:
        q = query.strip().lower()
        mask = df.drop(columns=["id"]).fillna("").astype(str).apply(
            lambda col: col.str.lower().str.contains(q, regex=False)
        ).any(axis=1)
        df = df[mask]

    selected = ui.render_aggrid(df, height=420, pagination=True, hidden_columns=("id",), selectable=True, key="clients_grid")
    if selected:
        _render_client_detail(ctx, selected["id"])


def _render_client_detail(ctx, client_id):
    try:
        client = client_service.get_client(ctx, client_id)
        cases = case_service.list_cases(ctx, client_id=client_id)
    except RecordNotFoundError:
        st.info("This client no longer exists.")
        return
    except BackendError:
        return

    st.subheader(client_service.client_label(client))
    with st.form(f"edit_client_{client_id}"):
        c1, c2 = st.columns(2)
        updates = {
            "first_name": c1.text_input("First name", client.get("first_name") or ""),
            "surname": c2.text_input("Surname", client.get("surname") or ""),
            "phone": c1.text_input("Phone", client.get("phone") or ""),
            "email": c2.text_input("Email", client.get("email") or ""),
            "address": st.text_input("Address", client.get("address") or ""),
            "id_number": client.get("id_number"),
        }
        saved = st.form_submit_button("Save changes")
    if saved:
        problems = validate_client_form(updates)
        if problems:
            st.error("\n".join(problems))
        else:
            try:
                client_service.update_client(ctx, client_id, updates)
                st.rerun()
            except BackendError:
                pass

    st.caption(f"{len(cases)} case(s)")
    for case in cases:
        st.markdown(f"- **{case.get('case_type') or 'Case'}**: {case.get('status')}")

    with st.expander("Delete client"):
        if st.button("Delete permanently", key=f"delete_{client_id}"):
            try:
                client_service.delete_client(ctx, client_id)
                st.rerun()
            except BackendError:
                pass


def render_new_client(store, ctx):
    st.title("Register client")
    with st.form("new_client_form"):
        st.subheader("Personal details")
        c1, c2, c3 = st.columns(3)
        data = {
            "title": c1.selectbox("Title", TITLES),
            "first_name": c2.text_input("First name *"),
            "surname": c3.text_input("Surname *"),
            "id_number": c1.text_input("ID number *"),
            "sex": c2.selectbox("Sex", ["", "Male", "Female"]),
            "date_of_birth": c3.date_input("Date of birth", value=None),
            "phone": c1.text_input("Phone *"),
            "whatsapp_number": c2.text_input("WhatsApp"),
            "email": c3.text_input("Email *"),
            "marital_status": c1.selectbox("Marital status", ["", "Single", "Married", "Divorced", "Widowed"]),
            "form_number": c2.text_input("Form number"),
            "policy_number": c3.text_input("Policy number"),
        }
        data["address"] = st.text_area("Address *")

        st.subheader("Next of kin")
        k1, k2, k3, k4 = st.columns(4)
        next_of_kin = {
            "name": k1.text_input("Name", key="nok_name"),
            "relationship": k2.text_input("Relationship", key="nok_rel"),
            "phone": k3.text_input("Phone", key="nok_phone"),
            "email": k4.text_input("Email", key="nok_email"),
        }

        st.subheader("Dependants")
        dependants = []
        for i in range(MAX_DEPENDANTS):
            d1, d2, d3 = st.columns([3, 2, 1])
            dependants.append({
                "name": d1.text_input("Name", key=f"dep_name_{i}"),
                "relationship": d2.text_input("Relationship", key=f"dep_rel_{i}"),
                "age": d3.number_input("Age", min_value=0, max_value=120, step=1, key=f"dep_age_{i}"),
            })
        submitted = st.form_submit_button("Register client", type="primary")

    if not submitted:
        return
    problems = validate_client_form(data)
    if problems:
        st.error("\n".join(problems))
        return
    if data["date_of_birth"] is not None:
        data["date_of_birth"] = data["date_of_birth"].isoformat()
    data["agent_id"] = store.user.id
    try:
        client_service.register_client(ctx, data, next_of_kin=next_of_kin, dependants=dependants)
    except BackendError:
        return
    session_manager.navigate(Route.CLIENTS.value)
    st.rerun()
