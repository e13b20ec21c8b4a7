from datetime import date

import streamlit as st

import ui
from infrastructure.backend.base import BackendError
from services import client_service, payment_service, reminder_service
from use_cases.domain_models import PaymentStatus, validate_payment_form

PAYMENT_METHODS = ["EFT", "Cash", "Debit order", "Card"]


def render_payments(store, ctx):
    st.title("Payments")
    try:
        df = payment_service.payments_frame(payment_service.list_payments(ctx))
    except BackendError:
        st.error("Payments could not be loaded.")
        return

    tab_list, tab_record, tab_pending = st.tabs(["All payments", "Record payment", "Pending"])

    with tab_list:
        c1, c2 = st.columns([3, 1])
        query = c1.text_input("Search", placeholder="Client, reference or method")
        status = c2.selectbox("Status", ["all"] + [s.value for s in PaymentStatus])
        filtered = payment_service.filter_payments(df, query, status)
        selected = ui.render_aggrid(
            filtered, height=420, pagination=True, currency_columns=("amount",),
            hidden_columns=("id", "client_id", "case_id"), selectable=True, key="payments_grid",
        )
        if selected:
            statuses = [s.value for s in PaymentStatus]
            s1, s2 = st.columns([3, 1])
            new_status = s1.selectbox(
                f"Status of {selected.get('reference')}", statuses,
                index=statuses.index(selected["status"]) if selected.get("status") in statuses else 0,
            )
            if s2.button("Update", disabled=new_status == selected.get("status")):
                try:
                    payment_service.update_payment_status(ctx, selected["id"], new_status)
                    st.rerun()
                except BackendError:
                    pass

    with tab_record:
        _render_record_form(ctx)

    with tab_pending:
        summary = payment_service.pending_payment_summary(ctx)
        ui.render_aggrid(summary, height=300, currency_columns=("pending_amount",), hidden_columns=("client_id",))
        if st.button("📨 Send reminder to Telegram", disabled=summary.empty):
            reminder_service.send_payment_reminders(ctx)
            st.rerun()


def _render_record_form(ctx):
    try:
        clients = {c["id"]: c for c in client_service.list_clients(ctx)}
    except BackendError:
        return
    with st.form("record_payment_form", clear_on_submit=True):
        client_id = st.selectbox(
            "Client *", [None] + list(clients),
            format_func=lambda cid: "Select a client" if cid is None else client_service.client_label(clients[cid]),
        )
        c1, c2 = st.columns(2)
        data = {
            "client_id": client_id,
            "amount": c1.number_input("Amount *", min_value=0.0, step=10.0),
            "payment_method": c2.selectbox("Method *", PAYMENT_METHODS),
            "reference": c1.text_input("Reference *"),
            "payment_date": c2.date_input("Payment date", value=date.today()).isoformat(),
            "status": st.selectbox("Status", [s.value for s in PaymentStatus], index=1),
        }
        submitted = st.form_submit_button("Record payment", type="primary")
    if not submitted:
        return
    problems = validate_payment_form(data)
    if problems:
        st.error("\n".join(problems))
        return
    try:
        payment_service.record_payment(ctx, data)
    except BackendError:
        return
    st.rerun()
