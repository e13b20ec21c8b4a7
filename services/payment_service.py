import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping

import pandas as pd

from infrastructure.backend.base import BackendError, RecordNotFoundError
from services.data_context import DataContext
from use_cases.domain_models import CLIENTS_TABLE, PAYMENT_FIELDS, PAYMENTS_TABLE, PaymentStatus, pick_fields

log = logging.getLogger(__name__)

PAYMENT_COLUMNS = [
    "id", "client_id", "case_id", "first_name", "surname",
    "amount", "payment_date", "payment_method", "status", "reference",
]


def list_payments(ctx: DataContext) -> List[Dict[str, Any]]:
    """Payments newest first, each carrying the client's first name and surname."""

    def _fetch():
        try:
            payments = ctx.backend.select(PAYMENTS_TABLE, order_by="payment_date", descending=True)
            clients = {c["id"]: c for c in ctx.backend.select(CLIENTS_TABLE)}
        except BackendError as e:
            ctx.fail("Failed to load payments", e)
            raise
        for p in payments:
            client = clients.get(p.get("client_id")) or {}
            p["first_name"] = client.get("first_name", "")
            p["surname"] = client.get("surname", "")
        return payments

    return ctx.cache.get_or_fetch((PAYMENTS_TABLE,), _fetch)


def payments_frame(rows: List[Dict[str, Any]]) -> pd.DataFrame:
    df = pd.DataFrame(rows)
    if df.empty:
        return pd.DataFrame(columns=PAYMENT_COLUMNS)
    for col in PAYMENT_COLUMNS:
        if col not in df.columns:
            df[col] = None
    df["amount"] = pd.to_numeric(df["amount"], errors="coerce").fillna(0.0)
    return df[PAYMENT_COLUMNS]


def filter_payments(df: pd.DataFrame, query: str = "", status: str = "all") -> pd.DataFrame:
    """Case-insensitive search over client names, reference and method, plus a status filter."""
    out = df
    if query:
        q = query.strip().lower()
        mask = pd.Series(False, index=out.index)
        for col in ("first_name", "surname", "reference", "payment_method"):
            mask |= out[col].fillna("").astype(str).str.lower().str.contains(q, regex=False)
        out = out[mask]
    if status and status != "all":
        out = out[out["status"] == status]
    return out


def record_payment(ctx: DataContext, data: Mapping[str, Any]) -> Dict[str, Any]:
    row = pick_fields(data, PAYMENT_FIELDS)
    row["amount"] = float(row.get("amount") or 0)
    row.setdefault("payment_date", datetime.now(timezone.utc).isoformat())
    row["status"] = PaymentStatus(data.get("status") or PaymentStatus.PENDING.value).value
    try:
        created = ctx.backend.insert(PAYMENTS_TABLE, row)[0]
    except BackendError as e:
        ctx.fail("Failed to record payment", e)
        raise
    ctx.cache.invalidate((PAYMENTS_TABLE,))
    ctx.cache.invalidate(("dashboard",))
    ctx.cache.invalidate(("case",))
    ctx.notifier.success("Payment recorded")
    return created


def update_payment_status(ctx: DataContext, payment_id: str, status) -> Dict[str, Any]:
    status = PaymentStatus(status)
    try:
        rows = ctx.backend.update(PAYMENTS_TABLE, {"status": status.value}, {"id": payment_id})
    except BackendError as e:
        ctx.fail("Failed to update payment status", e)
        raise
    if not rows:
        raise RecordNotFoundError("Payment not found")
    ctx.cache.invalidate((PAYMENTS_TABLE,))
    ctx.cache.invalidate(("dashboard",))
    ctx.cache.invalidate(("case",))
    ctx.notifier.success(f"Payment marked as {status.value}")
    return rows[0]


def pending_payment_summary(ctx: DataContext) -> pd.DataFrame:
    """One row per client with pending payments: count and outstanding amount."""
    df = payments_frame(list_payments(ctx))
    pending = df[df["status"] == PaymentStatus.PENDING.value]
    if pending.empty:
        return pd.DataFrame(columns=["client_id", "client_name", "pending_count", "pending_amount"])
    pending = pending.assign(client_name=(pending["first_name"] + " " + pending["surname"]).str.strip())
    summary = (
        pending.groupby(["client_id", "client_name"], as_index=False)
        .agg(pending_count=("id", "count"), pending_amount=("amount", "sum"))
        .sort_values("pending_amount", ascending=False)
    )
    return summary.reset_index(drop=True)


def format_currency(amount: float) -> str:
    return f"${amount:,.2f}"
