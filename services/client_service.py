import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd

from infrastructure.backend.base import BackendError, RecordNotFoundError
from services.data_context import DataContext
from use_cases.domain_models import (
    CLIENT_FIELDS,
    CLIENTS_TABLE,
    DEPENDANTS_TABLE,
    CaseStatus,
    NEXT_OF_KIN_TABLE,
    pick_fields,
)

log = logging.getLogger(__name__)

LIST_COLUMNS = ["first_name", "surname", "id_number", "phone", "email", "case_status", "date_joined"]


def _new_client_row(data: Mapping[str, Any]) -> Dict[str, Any]:
    row = pick_fields(data, CLIENT_FIELDS)
    row["case_status"] = CaseStatus.PENDING.value
    row.setdefault("date_joined", date.today().isoformat())
    return row


def list_clients(ctx: DataContext, agent_id: Optional[str] = None) -> List[Dict[str, Any]]:
    def _fetch():
        filters = {"agent_id": agent_id} if agent_id else None
        try:
            return ctx.backend.select(CLIENTS_TABLE, filters, order_by="surname")
        except BackendError as e:
            ctx.fail("Failed to load clients", e)
            raise

    return ctx.cache.get_or_fetch((CLIENTS_TABLE, agent_id), _fetch)


def get_client(ctx: DataContext, client_id: str) -> Dict[str, Any]:
    def _fetch():
        try:
            row = ctx.backend.select_one(CLIENTS_TABLE, {"id": client_id})
        except BackendError as e:
            ctx.fail("Failed to load client details", e)
            raise
        if row is None:
            raise RecordNotFoundError("Client not found")
        return row

    return ctx.cache.get_or_fetch(("client", client_id), _fetch)


def create_client(ctx: DataContext, data: Mapping[str, Any]) -> Dict[str, Any]:
    try:
        created = ctx.backend.insert(CLIENTS_TABLE, _new_client_row(data))[0]
    except BackendError as e:
        ctx.fail("Failed to create client", e)
        raise
    ctx.cache.invalidate((CLIENTS_TABLE,))
    ctx.cache.invalidate(("dashboard",))
    ctx.notifier.success("Client created successfully")
    return created


def register_client(
    ctx: DataContext,
    data: Mapping[str, Any],
    next_of_kin: Optional[Mapping[str, Any]] = None,
    dependants: Iterable[Mapping[str, Any]] = (),
) -> Dict[str, Any]:
    """Create a client together with next of kin and named dependants."""
    try:
        client = ctx.backend.insert(CLIENTS_TABLE, _new_client_row(data))[0]
        if next_of_kin and str(next_of_kin.get("name") or "").strip():
            ctx.backend.insert(NEXT_OF_KIN_TABLE, {
                "client_id": client["id"],
                "name": next_of_kin.get("name"),
                "relationship": next_of_kin.get("relationship", ""),
                "phone": next_of_kin.get("phone", ""),
                "email": next_of_kin.get("email", ""),
            })
        named = [d for d in dependants if str(d.get("name") or "").strip()]
        if named:
            ctx.backend.insert(DEPENDANTS_TABLE, [
                {
                    "client_id": client["id"],
                    "name": d["name"],
                    "relationship": d.get("relationship", ""),
                    "age": int(d.get("age") or 0),
                }
                for d in named
            ])
    except BackendError as e:
        ctx.fail("Failed to register client", e)
        raise
    finally:
        ctx.cache.invalidate((CLIENTS_TABLE,))
        ctx.cache.invalidate(("dashboard",))

    ctx.notifier.success("Client registered successfully")
    return client


def update_client(ctx: DataContext, client_id: str, updates: Mapping[str, Any]) -> Dict[str, Any]:
    try:
        rows = ctx.backend.update(CLIENTS_TABLE, pick_fields(updates, CLIENT_FIELDS), {"id": client_id})
    except BackendError as e:
        ctx.fail("Failed to update client", e)
        raise
    if not rows:
        raise RecordNotFoundError("Client not found")
    ctx.cache.invalidate((CLIENTS_TABLE,))
    ctx.cache.invalidate(("dashboard",))
    ctx.cache.invalidate(("client", client_id))
    ctx.notifier.success("Client updated successfully")
    return rows[0]


def delete_client(ctx: DataContext, client_id: str) -> Dict[str, str]:
    try:
        ctx.backend.delete(CLIENTS_TABLE, {"id": client_id})
    except BackendError as e:
        ctx.fail("Failed to delete client", e)
        raise
    ctx.cache.invalidate((CLIENTS_TABLE,))
    ctx.cache.invalidate(("dashboard",))
    ctx.cache.invalidate(("client", client_id))
    ctx.notifier.success("Client deleted successfully")
    return {"id": client_id}


def clients_frame(rows: List[Dict[str, Any]]) -> pd.DataFrame:
    df = pd.DataFrame(rows)
    if df.empty:
        return pd.DataFrame(columns=["id"] + LIST_COLUMNS)
    for col in LIST_COLUMNS:
        if col not in df.columns:
            df[col] = None
    return df[["id"] + LIST_COLUMNS]


def client_label(client: Mapping[str, Any]) -> str:
    name = f"{client.get('first_name') or ''} {client.get('surname') or ''}".strip()
    return f"{name} ({client['id_number']})" if client.get("id_number") else name
