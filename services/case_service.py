import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from infrastructure.backend.base import BackendError, RecordNotFoundError
from services.data_context import DataContext
from use_cases.domain_models import (
    CASE_FIELDS,
    CASE_NOTES_TABLE,
    CASES_TABLE,
    CLIENTS_TABLE,
    PAYMENTS_TABLE,
    PROFILES_TABLE,
    CaseStatus,
    pick_fields,
)

log = logging.getLogger(__name__)

CLIENT_SUMMARY_FIELDS = ("id", "first_name", "surname", "id_number", "email", "phone")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def list_cases(ctx: DataContext, client_id: Optional[str] = None) -> List[Dict[str, Any]]:
    def _fetch():
        filters = {"client_id": client_id} if client_id else None
        try:
            return ctx.backend.select(CASES_TABLE, filters, order_by="opened_at", descending=True)
        except BackendError as e:
            ctx.fail("Failed to load cases", e)
            raise

    return ctx.cache.get_or_fetch((CASES_TABLE, client_id), _fetch)


def get_case(ctx: DataContext, case_id: str) -> Dict[str, Any]:
    """A case row with its client summary under "client" and its payments under "payments"."""

    def _fetch():
        try:
            case = ctx.backend.select_one(CASES_TABLE, {"id": case_id})
            if case is None:
                raise RecordNotFoundError("Case not found")
            client = None
            if case.get("client_id"):
                client = ctx.backend.select_one(CLIENTS_TABLE, {"id": case["client_id"]})
            case["client"] = {k: client.get(k) for k in CLIENT_SUMMARY_FIELDS} if client else None
            case["payments"] = ctx.backend.select(PAYMENTS_TABLE, {"case_id": case_id})
        except RecordNotFoundError:
            raise
        except BackendError as e:
            ctx.fail("Failed to load case details", e)
            raise
        return case

    return ctx.cache.get_or_fetch(("case", case_id), _fetch)


def create_case(ctx: DataContext, data: Mapping[str, Any]) -> Dict[str, Any]:
    row = pick_fields(data, CASE_FIELDS)
    row["status"] = CaseStatus.OPEN.value
    row["opened_at"] = _now_iso()
    try:
        created = ctx.backend.insert(CASES_TABLE, row)[0]
    except BackendError as e:
        ctx.fail("Failed to create case", e)
        raise
    ctx.cache.invalidate((CASES_TABLE,))
    ctx.cache.invalidate(("dashboard",))
    ctx.notifier.success("Case created successfully")
    return created


def update_case(ctx: DataContext, case_id: str, updates: Mapping[str, Any]) -> Dict[str, Any]:
    values = pick_fields(updates, CASE_FIELDS + ("status", "closed_at"))
    if "status" in values:
        values["status"] = CaseStatus(values["status"]).value
        if values["status"] == CaseStatus.CLOSED.value:
            values["closed_at"] = _now_iso()
    try:
        rows = ctx.backend.update(CASES_TABLE, values, {"id": case_id})
    except BackendError as e:
        ctx.fail("Failed to update case", e)
        raise
    if not rows:
        raise RecordNotFoundError("Case not found")
    ctx.cache.invalidate((CASES_TABLE,))
    ctx.cache.invalidate(("dashboard",))
    ctx.cache.invalidate(("case", case_id))
    ctx.notifier.success("Case updated successfully")
    return rows[0]


def update_case_status(ctx: DataContext, case_id: str, status, author_id: Optional[str] = None) -> Dict[str, Any]:
    """Change the status and record the change as a case note."""
    status = CaseStatus(status)
    updated = update_case(ctx, case_id, {"status": status.value})
    try:
        ctx.backend.insert(CASE_NOTES_TABLE, {
            "case_id": case_id,
            "author_id": author_id,
            "content": f"Case status changed to: {status.value}",
        })
    except BackendError as e:
        # The status change stands even when the audit note cannot be written.
        log.error("Status note for case %s failed: %s", case_id, e.message)
    ctx.cache.invalidate(("case-notes", case_id))
    return updated


def add_case_note(ctx: DataContext, case_id: str, content: str, author_id: str) -> Dict[str, Any]:
    try:
        note = ctx.backend.insert(CASE_NOTES_TABLE, {"case_id": case_id, "author_id": author_id, "content": content})[0]
    except BackendError as e:
        ctx.fail("Failed to add case note", e)
        raise
    ctx.cache.invalidate(("case", case_id))
    ctx.cache.invalidate(("case-notes", case_id))
    ctx.notifier.success("Case note added")
    return note


def list_case_notes(ctx: DataContext, case_id: str) -> List[Dict[str, Any]]:
    """Notes newest first, each with the author's name when the profile is readable."""

    def _fetch():
        try:
            notes = ctx.backend.select(CASE_NOTES_TABLE, {"case_id": case_id}, order_by="created_at", descending=True)
            authors = {}
            for author_id in {n.get("author_id") for n in notes if n.get("author_id")}:
                profile = ctx.backend.select_one(PROFILES_TABLE, {"id": author_id})
                if profile:
                    authors[author_id] = f"{profile.get('first_name', '')} {profile.get('last_name', '')}".strip()
        except BackendError as e:
            ctx.fail("Failed to load case notes", e)
            raise
        for note in notes:
            note["author_name"] = authors.get(note.get("author_id"), "System")
        return notes

    return ctx.cache.get_or_fetch(("case-notes", case_id), _fetch)
