"""Row shapes and form checks for clients, cases and payments."""

import re
from enum import Enum
from typing import Any, Dict, List, Mapping

CLIENTS_TABLE = "clients"
CASES_TABLE = "cases"
PAYMENTS_TABLE = "payments"
PROFILES_TABLE = "profiles"
NEXT_OF_KIN_TABLE = "next_of_kin"
DEPENDANTS_TABLE = "dependants"
CASE_NOTES_TABLE = "case_notes"
EMPLOYERS_TABLE = "employers"
SUBSCRIPTIONS_TABLE = "subscriptions"


class CaseStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    PENDING = "pending"


class PaymentStatus(str, Enum):
    PAID = "paid"
    PENDING = "pending"
    FAILED = "failed"


CLIENT_FIELDS = (
    "title",
    "surname",
    "first_name",
    "whatsapp_number",
    "sex",
    "date_of_birth",
    "id_number",
    "address",
    "marital_status",
    "phone",
    "email",
    "agent_id",
    "date_joined",
    "form_number",
    "policy_number",
)
REQUIRED_CLIENT_FIELDS = ("first_name", "surname", "id_number", "phone", "email", "address")

CASE_FIELDS = ("client_id", "case_type", "description", "lawyer_id")
PAYMENT_FIELDS = ("client_id", "case_id", "amount", "payment_date", "payment_method", "reference")

_EMAIL_RE = re.compile(r"\S+@\S+\.\S+")


def _label(field: str) -> str:
    return field.replace("_", " ").capitalize()


def validate_client_form(data: Mapping[str, Any]) -> List[str]:
    problems = []
    for field in REQUIRED_CLIENT_FIELDS:
        if not str(data.get(field) or "").strip():
            problems.append(f"{_label(field)} is required")
    email = str(data.get("email") or "").strip()
    if email and not _EMAIL_RE.fullmatch(email):
        problems.append("Email is invalid")
    return problems


def validate_payment_form(data: Mapping[str, Any]) -> List[str]:
    problems = []
    if not data.get("client_id"):
        problems.append("Client is required")
    try:
        amount = float(data.get("amount") or 0)
    except (TypeError, ValueError):
        amount = 0
    if amount <= 0:
        problems.append("Amount must be greater than zero")
    if not str(data.get("payment_method") or "").strip():
        problems.append("Payment method is required")
    if not str(data.get("reference") or "").strip():
        problems.append("Reference is required")
    return problems


def pick_fields(data: Mapping[str, Any], fields) -> Dict[str, Any]:
    """Keep only known columns so form extras never reach the backend."""
    return {k: data[k] for k in fields if k in data}
