import logging
from dataclasses import dataclass
from typing import Optional

from infrastructure.backend.base import BackendError
from services import payment_service
from services.data_context import DataContext
from use_cases.domain_models import CASES_TABLE, CLIENTS_TABLE, CaseStatus, PaymentStatus

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardStats:
    total_clients: int
    active_cases: int
    pending_payments: int
    pending_amount: float
    collected_amount: float


def dashboard_stats(ctx: DataContext, agent_id: Optional[str] = None) -> DashboardStats:
    """Headline counts for the dashboard. Agents see only their own clients."""

    def _fetch():
        client_filters = {"agent_id": agent_id} if agent_id else None
        try:
            total_clients = ctx.backend.count(CLIENTS_TABLE, client_filters)
            active_cases = ctx.backend.count(CASES_TABLE, {"status": CaseStatus.OPEN.value})
        except BackendError as e:
            ctx.fail("Failed to load dashboard", e)
            raise
        payments = payment_service.payments_frame(payment_service.list_payments(ctx))
        pending = payments[payments["status"] == PaymentStatus.PENDING.value]
        paid = payments[payments["status"] == PaymentStatus.PAID.value]
        return DashboardStats(
            total_clients=total_clients,
            active_cases=active_cases,
            pending_payments=len(pending),
            pending_amount=float(pending["amount"].sum()),
            collected_amount=float(paid["amount"].sum()),
        )

    return ctx.cache.get_or_fetch(("dashboard", agent_id), _fetch)
