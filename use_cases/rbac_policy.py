"""Route-level authorization decisions."""

import logging
from dataclasses import dataclass
from typing import Iterable, Literal, Optional

from use_cases.session_models import ALL_ROLES, Profile, SessionState

log = logging.getLogger(__name__)

SIGN_IN_PATH = "/signin"
DASHBOARD_PATH = "/dashboard"

GateStatus = Literal["LOADING", "DENIED_UNAUTHENTICATED", "DENIED_WRONG_ROLE", "ALLOWED"]


@dataclass(frozen=True)
class GateDecision:
    status: GateStatus
    redirect_to: Optional[str] = None
    return_to: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.status == "ALLOWED"


def _role_values(allowed_roles: Iterable) -> set:
    return {getattr(r, "value", r) for r in allowed_roles}


def is_role_allowed(profile: Optional[Profile], allowed_roles: Iterable = (ALL_ROLES,)) -> bool:
    """Exact membership check; no role implies another."""
    roles = _role_values(allowed_roles)
    if ALL_ROLES in roles:
        return True
    return profile is not None and profile.role.value in roles


def evaluate(state: SessionState, requested_path: str, allowed_roles: Iterable = (ALL_ROLES,)) -> GateDecision:
    if state.loading:
        return GateDecision(status="LOADING")

    if state.user is None:
        return GateDecision(status="DENIED_UNAUTHENTICATED", redirect_to=SIGN_IN_PATH, return_to=requested_path)

    if not is_role_allowed(state.profile, allowed_roles):
        log.info(
            "Route %s denied for user %s (role: %s)",
            requested_path,
            state.user.id,
            state.profile.role.value if state.profile else None,
        )
        return GateDecision(status="DENIED_WRONG_ROLE", redirect_to=DASHBOARD_PATH)

    return GateDecision(status="ALLOWED")
