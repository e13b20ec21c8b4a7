"""Application layer contracts for orchestrating high-level flows.

Flow modules (auth_flow, bootstrap, session_store) are imported by path;
they depend on infrastructure, which itself depends on the models below.
"""

from .rbac_policy import GateDecision, evaluate
from .route_flow import ROUTE_LABELS, Route, navigation_for, select_route
from .session_models import Profile, Role, SessionState, has_role, is_admin

__all__ = [
    "GateDecision",
    "Profile",
    "ROUTE_LABELS",
    "Role",
    "Route",
    "SessionState",
    "evaluate",
    "has_role",
    "is_admin",
    "navigation_for",
    "select_route",
]
