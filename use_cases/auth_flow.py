"""Authentication flow orchestration (application layer)."""

import logging
from dataclasses import dataclass
from typing import Literal, Optional

from use_cases import rbac_policy, route_flow
from use_cases.route_flow import Route
from utils import session_manager

log = logging.getLogger(__name__)

AuthFlowStatus = Literal["CONTINUE", "LOADING", "REDIRECT"]


@dataclass(frozen=True)
class AuthFlowResult:
    """Result contract for auth flow orchestration."""

    status: AuthFlowStatus
    reason: str
    route: Route
    user_id: Optional[str] = None


def guard_route(route: Route) -> AuthFlowResult:
    """Run the authorization gate for ``route`` and apply its redirect, if any.

    Unauthenticated visitors are sent to sign-in with the requested path kept
    for after sign-in; signed-in users without the role land on the dashboard.
    """
    store = session_manager.get_store()
    if route in route_flow.PUBLIC_ROUTES:
        return AuthFlowResult(status="CONTINUE", reason="public", route=route)

    decision = rbac_policy.evaluate(store.state, route.value, route_flow.allowed_roles_for(route))
    if decision.status == "LOADING":
        return AuthFlowResult(status="LOADING", reason="loading", route=route)

    if decision.status == "DENIED_UNAUTHENTICATED":
        session_manager.st.session_state.redirect_from = decision.return_to
        session_manager.navigate(decision.redirect_to)
        return AuthFlowResult(status="REDIRECT", reason="auth_required", route=Route.SIGN_IN)

    if decision.status == "DENIED_WRONG_ROLE":
        session_manager.navigate(decision.redirect_to)
        return AuthFlowResult(
            status="REDIRECT", reason="wrong_role", route=Route.DASHBOARD, user_id=store.user.id,
        )

    return AuthFlowResult(status="CONTINUE", reason="allowed", route=route, user_id=store.user.id)


def consume_redirect_target() -> Route:
    """Where to go after sign-in: the saved protected route, or the dashboard."""
    saved = session_manager.st.session_state.get("redirect_from")
    session_manager.st.session_state.redirect_from = None
    target = route_flow.resolve_route(saved)
    if target is None or target in route_flow.PUBLIC_ROUTES:
        return Route.DASHBOARD
    return target
