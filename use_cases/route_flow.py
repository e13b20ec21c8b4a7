"""Portal routes, their role sets and the role-aware navigation."""

from enum import Enum
from typing import Dict, List, Optional, Tuple

from use_cases.session_models import ALL_ROLES, Profile, Role


class Route(str, Enum):
    SIGN_IN = "/signin"
    DASHBOARD = "/dashboard"
    CLIENTS = "/clients"
    CLIENT_NEW = "/clients/new"
    CASES = "/cases"
    CASE_NEW = "/cases/new"
    PAYMENTS = "/payments"
    ADMIN_USERS = "/admin/users"
    SETTINGS = "/settings"


ROUTE_LABELS: Dict[Route, str] = {
    Route.SIGN_IN: "Sign in",
    Route.DASHBOARD: "Dashboard",
    Route.CLIENTS: "Clients",
    Route.CLIENT_NEW: "Register Client",
    Route.CASES: "Cases",
    Route.CASE_NEW: "Open Case",
    Route.PAYMENTS: "Payments",
    Route.ADMIN_USERS: "User Management",
    Route.SETTINGS: "Settings",
}

ROUTE_ROLES: Dict[Route, Tuple] = {
    Route.DASHBOARD: (ALL_ROLES,),
    Route.CLIENTS: (Role.AGENT, Role.ADMIN),
    Route.CLIENT_NEW: (Role.AGENT, Role.ADMIN),
    Route.CASES: (Role.ADMIN, Role.AGENT),
    Route.CASE_NEW: (Role.ADMIN, Role.AGENT),
    Route.PAYMENTS: (Role.ACCOUNTANT, Role.ADMIN),
    Route.ADMIN_USERS: (Role.ADMIN,),
    Route.SETTINGS: (ALL_ROLES,),
}

PUBLIC_ROUTES = frozenset({Route.SIGN_IN})

_ROLE_NAVIGATION: Dict[Role, Tuple[Route, ...]] = {
    Role.AGENT: (Route.CLIENTS, Route.CASES),
    Role.ADMIN: (Route.CLIENTS, Route.CASES, Route.PAYMENTS, Route.ADMIN_USERS),
    Role.ACCOUNTANT: (Route.PAYMENTS,),
}


def resolve_route(path: Optional[str]) -> Optional[Route]:
    if not path:
        return None
    normalized = "/" + path.strip().strip("/")
    try:
        return Route(normalized)
    except ValueError:
        return None


def select_route(path: Optional[str]) -> Route:
    return resolve_route(path) or Route.DASHBOARD


def allowed_roles_for(route: Route) -> Tuple:
    return ROUTE_ROLES.get(route, (ALL_ROLES,))


def navigation_for(profile: Optional[Profile]) -> List[Route]:
    """Dashboard first, role-specific items next, settings last."""
    items = [Route.DASHBOARD]
    if profile is not None:
        items.extend(_ROLE_NAVIGATION.get(profile.role, ()))
    items.append(Route.SETTINGS)
    return items
