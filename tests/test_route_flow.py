from use_cases import route_flow
from use_cases.route_flow import Route
from use_cases.session_models import Profile, Role


def _profile(role) -> Profile:
    return Profile(id="u1", email="u1@test.com", role=role, first_name="U", last_name="One")


def test_resolve_route_normalizes_slashes() -> None:
    assert route_flow.resolve_route("clients/new") is Route.CLIENT_NEW
    assert route_flow.resolve_route("/admin/users/") is Route.ADMIN_USERS
    assert route_flow.resolve_route("nowhere") is None
    assert route_flow.resolve_route(None) is None


def test_select_route_falls_back_to_dashboard() -> None:
    assert route_flow.select_route("unknown") is Route.DASHBOARD
    assert route_flow.select_route("payments") is Route.PAYMENTS


def test_route_roles() -> None:
    assert route_flow.allowed_roles_for(Route.PAYMENTS) == (Role.ACCOUNTANT, Role.ADMIN)
    assert route_flow.allowed_roles_for(Route.ADMIN_USERS) == (Role.ADMIN,)
    assert route_flow.allowed_roles_for(Route.SETTINGS) == ("all",)


def test_navigation_by_role() -> None:
    assert route_flow.navigation_for(_profile(Role.AGENT)) == [
        Route.DASHBOARD, Route.CLIENTS, Route.CASES, Route.SETTINGS,
    ]
    assert route_flow.navigation_for(_profile(Role.ACCOUNTANT)) == [Route.DASHBOARD, Route.PAYMENTS, Route.SETTINGS]
    assert Route.ADMIN_USERS in route_flow.navigation_for(_profile(Role.ADMIN))
    assert route_flow.navigation_for(None) == [Route.DASHBOARD, Route.SETTINGS]


def test_every_navigation_item_is_reachable_for_its_role() -> None:
    from use_cases.rbac_policy import is_role_allowed

    for role in Role:
        profile = _profile(role)
        for route in route_flow.navigation_for(profile):
            assert is_role_allowed(profile, route_flow.allowed_roles_for(route)), (role, route)
