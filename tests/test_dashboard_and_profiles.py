from services import dashboard_service, payment_service, profile_service
from use_cases.session_models import Role

from conftest import add_staff


def test_dashboard_stats_from_sample_data(ctx):
    stats = dashboard_service.dashboard_stats(ctx)
    assert stats.total_clients == 2
    assert stats.active_cases == 1
    assert stats.pending_payments == 1
    assert stats.pending_amount == 35.0
    assert stats.collected_amount == 50.0


def test_dashboard_stats_scoped_to_agent(ctx, backend):
    backend.update("clients", {"agent_id": "agent-1"}, {"id": "c2"})
    assert dashboard_service.dashboard_stats(ctx, agent_id="agent-1").total_clients == 1


def test_dashboard_refreshes_after_payment_change(ctx):
    dashboard_service.dashboard_stats(ctx)
    payment_service.update_payment_status(ctx, "p2", "paid")
    stats = dashboard_service.dashboard_stats(ctx)
    assert stats.pending_payments == 0
    assert stats.collected_amount == 85.0


def test_list_profiles_skips_unknown_roles(ctx, backend):
    add_staff(backend, "z@test.com", Role.AGENT, last_name="Zulu")
    add_staff(backend, "a@test.com", Role.ADMIN, last_name="Alpha")
    backend.insert("profiles", {"id": "legacy", "email": "old@test.com", "role": "lawyer", "last_name": "Mid"})

    profiles = profile_service.list_profiles(ctx)

    assert [p.last_name for p in profiles] == ["Alpha", "Zulu"]
