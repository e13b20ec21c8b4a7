import logging
from typing import List

from infrastructure.backend.base import BackendError
from services.data_context import DataContext
from use_cases.domain_models import PROFILES_TABLE
from use_cases.session_models import Profile

log = logging.getLogger(__name__)


def list_profiles(ctx: DataContext) -> List[Profile]:
    """Staff profiles by last name. Rows with an unknown role are skipped."""

    def _fetch():
        try:
            rows = ctx.backend.select(PROFILES_TABLE, order_by="last_name")
        except BackendError as e:
            ctx.fail("Failed to load users", e)
            raise
        profiles = []
        for row in rows:
            try:
                profiles.append(Profile.from_row(row))
            except (KeyError, ValueError) as e:
                log.warning("Skipping profile %s: %s", row.get("id"), e)
        return profiles

    return ctx.cache.get_or_fetch((PROFILES_TABLE,), _fetch)
