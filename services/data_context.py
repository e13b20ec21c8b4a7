import logging
from dataclasses import dataclass, field

from infrastructure.backend.base import Backend, BackendError
from services.query_cache import QueryCache

log = logging.getLogger(__name__)


@dataclass
class DataContext:
    """What a data service call needs: the backend, the session's cache and a notifier."""

    backend: Backend
    notifier: object
    cache: QueryCache = field(default_factory=QueryCache)

    def fail(self, user_message: str, exc: BackendError):
        log.error("%s: %s", user_message, exc.message)
        self.notifier.error(user_message, exc.message)
