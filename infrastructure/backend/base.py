"""Backend port: the auth and table operations the portal needs from its hosted service."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Mapping, Optional

from use_cases.session_models import Account, AuthSession

AuthCallback = Callable[[str, Optional[AuthSession]], None]
Filters = Optional[Mapping[str, Any]]


class BackendError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthBackendError(BackendError):
    pass


class RecordNotFoundError(BackendError):
    pass


class Subscription(ABC):
    @abstractmethod
    def unsubscribe(self) -> None:
        ...


class Backend(ABC):
    # --- auth ---
    @abstractmethod
    def get_current_session(self) -> Optional[AuthSession]:
        ...

    @abstractmethod
    def on_auth_state_change(self, callback: AuthCallback) -> Subscription:
        ...

    @abstractmethod
    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        ...

    @abstractmethod
    def sign_up(self, email: str, password: str, metadata: Mapping[str, Any]) -> Optional[Account]:
        ...

    @abstractmethod
    def sign_out(self) -> None:
        ...

    @abstractmethod
    def provision_account(self, email: str, password: str, metadata: Mapping[str, Any]) -> Account:
        """Create an account through a privileged, server-held credential."""

    # --- tables ---
    @abstractmethod
    def select(
        self,
        table: str,
        filters: Filters = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        columns: str = "*",
    ) -> List[Dict[str, Any]]:
        ...

    def select_one(self, table: str, filters: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        rows = self.select(table, filters)
        return rows[0] if rows else None

    @abstractmethod
    def insert(self, table: str, rows: Any) -> List[Dict[str, Any]]:
        """Insert one row (mapping) or many (list of mappings); returns stored rows."""

    @abstractmethod
    def update(self, table: str, values: Mapping[str, Any], filters: Mapping[str, Any]) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    def delete(self, table: str, filters: Mapping[str, Any]) -> None:
        ...

    @abstractmethod
    def count(self, table: str, filters: Filters = None) -> int:
        ...
