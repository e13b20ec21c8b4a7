"""Session DTOs shared across application layers."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

ALL_ROLES = "all"


class Role(str, Enum):
    AGENT = "agent"
    ADMIN = "admin"
    ACCOUNTANT = "accountant"

    @classmethod
    def parse(cls, value: Any) -> "Role":
        """Coerce a backend or form value into a Role, rejecting unknown strings."""
        if isinstance(value, Role):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown role: {value!r}") from None


@dataclass(frozen=True)
class Account:
    id: str
    email: str


@dataclass(frozen=True)
class AuthSession:
    account: Account
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None


@dataclass(frozen=True)
class Profile:
    id: str
    email: str
    role: Role
    first_name: str
    last_name: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Profile":
        return cls(
            id=str(row["id"]),
            email=row.get("email") or "",
            role=Role.parse(row.get("role")),
            first_name=row.get("first_name") or "",
            last_name=row.get("last_name") or "",
        )

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role.value,
            "first_name": self.first_name,
            "last_name": self.last_name,
        }


@dataclass(frozen=True)
class SessionState:
    user: Optional[Account] = None
    profile: Optional[Profile] = None
    session: Optional[AuthSession] = None
    loading: bool = True

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


def is_admin(profile: Optional[Profile]) -> bool:
    return profile is not None and profile.role == Role.ADMIN


def has_role(profile: Optional[Profile], role: Role) -> bool:
    return profile is not None and profile.role == role
