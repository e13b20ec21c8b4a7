"""Runtime configuration read from Streamlit secrets with environment fallback."""

import os
from dataclasses import dataclass
from typing import Optional

import streamlit as st


class ConfigurationError(Exception):
    pass


_TRUTHY = {"1", "true", "yes", "on"}


def get_secret(key: str) -> Optional[str]:
    try:
        value = st.secrets.get(key)
    except FileNotFoundError:
        value = None
    if value is None:
        value = os.getenv(key)
    return value


def get_flag(key: str, default: bool = False) -> bool:
    raw = get_secret(key)
    if raw is None:
        return default
    return str(raw).strip().lower() in _TRUTHY


@dataclass(frozen=True)
class BackendSettings:
    url: Optional[str]
    anon_key: Optional[str]
    service_role_key: Optional[str] = None
    demo_mode: bool = False

    @property
    def fingerprint(self) -> str:
        # Target only; rotating a key does not force a reconnect.
        return f"{'demo' if self.demo_mode else 'supabase'}:{self.url or ''}"


def load_settings() -> BackendSettings:
    """Resolve backend settings. Demo mode must be switched on explicitly."""
    demo_mode = get_flag("EQUAL_ACCESS_DEMO_MODE")
    settings = BackendSettings(
        url=get_secret("SUPABASE_URL"),
        anon_key=get_secret("SUPABASE_ANON_KEY"),
        service_role_key=get_secret("SUPABASE_SERVICE_ROLE_KEY"),
        demo_mode=demo_mode,
    )
    if not demo_mode and (not settings.url or not settings.anon_key):
        raise ConfigurationError(
            "SUPABASE_URL and SUPABASE_ANON_KEY must be set "
            "(or enable EQUAL_ACCESS_DEMO_MODE for the offline demo)."
        )
    return settings
