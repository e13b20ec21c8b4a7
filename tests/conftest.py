import pytest
import streamlit as st

from infrastructure.backend.demo_backend import DemoBackend
from services.data_context import DataContext
from services.query_cache import QueryCache
from use_cases.domain_models import PROFILES_TABLE
from use_cases.session_models import Profile, Role
from use_cases.session_store import SessionStore


class RecordingNotifier:
    def __init__(self):
        self.messages = []

    def success(self, title, description=None):
        self.messages.append(("success", title, description))

    def error(self, title, description=None):
        self.messages.append(("error", title, description))

    @property
    def titles(self):
        return [title for _, title, _ in self.messages]

    def kinds(self):
        return [kind for kind, _, _ in self.messages]


def add_staff(backend, email, role, password="secret123", first_name="Test", last_name="User"):
    account = backend.provision_account(email, password, {"role": role.value})
    profile = Profile(id=account.id, email=email, role=role, first_name=first_name, last_name=last_name)
    backend.insert(PROFILES_TABLE, profile.to_row())
    return account


class FakeSessionState(dict):
    """Attribute-style dict standing in for st.session_state outside a script run."""

    def __getattr__(self, name):
        try:
            return self[name]
        except KeyError:
            raise AttributeError(name) from None

    def __setattr__(self, name, value):
        self[name] = value


@pytest.fixture(autouse=True)
def clean_session_state(monkeypatch):
    monkeypatch.setattr(st, "session_state", FakeSessionState())
    monkeypatch.setattr(st, "query_params", {})
    yield st.session_state


@pytest.fixture
def backend():
    return DemoBackend.with_sample_data()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def store(backend):
    s = SessionStore(backend)
    s.initialize()
    yield s
    s.teardown()


@pytest.fixture
def ctx(backend, notifier):
    return DataContext(backend=backend, notifier=notifier, cache=QueryCache())


@pytest.fixture
def admin_account(backend):
    return add_staff(backend, "admin@equalaccess.test", Role.ADMIN, first_name="Ada", last_name="Admin")
