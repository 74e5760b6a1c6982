"""
Shared pytest fixtures.

Provides:
- A fresh in-memory store per test
- Fake language models (scripted replies / always failing)
- A TestClient over an app wired to those fakes
"""

from typing import Dict, List

import pytest
from fastapi.testclient import TestClient

from common.errors import ExternalServiceError
from api.main import create_app
from db.session import make_engine, make_session_factory, init_db
from db.store import EntityStore


class FakeModel:
    """Records every call and answers with a numbered reply."""

    def __init__(self):
        self.calls: List[List[Dict[str, str]]] = []

    def generate(self, turns):
        self.calls.append([dict(t) for t in turns])
        return f"reply {len(self.calls)}"


class FailingModel:
    def __init__(self):
        self.calls = 0

    def generate(self, turns):
        self.calls += 1
        raise ExternalServiceError("Model call failed: ReadTimeout")


@pytest.fixture
def store() -> EntityStore:
    engine = make_engine("sqlite://")
    init_db(engine)
    yield EntityStore(make_session_factory(engine))
    engine.dispose()


@pytest.fixture
def user(store):
    return store.create_user("alice", "s3cret")


@pytest.fixture
def other_user(store):
    return store.create_user("bob", "hunter2")


@pytest.fixture
def fake_model():
    return FakeModel()


@pytest.fixture
def failing_model():
    return FailingModel()


@pytest.fixture
def client(store, fake_model):
    return TestClient(create_app(store=store, model=fake_model))


@pytest.fixture
def auth(user) -> Dict[str, str]:
    return {"X-User-Id": str(user.id)}
