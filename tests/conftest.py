import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from echo_messenger.main import app
from echo_messenger.core.dependencies import get_current_user_id, get_repository
from echo_messenger.core.errors import Unauthenticated
from echo_messenger.repository.memory_repo import MemoryRepository


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, start=None):
        self.now = start or datetime(2025, 8, 4, 22, 26, 39, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class CurrentUser:
    def __init__(self):
        self.id = None

    def __call__(self):
        if self.id is None:
            raise Unauthenticated("Missing bearer token")
        return self.id

    def login(self, user):
        self.id = user.id


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def repository(clock):
    return MemoryRepository(clock=clock)


@pytest.fixture
def users(repository):
    return {
        name: repository.create_profile(str(uuid.uuid4()), name)
        for name in ["Alice", "Bob", "Carol", "Dave"]
    }


@pytest.fixture
def current_user():
    return CurrentUser()


@pytest.fixture
def client(repository, current_user):
    app.dependency_overrides[get_repository] = lambda: repository
    app.dependency_overrides[get_current_user_id] = current_user

    yield TestClient(app)

    app.dependency_overrides.clear()
