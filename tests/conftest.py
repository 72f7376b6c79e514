"""Shared pytest fixtures for gateway tests."""
import sys
sys.dont_write_bytecode = True

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from helpers import TEST_SECRET, FakeActivityLog, FakeCarrier, bearer, login  # noqa: E402
from smsgateway.api.factory import create_app  # noqa: E402
from smsgateway.infra.repositories.message_repository import InMemoryConversationStore  # noqa: E402
from smsgateway.settings import Settings  # noqa: E402
from smsgateway.tasks.client import TasksClient  # noqa: E402


@pytest.fixture
def settings():
    """Settings with no external systems configured."""
    return Settings(jwt_secret=TEST_SECRET, tasks_backend="inline")


@pytest.fixture
def store():
    return InMemoryConversationStore()


@pytest.fixture
def carrier():
    return FakeCarrier()


@pytest.fixture
def activity_log():
    return FakeActivityLog()


@pytest.fixture
def app(settings, store, carrier, activity_log):
    """App with fakes injected and inline background tasks."""
    return create_app(
        settings,
        store=store,
        carrier=carrier,
        activity_log=activity_log,
        tasks_client=TasksClient(backend="inline"),
    )


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_headers(client):
    return bearer(login(client))
