import os
from dataclasses import replace
from typing import Generator

import httpx
import pytest
from fastapi.testclient import TestClient

# Point the app at an in-memory SQLite database before importing it.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DB_READY_ATTEMPTS"] = "1"

from coinboard import models  # noqa: E402
from coinboard.config import get_settings, settings  # noqa: E402
from coinboard.main import app  # noqa: E402
from coinboard.routes.coin import get_http_client  # noqa: E402


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    """Test client that runs the real lifespan.

    Every lifespan builds a new engine over a fresh in-memory database, so
    tests never see each other's users.
    """
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def db_session(client):
    db = app.state.database.session()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def user_factory(db_session):
    """Create users directly in the store, bypassing the HTTP API."""

    def _create_user(name: str, email: str) -> models.User:
        user = models.User(name=name, email=email)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _create_user


@pytest.fixture()
def quote_settings(client):
    """Fully configured quote settings, injected through the dependency."""
    configured = replace(
        settings,
        cmc_api_key="test-key",
        cmc_base_url="https://cmc.test",
        cmc_latest_quotes_path="/v2/cryptocurrency/quotes/latest",
    )
    app.dependency_overrides[get_settings] = lambda: configured
    return configured


@pytest.fixture()
def upstream(client):
    """Swap the upstream quote API for an httpx.MockTransport handler.

    Returns an installer taking the handler; the installer returns the list
    of requests the handler received.
    """
    clients = []

    def _install(handler):
        received = []

        def _recording_handler(request: httpx.Request) -> httpx.Response:
            received.append(request)
            return handler(request)

        mock_client = httpx.Client(transport=httpx.MockTransport(_recording_handler))
        clients.append(mock_client)
        app.dependency_overrides[get_http_client] = lambda: mock_client
        return received

    yield _install

    for mock_client in clients:
        mock_client.close()
