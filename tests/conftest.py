"""Test configuration and fixtures for the Villa package.

This module provides common fixtures and configurations used across all test modules.
It includes:
- Environment setup (log directory, cheap bcrypt rounds)
- An in-memory document store backed by mongomock-motor
- A FastAPI test client wired to that store
- Helpers for registering users and building auth headers
"""

import os
import tempfile
import uuid

os.environ.setdefault("API_LOG_DIR", tempfile.mkdtemp(prefix="villa-test-logs-"))
os.environ.setdefault("SECURITY_BCRYPT_ROUNDS", "4")
os.environ.setdefault("SECURITY_SECRET_KEY", "villa-test-signing-key-0123456789abcdef")

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from villa.core import dependencies
from villa.core.settings import settings
from villa.main import app
from villa.services.store import MongoStore

API = settings.prefix
DEFAULT_PASSWORD = "secret123"


@pytest.fixture
def store() -> MongoStore:
    """Fresh in-memory store per test."""
    client = AsyncMongoMockClient()
    return MongoStore(client[f"villa_{uuid.uuid4().hex}"])


@pytest.fixture
def container(store):
    """Service container initialized with the in-memory store."""
    dependencies.get_service_container.cache_clear()
    container = dependencies.get_service_container()
    container.initialize(store=store)
    yield container
    container.shutdown()
    dependencies.get_service_container.cache_clear()


@pytest.fixture
def client(container):
    """Fixture for FastAPI test client."""
    with TestClient(app) as client:
        yield client


def signup_body(username: str, password: str = DEFAULT_PASSWORD, **overrides):
    body = {
        "username": username,
        "password": password,
        "firstName": username.capitalize(),
        "lastName": "Tester",
        "email": f"{username}@example.com",
    }
    body.update(overrides)
    return body


@pytest.fixture
def register(client):
    """Sign a user up, log them in and return bearer auth headers."""

    def _register(username: str, password: str = DEFAULT_PASSWORD, **overrides):
        response = client.post(
            f"{API}/signup", json=signup_body(username, password, **overrides)
        )
        assert response.status_code == 201, response.text
        response = client.post(
            f"{API}/login", json={"username": username, "password": password}
        )
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _register
