"""Fixtures for API tests: an app wired to in-memory services."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.app import create_app
from api.dependencies import (
    get_challenge_host,
    get_identity_bridge_factory,
    get_profile_service,
    get_role_gate,
)


@pytest.fixture
def app(role_gate, profile_service, bridge, challenge_host) -> FastAPI:
    app = create_app()
    app.dependency_overrides[get_role_gate] = lambda: role_gate
    app.dependency_overrides[get_profile_service] = lambda: profile_service
    app.dependency_overrides[get_challenge_host] = lambda: challenge_host
    app.dependency_overrides[get_identity_bridge_factory] = (
        lambda: lambda host=None, access_token=None: bridge
    )
    return app


@pytest.fixture
def client(app) -> TestClient:
    """Create a test client for the API."""
    return TestClient(app)
