"""Shared fixtures for web API tests (F6)."""

import pytest
from fastapi.testclient import TestClient

from credhub.core.auth import create_access_token
from credhub.web.api import create_app


@pytest.fixture
def client(workspace):
    """Create test client over the isolated workspace database."""
    app = create_app()
    return TestClient(app)


@pytest.fixture
def auth_headers():
    """Build a bearer header for a user."""

    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user)}"}

    return _headers
