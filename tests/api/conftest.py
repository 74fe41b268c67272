"""Shared fixtures for API tests."""

import pytest
from fastapi.testclient import TestClient

from cartcalc.main import app


@pytest.fixture
def client() -> TestClient:
    """Create test client."""
    return TestClient(app)
