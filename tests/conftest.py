"""
Pytest configuration and shared fixtures for authorization relay tests.

This module provides the relay configuration, application and test client
fixtures, an upstream mock built on respx, and cookie assertions shared by
the endpoint tests.
"""

import pytest
import respx
from typing import Dict
from fastapi.testclient import TestClient

from src.auth_relay.config import RelayConfig, load_config
from src.auth_relay.main import create_app


@pytest.fixture
def relay_env() -> Dict[str, str]:
    """Environment for a fully configured relay."""
    return {
        "CLIENT_ID": "test-client-id",
        "CLIENT_SECRET": "test-client-secret",
        "REDIRECT_URI": "http://localhost:5000/callback",
        "ALLOWED_ORIGINS": "http://localhost:3000,http://localhost:8888",
        "ENVIRONMENT": "test",
    }


@pytest.fixture
def relay_config(relay_env) -> RelayConfig:
    """Relay configuration built the same way the entry point builds it."""
    return load_config(relay_env)


@pytest.fixture
def app(relay_config):
    """Relay application under test."""
    return create_app(relay_config)


@pytest.fixture
def client(app):
    """Test client that does not follow redirects."""
    return TestClient(app, follow_redirects=False)


@pytest.fixture
def upstream_mock():
    """Mock the upstream provider endpoints."""
    with respx.mock(assert_all_called=False) as respx_mock:
        yield respx_mock


@pytest.fixture
def token_payload() -> Dict[str, object]:
    """Successful token endpoint body."""
    return {
        "access_token": "A",
        "token_type": "Bearer",
        "scope": "user-read-private user-read-email",
        "expires_in": 3600,
        "refresh_token": "R"
    }


@pytest.fixture(autouse=True)
def disable_logging():
    """Disable logging during tests to reduce noise."""
    import logging
    logging.disable(logging.CRITICAL)
    yield
    logging.disable(logging.NOTSET)


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "security: marks tests as security-focused tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically."""
    for item in items:
        if "integration" in item.nodeid:
            item.add_marker(pytest.mark.integration)
        elif "security" in item.nodeid:
            item.add_marker(pytest.mark.security)
        else:
            item.add_marker(pytest.mark.unit)


# Custom assertions for cookie handling
def set_cookie_headers(response, name: str) -> list:
    """Return the Set-Cookie headers for one cookie name."""
    return [
        header for header in response.headers.get_list("set-cookie")
        if header.startswith(f"{name}=")
    ]


def assert_cookie_cleared(response, name: str):
    """Assert that the response deletes the named cookie exactly once."""
    headers = set_cookie_headers(response, name)
    assert len(headers) == 1, f"Expected one Set-Cookie for {name}, got {headers}"
    assert "Max-Age=0" in headers[0]


def assert_cookie_issued(response, name: str):
    """Assert that the response sets the named cookie with a lifetime."""
    headers = set_cookie_headers(response, name)
    assert len(headers) == 1, f"Expected one Set-Cookie for {name}, got {headers}"
    assert "Max-Age=0" not in headers[0]
    assert "HttpOnly" in headers[0]


pytest.assert_cookie_cleared = assert_cookie_cleared
pytest.assert_cookie_issued = assert_cookie_issued
pytest.set_cookie_headers = set_cookie_headers
