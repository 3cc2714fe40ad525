"""
Shared fixtures for the hello service test suite.
"""

import os
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi.testclient import TestClient

from hello_service import create_app

JWT_OVERRIDES = {
    "jwt": {
        "realm": "test-realm",
        "domain": "https://issuer.test/",
        "audience": "test-audience",
        "secret": "test-secret",
    }
}


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer HELLO_SERVICE_* variables out of the tests."""
    for name in list(os.environ):
        if name.startswith("HELLO_SERVICE_"):
            monkeypatch.delenv(name)


@pytest.fixture
def app():
    return create_app(overrides=JWT_OVERRIDES)


@pytest.fixture
def client(app):
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def make_token():
    """Mint HS256 tokens that match JWT_OVERRIDES unless told otherwise."""

    def factory(
        subject: str = "alice",
        audience: str = "test-audience",
        issuer: str = "https://issuer.test/",
        secret: str = "test-secret",
        expires_in: int = 300,
    ) -> str:
        claims = {
            "sub": subject,
            "aud": audience,
            "iss": issuer,
            "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
        }
        return jwt.encode(claims, secret, algorithm="HS256")

    return factory
