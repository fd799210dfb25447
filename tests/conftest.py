# =============================================================================================
# TESTS/CONFTEST.PY - SHARED FIXTURES
# =============================================================================================
# TEST STRATEGY:
# - In-memory SQLite database per test (StaticPool: every session sees the same DB)
# - BCRYPT_ROUNDS=4 (bcrypt's minimum) keeps hashing fast
# - Apps are built with create_app(settings, engine): no env vars, no dependency overrides
#
# RUNNING TESTS:
#   pytest -v
# =============================================================================================

import pytest
from fastapi.testclient import TestClient

from authapi.core.config import Settings
from authapi.core.db import Base, build_engine, build_session_factory, init_db
from authapi.core.security import PasswordHasher, TokenCodec
from authapi.main import create_app
from authapi.services.auth import AuthService
from authapi.services.credentials import CredentialStore

ACCESS_SECRET = "test-access-secret-0123456789abcdef"
REFRESH_SECRET = "test-refresh-secret-0123456789abcdef"


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        ENVIRONMENT="test",
        JWT_ACCESS_SECRET=ACCESS_SECRET,
        JWT_REFRESH_SECRET=REFRESH_SECRET,
        BCRYPT_ROUNDS=4,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def engine():
    """Fresh in-memory database with all tables, dropped after the test."""
    engine = build_engine("sqlite:///:memory:")
    init_db(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def store(engine):
    return CredentialStore(build_session_factory(engine))


@pytest.fixture
def codec(settings):
    return TokenCodec.from_settings(settings)


@pytest.fixture
def auth_service(store, codec):
    return AuthService(store=store, hasher=PasswordHasher(rounds=4), codec=codec)


@pytest.fixture
def app(settings, engine):
    return create_app(settings, engine)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def registered(client):
    """Register alice through the API and return the response JSON ({user, tokens})."""
    response = client.post(
        "/auth/register",
        json={"email": "alice@example.com", "name": "Alice", "password": "secret1"},
    )
    assert response.status_code == 201
    return response.json()
