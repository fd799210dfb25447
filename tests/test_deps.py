# =============================================================================================
# TESTS/TEST_DEPS.PY - OPTIONAL AUTH, OWNERSHIP GUARD AND DEPENDENCY FAILURE MODES
# =============================================================================================
# Routes under /api/users exercise the three dependency flavours:
# - GET /api/users/{id}: get_optional_user (owner sees everything, others see {id, name})
# - PUT /api/users/{id}: require_owner (401 anonymous, 403 someone else)
# =============================================================================================

from datetime import timedelta

import pytest

from authapi.core.deps import get_current_user
from authapi.core.security import ACCESS_TOKEN, SigningContext, TokenCodec


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def sign_access(settings, user_id, email, ttl=timedelta(minutes=15)):
    """Access token signed with the app's access secret, for a user/lifetime of our choosing."""
    context = SigningContext(secret=settings.JWT_ACCESS_SECRET, ttl=ttl, token_type=ACCESS_TOKEN)
    return TokenCodec(access=context, refresh=context).sign_access(user_id, email)


@pytest.fixture
def bob(client):
    response = client.post(
        "/auth/register",
        json={"email": "bob@example.com", "name": "Bob", "password": "secret2"},
    )
    assert response.status_code == 201
    return response.json()


# =============================================================================================
# Optional authentication
# =============================================================================================

def test_owner_sees_full_profile(client, registered):
    user_id = registered["user"]["id"]

    response = client.get(f"/api/users/{user_id}", headers=bearer(registered["tokens"]["accessToken"]))

    assert response.status_code == 200
    body = response.json()
    assert body["email"] == "alice@example.com"
    assert "createdAt" in body


def test_anonymous_sees_public_profile(client, registered):
    user_id = registered["user"]["id"]

    response = client.get(f"/api/users/{user_id}")

    assert response.status_code == 200
    assert response.json() == {"id": user_id, "name": "Alice"}


def test_other_user_sees_public_profile(client, registered, bob):
    user_id = registered["user"]["id"]

    response = client.get(f"/api/users/{user_id}", headers=bearer(bob["tokens"]["accessToken"]))

    assert response.json() == {"id": user_id, "name": "Alice"}


def test_invalid_token_is_treated_as_anonymous(client, registered):
    user_id = registered["user"]["id"]

    response = client.get(f"/api/users/{user_id}", headers=bearer("invalid.token.here"))

    assert response.status_code == 200
    assert response.json() == {"id": user_id, "name": "Alice"}


def test_token_of_missing_user_is_treated_as_anonymous(client, settings, registered):
    user_id = registered["user"]["id"]
    ghost_token = sign_access(settings, "ghost-user-id", "ghost@example.com")

    response = client.get(f"/api/users/{user_id}", headers=bearer(ghost_token))

    assert response.status_code == 200
    assert response.json() == {"id": user_id, "name": "Alice"}


def test_lookup_error_is_treated_as_anonymous(client, app, registered, monkeypatch):
    user_id = registered["user"]["id"]
    service = app.state.auth_service
    real_lookup = service.get_user_by_id
    calls = []

    def flaky_lookup(lookup_id):
        # First call comes from the optional-auth dependency, the second from the route
        calls.append(lookup_id)
        if len(calls) == 1:
            raise RuntimeError("database is down")
        return real_lookup(lookup_id)

    monkeypatch.setattr(service, "get_user_by_id", flaky_lookup)

    response = client.get(f"/api/users/{user_id}", headers=bearer(registered["tokens"]["accessToken"]))

    assert response.status_code == 200
    assert response.json() == {"id": user_id, "name": "Alice"}
    assert len(calls) == 2


def test_unknown_profile(client):
    response = client.get("/api/users/does-not-exist")

    assert response.status_code == 404
    assert response.json() == {"error": "User not found"}


# =============================================================================================
# Ownership guard
# =============================================================================================

def test_owner_can_update_profile(client, registered):
    user_id = registered["user"]["id"]

    response = client.put(
        f"/api/users/{user_id}",
        json={"name": "Alice Liddell"},
        headers=bearer(registered["tokens"]["accessToken"]),
    )

    assert response.status_code == 200
    assert response.json()["name"] == "Alice Liddell"

    # Profile writes never touch the session
    response = client.post("/auth/refresh", json={"refreshToken": registered["tokens"]["refreshToken"]})
    assert response.status_code == 200


def test_update_requires_authentication(client, registered):
    response = client.put(f"/api/users/{registered['user']['id']}", json={"name": "Mallory"})

    assert response.status_code == 401
    assert response.json() == {"error": "Access token is required"}


def test_update_with_invalid_token_reports_token_error(client, registered):
    response = client.put(
        f"/api/users/{registered['user']['id']}",
        json={"name": "Mallory"},
        headers=bearer("invalid.token.here"),
    )

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid or expired access token"}


def test_owner_guard_without_user(app, client, registered):
    app.dependency_overrides[get_current_user] = lambda: None
    try:
        response = client.put(f"/api/users/{registered['user']['id']}", json={"name": "Mallory"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 401
    assert response.json() == {"error": "Authentication required"}


def test_update_of_someone_else_is_denied(client, registered, bob):
    response = client.put(
        f"/api/users/{registered['user']['id']}",
        json={"name": "Mallory"},
        headers=bearer(bob["tokens"]["accessToken"]),
    )

    assert response.status_code == 403
    assert response.json() == {"error": "Access denied: You can only access your own resources"}


# =============================================================================================
# Required authentication failure modes
# =============================================================================================

def test_empty_bearer_token_is_missing(client):
    response = client.get("/auth/me", headers={"Authorization": "Bearer "})

    assert response.status_code == 401
    assert response.json() == {"error": "Access token is required"}


def test_expired_access_token_is_rejected(client, settings, registered):
    expired = sign_access(
        settings,
        registered["user"]["id"],
        registered["user"]["email"],
        ttl=timedelta(seconds=-1),
    )

    response = client.get("/auth/me", headers=bearer(expired))

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid or expired access token"}


def test_deleted_user_is_rejected(client, app, registered, monkeypatch):
    monkeypatch.setattr(app.state.auth_service, "get_user_by_id", lambda user_id: None)

    response = client.get("/auth/me", headers=bearer(registered["tokens"]["accessToken"]))

    assert response.status_code == 401
    assert response.json() == {"error": "User not found"}


def test_unexpected_error_becomes_authentication_failed(client, app, registered, monkeypatch):
    def broken_lookup(user_id):
        raise RuntimeError("database is down")

    monkeypatch.setattr(app.state.auth_service, "get_user_by_id", broken_lookup)

    response = client.get("/auth/me", headers=bearer(registered["tokens"]["accessToken"]))

    assert response.status_code == 401
    assert response.json() == {"error": "Authentication failed"}


def test_request_state_carries_user(app, client, registered):
    from fastapi import Depends, Request

    from authapi.core.deps import get_current_user

    @app.get("/whoami")
    def whoami(request: Request, current_user=Depends(get_current_user)):
        return {"stateId": request.state.user.id, "userId": current_user.id}

    response = client.get("/whoami", headers=bearer(registered["tokens"]["accessToken"]))

    assert response.json() == {
        "stateId": registered["user"]["id"],
        "userId": registered["user"]["id"],
    }
