# =============================================================================================
# AUTHAPI/ROUTERS/AUTH.PY - AUTHENTICATION ENDPOINTS
# =============================================================================================
# - POST /auth/register:        Create account → {user, tokens}
# - POST /auth/login:           Authenticate → {user, tokens}
# - POST /auth/refresh:         Rotate refresh token → {tokens}
# - POST /auth/logout:          Clear the session slot → {message}
# - GET  /auth/me:              Current user profile → {user}
# - POST /auth/change-password: New password, all sessions ended → {message}
#
# Handlers are thin: the body is validated by the schemas, the work is done by AuthService,
# and AuthError subclasses are turned into {"error": ...} responses by main.py.
# Plain `def` handlers run on FastAPI's threadpool, so bcrypt never blocks the event loop.
# =============================================================================================

from fastapi import APIRouter, Depends, status

from authapi.core.deps import get_auth_service, get_current_user
from authapi.schemas.auth import AuthOut, MeOut, MessageOut, RefreshTokenIn, TokensOut
from authapi.schemas.user import ChangePasswordIn, LoginIn, RegisterIn
from authapi.services.auth import AuthService, UserProfile

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
)


@router.post("/register", response_model=AuthOut, status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterIn,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Create a new user account and log it in.

    RESPONSE (201 Created):
        {
            "user": {"id": "…", "email": "alice@example.com", "name": "Alice"},
            "tokens": {"accessToken": "eyJ…", "refreshToken": "eyJ…", "tokenType": "bearer"}
        }

    ERRORS:
        409 Conflict: Email already registered
        400 Bad Request: Validation failed
    """
    return auth_service.register(email=data.email, name=data.name, password=data.password)


@router.post("/login", response_model=AuthOut)
def login(
    data: LoginIn,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Authenticate and start a new session (any previous refresh token stops working).

    ERRORS:
        401 Unauthorized: Invalid email or password (same message for both cases)
    """
    return auth_service.login(email=data.email, password=data.password)


@router.post("/refresh", response_model=TokensOut)
def refresh_tokens(
    data: RefreshTokenIn,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Exchange a refresh token for a new token pair (rotate-on-use).

    ERRORS:
        401 Unauthorized: Invalid refresh token (expired, tampered, rotated or logged out)
    """
    return {"tokens": auth_service.refresh_access_token(data.refresh_token)}


@router.post("/logout", response_model=MessageOut)
def logout(
    data: RefreshTokenIn,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    End the session named by the refresh token.

    Access tokens already issued stay valid until they expire (15 minutes by default).
    """
    auth_service.logout(data.refresh_token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=MeOut)
def get_current_user_profile(
    current_user: UserProfile = Depends(get_current_user),
):
    """
    Get the authenticated user's profile.

    REQUEST:
        GET /auth/me
        Authorization: Bearer eyJhbGci...
    """
    return {"user": current_user}


@router.post("/change-password", response_model=MessageOut)
def change_password(
    data: ChangePasswordIn,
    current_user: UserProfile = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Change the caller's password; the stored refresh token is cleared (log in again).

    ERRORS:
        401 Unauthorized: Current password is incorrect
    """
    auth_service.change_password(current_user.id, data.current_password, data.new_password)
    return {"message": "Password changed successfully"}
