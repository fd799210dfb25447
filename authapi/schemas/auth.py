# =============================================================================================
# AUTHAPI/SCHEMAS/AUTH.PY - PYDANTIC SCHEMAS FOR AUTHENTICATION REQUESTS/RESPONSES
# =============================================================================================
# TOKEN LIFECYCLE:
# 1. Register / login: server returns {user, tokens}
# 2. API calls: client sends tokens.accessToken in "Authorization: Bearer <token>"
# 3. Access expires: client POSTs tokens.refreshToken to /auth/refresh → new {tokens}
#    (the refresh token it sent is now dead: rotate-on-use)
# 4. Logout: client POSTs its refresh token to /auth/logout, server clears the slot
# =============================================================================================

from pydantic import Field

from authapi.schemas.user import CamelModel, UserOut, UserProfileOut


# =============================================================================================
# OUTPUT SCHEMAS (Response bodies)
# =============================================================================================

class TokenPairOut(CamelModel):
    """
    RESPONSE EXAMPLE:
        {
            "accessToken": "eyJhbGci...",
            "refreshToken": "eyJhbGci...",
            "tokenType": "bearer"
        }
    """

    access_token: str = Field(..., description="Short-lived JWT for the Authorization header")
    refresh_token: str = Field(..., description="Long-lived JWT, single use, for /auth/refresh")
    token_type: str = Field(default="bearer", description="Authorization scheme (always 'bearer')")


class AuthOut(CamelModel):
    """POST /auth/register (201) and POST /auth/login (200)."""

    user: UserOut
    tokens: TokenPairOut


class TokensOut(CamelModel):
    """POST /auth/refresh."""

    tokens: TokenPairOut


class MeOut(CamelModel):
    """GET /auth/me."""

    user: UserProfileOut


class MessageOut(CamelModel):
    message: str


# =============================================================================================
# INPUT SCHEMAS (Request bodies)
# =============================================================================================

class RefreshTokenIn(CamelModel):
    """
    POST /auth/refresh and POST /auth/logout
    {
        "refreshToken": "eyJhbGci..."
    }
    """

    refresh_token: str = Field(..., min_length=1, description="Refresh token from login or previous refresh")
