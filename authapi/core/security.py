# =============================================================================================
# AUTHAPI/CORE/SECURITY.PY - PASSWORD HASHING AND JWT TOKEN CODEC
# =============================================================================================
# This module provides the two cryptographic building blocks of authentication:
# 1. PasswordHasher: bcrypt hashing and verification (passlib)
# 2. TokenCodec: signing and verification of access + refresh JWTs (PyJWT)
#
# SECURITY PRINCIPLES:
# - Never store plaintext passwords (bcrypt hash with per-call random salt)
# - Access and refresh tokens use DIFFERENT secrets and DIFFERENT lifetimes
# - Verification returns None on any failure and never raises past this module
# - Nothing here logs or touches the database: callers decide what a failure means
# =============================================================================================

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt  # PyJWT library for creating and decoding JSON Web Tokens
from passlib.context import CryptContext  # Bcrypt password hashing

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


# =============================================================================================
# PASSWORD HASHING
# =============================================================================================

class PasswordHasher:
    """
    Salted adaptive password hashing (bcrypt via passlib's CryptContext).

    Example hash (bcrypt format):
      $2b$12$LQv3c1yqBWVHxkd0LHAkCOYz6TtxMQJqhN8/LewY5Y28Y9Cw/.a
      │   │  └─ salt (22 chars) + digest (31 chars)
      │   └─ cost factor (2^12 iterations)
      └─ algorithm identifier

    Algorithm, cost and salt travel inside the hash, so verify() needs nothing else.
    """

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__default_rounds=rounds,
            # Hashes made with any other cost factor are flagged by needs_rehash()
            bcrypt__min_rounds=rounds,
            bcrypt__max_rounds=rounds,
        )

    def hash(self, password: str) -> str:
        """Hash a plaintext password (same input → different hash every call)."""
        return self._context.hash(password)

    def verify(self, password: str, hashed: str | None) -> bool:
        """
        Check a plaintext password against a stored hash.

        Returns False (never raises) for a wrong password, an empty hash, or a
        string passlib cannot identify as a bcrypt hash.
        """
        if not hashed:
            return False
        try:
            return self._context.verify(password, hashed)
        except (ValueError, TypeError):
            return False

    def needs_rehash(self, hashed: str) -> bool:
        """True when the stored hash was produced with a different cost factor."""
        try:
            return self._context.needs_update(hashed)
        except (ValueError, TypeError):
            return False


# =============================================================================================
# JWT TOKEN CODEC
# =============================================================================================

@dataclass(frozen=True)
class TokenPayload:
    """Decoded form of a verified token. Never stored, rebuilt on every verification."""

    user_id: str
    email: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class SigningContext:
    """One class of bearer token: its secret, its lifetime and its ``type`` claim."""

    secret: str
    ttl: timedelta
    token_type: str
    algorithm: str = "HS256"


class TokenCodec:
    """
    Signs and verifies the two classes of bearer tokens.

    CLAIMS IN EVERY TOKEN:
    - userId: the user's id
    - email: the user's email at signing time
    - type: "access" or "refresh" (a token of one class never verifies as the other)
    - iat / exp: issued-at and expiry timestamps
    - jti: random id, so two tokens signed in the same second still differ

    USAGE:
        codec = TokenCodec.from_settings(settings)
        token = codec.sign_access(user.id, user.email)
        payload = codec.verify_access(token)   # TokenPayload or None
    """

    def __init__(self, access: SigningContext, refresh: SigningContext) -> None:
        self.access = access
        self.refresh = refresh

    @classmethod
    def from_settings(cls, settings) -> "TokenCodec":
        return cls(
            access=SigningContext(
                secret=settings.JWT_ACCESS_SECRET,
                ttl=settings.access_token_ttl,
                token_type=ACCESS_TOKEN,
                algorithm=settings.JWT_ALGORITHM,
            ),
            refresh=SigningContext(
                secret=settings.JWT_REFRESH_SECRET,
                ttl=settings.refresh_token_ttl,
                token_type=REFRESH_TOKEN,
                algorithm=settings.JWT_ALGORITHM,
            ),
        )

    # -------------------------
    # Signing
    # -------------------------
    def sign_access(self, user_id: str, email: str) -> str:
        return self._sign(self.access, user_id, email)

    def sign_refresh(self, user_id: str, email: str) -> str:
        return self._sign(self.refresh, user_id, email)

    # -------------------------
    # Verification
    # -------------------------
    def verify_access(self, token: str) -> TokenPayload | None:
        return self._verify(self.access, token)

    def verify_refresh(self, token: str) -> TokenPayload | None:
        return self._verify(self.refresh, token)

    @staticmethod
    def _sign(context: SigningContext, user_id: str, email: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "userId": str(user_id),
            "email": email,
            "type": context.token_type,
            "iat": now,
            "exp": now + context.ttl,
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, context.secret, algorithm=context.algorithm)

    @staticmethod
    def _verify(context: SigningContext, token: str) -> TokenPayload | None:
        """
        Verify signature, algorithm, expiry and token class.

        WHAT RETURNS None:
        - Malformed token (not three base64url segments)
        - Signature made with another secret, or payload tampered with
        - exp in the past (no leeway)
        - Missing userId/email/iat/exp claims
        - type claim of the other token class
        """
        if not token:
            return None
        try:
            claims = jwt.decode(
                token,
                context.secret,
                algorithms=[context.algorithm],  # Only accept our configured algorithm
                options={"require": ["exp", "iat"]},
            )
        except jwt.PyJWTError:
            return None

        if claims.get("type") != context.token_type:
            return None
        user_id = claims.get("userId")
        email = claims.get("email")
        if not isinstance(user_id, str) or not isinstance(email, str):
            return None

        return TokenPayload(
            user_id=user_id,
            email=email,
            issued_at=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
        )
