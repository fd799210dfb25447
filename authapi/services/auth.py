# =============================================================================================
# AUTHAPI/SERVICES/AUTH.PY - AUTHENTICATION SERVICE (REGISTER, LOGIN, ROTATION, LOGOUT)
# =============================================================================================
# Orchestrates PasswordHasher + TokenCodec + CredentialStore.
#
# SESSION STATES (inferred from the user's refresh_token slot, never stored as an enum):
# - Anonymous:     no tokens issued, or slot cleared (logout / password change)
# - Authenticated: presented refresh token verifies AND equals the stored slot
# - Stale:         presented token expired, tampered with, or superseded → same as Anonymous
#
# ROTATION (rotate-on-use):
#   login / register / refresh all write a NEW refresh token into the slot, which makes
#   every previously issued refresh token fail the exact-equality check.
#
# CONCURRENCY:
#   Two refreshes racing with the same token may both pass the equality check; the last
#   write wins and only its token stays valid. Accepted for a single-session design.
#
# FAILURES:
#   Domain failures raise AuthError subclasses (logged as warnings). Anything else (store,
#   codec, bug) is logged with its traceback and re-raised unchanged.
# =============================================================================================

import functools
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError

from authapi.core.errors import (
    AuthError,
    DuplicateCredential,
    InvalidCredentials,
    InvalidToken,
    NotFound,
)
from authapi.core.logging import get_logger
from authapi.core.security import PasswordHasher, TokenCodec, TokenPayload
from authapi.models.user import User
from authapi.services.credentials import CredentialStore

logger = get_logger(__name__)


# =============================================================================================
# RESULT TYPES
# =============================================================================================

@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class PublicUser:
    id: str
    email: str
    name: str | None


@dataclass(frozen=True)
class UserProfile:
    """What request handlers see as "the current user". No hash, no token."""

    id: str
    email: str
    name: str | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class AuthResult:
    user: PublicUser
    tokens: TokenPair


def _public(user: User) -> PublicUser:
    return PublicUser(id=user.id, email=user.email, name=user.name)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo; they were written as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _profile(user: User) -> UserProfile:
    return UserProfile(
        id=user.id,
        email=user.email,
        name=user.name,
        created_at=_as_utc(user.created_at),
        updated_at=_as_utc(user.updated_at),
    )


def _logged(operation: str):
    """Log domain rejections as warnings and unexpected errors with traceback, then re-raise."""

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except AuthError as exc:
                logger.warning("Operation rejected", operation=operation, reason=exc.message)
                raise
            except Exception:
                logger.exception("Operation failed", operation=operation)
                raise

        return wrapper

    return decorator


# =============================================================================================
# SERVICE
# =============================================================================================

class AuthService:
    """
    The authentication core. Built once by create_app() and shared by all requests.

    USAGE:
        service = AuthService(CredentialStore(session_factory), PasswordHasher(12), codec)
        result = service.login("alice@example.com", "secret1")
        result.tokens.refresh_token  # now the only valid refresh token for alice
    """

    def __init__(
        self,
        store: CredentialStore,
        hasher: PasswordHasher,
        codec: TokenCodec,
    ) -> None:
        self.store = store
        self.hasher = hasher
        self.codec = codec

    # -------------------------
    # Token helpers
    # -------------------------
    def _issue_tokens(self, user_id: str, email: str) -> TokenPair:
        """Sign a fresh pair and persist its refresh token into the user's slot."""
        tokens = TokenPair(
            access_token=self.codec.sign_access(user_id, email),
            refresh_token=self.codec.sign_refresh(user_id, email),
        )
        self.store.update_user(user_id, refresh_token=tokens.refresh_token)
        return tokens

    def verify_access_token(self, token: str) -> TokenPayload | None:
        payload = self.codec.verify_access(token)
        if payload is None:
            logger.debug("Access token verification failed")
        return payload

    def verify_refresh_token(self, token: str) -> TokenPayload | None:
        payload = self.codec.verify_refresh(token)
        if payload is None:
            logger.debug("Refresh token verification failed")
        return payload

    # -------------------------
    # Register
    # -------------------------
    @_logged("Registration")
    def register(self, email: str, name: str | None, password: str) -> AuthResult:
        """
        Create the account and sign the first token pair.

        FLOW:
        1. Reject an email that already exists (exact match)
        2. Hash password, insert row (store returns the generated id)
        3. Sign tokens once with the real id, persist the refresh token

        Raises:
            DuplicateCredential: email already registered (also on a lost insert race)
        """
        if self.store.find_user_by_email(email) is not None:
            raise DuplicateCredential()

        password_hash = self.hasher.hash(password)
        try:
            user = self.store.create_user(email=email, name=name, password_hash=password_hash)
        except IntegrityError as exc:
            raise DuplicateCredential() from exc

        tokens = self._issue_tokens(user.id, user.email)
        logger.info("User registered", user_id=user.id)
        return AuthResult(user=_public(user), tokens=tokens)

    # -------------------------
    # Login
    # -------------------------
    @_logged("Login")
    def login(self, email: str, password: str) -> AuthResult:
        """
        Check credentials and start a new session (overwrites any previous one).

        Unknown email and wrong password raise the SAME InvalidCredentials error.
        A stored hash with an outdated cost factor is upgraded transparently.
        """
        user = self.store.find_user_by_email(email)
        if user is None or not self.hasher.verify(password, user.password_hash):
            raise InvalidCredentials()

        if self.hasher.needs_rehash(user.password_hash):
            self.store.update_user(user.id, password_hash=self.hasher.hash(password))
            logger.info("Password hash upgraded", user_id=user.id)

        tokens = self._issue_tokens(user.id, user.email)
        logger.info("User logged in", user_id=user.id)
        return AuthResult(user=_public(user), tokens=tokens)

    # -------------------------
    # Refresh (rotate-on-use)
    # -------------------------
    @_logged("Token refresh")
    def refresh_access_token(self, refresh_token: str) -> TokenPair:
        """
        Exchange the current refresh token for a brand new pair.

        Raises InvalidToken when the token does not verify, its user is gone, or it is
        not byte-for-byte the token stored in the slot (superseded / already rotated /
        logged out). The old token is dead as soon as the new one is written.
        """
        payload = self.verify_refresh_token(refresh_token)
        if payload is None:
            raise InvalidToken()

        user = self.store.find_user_by_id(payload.user_id)
        if user is None or user.refresh_token != refresh_token:
            raise InvalidToken()

        tokens = self._issue_tokens(user.id, user.email)
        logger.info("Access token refreshed", user_id=user.id)
        return tokens

    # -------------------------
    # Logout
    # -------------------------
    @_logged("Logout")
    def logout(self, refresh_token: str) -> None:
        """
        Clear the user's refresh-token slot.

        Only a verifiable refresh token is accepted, but the slot is cleared even if the
        token was already superseded: the session it named must stop working either way.
        """
        payload = self.verify_refresh_token(refresh_token)
        if payload is None:
            raise InvalidToken()

        self.store.update_user(payload.user_id, refresh_token=None)
        logger.info("User logged out", user_id=payload.user_id)

    # -------------------------
    # Lookups
    # -------------------------
    def get_user_by_id(self, user_id: str) -> UserProfile | None:
        """Profile projection, or None for an unknown id (not an error)."""
        user = self.store.find_user_by_id(user_id)
        return _profile(user) if user is not None else None

    # -------------------------
    # Password change
    # -------------------------
    @_logged("Password change")
    def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        """
        Replace the password hash and clear the refresh-token slot.

        Clearing the slot is the only "sign out everywhere" this system has.

        Raises:
            NotFound: no such user
            InvalidCredentials: current password does not match
        """
        user = self.store.find_user_by_id(user_id)
        if user is None:
            raise NotFound()
        if not self.hasher.verify(current_password, user.password_hash):
            raise InvalidCredentials("Current password is incorrect")

        self.store.update_user(
            user_id,
            password_hash=self.hasher.hash(new_password),
            refresh_token=None,
        )
        logger.info("Password changed", user_id=user_id)

    # -------------------------
    # Profile
    # -------------------------
    @_logged("Profile update")
    def update_profile(self, user_id: str, name: str | None) -> UserProfile:
        """Update the display name only; tokens and password are untouched."""
        if not self.store.update_user(user_id, name=name):
            raise NotFound()
        logger.info("Profile updated", user_id=user_id)
        return self.get_user_by_id(user_id)
