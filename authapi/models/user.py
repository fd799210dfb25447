# =============================================================================================
# AUTHAPI/MODELS/USER.PY - USER DATABASE MODEL
# =============================================================================================
# One row per account. The row also holds the user's single refresh-token slot:
#
#   refresh_token = NULL      → no session (never logged in, logged out, password changed)
#   refresh_token = "<jwt>"   → the ONE refresh token that /auth/refresh will accept
#
# Writing a new token into the slot (login, refresh) silently invalidates the old one,
# because the service compares the presented token with this column by exact equality.
# =============================================================================================

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, String, Text

from authapi.core.db import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    User account with credentials and the current refresh token.

    DATABASE TABLE:
        CREATE TABLE users (
            id VARCHAR(36) PRIMARY KEY,
            email VARCHAR(255) NOT NULL UNIQUE,
            name VARCHAR(100),
            password_hash VARCHAR(255) NOT NULL,
            refresh_token TEXT,
            created_at TIMESTAMP WITH TIME ZONE NOT NULL,
            updated_at TIMESTAMP WITH TIME ZONE NOT NULL
        );

    password_hash and refresh_token never leave the service layer: every API
    response is built from an explicit projection (see services/auth.py).
    """

    __tablename__ = "users"

    id = Column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
        nullable=False,
        comment="Unique identifier, assigned at insert and never changed",
    )

    # Case-sensitive as stored; uniqueness enforced by the database
    email = Column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="Login email address",
    )

    name = Column(
        String(100),
        nullable=True,
        comment="Optional display name",
    )

    password_hash = Column(
        String(255),
        nullable=False,
        comment="bcrypt hash of the password",
    )

    refresh_token = Column(
        Text,
        nullable=True,
        comment="The single currently valid refresh token, NULL when logged out",
    )

    created_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        nullable=False,
    )

    # onupdate also fires for the field-level UPDATE statements issued by the store
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
