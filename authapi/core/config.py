# =============================================================================================
# AUTHAPI/CORE/CONFIG.PY - CENTRALIZED CONFIGURATION WITH PYDANTIC SETTINGS
# =============================================================================================
# This module provides a type-safe, environment-driven configuration system using Pydantic.
#
# FLOW:
# 1. The shell (or a .env file in the working directory) provides the environment
# 2. This Settings class reads from os.environ at startup
# 3. create_app() receives a Settings instance (or loads the cached one via get_settings())
# 4. Invalid configuration (bad durations, missing production secrets) fails at startup,
#    never on the first request
# =============================================================================================

import re
from datetime import timedelta
from functools import lru_cache  # Cache settings instance (load once, reuse everywhere)

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from authapi.core.logging import get_logger

logger = get_logger(__name__)

# -------------------------
# Environments allowed to run without explicit signing secrets
# -------------------------
DEVELOPMENT_ENVIRONMENTS = frozenset({"development", "test"})

# Fallback secrets, only ever used inside DEVELOPMENT_ENVIRONMENTS
DEV_ACCESS_SECRET = "dev-access-secret-do-not-use-in-production"
DEV_REFRESH_SECRET = "dev-refresh-secret-do-not-use-in-production"

# -------------------------
# Duration strings: "15m", "7d", "900", "-1s"
# -------------------------
_DURATION_RE = re.compile(r"^\s*(-?\d+)\s*([smhdw]?)\s*$")
_UNIT_SECONDS = {
    "": 1,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 604800,
}


def parse_duration(value: str) -> timedelta:
    """
    Convert a compact duration string into a timedelta.

    FORMAT:
        <integer><unit>, unit one of s, m, h, d, w (seconds when omitted)

    EXAMPLES:
        parse_duration("15m")  → timedelta(minutes=15)
        parse_duration("7d")   → timedelta(days=7)
        parse_duration("900")  → timedelta(seconds=900)
        parse_duration("-1s")  → timedelta(seconds=-1)   (already expired)

    Raises:
        ValueError: If the string is not a valid duration
    """
    match = _DURATION_RE.match(str(value))
    if match is None:
        raise ValueError(f"Invalid duration: {value!r} (expected e.g. '15m', '7d', '900')")
    amount, unit = match.groups()
    return timedelta(seconds=int(amount) * _UNIT_SECONDS[unit])


# -------------------------
# Settings class - Defines all configuration with types and defaults
# -------------------------
class Settings(BaseSettings):
    """
    Application configuration loaded from environment variables.

    USAGE EXAMPLE:
        from authapi.core.config import get_settings
        settings = get_settings()
        print(settings.access_token_ttl)  # timedelta(minutes=15)

    SECRET POLICY:
    - development / test: missing secrets fall back to fixed dev secrets (warning logged)
    - anything else: missing, empty or identical secrets abort startup
    """

    # -------------------------
    # RUNTIME ENVIRONMENT
    # -------------------------
    ENVIRONMENT: str = "development"

    # -------------------------
    # DATABASE CONFIGURATION
    # -------------------------
    # SQLAlchemy connection string (SQLite by default, any SQLAlchemy URL works)
    DATABASE_URL: str = "sqlite:///./dev.db"

    # -------------------------
    # JWT (JSON WEB TOKEN) SETTINGS
    # -------------------------
    # Two independent signing secrets: a leaked access secret cannot mint refresh tokens
    # Generate each with: openssl rand -hex 32
    JWT_ACCESS_SECRET: str | None = None
    JWT_REFRESH_SECRET: str | None = None

    # Algorithm used for JWT signing (HS256 = HMAC with SHA-256)
    JWT_ALGORITHM: str = "HS256"

    # Token lifetimes as duration strings
    ACCESS_TOKEN_EXPIRES_IN: str = "15m"
    REFRESH_TOKEN_EXPIRES_IN: str = "7d"

    # -------------------------
    # PASSWORD HASHING (BCRYPT)
    # -------------------------
    # Cost factor for bcrypt hashing, each increment doubles computation time:
    #   10 → ~100ms per hash
    #   12 → ~400ms per hash (production default)
    #    4 → minimum bcrypt allows (tests)
    BCRYPT_ROUNDS: int = 12

    # -------------------------
    # LOGGING / HTTP
    # -------------------------
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "console"  # "console" or "json"
    CORS_ORIGINS: list[str] = ["*"]
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    model_config = SettingsConfigDict(
        # Read from .env file if present (local development)
        env_file=".env",
        env_file_encoding="utf-8",
        # Allow extra fields in .env without validation errors
        extra="ignore",
    )

    # -------------------------
    # Field validation
    # -------------------------
    @field_validator("ACCESS_TOKEN_EXPIRES_IN", "REFRESH_TOKEN_EXPIRES_IN")
    @classmethod
    def _check_duration(cls, value: str) -> str:
        parse_duration(value)
        return value

    @field_validator("BCRYPT_ROUNDS")
    @classmethod
    def _check_rounds(cls, value: int) -> int:
        if not 4 <= value <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31")
        return value

    @field_validator("LOG_LEVEL")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        return value.upper()

    @model_validator(mode="after")
    def _check_secrets(self) -> "Settings":
        """Apply the signing-secret policy (see class docstring)."""
        if self.is_development:
            if not self.JWT_ACCESS_SECRET:
                logger.warning("JWT_ACCESS_SECRET unset, using development secret")
                self.JWT_ACCESS_SECRET = DEV_ACCESS_SECRET
            if not self.JWT_REFRESH_SECRET:
                logger.warning("JWT_REFRESH_SECRET unset, using development secret")
                self.JWT_REFRESH_SECRET = DEV_REFRESH_SECRET
            return self

        missing = [
            name
            for name in ("JWT_ACCESS_SECRET", "JWT_REFRESH_SECRET")
            if not getattr(self, name)
        ]
        if missing:
            raise ValueError(
                f"{', '.join(missing)} must be set when ENVIRONMENT={self.ENVIRONMENT!r}"
            )
        if self.JWT_ACCESS_SECRET == self.JWT_REFRESH_SECRET:
            raise ValueError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must differ")
        return self

    # -------------------------
    # Derived values
    # -------------------------
    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() in DEVELOPMENT_ENVIRONMENTS

    @property
    def access_token_ttl(self) -> timedelta:
        return parse_duration(self.ACCESS_TOKEN_EXPIRES_IN)

    @property
    def refresh_token_ttl(self) -> timedelta:
        return parse_duration(self.REFRESH_TOKEN_EXPIRES_IN)


# -------------------------
# Cached settings instance - Load once, reuse everywhere
# -------------------------
@lru_cache
def get_settings() -> Settings:
    """
    Returns a singleton Settings instance (cached after first call).

    TESTING:
    Build a Settings object directly and hand it to create_app(), or clear the cache:
        get_settings.cache_clear()
        monkeypatch.setenv("ENVIRONMENT", "production")
        settings = get_settings()
    """
    return Settings()
