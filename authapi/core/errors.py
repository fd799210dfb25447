# =============================================================================================
# AUTHAPI/CORE/ERRORS.PY - AUTHENTICATION ERROR TAXONOMY
# =============================================================================================
# Domain errors raised by the auth service and the auth dependencies.
#
# RULES:
# - Every message here is safe to show to the client
# - The service never picks HTTP status codes; main.py maps each class to one
# - Login/registration failures never reveal which field was wrong
# - Token failures never reveal expired vs. tampered vs. rotated: all are "invalid"
# =============================================================================================


class AuthError(Exception):
    """Base class for all domain errors of the authentication core."""

    default_message = "Authentication error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class DuplicateCredential(AuthError):
    default_message = "User with this email already exists"


class InvalidCredentials(AuthError):
    default_message = "Invalid email or password"


class InvalidToken(AuthError):
    default_message = "Invalid refresh token"


class MissingToken(AuthError):
    default_message = "Access token is required"


class UserNotFound(AuthError):
    """Token was valid but its user no longer exists (middleware only)."""

    default_message = "User not found"


class NotFound(AuthError):
    """Plain lookup miss outside the authentication path."""

    default_message = "User not found"


class AuthenticationFailed(AuthError):
    """Catch-all for unexpected errors inside the required-auth dependency."""

    default_message = "Authentication failed"


class AuthenticationRequired(AuthError):
    default_message = "Authentication required"


class AccessDenied(AuthError):
    default_message = "Access denied: You can only access your own resources"
