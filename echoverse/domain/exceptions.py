"""Domain errors raised by the identity subsystem.

Each error carries the HTTP status it maps to at the API boundary; nothing
below the API layer looks at ``status_code``.
"""

from typing import Any, Dict, List, Optional


class AuthError(Exception):
    """Base exception for all identity and session errors."""

    status_code = 400
    default_message = "Authentication error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AuthError):
    """Malformed or missing request fields."""

    default_message = "Invalid input"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []


class InvalidCredentials(AuthError):
    """Wrong username or password. Never says which one."""

    status_code = 401
    default_message = "Invalid username or password"


class Conflict(AuthError):
    """Duplicate username, email or external identity."""

    default_message = "Resource already exists"


class Unauthorized(AuthError):
    status_code = 401
    default_message = "Not authenticated"


class Forbidden(AuthError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(AuthError):
    status_code = 404
    default_message = "Not found"


class InvalidToken(AuthError):
    default_message = "Invalid or expired token"


class TokenExpired(AuthError):
    default_message = "Token has expired"


class NoPasswordSet(AuthError):
    default_message = "User has no password (social login)"


class EmailNotProvided(AuthError):
    default_message = "Email not provided by the identity provider"


class LinkingNotAllowed(AuthError):
    default_message = "An account with this email already exists. Sign in with your password first."


class UpstreamFailure(AuthError):
    """Identity provider or mail transport failure."""

    status_code = 502
    default_message = "Upstream service failure"
