"""Authentication against the Firebase identity provider."""

from .errors import AUTH_ERROR_MESSAGES, auth_error, get_auth_error_message, normalize_auth_code
from .firebase_provider import FirebaseIdentityProvider
from .middleware import SESSION_COOKIE, SessionGateMiddleware, is_public_path

__all__ = [
    "AUTH_ERROR_MESSAGES",
    "auth_error",
    "get_auth_error_message",
    "normalize_auth_code",
    "FirebaseIdentityProvider",
    "SESSION_COOKIE",
    "SessionGateMiddleware",
    "is_public_path",
]
