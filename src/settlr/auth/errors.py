"""User-facing messages for identity provider errors."""

from ..exceptions import AuthError


DEFAULT_AUTH_MESSAGE = "An error occurred during authentication."

AUTH_ERROR_MESSAGES = {
    "auth/invalid-email": "Invalid email address format.",
    "auth/user-disabled": "This account has been disabled.",
    "auth/user-not-found": "No account found with this email.",
    "auth/wrong-password": "Incorrect password.",
    "auth/email-already-in-use": "An account already exists with this email.",
    "auth/weak-password": "Password is too weak. It should be at least 6 characters.",
    "auth/network-request-failed": "Network error. Please check your connection.",
    "auth/too-many-requests": "Too many attempts. Please try again later.",
}

# Identity Toolkit REST error names
REST_ERROR_CODES = {
    "INVALID_EMAIL": "auth/invalid-email",
    "MISSING_EMAIL": "auth/invalid-email",
    "USER_DISABLED": "auth/user-disabled",
    "EMAIL_NOT_FOUND": "auth/user-not-found",
    "INVALID_PASSWORD": "auth/wrong-password",
    "MISSING_PASSWORD": "auth/wrong-password",
    "INVALID_LOGIN_CREDENTIALS": "auth/wrong-password",
    "EMAIL_EXISTS": "auth/email-already-in-use",
    "WEAK_PASSWORD": "auth/weak-password",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "auth/too-many-requests",
}


def normalize_auth_code(raw: str) -> str:
    """
    Map a provider error to an ``auth/...`` code.

    REST errors arrive as ``WEAK_PASSWORD : Password should be ...``; only
    the name before the colon is used. Unknown names become
    ``auth/<lower-kebab-name>``.
    """
    if not raw:
        return "auth/unknown"
    if raw.startswith("auth/"):
        return raw
    name = raw.split(":", 1)[0].strip()
    if name in REST_ERROR_CODES:
        return REST_ERROR_CODES[name]
    return "auth/" + name.lower().replace("_", "-")


def get_auth_error_message(code: str) -> str:
    return AUTH_ERROR_MESSAGES.get(normalize_auth_code(code), DEFAULT_AUTH_MESSAGE)


def auth_error(raw_code: str) -> AuthError:
    """Build an AuthError carrying the normalized code and friendly message."""
    code = normalize_auth_code(raw_code)
    return AuthError(code, AUTH_ERROR_MESSAGES.get(code, DEFAULT_AUTH_MESSAGE))
