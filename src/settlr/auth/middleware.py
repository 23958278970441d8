"""Session-cookie route gating."""

from urllib.parse import urlencode

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse


SESSION_COOKIE = "session"

PUBLIC_PATHS = ("/login", "/signup")
OPEN_PATHS = ("/",)
OPEN_PREFIXES = ("/static", "/health", "/docs", "/openapi.json", "/api/auth/login", "/api/auth/signup", "/api/auth/logout")


def is_public_path(path: str) -> bool:
    if path in PUBLIC_PATHS or path in OPEN_PATHS:
        return True
    return any(path == p or path.startswith(p + "/") for p in OPEN_PREFIXES)


class SessionGateMiddleware(BaseHTTPMiddleware):
    """
    Sends visitors without a session cookie to the login page.

    Only the presence of the cookie is checked here; endpoints verify it
    through the ``current_user`` dependency. API paths answer 401 instead
    of redirecting.
    """

    async def dispatch(self, request: Request, call_next):
        path = request.url.path

        if is_public_path(path) or request.cookies.get(SESSION_COOKIE):
            return await call_next(request)

        if path.startswith("/api/"):
            return JSONResponse(status_code=401, content={"error": "Not authenticated"})

        return RedirectResponse(
            url=f"/login?{urlencode({'from': path})}", status_code=307
        )
