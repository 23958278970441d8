"""Firebase Authentication identity provider."""

import logging
from datetime import timedelta
from typing import Any, Dict, Optional

import firebase_admin
import requests
from firebase_admin import auth, credentials
from firebase_admin import exceptions as firebase_exceptions

from ..exceptions import AuthError
from ..interfaces.identity import AuthenticatedUser, IIdentityProvider
from .errors import auth_error


logger = logging.getLogger(__name__)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1/accounts"


class FirebaseIdentityProvider(IIdentityProvider):
    """
    Identity provider backed by Firebase Authentication.

    Password sign-in and sign-up go through the Identity Toolkit REST API;
    session cookies are minted and verified with the Admin SDK.
    """

    def __init__(
        self,
        api_key: str,
        credentials_path: Optional[str] = None,
        app: Optional[firebase_admin.App] = None,
        http: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ):
        """
        Args:
            api_key: Web API key of the Firebase project.
            credentials_path: Service account JSON used to initialize the
                Admin SDK. Application default credentials are used if None.
            app: Already initialized Admin SDK app.
            http: Session used for REST calls.
            timeout: REST request timeout in seconds.
        """
        self._api_key = api_key
        self._credentials_path = credentials_path
        self._app = app
        self._http = http or requests.Session()
        self._timeout = timeout

    def _get_app(self) -> firebase_admin.App:
        if self._app is None:
            try:
                self._app = firebase_admin.get_app()
            except ValueError:
                cred = (
                    credentials.Certificate(self._credentials_path)
                    if self._credentials_path
                    else credentials.ApplicationDefault()
                )
                self._app = firebase_admin.initialize_app(cred)
                logger.info("Initialized Firebase Admin SDK")
        return self._app

    # ========== Password authentication ==========

    def sign_in(self, email: str, password: str) -> AuthenticatedUser:
        logger.info(f"Attempting login with email: {email}")
        data = self._post("signInWithPassword", email, password)
        logger.info(f"Login successful: {email}")
        return self._to_user(data, email)

    def sign_up(self, email: str, password: str) -> AuthenticatedUser:
        logger.info(f"Attempting signup with email: {email}")
        data = self._post("signUp", email, password)
        logger.info(f"Signup successful: {email}")
        return self._to_user(data, email)

    def _post(self, action: str, email: str, password: str) -> Dict[str, Any]:
        """
        Call an Identity Toolkit endpoint.

        Raises:
            AuthError: With the friendly message for the provider's error.
        """
        try:
            response = self._http.post(
                f"{IDENTITY_TOOLKIT_URL}:{action}",
                params={"key": self._api_key},
                json={"email": email, "password": password, "returnSecureToken": True},
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Identity Toolkit {action} request failed: {e}")
            raise auth_error("auth/network-request-failed") from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.status_code != 200:
            raw_code = (payload.get("error") or {}).get("message", "")
            logger.warning(f"Identity Toolkit {action} rejected {email}: {raw_code}")
            raise auth_error(raw_code)

        return payload

    @staticmethod
    def _to_user(data: Dict[str, Any], email: str) -> AuthenticatedUser:
        return AuthenticatedUser(
            uid=data.get("localId", ""),
            email=data.get("email", email),
            id_token=data.get("idToken"),
            display_name=data.get("displayName") or None,
        )

    # ========== Session cookies ==========

    def create_session_cookie(self, id_token: str, expires_in: timedelta) -> str:
        try:
            cookie = auth.create_session_cookie(id_token, expires_in=expires_in, app=self._get_app())
        except (ValueError, firebase_exceptions.FirebaseError) as e:
            logger.warning(f"Failed to create session cookie: {e}")
            raise AuthError("auth/invalid-id-token", "Sign-in expired. Please try again.") from e
        return cookie.decode("utf-8") if isinstance(cookie, bytes) else cookie

    def verify_session_cookie(self, cookie: str) -> AuthenticatedUser:
        try:
            claims = auth.verify_session_cookie(cookie, check_revoked=True, app=self._get_app())
        except (ValueError, firebase_exceptions.FirebaseError) as e:
            logger.debug(f"Session cookie rejected: {e}")
            raise AuthError(
                "auth/invalid-session-cookie", "Your session has expired. Please sign in again."
            ) from e

        return AuthenticatedUser(
            uid=claims.get("uid") or claims.get("sub", ""),
            email=claims.get("email", ""),
            display_name=claims.get("name"),
            claims=claims,
        )

    def revoke(self, uid: str) -> None:
        try:
            auth.revoke_refresh_tokens(uid, app=self._get_app())
        except (ValueError, firebase_exceptions.FirebaseError) as e:
            logger.warning(f"Failed to revoke sessions for {uid}: {e}")
