"""Identity provider interface for Settlr."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional


@dataclass
class AuthenticatedUser:
    """A user the identity provider has vouched for."""
    uid: str
    email: str
    id_token: Optional[str] = None
    display_name: Optional[str] = None
    claims: dict = field(default_factory=dict)


class IIdentityProvider(ABC):
    """
    Abstract interface for the third-party identity provider.

    Covers password sign-in/sign-up and session cookie issuance.
    """

    @abstractmethod
    def sign_in(self, email: str, password: str) -> AuthenticatedUser:
        """Authenticate with email and password. Raises AuthError."""
        pass

    @abstractmethod
    def sign_up(self, email: str, password: str) -> AuthenticatedUser:
        """Create an account with email and password. Raises AuthError."""
        pass

    @abstractmethod
    def create_session_cookie(self, id_token: str, expires_in: timedelta) -> str:
        """Exchange an ID token for a session cookie value."""
        pass

    @abstractmethod
    def verify_session_cookie(self, cookie: str) -> AuthenticatedUser:
        """Validate a session cookie. Raises AuthError when invalid."""
        pass

    @abstractmethod
    def revoke(self, uid: str) -> None:
        """Revoke all sessions of a user."""
        pass
