"""Domain exceptions for Settlr."""

from typing import Any, Optional


class SettlrError(Exception):
    """Base class for all Settlr domain errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class EscrowNotFoundError(SettlrError):
    """Raised when an escrow id does not resolve to a stored deal."""

    def __init__(self, escrow_id: str):
        super().__init__("Escrow contract not found", {"escrow_id": escrow_id})
        self.escrow_id = escrow_id


class ParticipantNotFoundError(SettlrError):
    """Raised when a user is not a participant of the escrow."""

    def __init__(self, escrow_id: str, user_id: str):
        super().__init__(
            "Participant not found in escrow contract",
            {"escrow_id": escrow_id, "user_id": user_id},
        )


class DocumentNotFoundError(SettlrError):
    """Raised when a generated document or deal file does not exist."""


class InvalidStatusError(SettlrError):
    """Raised for a status value outside EscrowStatus."""

    def __init__(self, status: Any):
        super().__init__(f"Invalid escrow status: {status!r}", {"status": status})


class DocumentGenerationError(SettlrError):
    """Raised when the language model call fails or returns unusable output."""


class AuthError(SettlrError):
    """
    Authentication failure with a user-facing message.

    Attributes:
        code: Identity provider error code (e.g. ``auth/wrong-password``).
        message: Message safe to show to the end user.
    """

    def __init__(self, code: str, message: str):
        super().__init__(message, {"code": code})
        self.code = code
