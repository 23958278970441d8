"""Data models and enums for Settlr."""

from .enums import DealFileType, DocumentType, EscrowStatus, ParticipantRole
from .escrow import (
    DEFAULT_CURRENCY,
    DashboardStats,
    EscrowContract,
    EscrowParticipant,
    UserPreferences,
    UserProfile,
    utcnow,
)
from .document import DealFile, EscrowData, GeneratedDocument, ParsedDealFile

__all__ = [
    # Enums
    "DealFileType",
    "DocumentType",
    "EscrowStatus",
    "ParticipantRole",
    # Escrow models
    "DEFAULT_CURRENCY",
    "DashboardStats",
    "EscrowContract",
    "EscrowParticipant",
    "UserPreferences",
    "UserProfile",
    "utcnow",
    # Document models
    "DealFile",
    "EscrowData",
    "GeneratedDocument",
    "ParsedDealFile",
]
