"""Abstract interfaces for Settlr."""

from .audit import AuditEvent, AuditEventType, IAuditLogger
from .generator import IDocumentGenerator, ILLMClient
from .identity import AuthenticatedUser, IIdentityProvider
from .parser import IDealFileParser

__all__ = [
    "AuditEvent",
    "AuditEventType",
    "IAuditLogger",
    "IDocumentGenerator",
    "ILLMClient",
    "AuthenticatedUser",
    "IIdentityProvider",
    "IDealFileParser",
]
