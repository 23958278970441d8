"""Persistence layer for Settlr."""

from .database import DatabaseManager, get_database_url
from .document_store import DealFileStore, DocumentStore
from .escrow_store import EscrowStore
from .models import (
    AuditEventModel,
    Base,
    DealFileModel,
    EscrowModel,
    GeneratedDocumentModel,
    UserModel,
)
from .user_store import UserStore

__all__ = [
    "DatabaseManager",
    "get_database_url",
    "DealFileStore",
    "DocumentStore",
    "EscrowStore",
    "UserStore",
    "AuditEventModel",
    "Base",
    "DealFileModel",
    "EscrowModel",
    "GeneratedDocumentModel",
    "UserModel",
]
