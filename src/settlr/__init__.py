"""
Settlr

Escrow dashboard: deals between a buyer and a seller, with LLM-drafted
summaries, legal contracts, Solidity code and deployment scripts.
"""

__version__ = "0.1.0"

from .models.enums import DealFileType, DocumentType, EscrowStatus, ParticipantRole
from .models.escrow import EscrowContract, EscrowParticipant, UserProfile
from .models.document import DealFile, EscrowData, GeneratedDocument
from .exceptions import (
    AuthError,
    DocumentGenerationError,
    DocumentNotFoundError,
    EscrowNotFoundError,
    InvalidStatusError,
    ParticipantNotFoundError,
    SettlrError,
)
from .storage import DatabaseManager, DocumentStore, EscrowStore, UserStore
from .audit import AuditLogger
from .escrow import EscrowManager
from .generators import DealValidator, EscrowDocumentGenerator, LLMClient, get_llm_client
from .pipeline import EscrowDocumentPipeline, PipelineResult
from .config import ConfigurationManager, Settings

__all__ = [
    "DealFileType",
    "DocumentType",
    "EscrowStatus",
    "ParticipantRole",
    "EscrowContract",
    "EscrowParticipant",
    "UserProfile",
    "DealFile",
    "EscrowData",
    "GeneratedDocument",
    "AuthError",
    "DocumentGenerationError",
    "DocumentNotFoundError",
    "EscrowNotFoundError",
    "InvalidStatusError",
    "ParticipantNotFoundError",
    "SettlrError",
    "DatabaseManager",
    "DocumentStore",
    "EscrowStore",
    "UserStore",
    "AuditLogger",
    "EscrowManager",
    "DealValidator",
    "EscrowDocumentGenerator",
    "LLMClient",
    "get_llm_client",
    "EscrowDocumentPipeline",
    "PipelineResult",
    "ConfigurationManager",
    "Settings",
]
