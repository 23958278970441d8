"""Enumerations for the Settlr escrow dashboard."""

from enum import Enum


class EscrowStatus(Enum):
    """Lifecycle states of an escrow deal."""
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    DISPUTED = "disputed"
    CANCELLED = "cancelled"

    @classmethod
    def is_valid(cls, value) -> bool:
        """Check whether a raw value names a known status."""
        return isinstance(value, str) and value in {s.value for s in cls}


class ParticipantRole(Enum):
    """Role a participant plays in an escrow deal."""
    BUYER = "buyer"
    SELLER = "seller"


class DocumentType(Enum):
    """Kinds of documents the generator can draft for a deal."""
    PDF_CONTRACT = "pdf_contract"
    SUMMARY = "summary"
    SOLIDITY = "solidity"
    DEPLOYMENT_SCRIPT = "deployment_script"

    @property
    def is_code(self) -> bool:
        """Whether the document body is source code rather than prose."""
        return self in (DocumentType.SOLIDITY, DocumentType.DEPLOYMENT_SCRIPT)


class DealFileType(Enum):
    """Formats accepted for uploaded deal files."""
    TEXT = "txt"
    MARKDOWN = "md"
    PDF = "pdf"
    WORD = "docx"
    LEGACY_WORD = "doc"
