"""Custom exceptions for deal file parsing."""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class ParseError(Exception):
    """
    Base exception for deal file parsing errors.

    Attributes:
        message: Human-readable error description.
        file_path: Path to the file that caused the error.
        location: Specific location within the file (page, byte offset).
        details: Additional error details.
    """
    message: str
    file_path: Optional[str] = None
    location: Optional[str] = None
    details: Optional[dict] = field(default_factory=dict)

    def __post_init__(self):
        if self.details is None:
            self.details = {}
        super().__init__(str(self))

    def __str__(self) -> str:
        parts = [self.message]
        if self.file_path:
            parts.append(f"File: {self.file_path}")
        if self.location:
            parts.append(f"Location: {self.location}")
        return " | ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "file_path": self.file_path,
            "location": self.location,
            "details": self.details,
        }


@dataclass
class DocumentCorruptedError(ParseError):
    """
    Exception raised when a deal file is corrupted or unreadable.

    The file exists but cannot be parsed due to corruption, an invalid
    format, or encryption.
    """

    def get_recovery_suggestions(self) -> list[str]:
        """Return suggestions for recovering from this error."""
        suggestions = [
            "Try opening the file in its native application to verify it's not corrupted",
            "Check if the file is password-protected or encrypted",
            "Try re-exporting the file and uploading it again",
        ]
        if self.file_path and self.file_path.endswith(".pdf"):
            suggestions.append("For PDFs, try printing to a new PDF first")
        return suggestions


@dataclass
class UnsupportedFormatError(ParseError):
    """Exception raised when a file format cannot be parsed."""

    def get_supported_formats(self) -> list[str]:
        """Return list of supported formats."""
        return self.details.get("supported_formats", [".docx", ".pdf", ".txt", ".md"])
