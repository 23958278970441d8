"""Deal file parser interface for Settlr."""

from abc import ABC, abstractmethod

from ..models.document import ParsedDealFile


class IDealFileParser(ABC):
    """
    Abstract interface for extracting text from uploaded deal files.
    """

    @abstractmethod
    def parse(self, file_path: str) -> ParsedDealFile:
        """
        Parse a deal file and return its text.

        Raises:
            FileNotFoundError: If the file does not exist.
            UnsupportedFormatError: If the file format is not supported.
            DocumentCorruptedError: If the document is corrupted.
        """
        pass

    @abstractmethod
    def get_supported_formats(self) -> list[str]:
        """Return list of supported file extensions."""
        pass
