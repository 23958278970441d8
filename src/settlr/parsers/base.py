"""Deal file parser that dispatches on file extension."""

from pathlib import Path

from ..interfaces.parser import IDealFileParser
from ..models.document import ParsedDealFile
from ..models.enums import DealFileType
from .exceptions import UnsupportedFormatError
from .pdf_parser import PDFDealFileParser
from .text_parser import TextDealFileParser
from .word_parser import WordDealFileParser


SUPPORTED_FORMATS = [".docx", ".pdf", ".txt", ".md"]

# Accepted on upload; text is only extracted from SUPPORTED_FORMATS
UPLOAD_FORMATS = [f".{file_type.value}" for file_type in DealFileType]


class DealFileParser(IDealFileParser):
    """
    Main deal file parser that delegates to format-specific parsers.
    """

    def __init__(self):
        self._word_parser = WordDealFileParser()
        self._pdf_parser = PDFDealFileParser()
        self._text_parser = TextDealFileParser()

    def parse(self, file_path: str) -> ParsedDealFile:
        """
        Parse a deal file and return its text.

        Raises:
            FileNotFoundError: If the file does not exist.
            UnsupportedFormatError: If the file format is not supported.
            DocumentCorruptedError: If the document is corrupted.
        """
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        suffix = path.suffix.lower()

        if suffix == ".docx":
            return self._word_parser.parse(file_path)
        elif suffix == ".pdf":
            return self._pdf_parser.parse(file_path)
        elif suffix in (".txt", ".md"):
            return self._text_parser.parse(file_path)
        else:
            raise UnsupportedFormatError(
                message=f"Unsupported file format: {suffix}",
                file_path=file_path,
                location="file extension",
                details={"supported_formats": list(SUPPORTED_FORMATS)}
            )

    def get_supported_formats(self) -> list[str]:
        """Return list of supported file formats."""
        return list(SUPPORTED_FORMATS)


def format_file_size(size: int) -> str:
    """Human-readable size: ``512 B``, ``1.5 KB``, ``2.0 MB``."""
    if size < 1024:
        return f"{size} B"
    value = float(size)
    for unit in ("KB", "MB", "GB"):
        value /= 1024
        if value < 1024 or unit == "GB":
            return f"{value:.1f} {unit}"
