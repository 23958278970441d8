"""PDF text extraction."""

from pathlib import Path

import pdfplumber
from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

from ..models.document import ParsedDealFile
from .exceptions import DocumentCorruptedError, ParseError, UnsupportedFormatError


class PDFDealFileParser:
    """
    Extracts text from PDF deal files.

    Uses PyPDF2 to validate the file and pdfplumber for text extraction.
    """

    def parse(self, file_path: str) -> ParsedDealFile:
        """
        Parse a PDF document.

        Raises:
            FileNotFoundError: If the file does not exist.
            UnsupportedFormatError: If the file is not a PDF.
            DocumentCorruptedError: If the document is corrupted or encrypted.
        """
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        if path.suffix.lower() != ".pdf":
            raise UnsupportedFormatError(
                message=f"Unsupported file format: {path.suffix}",
                file_path=file_path,
                location="file extension"
            )

        # Try to open with PyPDF2 first for validation
        try:
            pdf_reader = PdfReader(file_path)
            page_count = len(pdf_reader.pages)
        except PdfReadError as e:
            raise DocumentCorruptedError(
                message="PDF file is corrupted or encrypted",
                file_path=file_path,
                location="file header",
                details={"original_error": str(e)}
            )
        except Exception as e:
            raise ParseError(
                message=f"Failed to open PDF: {str(e)}",
                file_path=file_path,
                details={"original_error": str(e)}
            )

        try:
            with pdfplumber.open(file_path) as pdf:
                pages = []
                for page in pdf.pages:
                    page_text = page.extract_text()
                    if page_text:
                        pages.append(page_text)
                metadata = self._extract_metadata(pdf, path, page_count)
        except Exception as e:
            raise ParseError(
                message=f"Failed to parse PDF content: {str(e)}",
                file_path=file_path,
                details={"original_error": str(e)}
            )

        return ParsedDealFile(
            filename=path.name,
            file_type="pdf",
            text="\n".join(pages),
            metadata=metadata,
        )

    def _extract_metadata(self, pdf, path: Path, page_count: int) -> dict:
        """Extract document metadata."""
        metadata = {
            "page_count": page_count,
            "file_size": path.stat().st_size,
        }

        if pdf.metadata:
            if pdf.metadata.get("Title"):
                metadata["title"] = pdf.metadata["Title"]
            if pdf.metadata.get("Author"):
                metadata["author"] = pdf.metadata["Author"]
            if pdf.metadata.get("CreationDate"):
                metadata["created"] = pdf.metadata["CreationDate"]

        return metadata
