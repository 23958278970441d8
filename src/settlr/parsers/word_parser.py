"""Word document (.docx) text extraction."""

from pathlib import Path
from zipfile import BadZipFile

from docx import Document
from docx.opc.exceptions import PackageNotFoundError

from ..models.document import ParsedDealFile
from .exceptions import DocumentCorruptedError, ParseError, UnsupportedFormatError


class WordDealFileParser:
    """
    Extracts text from Word (.docx) deal files.

    Body paragraphs come first, followed by table rows with cells joined
    by `` | ``.
    """

    def parse(self, file_path: str) -> ParsedDealFile:
        """
        Parse a Word document.

        Raises:
            FileNotFoundError: If the file does not exist.
            UnsupportedFormatError: If the file is not a .docx file.
            DocumentCorruptedError: If the document is corrupted.
        """
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        if path.suffix.lower() != ".docx":
            raise UnsupportedFormatError(
                message=f"Unsupported file format: {path.suffix}",
                file_path=file_path,
                location="file extension"
            )

        try:
            doc = Document(file_path)
        except (BadZipFile, PackageNotFoundError) as e:
            raise DocumentCorruptedError(
                message="Document is corrupted or not a valid Word file",
                file_path=file_path,
                location="file header",
                details={"original_error": str(e)}
            )
        except Exception as e:
            raise ParseError(
                message=f"Failed to open document: {str(e)}",
                file_path=file_path,
                details={"original_error": str(e)}
            )

        lines = [para.text for para in doc.paragraphs if para.text.strip()]
        table_rows = 0
        for table in doc.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if cells:
                    lines.append(" | ".join(cells))
                    table_rows += 1

        return ParsedDealFile(
            filename=path.name,
            file_type="docx",
            text="\n".join(lines),
            metadata=self._extract_metadata(doc, path, table_rows),
        )

    def _extract_metadata(self, doc, path: Path, table_rows: int) -> dict:
        """Extract document metadata."""
        core_props = doc.core_properties

        metadata = {
            "paragraph_count": len(doc.paragraphs),
            "table_count": len(doc.tables),
            "table_row_count": table_rows,
            "file_size": path.stat().st_size,
        }

        if core_props.title:
            metadata["title"] = core_props.title
        if core_props.author:
            metadata["author"] = core_props.author
        if core_props.created:
            metadata["created"] = core_props.created.isoformat()
        if core_props.modified:
            metadata["modified"] = core_props.modified.isoformat()

        return metadata
