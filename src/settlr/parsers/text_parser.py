"""Plain text and Markdown deal files."""

from pathlib import Path

from ..models.document import ParsedDealFile
from .exceptions import UnsupportedFormatError


TEXT_SUFFIXES = {".txt": "txt", ".md": "md"}


class TextDealFileParser:
    """Reads UTF-8 text files, replacing undecodable bytes."""

    def parse(self, file_path: str) -> ParsedDealFile:
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        file_type = TEXT_SUFFIXES.get(path.suffix.lower())
        if file_type is None:
            raise UnsupportedFormatError(
                message=f"Unsupported file format: {path.suffix}",
                file_path=file_path,
                location="file extension"
            )

        raw = path.read_bytes()
        text = raw.decode("utf-8", errors="replace")
        return ParsedDealFile(
            filename=path.name,
            file_type=file_type,
            text=text,
            metadata={
                "file_size": len(raw),
                "line_count": len(text.splitlines()),
            },
        )
