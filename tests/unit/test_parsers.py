"""Unit tests for deal file parsers."""

import pytest
from docx import Document

from settlr.parsers import (
    DealFileParser,
    DocumentCorruptedError,
    UnsupportedFormatError,
    format_file_size,
)
from settlr.models.enums import DealFileType
from settlr.parsers.base import SUPPORTED_FORMATS, UPLOAD_FORMATS


@pytest.fixture
def parser():
    return DealFileParser()


class TestTextFiles:
    """Tests for .txt and .md files."""

    def test_parse_text(self, parser, tmp_path):
        path = tmp_path / "terms.txt"
        path.write_text("Buyer pays 2 ETH\nSeller ships in 5 days\n", encoding="utf-8")

        parsed = parser.parse(str(path))

        assert parsed.filename == "terms.txt"
        assert parsed.file_type == "txt"
        assert "Seller ships" in parsed.text
        assert parsed.metadata["line_count"] == 2

    def test_parse_markdown(self, parser, tmp_path):
        path = tmp_path / "notes.md"
        path.write_text("# Deal\n- Inspection window: 3 days", encoding="utf-8")

        assert parser.parse(str(path)).file_type == "md"

    def test_invalid_utf8_replaced(self, parser, tmp_path):
        path = tmp_path / "bad.txt"
        path.write_bytes(b"price \xff\xfe 10")

        parsed = parser.parse(str(path))

        assert parsed.text.startswith("price ")
        assert "�" in parsed.text


class TestWordFiles:
    """Tests for .docx files."""

    def test_paragraphs_and_tables(self, parser, tmp_path):
        doc = Document()
        doc.core_properties.title = "Sale agreement"
        doc.add_paragraph("The seller delivers the goods.")
        doc.add_paragraph("   ")
        table = doc.add_table(rows=2, cols=2)
        table.cell(0, 0).text = "Amount"
        table.cell(0, 1).text = "2 ETH"
        table.cell(1, 0).text = "Deadline"
        table.cell(1, 1).text = "30 days"
        path = tmp_path / "agreement.docx"
        doc.save(str(path))

        parsed = parser.parse(str(path))

        assert parsed.text.splitlines() == [
            "The seller delivers the goods.",
            "Amount | 2 ETH",
            "Deadline | 30 days",
        ]
        assert parsed.metadata["table_count"] == 1
        assert parsed.metadata["table_row_count"] == 2
        assert parsed.metadata["title"] == "Sale agreement"

    def test_corrupted_docx(self, parser, tmp_path):
        path = tmp_path / "broken.docx"
        path.write_bytes(b"this is not a zip archive")

        with pytest.raises(DocumentCorruptedError) as exc_info:
            parser.parse(str(path))
        assert exc_info.value.get_recovery_suggestions()


class TestDispatch:
    """Tests for extension dispatch and errors."""

    def test_corrupted_pdf(self, parser, tmp_path):
        path = tmp_path / "broken.pdf"
        path.write_bytes(b"definitely not a pdf")

        with pytest.raises(DocumentCorruptedError) as exc_info:
            parser.parse(str(path))
        assert "For PDFs, try printing to a new PDF first" in (
            exc_info.value.get_recovery_suggestions()
        )

    def test_legacy_doc_unsupported(self, parser, tmp_path):
        path = tmp_path / "old.doc"
        path.write_bytes(b"\xd0\xcf\x11\xe0")

        with pytest.raises(UnsupportedFormatError) as exc_info:
            parser.parse(str(path))
        assert exc_info.value.get_supported_formats() == SUPPORTED_FORMATS

    def test_missing_file(self, parser, tmp_path):
        with pytest.raises(FileNotFoundError):
            parser.parse(str(tmp_path / "missing.txt"))

    def test_upload_formats_follow_deal_file_types(self, parser):
        assert sorted(UPLOAD_FORMATS) == sorted(f".{t.value}" for t in DealFileType)
        assert ".doc" in UPLOAD_FORMATS
        assert ".doc" not in parser.get_supported_formats()


class TestFormatFileSize:
    """Tests for human-readable sizes."""

    @pytest.mark.parametrize("size,expected", [
        (0, "0 B"),
        (512, "512 B"),
        (1536, "1.5 KB"),
        (2 * 1024 * 1024, "2.0 MB"),
        (3 * 1024 ** 3, "3.0 GB"),
        (5 * 1024 ** 4, "5120.0 GB"),
    ])
    def test_format(self, size, expected):
        assert format_file_size(size) == expected
