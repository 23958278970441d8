"""Export of generated escrow documents to .docx and plain text."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from docx import Document
from docx.oxml.ns import qn
from docx.shared import Pt, RGBColor

from ..models.document import GeneratedDocument


logger = logging.getLogger(__name__)

CODE_FONT = "Courier New"

_TITLES = {
    "pdf_contract": "Escrow Agreement",
    "summary": "Escrow Summary",
    "solidity": "Escrow Smart Contract",
    "deployment_script": "Deployment Script",
}


class DocumentExporter:
    """
    Writes generated documents to files for download.

    Prose documents get one paragraph per line; contract code and
    deployment scripts are set in a monospace font.
    """

    def __init__(self, output_dir: str = "data/exports"):
        """
        Initialize the document exporter.

        Args:
            output_dir: Directory for exported files.
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def build_filename(self, document: GeneratedDocument, extension: str) -> str:
        """Return ``<type>_<deal-prefix>_<timestamp>.<ext>``."""
        stamp = (document.created_at or datetime.now()).strftime("%Y%m%d_%H%M%S")
        return f"{document.type.value}_{document.deal_id[:8]}_{stamp}.{extension}"

    def export_docx(
        self,
        document: GeneratedDocument,
        title: Optional[str] = None,
        output_path: Optional[str] = None,
    ) -> str:
        """
        Export a generated document as .docx.

        Args:
            document: The document to export.
            title: Heading text. Defaults to a title for the document type.
            output_path: Optional output path.

        Returns:
            Path to the exported file.
        """
        if output_path is None:
            output_path = str(self.output_dir / self.build_filename(document, "docx"))

        doc = Document()
        doc.add_heading(title or _TITLES.get(document.type.value, "Escrow Document"), level=1)

        meta = doc.add_paragraph()
        meta_run = meta.add_run(f"Deal: {document.deal_id}")
        meta_run.font.size = Pt(8)
        meta_run.font.color.rgb = RGBColor(128, 128, 128)

        for line in document.content.splitlines():
            if not line.strip():
                continue
            para = doc.add_paragraph()
            run = para.add_run(line)
            if document.type.is_code:
                self._apply_code_font(run)

        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        doc.save(output_path)

        logger.info(f"Exported {document.type.value} document to: {output_path}")
        return output_path

    def export_text(
        self,
        document: GeneratedDocument,
        output_path: Optional[str] = None,
    ) -> str:
        """Export the raw document content to a UTF-8 text file."""
        if output_path is None:
            output_path = str(self.output_dir / self.build_filename(document, "txt"))

        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(document.content)

        logger.info(f"Exported {document.type.value} text to: {output_path}")
        return output_path

    def _apply_code_font(self, run) -> None:
        run.font.name = CODE_FONT
        run.font.size = Pt(9)
        # East Asian font slot must be set separately for Word to honour it
        r_pr = run._element.get_or_add_rPr()
        r_fonts = r_pr.find(qn("w:rFonts"))
        if r_fonts is not None:
            r_fonts.set(qn("w:eastAsia"), CODE_FONT)
