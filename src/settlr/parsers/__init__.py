"""Deal file parsers."""

from .base import SUPPORTED_FORMATS, UPLOAD_FORMATS, DealFileParser, format_file_size
from .exceptions import DocumentCorruptedError, ParseError, UnsupportedFormatError
from .pdf_parser import PDFDealFileParser
from .text_parser import TextDealFileParser
from .word_parser import WordDealFileParser

__all__ = [
    "SUPPORTED_FORMATS",
    "UPLOAD_FORMATS",
    "DealFileParser",
    "format_file_size",
    "DocumentCorruptedError",
    "ParseError",
    "UnsupportedFormatError",
    "PDFDealFileParser",
    "TextDealFileParser",
    "WordDealFileParser",
]
