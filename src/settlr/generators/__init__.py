"""Escrow document generation."""

from .deal_validator import DealAnalysis, DealValidator
from .document_exporter import DocumentExporter
from .document_generator import EscrowDocumentGenerator
from .llm_client import LLMClient, get_llm_client
from .prompts import format_user_prompt, get_system_prompt

__all__ = [
    "DealAnalysis",
    "DealValidator",
    "DocumentExporter",
    "EscrowDocumentGenerator",
    "LLMClient",
    "get_llm_client",
    "format_user_prompt",
    "get_system_prompt",
]
