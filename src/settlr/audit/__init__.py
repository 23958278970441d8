"""Audit module for Settlr."""

from .audit_logger import AuditLogger

__all__ = [
    "AuditLogger",
]
