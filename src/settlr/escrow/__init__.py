"""Escrow deal operations."""

from .escrow_manager import SORT_KEYS, EscrowManager

__all__ = ["SORT_KEYS", "EscrowManager"]
