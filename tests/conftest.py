"""Shared fixtures for the Settlr test suite."""

from unittest.mock import MagicMock

import pytest

from settlr.audit.audit_logger import AuditLogger
from settlr.escrow.escrow_manager import EscrowManager
from settlr.storage.database import DatabaseManager
from settlr.storage.document_store import DealFileStore, DocumentStore
from settlr.storage.escrow_store import EscrowStore
from settlr.storage.user_store import UserStore


@pytest.fixture
def db_manager(tmp_path):
    """File-backed SQLite database with all tables created."""
    manager = DatabaseManager(database_url=f"sqlite:///{tmp_path / 'settlr.db'}")
    manager.init_database()
    yield manager
    manager.close()


@pytest.fixture
def escrow_store(db_manager):
    return EscrowStore(db_manager)


@pytest.fixture
def user_store(db_manager):
    return UserStore(db_manager)


@pytest.fixture
def document_store(db_manager):
    return DocumentStore(db_manager)


@pytest.fixture
def deal_file_store(db_manager):
    return DealFileStore(db_manager)


@pytest.fixture
def audit_logger(db_manager):
    return AuditLogger(db_manager=db_manager)


@pytest.fixture
def escrow_manager(escrow_store, user_store, audit_logger):
    return EscrowManager(escrow_store, user_store, audit_logger)


@pytest.fixture
def mock_llm():
    """LLM client double returning a fixed reply."""
    llm = MagicMock()
    llm.model = "gpt-4.1"
    llm.complete.return_value = "Generated content"
    return llm
