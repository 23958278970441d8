"""SQLAlchemy models for Settlr persistence."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

from ..models.enums import DealFileType


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class JSONType(TypeDecorator):
    """Platform-independent JSON type.

    Uses JSONB for PostgreSQL and JSON for other databases (like SQLite).
    """
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(JSONB())
        else:
            return dialect.type_descriptor(JSON())


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class UserModel(Base):
    """User profile table model."""
    __tablename__ = "users"

    id = Column(String(128), primary_key=True)
    email = Column(String(320), nullable=False, unique=True)
    display_name = Column(String(255))
    photo_url = Column(String(1024))
    active_escrows = Column(JSONType, default=list)
    completed_escrows = Column(JSONType, default=list)
    preferences = Column(JSONType, default=dict)
    created_at = Column(DateTime(timezone=True), default=_now)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now)

    __table_args__ = (
        Index("idx_users_email", "email"),
    )


class EscrowModel(Base):
    """Escrow deals table model."""
    __tablename__ = "escrows"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(255), nullable=False)
    amount = Column(Float, default=0.0)
    currency = Column(String(16), default="ETH")
    status = Column(String(20), default="pending")
    participants = Column(JSONType, nullable=False, default=list)
    terms = Column(JSONType, default=list)
    release_conditions = Column(JSONType, default=list)
    expires_at = Column(DateTime(timezone=True))
    contract_address = Column(String(64), default="")
    transaction_hash = Column(String(80), default="")
    contract_pdf = Column(String(1024), default="")
    smart_contract = Column(Text, default="")
    summary = Column(Text, default="")
    created_by = Column(String(128), default="")
    created_at = Column(DateTime(timezone=True), default=_now)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now)

    __table_args__ = (
        Index("idx_escrows_status", "status"),
        Index("idx_escrows_created_at", "created_at"),
    )


class GeneratedDocumentModel(Base):
    """Generated documents table model (the ``contracts`` collection)."""
    __tablename__ = "contracts"

    id = Column(String(36), primary_key=True, default=_new_id)
    deal_id = Column(String(36), ForeignKey("escrows.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(32), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_now)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now)

    __table_args__ = (
        CheckConstraint(
            "type IN ('pdf_contract', 'summary', 'solidity', 'deployment_script')",
            name="check_document_type",
        ),
        Index("idx_contracts_deal_id", "deal_id"),
        Index("idx_contracts_type", "type"),
    )


class DealFileModel(Base):
    """Uploaded deal files table model."""
    __tablename__ = "deal_files"

    id = Column(String(36), primary_key=True, default=_new_id)
    deal_id = Column(String(36), ForeignKey("escrows.id", ondelete="CASCADE"), nullable=False)
    filename = Column(String(255), nullable=False)
    file_type = Column(String(10), nullable=False)
    size = Column(Integer, default=0)
    storage_path = Column(String(1024), nullable=False)
    uploaded_by = Column(String(128), default="")
    extracted_text = Column(Text, default="")
    uploaded_at = Column(DateTime(timezone=True), default=_now)

    __table_args__ = (
        CheckConstraint(
            "file_type IN (" + ", ".join(f"'{t.value}'" for t in DealFileType) + ")",
            name="check_file_type",
        ),
        Index("idx_deal_files_deal_id", "deal_id"),
    )


class AuditEventModel(Base):
    """Audit events table model."""
    __tablename__ = "audit_events"

    id = Column(String(36), primary_key=True, default=_new_id)
    event_type = Column(String(50), nullable=False)
    timestamp = Column(DateTime(timezone=True), default=_now)
    escrow_id = Column(String(36))
    user_id = Column(String(128))
    details = Column(JSONType, nullable=False, default=dict)
    metadata_ = Column("metadata", JSONType, default=dict)

    __table_args__ = (
        Index("idx_audit_events_escrow_id", "escrow_id"),
        Index("idx_audit_events_event_type", "event_type"),
        Index("idx_audit_events_timestamp", "timestamp"),
    )
