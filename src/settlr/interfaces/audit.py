"""Audit logger interface for Settlr."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class AuditEventType(Enum):
    """Types of audit events tracked by the system."""
    ESCROW_CREATED = "escrow_created"
    ESCROW_UPDATED = "escrow_updated"
    STATUS_CHANGED = "status_changed"
    KEY_POINTS_UPDATED = "key_points_updated"
    ESCROW_SIGNED = "escrow_signed"
    DOCUMENT_GENERATED = "document_generated"
    FILE_UPLOADED = "file_uploaded"
    USER_SIGNED_IN = "user_signed_in"


@dataclass
class AuditEvent:
    """
    Audit event record.

    Represents a single auditable event, including timestamp,
    the escrow it concerns, the acting user and event details.
    """
    id: str
    event_type: AuditEventType
    timestamp: datetime
    escrow_id: Optional[str] = None
    user_id: Optional[str] = None
    details: dict = field(default_factory=dict)
    metadata: dict = field(default_factory=dict)

    def __post_init__(self):
        if self.details is None:
            self.details = {}
        if self.metadata is None:
            self.metadata = {}


class IAuditLogger(ABC):
    """
    Abstract interface for audit logging.

    Implementations handle recording and querying of audit events
    for traceability of escrow activity.
    """

    @abstractmethod
    def log_event(self, event: AuditEvent) -> None:
        """
        Record an audit event.

        Args:
            event: The audit event to record.
        """
        pass

    @abstractmethod
    def get_events(
        self,
        escrow_id: Optional[str] = None,
        event_type: Optional[AuditEventType] = None,
        user_id: Optional[str] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
    ) -> List[AuditEvent]:
        """Query audit events with optional filters."""
        pass

    @abstractmethod
    def export_log(self, escrow_id: str, format: str = "json") -> str:
        """
        Export the audit log for an escrow.

        Raises:
            ValueError: If format is not supported.
        """
        pass
