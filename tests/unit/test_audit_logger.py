"""Unit tests for the Audit Logger."""

import csv
import io
import json
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from settlr.audit.audit_logger import AuditLogger
from settlr.interfaces.audit import AuditEvent, AuditEventType


class MockSession:
    """Mock SQLAlchemy session for testing."""

    def __init__(self):
        self.added = []
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def add(self, obj):
        self.added.append(obj)

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class MockContextManager:
    """Mock context manager for session."""

    def __init__(self, session):
        self._session = session

    def __enter__(self):
        return self._session

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self._session.commit()
        else:
            self._session.rollback()
        self._session.close()
        return False


class MockDatabaseManager:
    """Mock DatabaseManager for testing."""

    def __init__(self):
        self._session = MockSession()

    def get_session(self):
        return MockContextManager(self._session)


class TestAuditLoggerRecording:
    """Tests for recording events through a mocked session."""

    def test_log_event_adds_to_session(self):
        """Test that log_event adds an event to the database session."""
        db_manager = MockDatabaseManager()
        logger = AuditLogger(db_manager=db_manager)

        logger.log_event(AuditEvent(
            id=str(uuid.uuid4()),
            event_type=AuditEventType.ESCROW_CREATED,
            timestamp=datetime.now(timezone.utc),
            escrow_id="deal-1",
            details={"title": "Camera"},
        ))

        assert len(db_manager._session.added) == 1
        assert db_manager._session.committed

    def test_log_file_uploaded(self):
        db_manager = MockDatabaseManager()
        logger = AuditLogger(db_manager=db_manager)

        logger.log_file_uploaded("deal-1", "file-1", "terms.pdf", 2048, user_id="uid-1")

        added = db_manager._session.added[0]
        assert added.event_type == AuditEventType.FILE_UPLOADED.value
        assert added.details == {"file_id": "file-1", "filename": "terms.pdf", "size": 2048}
        assert added.user_id == "uid-1"

    def test_log_user_signed_in_has_no_escrow(self):
        db_manager = MockDatabaseManager()
        AuditLogger(db_manager=db_manager).log_user_signed_in("uid-1", "a@example.com")

        added = db_manager._session.added[0]
        assert added.escrow_id is None
        assert added.details == {"email": "a@example.com"}

    def test_escrow_updated_fields_sorted(self):
        db_manager = MockDatabaseManager()
        AuditLogger(db_manager=db_manager).log_escrow_updated("deal-1", ["title", "amount"])

        assert db_manager._session.added[0].details == {"fields": ["amount", "title"]}


class TestAuditLoggerQueries:
    """Tests for querying and exporting against SQLite."""

    @pytest.fixture
    def populated(self, audit_logger):
        audit_logger.log_escrow_created("deal-1", "Camera", 2.0, "ETH", 2, user_id="uid-1")
        audit_logger.log_document_generated(
            "deal-1", "summary", "doc-1", "gpt-4.1", 120, user_id="uid-1"
        )
        audit_logger.log_status_changed("deal-1", "pending", "active", user_id="uid-2")
        audit_logger.log_escrow_created("deal-2", "Bike", 1.0, "ETH", 2)
        return audit_logger

    def test_get_events_filters(self, populated):
        assert len(populated.get_events(escrow_id="deal-1")) == 3
        assert len(populated.get_events(user_id="uid-2")) == 1
        created = populated.get_events(event_type=AuditEventType.ESCROW_CREATED)
        assert {e.escrow_id for e in created} == {"deal-1", "deal-2"}

    def test_get_events_newest_first(self, populated):
        events = populated.get_events(escrow_id="deal-1")
        assert events[0].event_type == AuditEventType.STATUS_CHANGED
        assert events[-1].event_type == AuditEventType.ESCROW_CREATED

    def test_get_events_time_window(self, populated):
        future = datetime.now(timezone.utc) + timedelta(days=1)
        assert populated.get_events(start_time=future) == []

    def test_export_json(self, populated):
        data = json.loads(populated.export_log("deal-1", format="json"))

        assert data["escrow_id"] == "deal-1"
        assert data["event_count"] == 3
        assert data["event_type_counts"]["document_generated"] == 1
        assert data["generated_documents"][0]["document_id"] == "doc-1"

    def test_export_csv(self, populated):
        rows = list(csv.reader(io.StringIO(populated.export_log("deal-1", format="csv"))))

        assert rows[0][:2] == ["id", "event_type"]
        assert len(rows) == 4

    def test_export_unknown_format(self, populated):
        with pytest.raises(ValueError):
            populated.export_log("deal-1", format="xml")
