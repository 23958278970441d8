"""Audit logger implementation for Settlr."""

import csv
import io
import json
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import and_, select

from ..interfaces.audit import AuditEvent, AuditEventType, IAuditLogger
from ..storage.database import DatabaseManager
from ..storage.models import AuditEventModel


def _now() -> datetime:
    return datetime.now(timezone.utc)


class AuditLogger(IAuditLogger):
    """
    Audit logger backed by the ``audit_events`` table.

    Records escrow activity for traceability and supports querying and
    exporting the log of a single escrow.
    """

    def __init__(
        self,
        db_manager: Optional[DatabaseManager] = None,
        database_url: Optional[str] = None,
    ):
        """
        Initialize the audit logger.

        Args:
            db_manager: Optional DatabaseManager instance. If not provided,
                       a new one will be created.
            database_url: Database URL for creating a new DatabaseManager.
        """
        if db_manager is not None:
            self._db_manager = db_manager
        else:
            self._db_manager = DatabaseManager(database_url=database_url)

    def _to_model(self, event: AuditEvent) -> AuditEventModel:
        """Convert AuditEvent dataclass to SQLAlchemy model."""
        return AuditEventModel(
            id=str(event.id),
            event_type=event.event_type.value if isinstance(event.event_type, AuditEventType) else event.event_type,
            timestamp=event.timestamp,
            escrow_id=event.escrow_id,
            user_id=event.user_id,
            details=event.details or {},
            metadata_=event.metadata or {},
        )

    def _from_model(self, model: AuditEventModel) -> AuditEvent:
        """Convert SQLAlchemy model to AuditEvent dataclass."""
        return AuditEvent(
            id=str(model.id),
            event_type=AuditEventType(model.event_type),
            timestamp=model.timestamp,
            escrow_id=model.escrow_id,
            user_id=model.user_id,
            details=model.details or {},
            metadata=model.metadata_ or {},
        )

    def log_event(self, event: AuditEvent) -> None:
        """
        Record an audit event to the database.

        Args:
            event: The audit event to record.
        """
        model = self._to_model(event)
        with self._db_manager.get_session() as session:
            session.add(model)

    def get_events(
        self,
        escrow_id: Optional[str] = None,
        event_type: Optional[AuditEventType] = None,
        user_id: Optional[str] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
    ) -> List[AuditEvent]:
        """
        Query audit events with optional filters, newest first.

        Args:
            escrow_id: Filter by escrow ID.
            event_type: Filter by event type.
            user_id: Filter by acting user.
            start_time: Filter events after this time.
            end_time: Filter events before this time.
        """
        with self._db_manager.get_session() as session:
            query = select(AuditEventModel)

            conditions = []
            if escrow_id:
                conditions.append(AuditEventModel.escrow_id == escrow_id)
            if event_type:
                event_type_value = event_type.value if isinstance(event_type, AuditEventType) else event_type
                conditions.append(AuditEventModel.event_type == event_type_value)
            if user_id:
                conditions.append(AuditEventModel.user_id == user_id)
            if start_time:
                conditions.append(AuditEventModel.timestamp >= start_time)
            if end_time:
                conditions.append(AuditEventModel.timestamp <= end_time)

            if conditions:
                query = query.where(and_(*conditions))

            query = query.order_by(AuditEventModel.timestamp.desc())

            result = session.execute(query)
            models = result.scalars().all()

            return [self._from_model(m) for m in models]

    def export_log(self, escrow_id: str, format: str = "json") -> str:
        """
        Export the audit log of an escrow.

        Args:
            escrow_id: The escrow to export events for.
            format: Export format ("json" or "csv").

        Returns:
            Exported log content as a string.

        Raises:
            ValueError: If format is not supported.
        """
        if format not in ("json", "csv"):
            raise ValueError(f"Unsupported export format: {format}. Use 'json' or 'csv'.")

        events = self.get_events(escrow_id=escrow_id)

        if format == "json":
            return self._export_json(escrow_id, events)
        return self._export_csv(events)

    def _export_json(self, escrow_id: str, events: List[AuditEvent]) -> str:
        """Export events to JSON with a per-type count and generated document index."""
        counts: dict = {}
        for e in events:
            counts[e.event_type.value] = counts.get(e.event_type.value, 0) + 1

        generated = [
            {
                "document_id": e.details.get("document_id"),
                "document_type": e.details.get("document_type"),
                "model": e.details.get("model"),
                "timestamp": e.timestamp.isoformat() if e.timestamp else None,
            }
            for e in events
            if e.event_type == AuditEventType.DOCUMENT_GENERATED
        ]

        data = {
            "escrow_id": escrow_id,
            "export_timestamp": _now().isoformat(),
            "event_count": len(events),
            "event_type_counts": counts,
            "generated_documents": generated,
            "events": [
                {
                    "id": e.id,
                    "event_type": e.event_type.value,
                    "timestamp": e.timestamp.isoformat() if e.timestamp else None,
                    "escrow_id": e.escrow_id,
                    "user_id": e.user_id,
                    "details": e.details,
                    "metadata": e.metadata,
                }
                for e in events
            ],
        }
        return json.dumps(data, indent=2, ensure_ascii=False)

    def _export_csv(self, events: List[AuditEvent]) -> str:
        """Export events to CSV format."""
        output = io.StringIO()
        writer = csv.writer(output)

        writer.writerow([
            "id", "event_type", "timestamp", "escrow_id",
            "user_id", "details", "metadata"
        ])

        for e in events:
            writer.writerow([
                e.id,
                e.event_type.value,
                e.timestamp.isoformat() if e.timestamp else "",
                e.escrow_id or "",
                e.user_id or "",
                json.dumps(e.details, ensure_ascii=False),
                json.dumps(e.metadata, ensure_ascii=False),
            ])

        return output.getvalue()

    # ========== Convenience Logging Methods ==========

    def _log(
        self,
        event_type: AuditEventType,
        escrow_id: Optional[str],
        user_id: Optional[str],
        details: dict,
    ) -> None:
        self.log_event(AuditEvent(
            id=str(uuid.uuid4()),
            event_type=event_type,
            timestamp=_now(),
            escrow_id=escrow_id,
            user_id=user_id,
            details=details,
        ))

    def log_escrow_created(
        self,
        escrow_id: str,
        title: str,
        amount: float,
        currency: str,
        participant_count: int,
        user_id: Optional[str] = None,
    ) -> None:
        """Log creation of a new escrow deal."""
        self._log(AuditEventType.ESCROW_CREATED, escrow_id, user_id, {
            "title": title,
            "amount": amount,
            "currency": currency,
            "participant_count": participant_count,
        })

    def log_escrow_updated(
        self,
        escrow_id: str,
        fields: List[str],
        user_id: Optional[str] = None,
    ) -> None:
        """Log a partial update of escrow fields."""
        self._log(AuditEventType.ESCROW_UPDATED, escrow_id, user_id, {"fields": sorted(fields)})

    def log_status_changed(
        self,
        escrow_id: str,
        old_status: str,
        new_status: str,
        user_id: Optional[str] = None,
    ) -> None:
        """Log an escrow status transition."""
        self._log(AuditEventType.STATUS_CHANGED, escrow_id, user_id, {
            "old_status": old_status,
            "new_status": new_status,
        })

    def log_key_points_updated(
        self,
        escrow_id: str,
        participant_user_id: str,
        key_point_count: int,
    ) -> None:
        self._log(AuditEventType.KEY_POINTS_UPDATED, escrow_id, participant_user_id, {
            "key_point_count": key_point_count,
        })

    def log_escrow_signed(
        self,
        escrow_id: str,
        user_id: str,
        all_approved: bool,
    ) -> None:
        """Log a participant signature."""
        self._log(AuditEventType.ESCROW_SIGNED, escrow_id, user_id, {
            "all_approved": all_approved,
        })

    def log_document_generated(
        self,
        escrow_id: str,
        document_type: str,
        document_id: Optional[str],
        model: str,
        content_length: int,
        user_id: Optional[str] = None,
    ) -> None:
        """Log an LLM document generation for a deal."""
        self._log(AuditEventType.DOCUMENT_GENERATED, escrow_id, user_id, {
            "document_type": document_type,
            "document_id": document_id,
            "model": model,
            "content_length": content_length,
        })

    def log_file_uploaded(
        self,
        escrow_id: str,
        file_id: str,
        filename: str,
        size: int,
        user_id: Optional[str] = None,
    ) -> None:
        """Log a deal file upload."""
        self._log(AuditEventType.FILE_UPLOADED, escrow_id, user_id, {
            "file_id": file_id,
            "filename": filename,
            "size": size,
        })

    def log_user_signed_in(self, user_id: str, email: str) -> None:
        self._log(AuditEventType.USER_SIGNED_IN, None, user_id, {"email": email})
