"""Persistence for generated documents and uploaded deal files."""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import select

from ..exceptions import DocumentNotFoundError
from ..models.document import DealFile, GeneratedDocument
from ..models.enums import DocumentType
from ..models.escrow import utcnow
from .database import DatabaseManager
from .models import DealFileModel, GeneratedDocumentModel


logger = logging.getLogger(__name__)


class DocumentStore:
    """Repository for LLM-generated documents keyed by deal id."""

    def __init__(self, db_manager: DatabaseManager):
        self._db_manager = db_manager

    def _from_model(self, model: GeneratedDocumentModel) -> GeneratedDocument:
        return GeneratedDocument(
            id=str(model.id),
            type=DocumentType(model.type),
            content=model.content,
            deal_id=model.deal_id,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def save(self, document: GeneratedDocument) -> GeneratedDocument:
        """
        Store a generated document.

        Returns:
            A copy of the document carrying its new id and timestamps.
        """
        now = utcnow()
        model = GeneratedDocumentModel(
            id=str(uuid.uuid4()),
            deal_id=document.deal_id,
            type=document.type.value,
            content=document.content,
            created_at=document.created_at or now,
            updated_at=document.updated_at or now,
        )
        with self._db_manager.get_session() as session:
            session.add(model)
            session.flush()
            return self._from_model(model)

    def get(self, document_id: str) -> GeneratedDocument:
        with self._db_manager.get_session() as session:
            model = session.get(GeneratedDocumentModel, document_id)
            if model is None:
                raise DocumentNotFoundError(
                    f"Generated document {document_id} not found",
                    {"document_id": document_id},
                )
            return self._from_model(model)

    def list_for_deal(
        self,
        deal_id: str,
        document_type: Optional[DocumentType] = None,
    ) -> List[GeneratedDocument]:
        """List a deal's documents, newest first."""
        with self._db_manager.get_session() as session:
            query = select(GeneratedDocumentModel).where(
                GeneratedDocumentModel.deal_id == deal_id
            )
            if document_type is not None:
                query = query.where(GeneratedDocumentModel.type == document_type.value)
            query = query.order_by(GeneratedDocumentModel.created_at.desc())
            models = session.execute(query).scalars().all()
            return [self._from_model(m) for m in models]

    def latest_for_deal(
        self,
        deal_id: str,
        document_type: DocumentType,
    ) -> Optional[GeneratedDocument]:
        documents = self.list_for_deal(deal_id, document_type)
        return documents[0] if documents else None


class DealFileStore:
    """Repository for files uploaded against a deal."""

    def __init__(self, db_manager: DatabaseManager):
        self._db_manager = db_manager

    def _from_model(self, model: DealFileModel) -> DealFile:
        return DealFile(
            id=str(model.id),
            deal_id=model.deal_id,
            filename=model.filename,
            file_type=model.file_type,
            size=model.size or 0,
            storage_path=model.storage_path,
            uploaded_by=model.uploaded_by or "",
            extracted_text=model.extracted_text or "",
            uploaded_at=model.uploaded_at,
        )

    def save(self, deal_file: DealFile) -> DealFile:
        model = DealFileModel(
            id=deal_file.id or str(uuid.uuid4()),
            deal_id=deal_file.deal_id,
            filename=deal_file.filename,
            file_type=deal_file.file_type,
            size=deal_file.size,
            storage_path=deal_file.storage_path,
            uploaded_by=deal_file.uploaded_by,
            extracted_text=deal_file.extracted_text,
            uploaded_at=deal_file.uploaded_at or utcnow(),
        )
        with self._db_manager.get_session() as session:
            session.add(model)
            session.flush()
            return self._from_model(model)

    def list_for_deal(self, deal_id: str) -> List[DealFile]:
        with self._db_manager.get_session() as session:
            models = session.execute(
                select(DealFileModel)
                .where(DealFileModel.deal_id == deal_id)
                .order_by(DealFileModel.uploaded_at)
            ).scalars().all()
            return [self._from_model(m) for m in models]

    def delete(self, file_id: str) -> DealFile:
        """Remove a deal file record and return what was removed."""
        with self._db_manager.get_session() as session:
            model = session.get(DealFileModel, file_id)
            if model is None:
                raise DocumentNotFoundError(
                    f"Deal file {file_id} not found", {"file_id": file_id}
                )
            removed = self._from_model(model)
            session.delete(model)
            logger.info(f"Deleted deal file {file_id} from deal {removed.deal_id}")
            return removed
