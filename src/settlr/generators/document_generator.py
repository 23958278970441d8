"""LLM-backed escrow document generator."""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from ..audit.audit_logger import AuditLogger
from ..config.config_manager import ConfigurationManager
from ..exceptions import EscrowNotFoundError
from ..interfaces.generator import IDocumentGenerator, ILLMClient
from ..models.document import EscrowData, GeneratedDocument
from ..models.enums import DocumentType
from ..models.escrow import utcnow
from ..storage.document_store import DocumentStore
from ..storage.escrow_store import EscrowStore
from .prompts import format_user_prompt, get_prompt_temperature, get_system_prompt


logger = logging.getLogger(__name__)

# Generated content copied onto the escrow record after a successful save
_ESCROW_MIRROR_FIELDS = {
    DocumentType.SUMMARY: "summary",
    DocumentType.SOLIDITY: "smart_contract",
}


class EscrowDocumentGenerator(IDocumentGenerator):
    """
    Drafts escrow documents with a language model.

    Builds the prompt pair for the requested document type, runs one
    completion and optionally stores the result against the deal.
    """

    def __init__(
        self,
        llm_client: ILLMClient,
        document_store: Optional[DocumentStore] = None,
        escrow_store: Optional[EscrowStore] = None,
        audit_logger: Optional[AuditLogger] = None,
        config_manager: Optional[ConfigurationManager] = None,
    ):
        """
        Initialize the generator.

        Args:
            llm_client: Client used for completions.
            document_store: Required for ``generate_and_store``.
            escrow_store: Receives mirrored summary and contract code.
            audit_logger: Records a DOCUMENT_GENERATED event per stored document.
            config_manager: Source of prompt template overrides.
        """
        self._llm = llm_client
        self._document_store = document_store
        self._escrow_store = escrow_store
        self._audit_logger = audit_logger
        self._config_manager = config_manager

    def generate(
        self,
        document_type: DocumentType,
        data: EscrowData,
        user_prompt: Optional[str] = None,
    ) -> str:
        """
        Draft a document and return its text.

        Args:
            document_type: Kind of document to draft.
            data: Deal data rendered into the user prompt.
            user_prompt: Replaces the rendered deal prompt when given.

        Raises:
            DocumentGenerationError: If the model call fails.
        """
        system_prompt = get_system_prompt(document_type, self._config_manager)
        prompt = user_prompt if user_prompt is not None else format_user_prompt(data)
        temperature = get_prompt_temperature(document_type, self._config_manager)

        logger.info(f"Generating {document_type.value} with model {self._llm.model}")
        return self._llm.complete(system_prompt, prompt, temperature=temperature)

    def generate_and_store(
        self,
        document_type: DocumentType,
        data: EscrowData,
        deal_id: str,
        user_prompt: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> GeneratedDocument:
        """
        Draft a document and persist it against ``deal_id``.

        A failed save is logged and the document is returned without an id.
        """
        content = self.generate(document_type, data, user_prompt=user_prompt)
        now = utcnow()
        document = GeneratedDocument(
            type=document_type,
            content=content,
            deal_id=deal_id,
            created_at=now,
            updated_at=now,
        )

        if self._document_store is None:
            logger.warning("No document store configured; returning unsaved document")
            return document

        try:
            stored = self._document_store.save(document)
        except SQLAlchemyError as e:
            logger.error(f"Error saving {document_type.value} for deal {deal_id}: {e}")
            return document

        self._mirror_to_escrow(stored)

        if self._audit_logger is not None:
            self._audit_logger.log_document_generated(
                escrow_id=deal_id,
                document_type=document_type.value,
                document_id=stored.id,
                model=self._llm.model,
                content_length=len(content),
                user_id=user_id,
            )

        logger.info(f"Stored {document_type.value} {stored.id} for deal {deal_id}")
        return stored

    def _mirror_to_escrow(self, document: GeneratedDocument) -> None:
        field_name = _ESCROW_MIRROR_FIELDS.get(document.type)
        if field_name is None or self._escrow_store is None:
            return
        try:
            self._escrow_store.update(document.deal_id, {field_name: document.content})
        except EscrowNotFoundError:
            logger.warning(
                f"Deal {document.deal_id} has no escrow record; {field_name} not updated"
            )
        except SQLAlchemyError as e:
            logger.warning(f"Failed to update {field_name} on escrow {document.deal_id}: {e}")
