"""End-to-end document pipeline for Settlr escrow deals.

Validates a deal, fills gaps with model suggestions and drafts every
document type, storing each artifact against the deal id.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .escrow.escrow_manager import EscrowManager
from .exceptions import SettlrError
from .generators.deal_validator import DealValidator
from .generators.document_generator import EscrowDocumentGenerator
from .generators.prompts import format_deployment_prompt
from .models.document import EscrowData, GeneratedDocument
from .models.enums import DocumentType


logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Result of a complete pipeline execution."""

    success: bool
    deal_id: str = ""
    documents: Dict[str, GeneratedDocument] = field(default_factory=dict)
    missing_fields: List[str] = field(default_factory=list)
    suggestions: Dict[str, Any] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    processing_time: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "dealId": self.deal_id,
            "documents": {k: v.to_dict() for k, v in self.documents.items()},
            "missingFields": list(self.missing_fields),
            "suggestions": dict(self.suggestions),
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "processingTime": round(self.processing_time, 3),
        }


@dataclass
class PipelineStats:
    """Statistics about pipeline execution."""

    total_executions: int = 0
    successful_executions: int = 0
    failed_executions: int = 0
    documents_generated: int = 0
    average_processing_time: float = 0.0
    total_processing_time: float = 0.0


class EscrowDocumentPipeline:
    """
    Generates the full document set for one deal.

    Contract code is drafted first so the deployment script can target
    it; the summary and legal contract follow. A failing step is recorded
    and the remaining independent steps still run.
    """

    def __init__(
        self,
        escrow_manager: EscrowManager,
        generator: EscrowDocumentGenerator,
        validator: DealValidator,
    ):
        self._escrow_manager = escrow_manager
        self._generator = generator
        self._validator = validator
        self.stats = PipelineStats()

    def process(
        self,
        deal_id: str,
        fill_missing: bool = True,
        user_id: Optional[str] = None,
    ) -> PipelineResult:
        """
        Execute the pipeline for a stored deal.

        Args:
            deal_id: Escrow id to generate documents for.
            fill_missing: Ask the model for values of missing fields.
            user_id: Acting user, recorded in the audit log.

        Returns:
            PipelineResult with the stored documents keyed by type.
        """
        start_time = time.time()
        result = PipelineResult(success=False, deal_id=deal_id)

        try:
            logger.info(f"Starting document pipeline for deal {deal_id}")

            # Step 1: Load deal data
            data = self._escrow_manager.get_deal_data(deal_id)

            # Step 2: Validate and fill gaps
            data = self._validate(data, fill_missing, result)

            # Step 3: Smart contract
            contract = self._run_step(DocumentType.SOLIDITY, data, deal_id, user_id, result)

            # Step 4: Deployment script for that contract
            if contract is not None:
                self._run_step(
                    DocumentType.DEPLOYMENT_SCRIPT,
                    data,
                    deal_id,
                    user_id,
                    result,
                    user_prompt=format_deployment_prompt(contract.content, data),
                )
            else:
                warning = "Deployment script skipped: smart contract generation failed"
                result.warnings.append(warning)
                logger.warning(warning)

            # Step 5: Summary and legal contract
            self._run_step(DocumentType.SUMMARY, data, deal_id, user_id, result)
            self._run_step(DocumentType.PDF_CONTRACT, data, deal_id, user_id, result)

            result.success = not result.errors

            if result.success:
                logger.info(f"Document pipeline for deal {deal_id} completed")
            else:
                logger.warning(
                    f"Document pipeline for deal {deal_id} finished with "
                    f"{len(result.errors)} errors"
                )

        except SettlrError as e:
            error_msg = f"Pipeline execution failed: {e.message}"
            result.errors.append(error_msg)
            logger.error(error_msg)

        finally:
            result.processing_time = time.time() - start_time
            self._update_stats(result)

        return result

    def _validate(
        self,
        data: EscrowData,
        fill_missing: bool,
        result: PipelineResult,
    ) -> EscrowData:
        missing = self._validator.find_missing_fields(data)
        result.missing_fields = missing
        if not missing or not fill_missing:
            if missing:
                result.warnings.append(f"Missing deal fields: {', '.join(missing)}")
            return data

        try:
            analysis = self._validator.analyze(data)
        except SettlrError as e:
            warning = f"Deal analysis failed, generating with incomplete data: {e.message}"
            result.warnings.append(warning)
            logger.warning(warning)
            return data

        for name in analysis.missing_fields:
            if name not in result.missing_fields:
                result.missing_fields.append(name)
        result.suggestions = analysis.suggestions
        return self._validator.apply_suggestions(data, analysis.suggestions)

    def _run_step(
        self,
        document_type: DocumentType,
        data: EscrowData,
        deal_id: str,
        user_id: Optional[str],
        result: PipelineResult,
        user_prompt: Optional[str] = None,
    ) -> Optional[GeneratedDocument]:
        try:
            document = self._generator.generate_and_store(
                document_type, data, deal_id, user_prompt=user_prompt, user_id=user_id
            )
        except SettlrError as e:
            error_msg = f"{document_type.value} generation failed: {e.message}"
            result.errors.append(error_msg)
            logger.error(error_msg)
            return None

        if document.id is None:
            result.warnings.append(f"{document_type.value} was generated but not saved")
        result.documents[document_type.value] = document
        return document

    def _update_stats(self, result: PipelineResult) -> None:
        """Update pipeline statistics."""
        self.stats.total_executions += 1

        if result.success:
            self.stats.successful_executions += 1
        else:
            self.stats.failed_executions += 1

        self.stats.documents_generated += len(result.documents)
        self.stats.total_processing_time += result.processing_time
        self.stats.average_processing_time = (
            self.stats.total_processing_time / self.stats.total_executions
        )

    def get_stats(self) -> PipelineStats:
        """Get pipeline execution statistics."""
        return self.stats
