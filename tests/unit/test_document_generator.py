"""Unit tests for EscrowDocumentGenerator and DealValidator."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from settlr.config import ConfigurationManager
from settlr.exceptions import DocumentGenerationError
from settlr.generators.deal_validator import DealValidator
from settlr.generators.document_generator import EscrowDocumentGenerator
from settlr.generators.prompts import DEAL_VALIDATION_PROMPT, SOLIDITY_PROMPT, format_user_prompt
from settlr.interfaces.audit import AuditEventType
from settlr.models.document import EscrowData
from settlr.models.enums import DocumentType
from settlr.models.escrow import EscrowContract, EscrowParticipant


@pytest.fixture
def deal():
    return EscrowData(
        buyer="alice@example.com",
        seller="bob@example.com",
        amount=2,
        release_conditions=["Delivered"],
        dispute_resolution="Arbitration",
    )


@pytest.fixture
def stored_escrow(escrow_store):
    return escrow_store.create(EscrowContract(
        id="",
        title="Camera",
        amount=2,
        participants=[EscrowParticipant(email="alice@example.com")],
    ))


class TestGenerate:
    """Tests for text-only generation."""

    def test_uses_type_prompt_and_deal_prompt(self, mock_llm, deal):
        generator = EscrowDocumentGenerator(mock_llm)

        assert generator.generate(DocumentType.SOLIDITY, deal) == "Generated content"

        mock_llm.complete.assert_called_once_with(
            SOLIDITY_PROMPT, format_user_prompt(deal), temperature=None
        )

    def test_custom_user_prompt(self, mock_llm, deal):
        EscrowDocumentGenerator(mock_llm).generate(DocumentType.SUMMARY, deal, user_prompt="Hi")
        assert mock_llm.complete.call_args.args[1] == "Hi"

    def test_template_override(self, mock_llm, deal):
        manager = ConfigurationManager()
        manager.load_prompt_templates([{
            "id": "short",
            "document_type": "summary",
            "system_prompt": "Short.",
            "temperature": 0.3,
        }])

        EscrowDocumentGenerator(mock_llm, config_manager=manager).generate(
            DocumentType.SUMMARY, deal
        )

        mock_llm.complete.assert_called_once_with(
            "Short.", format_user_prompt(deal), temperature=0.3
        )

    def test_model_failure_propagates(self, mock_llm, deal):
        mock_llm.complete.side_effect = DocumentGenerationError("Language model request failed")
        with pytest.raises(DocumentGenerationError):
            EscrowDocumentGenerator(mock_llm).generate(DocumentType.SUMMARY, deal)


class TestGenerateAndStore:
    """Tests for generation with persistence."""

    def test_stores_and_audits(
        self, mock_llm, deal, document_store, escrow_store, audit_logger, stored_escrow
    ):
        generator = EscrowDocumentGenerator(
            mock_llm,
            document_store=document_store,
            escrow_store=escrow_store,
            audit_logger=audit_logger,
        )

        document = generator.generate_and_store(
            DocumentType.PDF_CONTRACT, deal, stored_escrow, user_id="uid-1"
        )

        assert document.id
        assert document.deal_id == stored_escrow
        assert document_store.get(document.id).content == "Generated content"

        events = audit_logger.get_events(
            escrow_id=stored_escrow, event_type=AuditEventType.DOCUMENT_GENERATED
        )
        assert events[0].details["document_id"] == document.id
        assert events[0].details["model"] == "gpt-4.1"
        assert events[0].user_id == "uid-1"

    @pytest.mark.parametrize("document_type,field", [
        (DocumentType.SUMMARY, "summary"),
        (DocumentType.SOLIDITY, "smart_contract"),
    ])
    def test_mirrors_to_escrow(
        self, mock_llm, deal, document_store, escrow_store, stored_escrow, document_type, field
    ):
        generator = EscrowDocumentGenerator(
            mock_llm, document_store=document_store, escrow_store=escrow_store
        )

        generator.generate_and_store(document_type, deal, stored_escrow)

        assert getattr(escrow_store.get(stored_escrow), field) == "Generated content"

    def test_unknown_deal_still_stored(self, mock_llm, deal, document_store, escrow_store):
        generator = EscrowDocumentGenerator(
            mock_llm, document_store=document_store, escrow_store=escrow_store
        )

        document = generator.generate_and_store(DocumentType.SUMMARY, deal, "no-such-deal")

        assert document.id

    def test_save_failure_returns_unsaved_document(self, mock_llm, deal):
        """Test that a database error leaves the generated text available."""
        document_store = MagicMock()
        document_store.save.side_effect = OperationalError("INSERT", {}, Exception("down"))
        audit_logger = MagicMock()
        generator = EscrowDocumentGenerator(
            mock_llm, document_store=document_store, audit_logger=audit_logger
        )

        document = generator.generate_and_store(DocumentType.SUMMARY, deal, "deal-1")

        assert document.id is None
        assert document.content == "Generated content"
        assert "id" not in document.to_dict()
        audit_logger.log_document_generated.assert_not_called()

    def test_without_store(self, mock_llm, deal):
        document = EscrowDocumentGenerator(mock_llm).generate_and_store(
            DocumentType.SUMMARY, deal, "deal-1"
        )
        assert document.id is None
        assert document.to_dict()["dealId"] == "deal-1"


class TestDealValidator:
    """Tests for missing-field checks and model analysis."""

    def test_complete_deal_has_no_missing_fields(self, mock_llm, deal):
        assert DealValidator(mock_llm).find_missing_fields(deal) == []

    def test_missing_fields(self, mock_llm):
        missing = DealValidator(mock_llm).find_missing_fields(EscrowData(buyer="  "))
        assert missing == ["buyer", "seller", "amount", "releaseConditions", "disputeResolution"]

    def test_analyze_parses_fenced_json(self, mock_llm, deal):
        mock_llm.complete.return_value = (
            '```json\n{"missingFields": ["disputeResolution"], '
            '"suggestions": {"disputeResolution": "Mediation"}}\n```'
        )

        analysis = DealValidator(mock_llm).analyze(deal)

        assert analysis.missing_fields == ["disputeResolution"]
        assert analysis.suggestions == {"disputeResolution": "Mediation"}
        assert mock_llm.complete.call_args.args[0] == DEAL_VALIDATION_PROMPT

    def test_analyze_accepts_snake_case(self, mock_llm, deal):
        mock_llm.complete.return_value = '{"missing_fields": ["seller"]}'

        analysis = DealValidator(mock_llm).analyze(deal)

        assert analysis.missing_fields == ["seller"]
        assert analysis.suggestions == {}

    @pytest.mark.parametrize("reply", ["not json", "[1, 2]"])
    def test_analyze_rejects_bad_reply(self, mock_llm, deal, reply):
        mock_llm.complete.return_value = reply
        with pytest.raises(DocumentGenerationError):
            DealValidator(mock_llm).analyze(deal)

    def test_apply_suggestions(self, mock_llm):
        validator = DealValidator(mock_llm)
        data = EscrowData(buyer="alice@example.com")

        merged = validator.apply_suggestions(data, {
            "seller": "bob@example.com",
            "amount": "not a number",
            "releaseConditions": ["Delivered"],
            "favouriteColour": "blue",
        })

        assert merged.buyer == "alice@example.com"
        assert merged.seller == "bob@example.com"
        assert merged.amount == 0
        assert merged.release_conditions == ["Delivered"]
        assert "favouriteColour" not in merged.extra
