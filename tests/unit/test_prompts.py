"""Unit tests for prompt selection and rendering."""

import json

import pytest

from settlr.config import ConfigurationManager
from settlr.generators.prompts import (
    DEFAULT_PROMPT,
    DEPLOYMENT_SCRIPT_PROMPT,
    PDF_CONTRACT_PROMPT,
    SOLIDITY_PROMPT,
    SUMMARY_PROMPT,
    format_deal_json,
    format_deployment_prompt,
    format_user_prompt,
    get_prompt_temperature,
    get_system_prompt,
)
from settlr.models.document import EscrowData
from settlr.models.enums import DocumentType


@pytest.fixture
def deal():
    return EscrowData(
        buyer="alice@example.com",
        seller="bob@example.com",
        amount=25.0,
        currency="ETH",
        terms=["Item as described", "Original packaging"],
        conditions=["KYC complete"],
        release_conditions=["Buyer confirms receipt"],
        dispute_resolution="Arbitration",
    )


class TestSystemPrompts:
    """Tests for get_system_prompt."""

    @pytest.mark.parametrize("document_type,expected", [
        (DocumentType.PDF_CONTRACT, PDF_CONTRACT_PROMPT),
        (DocumentType.SUMMARY, SUMMARY_PROMPT),
        (DocumentType.SOLIDITY, SOLIDITY_PROMPT),
        (DocumentType.DEPLOYMENT_SCRIPT, DEPLOYMENT_SCRIPT_PROMPT),
        ("solidity", SOLIDITY_PROMPT),
    ])
    def test_prompt_per_type(self, document_type, expected):
        assert get_system_prompt(document_type) == expected

    def test_unknown_type_gets_default(self):
        assert get_system_prompt("invoice") == DEFAULT_PROMPT

    def test_summary_prompt_has_sections(self):
        assert "📊 ESCROW SUMMARY" in SUMMARY_PROMPT

    def test_template_override(self):
        manager = ConfigurationManager()
        manager.load_prompt_templates([{
            "id": "custom",
            "document_type": "summary",
            "system_prompt": "Be brief.",
            "temperature": 0.1,
        }])

        assert get_system_prompt(DocumentType.SUMMARY, manager) == "Be brief."
        assert get_system_prompt(DocumentType.SOLIDITY, manager) == SOLIDITY_PROMPT
        assert get_prompt_temperature(DocumentType.SUMMARY, manager) == 0.1
        assert get_prompt_temperature(DocumentType.SOLIDITY, manager) is None
        assert get_prompt_temperature(DocumentType.SUMMARY) is None


class TestUserPrompt:
    """Tests for user prompt rendering."""

    def test_format_user_prompt(self, deal):
        assert format_user_prompt(deal) == "\n".join([
            "Generate a document with the following escrow details:",
            "- Buyer: alice@example.com",
            "- Seller: bob@example.com",
            "- Amount: 25 ETH",
            "- Terms: Item as described, Original packaging",
            "- Conditions: KYC complete",
            "- Release Conditions: Buyer confirms receipt",
            "- Dispute Resolution: Arbitration",
        ])

    def test_fractional_amount_and_extra_fields(self, deal):
        deal.amount = 0.5
        deal.extra = {"nftContract": "0xabc"}

        lines = format_user_prompt(deal).splitlines()

        assert "- Amount: 0.5 ETH" in lines
        assert lines[-1] == "- nftContract: 0xabc"

    def test_empty_lists_render_blank(self):
        prompt = format_user_prompt(EscrowData())
        assert "- Terms: " in prompt.splitlines()

    def test_deployment_prompt(self, deal):
        prompt = format_deployment_prompt("contract Escrow {}", deal)

        assert prompt.startswith("Contract Code:\ncontract Escrow {}\n\nDeal Data:\n")
        assert prompt.endswith(format_user_prompt(deal))
        assert format_deal_json(deal) in prompt

    def test_deal_json_uses_camel_case(self, deal):
        data = json.loads(format_deal_json(deal))
        assert data["releaseConditions"] == ["Buyer confirms receipt"]
        assert data["disputeResolution"] == "Arbitration"
