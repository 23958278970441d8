"""System and user prompts for escrow document generation."""

import json
from typing import Optional

from ..config.config_manager import ConfigurationManager
from ..models.document import EscrowData
from ..models.enums import DocumentType


PDF_CONTRACT_PROMPT = (
    "You are a legal expert specializing in escrow agreements. Generate a "
    "comprehensive PDF contract that includes all necessary legal clauses, terms, "
    "and conditions for an escrow transaction. The contract should be professional, "
    "legally binding, and cover all standard escrow requirements."
)

SUMMARY_PROMPT = """You are a financial analyst creating a clear, visually appealing summary of an escrow transaction. Format your response in the following structure:

📊 ESCROW SUMMARY
----------------
🤝 Participants
- Buyer: [buyer email]
- Seller: [seller email]

💰 Transaction Details
- Amount: [amount with currency]
- Status: Pending

📝 Key Terms
[List key terms as bullet points with emojis]

⏰ Important Dates
- Created: [current date]
- Expires: [expiration date]

Keep the format clean and easy to read, using emojis and clear sections to improve readability."""

SOLIDITY_PROMPT = """You are a blockchain developer creating a secure Solidity smart contract for an escrow transaction. Generate a complete, production-ready smart contract with the following requirements:

1. Use the latest stable Solidity version (^0.8.0)
2. Include comprehensive NatSpec documentation
3. Follow all security best practices
4. Implement the following features:
   - Deposit funds into escrow
   - Release funds to seller
   - Refund to buyer if conditions aren't met
   - Dispute resolution mechanism
   - Automatic expiration handling
   - Emergency pause functionality
   - Fee handling

Structure your code with clear sections and detailed comments explaining:
- Contract overview and purpose
- State variables and their roles
- Function purposes and security considerations
- Event emissions
- Access control
- Security measures
- Gas optimization techniques

Example structure:
// SPDX-License-Identifier
pragma solidity ^0.8.0;

/// @title Escrow Contract
/// @author Settlr Platform
/// @notice [Contract purpose]
/// @dev [Technical details]

[Your code with detailed comments]"""

DEPLOYMENT_SCRIPT_PROMPT = (
    "You are a blockchain deployment expert. Create a deployment script for the "
    "escrow smart contract. Include all necessary steps, environment setup, and "
    "deployment commands."
)

DEFAULT_PROMPT = (
    "You are a document generation expert. Create a professional document based "
    "on the provided escrow details."
)

DEAL_VALIDATION_PROMPT = """You are a smart contract escrow expert. Review the provided deal information and:
1. Identify any missing critical information
2. Suggest specific values for missing fields
3. Format response as JSON with two fields:
   - missingFields: array of field names that are empty or insufficient
   - suggestions: object with suggested values for each missing field"""

DEAL_ANALYSIS_PROMPT = (
    "You are an escrow deal assistant. Answer the user's request using the "
    "deal details and the text of the uploaded deal files provided below."
)

CHAT_PROMPT = (
    "You are Settlr's escrow assistant. Answer questions about escrow deals, "
    "contract terms and smart contracts clearly and concisely."
)

_SYSTEM_PROMPTS = {
    DocumentType.PDF_CONTRACT: PDF_CONTRACT_PROMPT,
    DocumentType.SUMMARY: SUMMARY_PROMPT,
    DocumentType.SOLIDITY: SOLIDITY_PROMPT,
    DocumentType.DEPLOYMENT_SCRIPT: DEPLOYMENT_SCRIPT_PROMPT,
}


def get_system_prompt(
    document_type,
    config_manager: Optional[ConfigurationManager] = None,
) -> str:
    """
    Return the system prompt for a document type.

    An enabled prompt template from ``config_manager`` takes precedence over
    the built-in prompt. Values that are not a known DocumentType get the
    generic document prompt.
    """
    if not isinstance(document_type, DocumentType):
        try:
            document_type = DocumentType(document_type)
        except ValueError:
            return DEFAULT_PROMPT

    if config_manager is not None:
        template = config_manager.get_template(document_type)
        if template is not None:
            return template.system_prompt

    return _SYSTEM_PROMPTS.get(document_type, DEFAULT_PROMPT)


def get_prompt_temperature(
    document_type: DocumentType,
    config_manager: Optional[ConfigurationManager] = None,
) -> Optional[float]:
    """Temperature override of the active prompt template, if one sets it."""
    if config_manager is None:
        return None
    template = config_manager.get_template(document_type)
    return template.temperature if template is not None else None


def format_user_prompt(data: EscrowData) -> str:
    """Render deal data as the user message of a generation request."""
    lines = [
        "Generate a document with the following escrow details:",
        f"- Buyer: {data.buyer}",
        f"- Seller: {data.seller}",
        f"- Amount: {_format_amount(data.amount)} {data.currency}",
        f"- Terms: {', '.join(data.terms)}",
        f"- Conditions: {', '.join(data.conditions)}",
        f"- Release Conditions: {', '.join(data.release_conditions)}",
        f"- Dispute Resolution: {data.dispute_resolution}",
    ]
    for key, value in data.extra.items():
        lines.append(f"- {key}: {value}")
    return "\n".join(lines)


def format_deployment_prompt(contract_code: str, data: EscrowData) -> str:
    """User message for a deployment script that targets generated contract code."""
    return (
        f"Contract Code:\n{contract_code}\n\n"
        f"Deal Data:\n{json.dumps(data.to_dict(), indent=2, ensure_ascii=False)}\n\n"
        f"{format_user_prompt(data)}"
    )


def format_deal_json(data: EscrowData) -> str:
    return json.dumps(data.to_dict(), indent=2, ensure_ascii=False)


def _format_amount(amount: float) -> str:
    # 25.0 renders as 25, 0.5 stays 0.5
    if float(amount).is_integer():
        return str(int(amount))
    return str(amount)
