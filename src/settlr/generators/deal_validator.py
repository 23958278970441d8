"""Missing-information checks for escrow deal data."""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List

from ..exceptions import DocumentGenerationError
from ..interfaces.generator import ILLMClient
from ..models.document import EscrowData
from .prompts import DEAL_VALIDATION_PROMPT, format_deal_json


logger = logging.getLogger(__name__)

_FENCE_PATTERN = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?```$", re.DOTALL)

# Suggestion keys that may be merged back into deal data
_MERGEABLE_FIELDS = {
    "buyer",
    "seller",
    "amount",
    "currency",
    "terms",
    "conditions",
    "releaseConditions",
    "release_conditions",
    "disputeResolution",
    "dispute_resolution",
}


@dataclass
class DealAnalysis:
    """Model review of a deal: fields it considers missing and suggested values."""
    missing_fields: List[str] = field(default_factory=list)
    suggestions: Dict[str, Any] = field(default_factory=dict)


class DealValidator:
    """
    Finds gaps in deal data before documents are drafted.

    Rule checks run locally; ``analyze`` asks the language model for
    missing fields and suggested values.
    """

    def __init__(self, llm_client: ILLMClient):
        self._llm = llm_client

    def find_missing_fields(self, data: EscrowData) -> List[str]:
        """Return the names of required fields that are empty."""
        missing = []
        if not data.buyer.strip():
            missing.append("buyer")
        if not data.seller.strip():
            missing.append("seller")
        if data.amount <= 0:
            missing.append("amount")
        if not data.release_conditions:
            missing.append("releaseConditions")
        if not data.dispute_resolution.strip():
            missing.append("disputeResolution")
        return missing

    def analyze(self, data: EscrowData) -> DealAnalysis:
        """
        Ask the model which fields are missing and what to fill them with.

        Raises:
            DocumentGenerationError: If the call fails or the reply is not
                a JSON object.
        """
        reply = self._llm.complete(DEAL_VALIDATION_PROMPT, format_deal_json(data))
        parsed = self._parse_reply(reply)

        missing = parsed.get("missingFields", parsed.get("missing_fields", []))
        suggestions = parsed.get("suggestions", {})
        if not isinstance(missing, list):
            missing = [str(missing)]
        if not isinstance(suggestions, dict):
            suggestions = {}

        logger.info(
            f"Deal analysis found {len(missing)} missing fields, "
            f"{len(suggestions)} suggestions"
        )
        return DealAnalysis(
            missing_fields=[str(m) for m in missing],
            suggestions=suggestions,
        )

    def apply_suggestions(self, data: EscrowData, suggestions: Dict[str, Any]) -> EscrowData:
        """
        Merge suggested values into deal data.

        Keys outside the deal fields are ignored, as are values that do not
        fit the field (for example a non-numeric amount).
        """
        merged = data.to_dict()
        for key, value in suggestions.items():
            if key not in _MERGEABLE_FIELDS:
                logger.debug(f"Ignoring suggestion for unknown field '{key}'")
                continue
            candidate = dict(merged)
            candidate[key] = value
            try:
                EscrowData.from_dict(candidate)
            except ValueError as e:
                logger.warning(f"Ignoring suggestion for '{key}': {e}")
                continue
            merged = candidate
        return EscrowData.from_dict(merged)

    def _parse_reply(self, reply: str) -> Dict[str, Any]:
        text = reply.strip()
        match = _FENCE_PATTERN.match(text)
        if match:
            text = match.group(1).strip()
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            raise DocumentGenerationError(
                "Deal analysis returned invalid JSON", {"reply": reply[:500]}
            ) from e
        if not isinstance(parsed, dict):
            raise DocumentGenerationError(
                "Deal analysis must return a JSON object", {"reply": reply[:500]}
            )
        return parsed
