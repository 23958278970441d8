"""Deal data and generated document models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .enums import DocumentType, ParticipantRole
from .escrow import DEFAULT_CURRENCY, EscrowContract


@dataclass
class EscrowData:
    """
    Structured deal data fed into document generation prompts.

    Attributes:
        buyer: Buyer identifier (email or wallet address).
        seller: Seller identifier.
        amount: Escrowed amount.
        currency: Currency or token symbol.
        terms: Free-form deal terms.
        conditions: Conditions both parties must satisfy.
        release_conditions: Conditions that release funds to the seller.
        dispute_resolution: How disputes are settled.
        extra: Additional deal-specific fields (NFT contract, token id, ...).
    """
    buyer: str = ""
    seller: str = ""
    amount: float = 0.0
    currency: str = DEFAULT_CURRENCY
    terms: List[str] = field(default_factory=list)
    conditions: List[str] = field(default_factory=list)
    release_conditions: List[str] = field(default_factory=list)
    dispute_resolution: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    # Accepts both the API's camelCase keys and snake_case.
    _ALIASES = {
        "releaseConditions": "release_conditions",
        "disputeResolution": "dispute_resolution",
    }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "EscrowData":
        """Build deal data from a request payload."""
        if not isinstance(raw, dict):
            raise ValueError("Deal data must be an object")

        values: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        known = {"buyer", "seller", "amount", "currency", "terms", "conditions",
                 "release_conditions", "dispute_resolution"}
        for key, value in raw.items():
            name = cls._ALIASES.get(key, key)
            if name in known:
                values[name] = value
            elif name == "extra" and isinstance(value, dict):
                extra.update(value)
            else:
                extra[key] = value

        try:
            amount = float(values.get("amount") or 0)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid amount: {values.get('amount')!r}")

        return cls(
            buyer=str(values.get("buyer") or ""),
            seller=str(values.get("seller") or ""),
            amount=amount,
            currency=str(values.get("currency") or DEFAULT_CURRENCY),
            terms=_as_str_list(values.get("terms")),
            conditions=_as_str_list(values.get("conditions")),
            release_conditions=_as_str_list(values.get("release_conditions")),
            dispute_resolution=str(values.get("dispute_resolution") or ""),
            extra=extra,
        )

    @classmethod
    def from_escrow(cls, escrow: EscrowContract) -> "EscrowData":
        """Derive generation input from a stored escrow deal."""
        buyer = escrow.find_participant(ParticipantRole.BUYER)
        seller = escrow.find_participant(ParticipantRole.SELLER)
        return cls(
            buyer=buyer.email if buyer else "",
            seller=seller.email if seller else "",
            amount=escrow.amount,
            currency=escrow.currency,
            terms=list(escrow.terms),
            conditions=[],
            release_conditions=list(escrow.release_conditions),
            dispute_resolution="",
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "buyer": self.buyer,
            "seller": self.seller,
            "amount": self.amount,
            "currency": self.currency,
            "terms": list(self.terms),
            "conditions": list(self.conditions),
            "releaseConditions": list(self.release_conditions),
            "disputeResolution": self.dispute_resolution,
        }
        data.update(self.extra)
        return data


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    raise ValueError(f"Expected a list of strings, got {type(value).__name__}")


@dataclass
class GeneratedDocument:
    """An LLM-drafted artifact stored against a deal."""
    type: DocumentType
    content: str
    deal_id: str
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "type": self.type.value,
            "content": self.content,
            "dealId": self.deal_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
        if self.id is not None:
            data = {"id": self.id, **data}
        return data


@dataclass
class ParsedDealFile:
    """Text extracted from an uploaded deal file."""
    filename: str
    file_type: str
    text: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class DealFile:
    """An uploaded file attached to a deal."""
    id: str
    deal_id: str
    filename: str
    file_type: str
    size: int
    storage_path: str
    uploaded_by: str = ""
    extracted_text: str = ""
    uploaded_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "deal_id": self.deal_id,
            "filename": self.filename,
            "file_type": self.file_type,
            "size": self.size,
            "uploaded_by": self.uploaded_by,
            "has_text": bool(self.extracted_text),
            "uploaded_at": self.uploaded_at.isoformat() if self.uploaded_at else None,
        }
