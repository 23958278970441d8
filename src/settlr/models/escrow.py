"""Escrow deal, participant and user profile models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .enums import EscrowStatus, ParticipantRole


DEFAULT_CURRENCY = "ETH"


def utcnow() -> datetime:
    """Current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


@dataclass
class EscrowParticipant:
    """
    A party to an escrow deal.

    Participants are identified by email; ``user_id`` is empty until the
    party has a Settlr account.
    """
    email: str
    role: ParticipantRole = ParticipantRole.BUYER
    user_id: str = ""
    key_points: List[str] = field(default_factory=list)
    has_approved: bool = False
    last_updated: Optional[datetime] = None
    signature: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "email": self.email,
            "role": self.role.value,
            "user_id": self.user_id,
            "key_points": list(self.key_points),
            "has_approved": self.has_approved,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
            "signature": self.signature,
        }

    @classmethod
    def from_raw(cls, raw: Any) -> "EscrowParticipant":
        """
        Build a participant from a stored value.

        Older records stored participants as bare email strings; those become
        buyers without a user id. Unknown roles also fall back to buyer.
        """
        if isinstance(raw, str):
            return cls(email=raw)
        if not isinstance(raw, dict):
            return cls(email="")

        role_value = raw.get("role")
        role = (
            ParticipantRole(role_value)
            if role_value in (r.value for r in ParticipantRole)
            else ParticipantRole.BUYER
        )
        key_points = raw.get("key_points", raw.get("keyPoints"))
        last_updated = raw.get("last_updated", raw.get("lastUpdated"))
        if isinstance(last_updated, str):
            try:
                last_updated = datetime.fromisoformat(last_updated)
            except ValueError:
                last_updated = None
        elif not isinstance(last_updated, datetime):
            last_updated = None

        return cls(
            email=raw.get("email") or "",
            role=role,
            user_id=raw.get("user_id", raw.get("userId")) or "",
            key_points=list(key_points) if isinstance(key_points, list) else [],
            has_approved=bool(raw.get("has_approved", raw.get("hasApproved"))),
            last_updated=last_updated,
            signature=raw.get("signature"),
        )


@dataclass
class EscrowContract:
    """An escrow deal as shown on the dashboard."""
    id: str
    title: str
    amount: float = 0.0
    currency: str = DEFAULT_CURRENCY
    status: EscrowStatus = EscrowStatus.PENDING
    participants: List[EscrowParticipant] = field(default_factory=list)
    terms: List[str] = field(default_factory=list)
    release_conditions: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    contract_address: str = ""
    transaction_hash: str = ""
    contract_pdf: str = ""
    smart_contract: str = ""
    summary: str = ""
    created_by: str = ""

    def find_participant(self, role: ParticipantRole) -> Optional[EscrowParticipant]:
        """Return the first participant holding the given role."""
        for participant in self.participants:
            if participant.role == role:
                return participant
        return None

    def has_participant(self, email: str) -> bool:
        return any(p.email == email for p in self.participants)

    @property
    def all_approved(self) -> bool:
        return bool(self.participants) and all(p.has_approved for p in self.participants)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "amount": self.amount,
            "currency": self.currency,
            "status": self.status.value,
            "participants": [p.to_dict() for p in self.participants],
            "terms": list(self.terms),
            "release_conditions": list(self.release_conditions),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "contract_address": self.contract_address,
            "transaction_hash": self.transaction_hash,
            "contract_pdf": self.contract_pdf,
            "smart_contract": self.smart_contract,
            "summary": self.summary,
            "created_by": self.created_by,
        }


@dataclass
class UserPreferences:
    notifications: bool = True
    email_updates: bool = True


@dataclass
class UserProfile:
    """Settlr account profile, keyed by the identity provider's uid."""
    id: str
    email: str
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    active_escrows: List[str] = field(default_factory=list)
    completed_escrows: List[str] = field(default_factory=list)
    preferences: UserPreferences = field(default_factory=UserPreferences)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "display_name": self.display_name,
            "photo_url": self.photo_url,
            "active_escrows": list(self.active_escrows),
            "completed_escrows": list(self.completed_escrows),
            "preferences": {
                "notifications": self.preferences.notifications,
                "email_updates": self.preferences.email_updates,
            },
        }


@dataclass
class DashboardStats:
    """Aggregates shown in the dashboard header cards."""
    total_escrows: int = 0
    by_status: Dict[str, int] = field(default_factory=dict)
    open_value: float = 0.0
    completed_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_escrows": self.total_escrows,
            "by_status": dict(self.by_status),
            "open_value": self.open_value,
            "completed_count": self.completed_count,
        }
