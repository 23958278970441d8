"""Escrow deal persistence."""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select

from ..exceptions import EscrowNotFoundError, InvalidStatusError
from ..models.enums import EscrowStatus
from ..models.escrow import DEFAULT_CURRENCY, EscrowContract, EscrowParticipant, utcnow
from .database import DatabaseManager
from .models import EscrowModel


logger = logging.getLogger(__name__)

_IMMUTABLE_FIELDS = {"id", "created_at"}
_LIST_FIELDS = {"terms", "release_conditions"}
_TEXT_FIELDS = {
    "currency",
    "contract_address",
    "transaction_hash",
    "contract_pdf",
    "smart_contract",
    "summary",
    "created_by",
}


class EscrowStore:
    """
    Repository for escrow deals.

    Converts between the ``escrows`` table and ``EscrowContract``
    dataclasses, normalizing legacy participant and status values on load.
    """

    def __init__(self, db_manager: DatabaseManager):
        self._db_manager = db_manager

    @staticmethod
    def _participant_to_json(participant: EscrowParticipant) -> Dict[str, Any]:
        return participant.to_dict()

    def _from_model(self, model: EscrowModel) -> EscrowContract:
        """Convert a row to a dataclass, tolerating malformed legacy data."""
        raw_participants = model.participants if isinstance(model.participants, list) else []
        amount = model.amount if isinstance(model.amount, (int, float)) else 0

        return EscrowContract(
            id=str(model.id),
            title=model.title or "",
            amount=amount,
            currency=model.currency or DEFAULT_CURRENCY,
            status=(
                EscrowStatus(model.status)
                if EscrowStatus.is_valid(model.status)
                else EscrowStatus.PENDING
            ),
            participants=[EscrowParticipant.from_raw(p) for p in raw_participants],
            terms=list(model.terms) if isinstance(model.terms, list) else [],
            release_conditions=(
                list(model.release_conditions)
                if isinstance(model.release_conditions, list)
                else []
            ),
            created_at=model.created_at,
            updated_at=model.updated_at,
            expires_at=model.expires_at,
            contract_address=model.contract_address or "",
            transaction_hash=model.transaction_hash or "",
            contract_pdf=model.contract_pdf or "",
            smart_contract=model.smart_contract or "",
            summary=model.summary or "",
            created_by=model.created_by or "",
        )

    def create(self, escrow: EscrowContract) -> str:
        """
        Persist a new escrow deal.

        Participants get empty key points, ``has_approved`` False unless set,
        and a fresh ``last_updated``. The status defaults to pending.

        Returns:
            The id of the stored escrow.
        """
        now = utcnow()
        escrow_id = escrow.id or str(uuid.uuid4())
        participants = [
            EscrowParticipant(
                email=p.email,
                role=p.role,
                user_id=p.user_id or "",
                key_points=list(p.key_points or []),
                has_approved=bool(p.has_approved),
                last_updated=now,
                signature=p.signature,
            )
            for p in escrow.participants
        ]

        model = EscrowModel(
            id=escrow_id,
            title=escrow.title,
            amount=escrow.amount,
            currency=escrow.currency or DEFAULT_CURRENCY,
            status=(escrow.status or EscrowStatus.PENDING).value,
            participants=[self._participant_to_json(p) for p in participants],
            terms=list(escrow.terms),
            release_conditions=list(escrow.release_conditions),
            expires_at=escrow.expires_at,
            contract_address=escrow.contract_address,
            transaction_hash=escrow.transaction_hash,
            contract_pdf=escrow.contract_pdf,
            smart_contract=escrow.smart_contract,
            summary=escrow.summary,
            created_by=escrow.created_by,
            created_at=now,
            updated_at=now,
        )
        with self._db_manager.get_session() as session:
            session.add(model)

        logger.info(f"Created escrow {escrow_id} with {len(participants)} participants")
        return escrow_id

    def get(self, escrow_id: str) -> EscrowContract:
        """Load an escrow by id or raise EscrowNotFoundError."""
        with self._db_manager.get_session() as session:
            model = session.get(EscrowModel, escrow_id)
            if model is None:
                raise EscrowNotFoundError(escrow_id)
            return self._from_model(model)

    def exists(self, escrow_id: str) -> bool:
        with self._db_manager.get_session() as session:
            return session.get(EscrowModel, escrow_id) is not None

    def list_all(self) -> List[EscrowContract]:
        with self._db_manager.get_session() as session:
            models = session.execute(select(EscrowModel)).scalars().all()
            return [self._from_model(m) for m in models]

    def list_for_participant(self, email: str) -> List[EscrowContract]:
        """
        Return every escrow that lists ``email`` as a participant.

        Participants are JSON, so matching happens after loading; legacy
        string participants are matched too.
        """
        matches = []
        for escrow in self.list_all():
            if escrow.has_participant(email):
                matches.append(escrow)
        logger.debug(f"Found {len(matches)} escrows for participant {email}")
        return matches

    def update(self, escrow_id: str, updates: Dict[str, Any]) -> EscrowContract:
        """
        Apply a partial update and refresh ``updated_at``.

        Args:
            escrow_id: Escrow to update.
            updates: Mapping of EscrowContract field names to new values.

        Raises:
            EscrowNotFoundError: If the escrow does not exist.
            ValueError: For unknown or immutable fields.
            InvalidStatusError: For a status outside EscrowStatus.
        """
        with self._db_manager.get_session() as session:
            model = session.get(EscrowModel, escrow_id)
            if model is None:
                raise EscrowNotFoundError(escrow_id)

            for name, value in updates.items():
                self._apply_update(model, name, value)

            model.updated_at = utcnow()
            session.flush()
            return self._from_model(model)

    def _apply_update(self, model: EscrowModel, name: str, value: Any) -> None:
        if name in _IMMUTABLE_FIELDS:
            raise ValueError(f"Field '{name}' cannot be updated")

        if name == "status":
            status_value = value.value if isinstance(value, EscrowStatus) else value
            if not EscrowStatus.is_valid(status_value):
                raise InvalidStatusError(value)
            model.status = status_value
        elif name == "participants":
            if not isinstance(value, list):
                raise ValueError("Field 'participants' must be a list")
            participants = [
                p if isinstance(p, EscrowParticipant) else EscrowParticipant.from_raw(p)
                for p in value
            ]
            # JSON columns are replaced, never mutated in place
            model.participants = [self._participant_to_json(p) for p in participants]
        elif name in _LIST_FIELDS:
            if not isinstance(value, list):
                raise ValueError(f"Field '{name}' must be a list")
            setattr(model, name, [str(v) for v in value])
        elif name == "title":
            if not isinstance(value, str) or not value.strip():
                raise ValueError("Field 'title' must be a non-empty string")
            model.title = value.strip()
        elif name == "amount":
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                raise ValueError("Field 'amount' must be a non-negative number")
            model.amount = value
        elif name == "expires_at":
            if value is not None and not isinstance(value, datetime):
                raise ValueError("Field 'expires_at' must be a datetime")
            model.expires_at = value
        elif name in _TEXT_FIELDS:
            if value is None:
                value = ""
            if not isinstance(value, str):
                raise ValueError(f"Field '{name}' must be a string")
            setattr(model, name, value)
        else:
            raise ValueError(f"Unknown escrow field '{name}'")
