"""Escrow deal operations used by the dashboard and API."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from ..audit.audit_logger import AuditLogger
from ..exceptions import InvalidStatusError, ParticipantNotFoundError
from ..models.document import EscrowData
from ..models.enums import EscrowStatus
from ..models.escrow import (
    DEFAULT_CURRENCY,
    DashboardStats,
    EscrowContract,
    EscrowParticipant,
    utcnow,
)
from ..storage.escrow_store import EscrowStore
from ..storage.user_store import UserStore


logger = logging.getLogger(__name__)

SORT_KEYS = ("created_at", "amount", "title", "expires_at")

_OPEN_STATUSES = (EscrowStatus.PENDING, EscrowStatus.ACTIVE)

# Changed only through key point, signing and creation operations
_MANAGED_FIELDS = ("participants", "created_by")


class EscrowManager:
    """
    Business operations on escrow deals.

    Keeps user profiles' active and completed escrow lists in step with
    deal status, and records each change in the audit log.
    """

    def __init__(
        self,
        escrow_store: EscrowStore,
        user_store: UserStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._escrows = escrow_store
        self._users = user_store
        self._audit_logger = audit_logger

    # ========== Creation and lookup ==========

    def create_escrow(
        self,
        title: str,
        amount: float,
        participants: List[Union[EscrowParticipant, Dict[str, Any]]],
        currency: str = DEFAULT_CURRENCY,
        terms: Optional[List[str]] = None,
        release_conditions: Optional[List[str]] = None,
        expires_at: Optional[datetime] = None,
        created_by: str = "",
    ) -> EscrowContract:
        """
        Create an escrow deal in pending status.

        Participants without a user id are linked to an existing profile
        with the same email. Every linked participant gets the escrow added
        to their active list.

        Raises:
            ValueError: For an empty title or a negative amount.
        """
        if not title or not title.strip():
            raise ValueError("Escrow title is required")
        if amount < 0:
            raise ValueError("Escrow amount cannot be negative")

        resolved = []
        for raw in participants:
            participant = (
                raw if isinstance(raw, EscrowParticipant) else EscrowParticipant.from_raw(raw)
            )
            if not participant.email:
                raise ValueError("Every participant needs an email")
            if not participant.user_id:
                profile = self._users.get_by_email(participant.email)
                if profile is not None:
                    participant.user_id = profile.id
            resolved.append(participant)

        escrow_id = self._escrows.create(EscrowContract(
            id="",
            title=title.strip(),
            amount=amount,
            currency=currency or DEFAULT_CURRENCY,
            status=EscrowStatus.PENDING,
            participants=resolved,
            terms=list(terms or []),
            release_conditions=list(release_conditions or []),
            expires_at=expires_at,
            created_by=created_by,
        ))

        for participant in resolved:
            if participant.user_id and not self._users.add_active_escrow(
                participant.user_id, escrow_id
            ):
                logger.warning(
                    f"No profile for participant {participant.user_id}; "
                    f"escrow {escrow_id} not added to active list"
                )

        if self._audit_logger is not None:
            self._audit_logger.log_escrow_created(
                escrow_id=escrow_id,
                title=title,
                amount=amount,
                currency=currency,
                participant_count=len(resolved),
                user_id=created_by or None,
            )

        return self._escrows.get(escrow_id)

    def get_escrow(self, escrow_id: str) -> EscrowContract:
        return self._escrows.get(escrow_id)

    def get_user_escrows(
        self,
        email: str,
        search: Optional[str] = None,
        status: Optional[Union[EscrowStatus, str]] = None,
        sort_by: str = "created_at",
        descending: bool = True,
    ) -> List[EscrowContract]:
        """
        List the escrows ``email`` participates in.

        Args:
            email: Participant email.
            search: Case-insensitive substring matched against title and terms.
            status: Only return escrows in this status.
            sort_by: One of ``SORT_KEYS``. Missing values sort last.
            descending: Sort direction.

        Raises:
            ValueError: For an unknown sort key.
            InvalidStatusError: For an unknown status filter.
        """
        if sort_by not in SORT_KEYS:
            raise ValueError(f"Unknown sort key '{sort_by}'. Use one of {list(SORT_KEYS)}")

        status_filter = None
        if status:
            status_value = status.value if isinstance(status, EscrowStatus) else status
            if not EscrowStatus.is_valid(status_value):
                raise InvalidStatusError(status)
            status_filter = EscrowStatus(status_value)

        escrows = self._escrows.list_for_participant(email)

        if status_filter is not None:
            escrows = [e for e in escrows if e.status == status_filter]

        if search:
            needle = search.lower()
            escrows = [
                e for e in escrows
                if needle in e.title.lower() or any(needle in t.lower() for t in e.terms)
            ]

        return _sort_escrows(escrows, sort_by, descending)

    def get_deal_data(self, escrow_id: str) -> EscrowData:
        """Generation input for a stored escrow."""
        return EscrowData.from_escrow(self._escrows.get(escrow_id))

    def get_dashboard_stats(self, email: str) -> DashboardStats:
        escrows = self._escrows.list_for_participant(email)
        by_status = {s.value: 0 for s in EscrowStatus}
        for escrow in escrows:
            by_status[escrow.status.value] += 1

        return DashboardStats(
            total_escrows=len(escrows),
            by_status=by_status,
            open_value=sum(e.amount for e in escrows if e.status in _OPEN_STATUSES),
            completed_count=by_status[EscrowStatus.COMPLETED.value],
        )

    # ========== Updates ==========

    def update_escrow_status(
        self,
        escrow_id: str,
        status: Union[EscrowStatus, str],
        user_id: Optional[str] = None,
    ) -> EscrowContract:
        """
        Change an escrow's status.

        Completing an escrow moves it from active to completed for every
        participant with a profile.

        Raises:
            EscrowNotFoundError: If the escrow does not exist.
            InvalidStatusError: For an unknown status.
        """
        status_value = status.value if isinstance(status, EscrowStatus) else status
        if not EscrowStatus.is_valid(status_value):
            raise InvalidStatusError(status)
        new_status = EscrowStatus(status_value)

        escrow = self._escrows.get(escrow_id)
        old_status = escrow.status

        if new_status == EscrowStatus.COMPLETED:
            for participant in escrow.participants:
                if not participant.user_id:
                    continue
                if not self._users.complete_escrow(participant.user_id, escrow_id):
                    logger.warning(
                        f"No profile for participant {participant.user_id}; "
                        f"skipping completed list update for escrow {escrow_id}"
                    )

        updated = self._escrows.update(escrow_id, {"status": new_status})

        if self._audit_logger is not None:
            self._audit_logger.log_status_changed(
                escrow_id, old_status.value, new_status.value, user_id=user_id
            )
        logger.info(f"Escrow {escrow_id} status {old_status.value} -> {new_status.value}")
        return updated

    def update_escrow(
        self,
        escrow_id: str,
        updates: Dict[str, Any],
        user_id: Optional[str] = None,
    ) -> EscrowContract:
        """
        Apply a partial update.

        A ``status`` key goes through ``update_escrow_status`` so profile
        lists stay consistent.

        Raises:
            ValueError: If ``updates`` touches participants or the creator.
        """
        managed = [name for name in _MANAGED_FIELDS if name in updates]
        if managed:
            raise ValueError(f"Field '{managed[0]}' cannot be changed by a partial update")

        updates = dict(updates)
        status = updates.pop("status", None)

        escrow = None
        if updates:
            escrow = self._escrows.update(escrow_id, updates)
            if self._audit_logger is not None:
                self._audit_logger.log_escrow_updated(
                    escrow_id, list(updates.keys()), user_id=user_id
                )
        if status is not None:
            escrow = self.update_escrow_status(escrow_id, status, user_id=user_id)
        if escrow is None:
            escrow = self._escrows.get(escrow_id)
        return escrow

    def update_participant_key_points(
        self,
        escrow_id: str,
        user_id: str,
        key_points: List[str],
    ) -> EscrowContract:
        """
        Replace a participant's key points.

        Raises:
            EscrowNotFoundError: If the escrow does not exist.
            ParticipantNotFoundError: If no participant has ``user_id``.
        """
        escrow = self._escrows.get(escrow_id)
        index = _find_participant_index(escrow, user_id)
        if index is None:
            raise ParticipantNotFoundError(escrow_id, user_id)

        participants = list(escrow.participants)
        participant = participants[index]
        participant.key_points = [str(k) for k in key_points]
        participant.last_updated = utcnow()

        updated = self._escrows.update(escrow_id, {"participants": participants})
        if self._audit_logger is not None:
            self._audit_logger.log_key_points_updated(escrow_id, user_id, len(key_points))
        return updated

    def sign_escrow(
        self,
        escrow_id: str,
        user_id: str,
        signature: str,
        email: Optional[str] = None,
    ) -> EscrowContract:
        """
        Record a participant's approval and signature.

        The participant is matched by user id, then by ``email``; an email
        match also links the user id. Once every participant has approved,
        a pending escrow becomes active.

        Raises:
            ValueError: For an empty signature.
            EscrowNotFoundError: If the escrow does not exist.
            ParticipantNotFoundError: If the user is not a participant.
        """
        if not signature or not signature.strip():
            raise ValueError("Signature is required")

        escrow = self._escrows.get(escrow_id)
        index = _find_participant_index(escrow, user_id, email)
        if index is None:
            raise ParticipantNotFoundError(escrow_id, user_id)

        participants = list(escrow.participants)
        participant = participants[index]
        participant.user_id = participant.user_id or user_id
        participant.has_approved = True
        participant.signature = signature.strip()
        participant.last_updated = utcnow()

        updated = self._escrows.update(escrow_id, {"participants": participants})
        all_approved = updated.all_approved

        if self._audit_logger is not None:
            self._audit_logger.log_escrow_signed(escrow_id, user_id, all_approved)

        if all_approved and updated.status == EscrowStatus.PENDING:
            updated = self.update_escrow_status(escrow_id, EscrowStatus.ACTIVE, user_id=user_id)
        return updated


def _find_participant_index(
    escrow: EscrowContract,
    user_id: str,
    email: Optional[str] = None,
) -> Optional[int]:
    for i, participant in enumerate(escrow.participants):
        if user_id and participant.user_id == user_id:
            return i
    if email:
        for i, participant in enumerate(escrow.participants):
            if participant.email == email:
                return i
    return None


def _sort_escrows(
    escrows: List[EscrowContract],
    sort_by: str,
    descending: bool,
) -> List[EscrowContract]:
    def key(escrow: EscrowContract):
        value = getattr(escrow, sort_by)
        return value.lower() if isinstance(value, str) else value

    present = [e for e in escrows if getattr(e, sort_by) is not None]
    missing = [e for e in escrows if getattr(e, sort_by) is None]
    return sorted(present, key=key, reverse=descending) + missing
