"""Unit tests for the escrow, user and document stores."""

import pytest

from settlr.exceptions import DocumentNotFoundError, EscrowNotFoundError, InvalidStatusError
from settlr.models.document import DealFile, GeneratedDocument
from settlr.models.enums import DocumentType, EscrowStatus, ParticipantRole
from settlr.models.escrow import EscrowContract, EscrowParticipant
from settlr.storage.models import EscrowModel


def _escrow(**overrides) -> EscrowContract:
    values = dict(
        id="",
        title="Vintage guitar",
        amount=2.5,
        currency="ETH",
        participants=[
            EscrowParticipant(email="buyer@example.com", role=ParticipantRole.BUYER),
            EscrowParticipant(email="seller@example.com", role=ParticipantRole.SELLER),
        ],
        terms=["Ships within 5 days"],
        release_conditions=["Buyer confirms delivery"],
    )
    values.update(overrides)
    return EscrowContract(**values)


class TestEscrowStore:
    """Tests for EscrowStore."""

    def test_create_assigns_id_and_defaults(self, escrow_store):
        """Test that a created escrow is pending with fresh participant state."""
        escrow_id = escrow_store.create(_escrow())

        stored = escrow_store.get(escrow_id)
        assert stored.id == escrow_id
        assert stored.status == EscrowStatus.PENDING
        assert stored.created_at is not None
        assert all(p.key_points == [] for p in stored.participants)
        assert all(not p.has_approved for p in stored.participants)
        assert all(p.last_updated is not None for p in stored.participants)

    def test_create_keeps_explicit_id(self, escrow_store):
        assert escrow_store.create(_escrow(id="deal-1")) == "deal-1"
        assert escrow_store.exists("deal-1")

    def test_get_missing_raises(self, escrow_store):
        with pytest.raises(EscrowNotFoundError) as exc_info:
            escrow_store.get("nope")
        assert exc_info.value.message == "Escrow contract not found"

    def test_list_for_participant(self, escrow_store):
        """Test that only escrows listing the email are returned."""
        first = escrow_store.create(_escrow(title="First"))
        escrow_store.create(_escrow(
            title="Other",
            participants=[EscrowParticipant(email="someone@example.com")],
        ))

        matches = escrow_store.list_for_participant("seller@example.com")
        assert [e.id for e in matches] == [first]

    def test_legacy_rows_are_normalized(self, escrow_store, db_manager):
        """Test loading rows with string participants and unknown status."""
        with db_manager.get_session() as session:
            session.add(EscrowModel(
                id="legacy",
                title="Old deal",
                amount=1.0,
                status="weird",
                participants=["buyer@example.com"],
                terms=None,
                release_conditions=None,
            ))

        escrow = escrow_store.get("legacy")
        assert escrow.status == EscrowStatus.PENDING
        assert escrow.participants[0].email == "buyer@example.com"
        assert escrow.participants[0].role == ParticipantRole.BUYER
        assert escrow.terms == []
        assert escrow_store.list_for_participant("buyer@example.com")[0].id == "legacy"

    def test_update_partial_fields(self, escrow_store):
        escrow_id = escrow_store.create(_escrow())
        before = escrow_store.get(escrow_id)

        updated = escrow_store.update(escrow_id, {"title": "Renamed", "terms": ["A", "B"]})

        assert updated.title == "Renamed"
        assert updated.terms == ["A", "B"]
        assert updated.amount == before.amount
        assert updated.updated_at >= before.updated_at

    def test_update_status_validated(self, escrow_store):
        escrow_id = escrow_store.create(_escrow())

        assert escrow_store.update(escrow_id, {"status": "active"}).status == EscrowStatus.ACTIVE
        with pytest.raises(InvalidStatusError):
            escrow_store.update(escrow_id, {"status": "archived"})
        assert escrow_store.get(escrow_id).status == EscrowStatus.ACTIVE

    @pytest.mark.parametrize("field", ["id", "created_at"])
    def test_update_immutable_field_rejected(self, escrow_store, field):
        escrow_id = escrow_store.create(_escrow())
        with pytest.raises(ValueError):
            escrow_store.update(escrow_id, {field: "x"})

    def test_update_unknown_field_rejected(self, escrow_store):
        escrow_id = escrow_store.create(_escrow())
        with pytest.raises(ValueError):
            escrow_store.update(escrow_id, {"colour": "blue"})

    def test_update_participants_from_dicts(self, escrow_store):
        escrow_id = escrow_store.create(_escrow())

        updated = escrow_store.update(escrow_id, {"participants": [
            {"email": "new@example.com", "role": "seller", "keyPoints": ["fast"]},
        ]})

        assert len(updated.participants) == 1
        assert updated.participants[0].role == ParticipantRole.SELLER
        assert updated.participants[0].key_points == ["fast"]

    def test_update_participants_requires_list(self, escrow_store):
        escrow_id = escrow_store.create(_escrow())

        with pytest.raises(ValueError):
            escrow_store.update(escrow_id, {"participants": "ab"})
        assert len(escrow_store.get(escrow_id).participants) == 2

    @pytest.mark.parametrize("field,value", [
        ("title", None),
        ("title", ""),
        ("amount", "lots"),
        ("amount", -0.5),
        ("amount", True),
        ("currency", 5),
        ("smart_contract", {"code": "x"}),
        ("expires_at", "2030-01-01"),
    ])
    def test_update_rejects_bad_scalar(self, escrow_store, field, value):
        escrow_id = escrow_store.create(_escrow())

        with pytest.raises(ValueError):
            escrow_store.update(escrow_id, {field: value})
        assert escrow_store.get(escrow_id).title == "Vintage guitar"

    def test_update_text_field_accepts_none(self, escrow_store):
        escrow_id = escrow_store.create(_escrow(summary="Old summary"))

        assert escrow_store.update(escrow_id, {"summary": None, "amount": 0}).summary == ""

    def test_update_missing_escrow_raises(self, escrow_store):
        with pytest.raises(EscrowNotFoundError):
            escrow_store.update("missing", {"title": "x"})


class TestUserStore:
    """Tests for UserStore."""

    def test_create_profile_is_idempotent(self, user_store):
        first = user_store.create_profile("uid-1", "a@example.com", "Alice")
        second = user_store.create_profile("uid-1", "a@example.com", "Someone Else")

        assert first.id == second.id == "uid-1"
        assert second.display_name == "Alice"
        assert first.preferences.notifications is True

    def test_get_by_email(self, user_store):
        user_store.create_profile("uid-1", "a@example.com")
        assert user_store.get_by_email("a@example.com").id == "uid-1"
        assert user_store.get_by_email("b@example.com") is None

    def test_active_and_completed_lists(self, user_store):
        user_store.create_profile("uid-1", "a@example.com")

        assert user_store.add_active_escrow("uid-1", "deal-1")
        assert user_store.add_active_escrow("uid-1", "deal-1")
        assert user_store.get_profile("uid-1").active_escrows == ["deal-1"]

        assert user_store.complete_escrow("uid-1", "deal-1")
        profile = user_store.get_profile("uid-1")
        assert profile.active_escrows == []
        assert profile.completed_escrows == ["deal-1"]

    def test_missing_profile_returns_false(self, user_store):
        assert user_store.add_active_escrow("ghost", "deal-1") is False
        assert user_store.complete_escrow("ghost", "deal-1") is False


class TestDocumentStore:
    """Tests for DocumentStore and DealFileStore."""

    def test_save_assigns_id(self, document_store):
        stored = document_store.save(GeneratedDocument(
            type=DocumentType.SUMMARY, content="Summary", deal_id="deal-1"
        ))

        assert stored.id
        assert stored.created_at is not None
        assert document_store.get(stored.id).content == "Summary"

    def test_get_missing_raises(self, document_store):
        with pytest.raises(DocumentNotFoundError):
            document_store.get("missing")

    def test_list_and_latest_for_deal(self, document_store):
        document_store.save(GeneratedDocument(
            type=DocumentType.SUMMARY, content="old", deal_id="deal-1"
        ))
        document_store.save(GeneratedDocument(
            type=DocumentType.SOLIDITY, content="code", deal_id="deal-1"
        ))
        document_store.save(GeneratedDocument(
            type=DocumentType.SUMMARY, content="new", deal_id="deal-1"
        ))
        document_store.save(GeneratedDocument(
            type=DocumentType.SUMMARY, content="other", deal_id="deal-2"
        ))

        assert len(document_store.list_for_deal("deal-1")) == 3
        summaries = document_store.list_for_deal("deal-1", DocumentType.SUMMARY)
        assert [d.content for d in summaries] == ["new", "old"]
        assert document_store.latest_for_deal("deal-1", DocumentType.SUMMARY).content == "new"
        assert document_store.latest_for_deal("deal-1", DocumentType.PDF_CONTRACT) is None

    def test_deal_file_lifecycle(self, deal_file_store):
        saved = deal_file_store.save(DealFile(
            id="",
            deal_id="deal-1",
            filename="terms.txt",
            file_type="txt",
            size=12,
            storage_path="/tmp/terms.txt",
            extracted_text="hello",
        ))

        assert saved.id
        assert [f.id for f in deal_file_store.list_for_deal("deal-1")] == [saved.id]

        removed = deal_file_store.delete(saved.id)
        assert removed.filename == "terms.txt"
        assert deal_file_store.list_for_deal("deal-1") == []
        with pytest.raises(DocumentNotFoundError):
            deal_file_store.delete(saved.id)
