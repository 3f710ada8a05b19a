"""
Tests for the hash-chained audit trail.

Verifies:
- Sequence numbers are strictly increasing
- Every entry links to its predecessor's hash
- validate_chain detects tampered content
"""

from decimal import Decimal

import pytest
from sqlalchemy import update

from planning_kernel.exceptions import AuditChainBrokenError
from planning_kernel.models.audit_entry import AuditEntryModel
from planning_kernel.selectors.audit_selector import AuditSelector


@pytest.fixture
def history(active_plan, revision_service, manager, producer, justification, decision_notes):
    """created, activated, revised, approved."""
    revision = revision_service.request_revision(
        producer, active_plan.id, "income_goal", Decimal("300000"), justification,
    )
    revision_service.decide(manager, revision.id, "approved", decision_notes)
    return active_plan


class TestAuditChain:

    def test_empty_chain_is_valid(self, auditor_service):
        assert auditor_service.validate_chain() is True

    def test_chain_valid_after_history(self, history, auditor_service):
        assert auditor_service.validate_chain() is True

    def test_actions_in_order(self, history, session):
        actions = [e.action.value for e in AuditSelector(session).for_plan(history.id)]
        assert actions == ["created", "activated", "revised", "approved"]

    def test_sequence_strictly_increasing(self, history, session):
        seqs = [e.seq for e in AuditSelector(session).for_plan(history.id)]
        assert seqs == sorted(seqs)
        assert len(set(seqs)) == len(seqs)

    def test_entries_linked(self, history, session):
        entries = AuditSelector(session).for_plan(history.id)
        assert entries[0].prev_hash is None
        for previous, current in zip(entries, entries[1:]):
            assert current.prev_hash == previous.hash
            assert len(current.hash) == 64

    def test_owner_view(self, history, session, producer):
        assert len(AuditSelector(session).for_owner(producer.id)) == 4

    def test_tampered_details_detected(self, history, session, auditor_service):
        session.execute(
            update(AuditEntryModel)
            .where(AuditEntryModel.action == "approved")
            .values(details="Revision approved: Income Goal: $250,000 → $900,000")
        )
        session.expire_all()

        with pytest.raises(AuditChainBrokenError):
            auditor_service.validate_chain()

    def test_tampered_link_detected(self, history, session, auditor_service):
        session.execute(
            update(AuditEntryModel)
            .where(AuditEntryModel.action == "revised")
            .values(prev_hash="0" * 64)
        )
        session.expire_all()

        with pytest.raises(AuditChainBrokenError):
            auditor_service.validate_chain()
