"""
Unit tests for draft status rules.
"""

import pytest

from bookstore.exceptions import DraftLockedError
from bookstore.models.draft import DraftStatus, draft_items, draft_status
from bookstore.services import draft_lifecycle_service as lifecycle


class TestDraftStatus:
    """Tests for the status model."""

    def test_parse_is_case_insensitive(self):
        assert DraftStatus.parse('submitted') is DraftStatus.SUBMITTED

    def test_parse_unknown_returns_default(self):
        assert DraftStatus.parse('PENDING') is None
        assert DraftStatus.parse(None, DraftStatus.DRAFT) is DraftStatus.DRAFT

    def test_open_statuses(self):
        assert DraftStatus.DRAFT.is_open
        assert DraftStatus.SUBMITTED.is_open
        assert not DraftStatus.APPROVED.is_open

    def test_draft_status_reads_record(self):
        assert draft_status({'status': 'APPROVED'}) is DraftStatus.APPROVED

    def test_draft_items_prefers_order_items(self):
        assert draft_items({'orderItems': [1], 'items': [2]}) == [1]
        assert draft_items({'items': [2]}) == [2]
        assert draft_items({}) == []


class TestGuards:
    """Tests for edit/delete permissions per status."""

    @pytest.mark.parametrize('status, allowed', [
        ('DRAFT', True), ('SUBMITTED', True), ('APPROVED', False), (None, False),
    ])
    def test_can_edit_and_delete(self, status, allowed):
        draft = {'id': 1, 'status': status}
        assert lifecycle.can_edit(draft) is allowed
        assert lifecycle.can_delete(draft) is allowed

    def test_submit_and_approve_preconditions(self):
        assert lifecycle.can_submit({'status': 'DRAFT'})
        assert not lifecycle.can_submit({'status': 'SUBMITTED'})
        assert lifecycle.can_approve({'status': 'SUBMITTED'})
        assert not lifecycle.can_approve({'status': 'DRAFT'})

    @pytest.mark.parametrize('current, target, allowed', [
        ('DRAFT', 'SUBMITTED', True),
        ('SUBMITTED', 'APPROVED', True),
        ('DRAFT', 'APPROVED', False),
        ('APPROVED', 'SUBMITTED', False),
        ('SUBMITTED', 'DRAFT', False),
        ('DRAFT', 'bogus', False),
    ])
    def test_forward_only_transitions(self, current, target, allowed):
        assert lifecycle.can_transition(current, target) is allowed

    def test_delete_approved_is_rejected(self):
        with pytest.raises(DraftLockedError) as exc:
            lifecycle.ensure_deletable({'id': 5, 'status': 'APPROVED'})

        assert exc.value.message == 'Approved orders cannot be deleted by customer.'
        assert exc.value.status_code == 409
        assert exc.value.to_dict()['draft_id'] == 5

    def test_delete_open_draft_passes(self):
        lifecycle.ensure_deletable({'id': 5, 'status': 'SUBMITTED'})

    def test_edit_approved_is_rejected(self):
        with pytest.raises(DraftLockedError, match='Only Draft or Submitted orders can be modified.'):
            lifecycle.ensure_editable({'id': 5, 'status': 'APPROVED'})
