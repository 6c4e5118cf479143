"""Tests for the in-memory DocumentFilter predicate."""

from datetime import date

import pytest

from obligation_kernel.domain.document import ApprovalState, DocumentKind, PaymentState
from obligation_kernel.domain.filters import DocumentFilter


class TestDocumentFilter:
    def test_empty_filter_matches_everything(self, pending_document):
        assert DocumentFilter().matches(pending_document)

    def test_state_filters(self, pending_document, approved_document):
        approved_only = DocumentFilter(approval_states=(ApprovalState.APPROVED,))
        assert approved_only.matches(approved_document)
        assert not approved_only.matches(pending_document)

    def test_kind_filter(self, pending_document):
        assert DocumentFilter(kinds=(DocumentKind.PAYABLE,)).matches(pending_document)
        assert not DocumentFilter(kinds=(DocumentKind.SALES_INVOICE,)).matches(pending_document)

    def test_counterparty_case_insensitive(self, pending_document):
        assert DocumentFilter(counterparty_contains="el sol").matches(pending_document)
        assert not DocumentFilter(counterparty_contains="luna").matches(pending_document)

    def test_created_by(self, pending_document, staff):
        assert DocumentFilter(created_by=staff.reception.actor_id).matches(pending_document)
        assert not DocumentFilter(created_by=staff.finance.actor_id).matches(pending_document)

    def test_due_before_is_exclusive(self, pending_document):
        due = pending_document.evolve(due_date=date(2025, 10, 1))
        assert DocumentFilter(due_before=date(2025, 10, 2)).matches(due)
        assert not DocumentFilter(due_before=date(2025, 10, 1)).matches(due)
        assert not DocumentFilter(due_before=date(2025, 10, 2)).matches(pending_document)

    def test_conjunction(self, approved_document):
        criteria = DocumentFilter(
            approval_states=(ApprovalState.APPROVED,),
            payment_states=(PaymentState.PAID,),
        )
        assert not criteria.matches(approved_document)

    @pytest.mark.parametrize("limit", [0, -1])
    def test_limit_must_be_positive(self, limit):
        with pytest.raises(ValueError):
            DocumentFilter(limit=limit)
