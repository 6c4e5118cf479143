"""
Tests for Document.violated_invariants() and the derived queries.

The engine relies on violated_invariants() as its post-transition check,
so each invariant is exercised with a hand-built inconsistent document.
"""

import dataclasses
from datetime import date, datetime, timezone

import pytest

from obligation_kernel.domain.document import (
    ApprovalAction,
    ApprovalRecord,
    ApprovalState,
    InvoiceState,
    PaymentState,
    derive_payment_state,
)
from obligation_kernel.domain.values import Money
from obligation_kernel.invariants import ALL_DOCUMENT_INVARIANTS, DocumentInvariant


def gtq(amount: str) -> Money:
    return Money.of(amount, "GTQ")


class TestDerivePaymentState:
    @pytest.mark.parametrize(
        "paid,expected",
        [
            ("0.00", PaymentState.UNPAID),
            ("0.01", PaymentState.PARTIAL),
            ("999.99", PaymentState.PARTIAL),
            ("1000.00", PaymentState.PAID),
        ],
    )
    def test_boundaries(self, paid, expected):
        assert derive_payment_state(gtq(paid), gtq("1000.00")) == expected


class TestViolations:
    def test_fresh_document_is_consistent(self, pending_document):
        assert pending_document.violated_invariants() == ()

    def test_overpayment_detected(self, approved_document, pay):
        paid = pay(approved_document, "1000.00").unwrap()
        shrunk = paid.evolve(principal_amount=gtq("500.00"))
        assert DocumentInvariant.NO_OVERPAYMENT in shrunk.violated_invariants()

    def test_stale_payment_state_detected(self, approved_document, pay):
        partial = pay(approved_document, "100.00").unwrap()
        drifted = partial.evolve(payment_state=PaymentState.PAID)
        assert drifted.violated_invariants() == (DocumentInvariant.PAYMENT_STATE_DERIVED,)

    def test_rejected_with_payments_detected(self, approved_document, pay):
        partial = pay(approved_document, "100.00").unwrap()
        flipped = partial.evolve(approval_state=ApprovalState.REJECTED)
        assert DocumentInvariant.REJECTED_IS_INERT in flipped.violated_invariants()

    def test_invoiced_without_payment_detected(self, approved_document):
        premature = approved_document.evolve(invoice_state=InvoiceState.INVOICED)
        assert DocumentInvariant.INVOICED_IS_SETTLED in premature.violated_invariants()

    def test_decision_without_record_detected(self, pending_document):
        unrecorded = pending_document.evolve(approval_state=ApprovalState.APPROVED)
        assert unrecorded.violated_invariants() == (DocumentInvariant.APPROVAL_RECORDED,)

    def test_record_without_decision_detected(self, pending_document, staff):
        stray = pending_document.evolve(
            approval_record=ApprovalRecord(
                actor_id=staff.finance.actor_id,
                actor_label=staff.finance.label,
                action=ApprovalAction.APPROVE,
                decided_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
            )
        )
        assert stray.violated_invariants() == (DocumentInvariant.APPROVAL_RECORDED,)

    def test_every_invariant_declared(self):
        assert len(ALL_DOCUMENT_INVARIANTS) == 5


class TestDerivedQueries:
    def test_paid_total_recomputed(self, approved_document, pay):
        document = pay(pay(approved_document, "250.00").unwrap(), "250.00").unwrap()
        assert document.paid_total == gtq("500.00")
        assert document.balance_due == gtq("500.00")

    def test_overdue_requires_approval_and_balance(self, pending_document, approved_document, pay):
        due = date(2025, 10, 1)
        as_of = date(2025, 10, 15)

        assert not pending_document.evolve(due_date=due).is_overdue(as_of)
        assert approved_document.evolve(due_date=due).is_overdue(as_of)
        assert not approved_document.evolve(due_date=as_of).is_overdue(as_of)
        assert not approved_document.is_overdue(as_of)

        paid = pay(approved_document, "1000.00").unwrap().evolve(due_date=due)
        assert not paid.is_overdue(as_of)

    def test_evolve_keeps_identity(self, pending_document):
        changed = pending_document.evolve(description="edited")
        assert changed.id == pending_document.id
        assert pending_document.description == ""

    def test_documents_are_frozen(self, pending_document):
        with pytest.raises(dataclasses.FrozenInstanceError):
            pending_document.approval_state = ApprovalState.APPROVED
