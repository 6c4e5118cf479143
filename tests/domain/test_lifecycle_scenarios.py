"""
End-to-end lifecycle scenarios through the pure engine.

Each test drives a document through several commands the way the finance
console does, asserting the state after every step.
"""

from obligation_kernel.domain.commands import DecideDocument, EmitInvoice
from obligation_kernel.domain.document import (
    ApprovalAction,
    ApprovalState,
    InvoiceState,
    PaymentState,
)
from obligation_kernel.domain.evidence import EvidenceRef
from obligation_kernel.domain.results import ErrorCode
from obligation_kernel.domain.values import Money


def gtq(amount: str) -> Money:
    return Money.of(amount, "GTQ")


class TestGoldenPath:
    def test_partial_payment_blocks_invoice_until_settled(
        self, lifecycle_engine, staff, pending_document, pay
    ):
        assert pending_document.principal_amount == gtq("1000.00")

        approved = lifecycle_engine.apply(
            DecideDocument(ApprovalAction.APPROVE), staff.finance, pending_document
        ).unwrap()
        assert approved.approval_state == ApprovalState.APPROVED

        partial = pay(approved, "600.00").unwrap()
        assert partial.payment_state == PaymentState.PARTIAL
        assert partial.balance_due == gtq("400.00")

        refused = lifecycle_engine.apply(EmitInvoice(), staff.reception, partial)
        assert refused.error_code == ErrorCode.PAYMENT_INCOMPLETE

        paid = pay(partial, "400.00").unwrap()
        assert paid.payment_state == PaymentState.PAID

        invoiced = lifecycle_engine.apply(EmitInvoice(), staff.reception, paid).unwrap()
        assert invoiced.invoice_state == InvoiceState.INVOICED
        assert invoiced.violated_invariants() == ()


class TestRefusedPayments:
    def test_overpayment_leaves_ledger_empty(self, approved_document, pay):
        result = pay(approved_document, "1500.00")

        assert result.error_code == ErrorCode.OVERPAYMENT_ATTEMPT
        assert approved_document.payments == ()
        assert approved_document.payment_state == PaymentState.UNPAID

    def test_pending_document_refuses_any_payment(self, pending_document, pay):
        for amount, evidence in [
            ("1.00", None),
            ("1000.00", None),
            ("5000.00", EvidenceRef.unverified("vouchers/none")),
        ]:
            result = pay(pending_document, amount, evidence=evidence)
            assert result.error_code == ErrorCode.NOT_APPROVED


class TestRejectionPath:
    def test_rejected_document_is_inert(self, lifecycle_engine, staff, pending_document, pay):
        rejected = lifecycle_engine.apply(
            DecideDocument(ApprovalAction.REJECT, "Proveedor no autorizado"),
            staff.board,
            pending_document,
        ).unwrap()

        assert pay(rejected, "10.00").error_code == ErrorCode.NOT_APPROVED
        assert (
            lifecycle_engine.apply(EmitInvoice(), staff.finance, rejected).error_code
            == ErrorCode.NOT_APPROVED
        )
        assert (
            lifecycle_engine.apply(
                DecideDocument(ApprovalAction.APPROVE), staff.admin, rejected
            ).error_code
            == ErrorCode.ALREADY_DECIDED
        )
        assert rejected.payments == ()
        assert rejected.is_terminal
