"""
Document domain types (``obligation_kernel.domain.document``).

Responsibility
--------------
The financial obligation tracked by the engine -- one polymorphic entity
for payables, sales invoices, approval quotes and membership charges --
with its three sub-states, its append-only payment ledger and the records
written by the approval and invoice gates.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  Documents are
frozen; every transition produces a new instance via ``evolve()``.

Invariants enforced
-------------------
The five document invariants (see ``obligation_kernel.invariants``) are
checked by ``violated_invariants()``; the engine asserts them after every
successful transition.  ``payment_state`` is always re-derived from the
ledger sum by ``derive_payment_state()``, never incremented.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from obligation_kernel.domain.evidence import EvidenceRef, VoucherReview, VoucherStatus
from obligation_kernel.domain.tax import TaxBreakdown
from obligation_kernel.domain.values import Currency, Money, sum_money
from obligation_kernel.invariants import DocumentInvariant


class DocumentKind(str, Enum):
    """Which screen of the console the obligation originates from."""

    PAYABLE = "payable"
    SALES_INVOICE = "sales_invoice"
    APPROVAL_QUOTE = "approval_quote"
    MEMBERSHIP_CHARGE = "membership_charge"


class ApprovalState(str, Enum):
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentState(str, Enum):
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class InvoiceState(str, Enum):
    NOT_INVOICED = "not_invoiced"
    INVOICED = "invoiced"


class ApprovalAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class PaymentMethod(str, Enum):
    """Payment channels accepted at the finance desk."""

    BANK_TRANSFER = "bank_transfer"
    CHECK = "check"
    CASH = "cash"
    CREDIT_CARD = "credit_card"
    BANK_DEPOSIT = "bank_deposit"


@dataclass(frozen=True)
class ApprovalRecord:
    """The single approve/reject decision on a document. Immutable."""

    actor_id: UUID
    actor_label: str
    action: ApprovalAction
    decided_at: datetime
    notes: str | None = None


@dataclass(frozen=True)
class PaymentRecord:
    """One ledger entry. Immutable once appended."""

    payment_id: UUID
    sequence: int
    amount: Money
    method: PaymentMethod
    reference: str
    evidence: EvidenceRef
    registered_by: UUID
    registered_at: datetime
    paid_on: date | None = None
    notes: str | None = None


@dataclass(frozen=True)
class InvoiceRecord:
    """Certification written by the invoice gate."""

    certified_by: UUID
    certified_at: datetime
    certificate_hash: str
    invoice_number: str | None = None


def derive_payment_state(paid: Money, principal: Money) -> PaymentState:
    """Payment state as a pure function of the ledger sum.

    Callers guarantee ``0 <= paid <= principal``.
    """
    if paid.is_zero:
        return PaymentState.UNPAID
    if paid == principal:
        return PaymentState.PAID
    return PaymentState.PARTIAL


@dataclass(frozen=True)
class Document:
    """
    A payable or receivable obligation.

    Contract:
        ``id``, ``kind``, ``principal_amount`` and provenance are fixed at
        creation.  State fields change only through the gates.

    Guarantees:
        - Immutable (frozen dataclass); transitions return new instances.
        - ``payments`` is a tuple in ledger order.
        - ``voucher_reviews`` holds at most one review per payment, in the
          order they were made.
        - ``version`` is the persisted row version, 0 before first save.
    """

    id: UUID
    kind: DocumentKind
    principal_amount: Money
    created_by: UUID
    created_at: datetime
    approval_state: ApprovalState = ApprovalState.PENDING_APPROVAL
    payment_state: PaymentState = PaymentState.UNPAID
    invoice_state: InvoiceState = InvoiceState.NOT_INVOICED
    payments: tuple[PaymentRecord, ...] = ()
    approval_record: ApprovalRecord | None = None
    invoice_record: InvoiceRecord | None = None
    counterparty: str = ""
    description: str = ""
    external_reference: str | None = None
    due_date: date | None = None
    tax: TaxBreakdown | None = None
    voucher_reviews: tuple[VoucherReview, ...] = ()
    version: int = 0

    @property
    def currency(self) -> Currency:
        return self.principal_amount.currency

    @property
    def paid_total(self) -> Money:
        """Sum of the ledger, recomputed on every access."""
        return sum_money((p.amount for p in self.payments), self.currency)

    @property
    def balance_due(self) -> Money:
        return self.principal_amount - self.paid_total

    @property
    def paid_ratio(self) -> Decimal:
        """Fraction of the principal collected, 0..1."""
        return Decimal(self.paid_total.minor_units) / Decimal(
            self.principal_amount.minor_units
        )

    @property
    def is_terminal(self) -> bool:
        return (
            self.approval_state == ApprovalState.REJECTED
            or self.invoice_state == InvoiceState.INVOICED
        )

    def is_overdue(self, as_of: date) -> bool:
        """Approved, not fully paid, and past its due date."""
        return (
            self.due_date is not None
            and self.approval_state == ApprovalState.APPROVED
            and self.payment_state != PaymentState.PAID
            and self.due_date < as_of
        )

    def payment(self, payment_id: UUID) -> PaymentRecord | None:
        return next((p for p in self.payments if p.payment_id == payment_id), None)

    def voucher_review(self, payment_id: UUID) -> VoucherReview | None:
        return next((r for r in self.voucher_reviews if r.payment_id == payment_id), None)

    def voucher_status(self, payment_id: UUID) -> VoucherStatus:
        review = self.voucher_review(payment_id)
        return review.status if review is not None else VoucherStatus.PENDING

    def evolve(self, **changes) -> Document:
        return dataclasses.replace(self, **changes)

    def violated_invariants(self) -> tuple[DocumentInvariant, ...]:
        """Return every document invariant this instance breaks."""
        violations: list[DocumentInvariant] = []
        paid = self.paid_total

        if paid > self.principal_amount or paid.is_negative:
            violations.append(DocumentInvariant.NO_OVERPAYMENT)

        if paid <= self.principal_amount and not paid.is_negative:
            if self.payment_state != derive_payment_state(paid, self.principal_amount):
                violations.append(DocumentInvariant.PAYMENT_STATE_DERIVED)

        if self.approval_state == ApprovalState.REJECTED and (
            self.payments
            or self.payment_state != PaymentState.UNPAID
            or self.invoice_state != InvoiceState.NOT_INVOICED
        ):
            violations.append(DocumentInvariant.REJECTED_IS_INERT)

        if self.invoice_state == InvoiceState.INVOICED and not (
            self.approval_state == ApprovalState.APPROVED
            and self.payment_state == PaymentState.PAID
            and self.payments
        ):
            violations.append(DocumentInvariant.INVOICED_IS_SETTLED)

        has_record = self.approval_record is not None
        is_decided = self.approval_state != ApprovalState.PENDING_APPROVAL
        if has_record != is_decided:
            violations.append(DocumentInvariant.APPROVAL_RECORDED)

        return tuple(violations)
