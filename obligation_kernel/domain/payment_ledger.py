"""
PaymentLedger -- evidence-backed payment registration.

Responsibility:
    Validates and appends payments to a document's ledger and re-derives
    its payment state.  Partial payments are unlimited in count; the one
    that brings the sum to exactly the principal makes the document Paid.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Evidence arrives
    already verified (EvidenceRef.is_valid); the ledger never inspects bytes.

Invariants enforced:
    - No overpayment: the remaining balance is recomputed from the ledger
      on every call and is a hard ceiling.  Nothing is cached on the
      document.
    - Derived state: payment_state comes from derive_payment_state() over
      the full new ledger, never from a counter or a final-payment branch.
    - Append-only: existing PaymentRecords are carried over untouched.

Preconditions (checked in order, first failure wins):
    1. actor role in the RegisterPayment set        -> INSUFFICIENT_ROLE
    2. approval_state == Approved                    -> NOT_APPROVED
    3. amount > 0, same currency, method, reference  -> INVALID_PAYMENT
    4. evidence verified                             -> MISSING_EVIDENCE
    5. amount <= principal - paid so far             -> OVERPAYMENT_ATTEMPT
"""

# TODO: reversal entries (negative adjustments referencing the voided
# payment_id) so erroneous payments can be corrected without edits.

from __future__ import annotations

from datetime import date
from uuid import uuid4

from obligation_kernel.domain.actors import Actor, CommandType, RolePolicy
from obligation_kernel.domain.clock import Clock
from obligation_kernel.domain.document import (
    ApprovalState,
    Document,
    PaymentMethod,
    PaymentRecord,
    derive_payment_state,
)
from obligation_kernel.domain.evidence import EvidenceRef
from obligation_kernel.domain.results import ErrorCode, LifecycleResult
from obligation_kernel.domain.values import Money


def remaining_balance(document: Document) -> Money:
    """Principal minus the ledger sum, computed fresh."""
    return document.principal_amount - document.paid_total


class PaymentLedger:
    """Applies payment registrations."""

    def __init__(self, role_policy: RolePolicy, clock: Clock):
        self._role_policy = role_policy
        self._clock = clock

    def register_payment(
        self,
        document: Document,
        actor: Actor,
        amount: Money,
        method: PaymentMethod | str,
        reference: str,
        evidence: EvidenceRef,
        paid_on: date | None = None,
        notes: str | None = None,
    ) -> LifecycleResult:
        doc_id = str(document.id)

        if not self._role_policy.permits(actor, CommandType.REGISTER_PAYMENT):
            return LifecycleResult.failure(
                ErrorCode.INSUFFICIENT_ROLE,
                f"Role {actor.role.value} may not register payments",
                role=actor.role.value,
                document_id=doc_id,
            )

        if document.approval_state != ApprovalState.APPROVED:
            return LifecycleResult.failure(
                ErrorCode.NOT_APPROVED,
                "Payments may only be registered against approved documents",
                document_id=doc_id,
                approval_state=document.approval_state.value,
            )

        if amount.currency != document.currency:
            return LifecycleResult.failure(
                ErrorCode.INVALID_PAYMENT,
                f"Payment currency {amount.currency} does not match document "
                f"currency {document.currency}",
                document_id=doc_id,
            )

        if not amount.is_positive:
            return LifecycleResult.failure(
                ErrorCode.INVALID_PAYMENT,
                "Payment amount must be greater than zero",
                document_id=doc_id,
                amount=str(amount.amount),
            )

        try:
            payment_method = PaymentMethod(method)
        except ValueError:
            return LifecycleResult.failure(
                ErrorCode.INVALID_PAYMENT,
                f"Unknown payment method: {method!r}",
                document_id=doc_id,
            )

        cleaned_reference = reference.strip() if reference else ""
        if not cleaned_reference:
            return LifecycleResult.failure(
                ErrorCode.INVALID_PAYMENT,
                "Payment reference is required",
                document_id=doc_id,
            )

        if evidence is None or not evidence.is_valid:
            return LifecycleResult.failure(
                ErrorCode.MISSING_EVIDENCE,
                "A valid payment voucher (image or PDF within the size limit) is required",
                document_id=doc_id,
                evidence_id=evidence.evidence_id if evidence else None,
            )

        balance = remaining_balance(document)
        if amount > balance:
            return LifecycleResult.failure(
                ErrorCode.OVERPAYMENT_ATTEMPT,
                f"Payment of {amount} exceeds the remaining balance of {balance}",
                document_id=doc_id,
                amount=str(amount.amount),
                remaining_balance=str(balance.amount),
            )

        now = self._clock.now()
        record = PaymentRecord(
            payment_id=uuid4(),
            sequence=len(document.payments) + 1,
            amount=amount,
            method=payment_method,
            reference=cleaned_reference,
            evidence=evidence,
            registered_by=actor.actor_id,
            registered_at=now,
            paid_on=paid_on or now.date(),
            notes=notes.strip() if notes and notes.strip() else None,
        )

        payments = document.payments + (record,)
        updated = document.evolve(payments=payments)
        return LifecycleResult.success(
            updated.evolve(
                payment_state=derive_payment_state(
                    updated.paid_total, updated.principal_amount
                )
            )
        )
