"""
VoucherReviewGate -- the human check on a payment voucher.

Responsibility:
    Records the one-time approve/reject review of the voucher behind a
    ledger entry.  The payment itself is never touched; the review is a
    separate record keyed by payment id.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Called only by
    LifecycleEngine.  InvoiceGate reads the outcome: a rejected voucher
    never backs an invoice.

Preconditions (checked in order, first failure wins):
    1. actor role in the ReviewVoucher set      -> INSUFFICIENT_ROLE
    2. payment belongs to the document          -> INVALID_PAYMENT
    3. invoice_state == NotInvoiced             -> ALREADY_INVOICED
    4. voucher not reviewed yet                 -> ALREADY_DECIDED
    5. Reject carries a non-empty reason        -> REJECTION_REQUIRES_NOTES
"""

from __future__ import annotations

from uuid import UUID

from obligation_kernel.domain.actors import Actor, CommandType, RolePolicy
from obligation_kernel.domain.clock import Clock
from obligation_kernel.domain.document import ApprovalAction, Document, InvoiceState
from obligation_kernel.domain.evidence import VoucherReview, VoucherStatus
from obligation_kernel.domain.results import ErrorCode, LifecycleResult


class VoucherReviewGate:
    """Applies voucher approve/reject reviews."""

    def __init__(self, role_policy: RolePolicy, clock: Clock):
        self._role_policy = role_policy
        self._clock = clock

    def review(
        self,
        document: Document,
        actor: Actor,
        payment_id: UUID,
        action: ApprovalAction,
        reason: str | None = None,
    ) -> LifecycleResult:
        doc_id = str(document.id)

        if not self._role_policy.permits(actor, CommandType.REVIEW_VOUCHER):
            return LifecycleResult.failure(
                ErrorCode.INSUFFICIENT_ROLE,
                f"Role {actor.role.value} may not review payment vouchers",
                role=actor.role.value,
                document_id=doc_id,
            )

        payment = document.payment(payment_id)
        if payment is None:
            return LifecycleResult.failure(
                ErrorCode.INVALID_PAYMENT,
                f"Payment {payment_id} is not in the ledger of document {document.id}",
                document_id=doc_id,
                payment_id=str(payment_id),
            )

        if document.invoice_state == InvoiceState.INVOICED:
            return LifecycleResult.failure(
                ErrorCode.ALREADY_INVOICED,
                f"Document {document.id} has already been invoiced",
                document_id=doc_id,
            )

        existing = document.voucher_review(payment_id)
        if existing is not None:
            return LifecycleResult.failure(
                ErrorCode.ALREADY_DECIDED,
                f"Voucher for payment {payment_id} was already {existing.status.value}",
                document_id=doc_id,
                payment_id=str(payment_id),
                voucher_status=existing.status.value,
            )

        cleaned_reason = reason.strip() if reason else ""

        if action == ApprovalAction.REJECT and not cleaned_reason:
            return LifecycleResult.failure(
                ErrorCode.REJECTION_REQUIRES_NOTES,
                "A rejected voucher must state its reason",
                document_id=doc_id,
                payment_id=str(payment_id),
            )

        review = VoucherReview(
            payment_id=payment.payment_id,
            status=(
                VoucherStatus.APPROVED
                if action == ApprovalAction.APPROVE
                else VoucherStatus.REJECTED
            ),
            reviewed_by=actor.actor_id,
            reviewer_label=actor.label,
            reviewed_at=self._clock.now(),
            reason=cleaned_reason or None,
        )
        return LifecycleResult.success(
            document.evolve(voucher_reviews=document.voucher_reviews + (review,))
        )
