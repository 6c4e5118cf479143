"""
InvoiceGate -- the golden rule: no invoice without a verified payment.

Responsibility:
    Certifies that a document may be invoiced and flips invoice_state to
    Invoiced exactly once.  Formal invoice numbering is done downstream
    from the certificate this gate returns.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  This is the only
    code path that sets InvoiceState.INVOICED.

Preconditions (checked in order, first failure wins):
    1. actor role in the EmitInvoice set               -> INSUFFICIENT_ROLE
    2. approval_state == Approved                       -> NOT_APPROVED
    3. payment_state == Paid                            -> PAYMENT_INCOMPLETE
    4. invoice_state == NotInvoiced                     -> ALREADY_INVOICED
    5. ledger non-empty, every voucher still verified   -> MISSING_EVIDENCE
       and not rejected on review (approved on review
       when the gate requires reviews)
"""

from __future__ import annotations

from obligation_kernel.domain.actors import Actor, CommandType, RolePolicy
from obligation_kernel.domain.clock import Clock
from obligation_kernel.domain.document import (
    ApprovalState,
    Document,
    InvoiceRecord,
    InvoiceState,
    PaymentRecord,
    PaymentState,
)
from obligation_kernel.domain.evidence import EvidenceRef, VoucherStatus
from obligation_kernel.domain.results import (
    ErrorCode,
    InvoiceCertificate,
    LifecycleResult,
)
from obligation_kernel.utils.hashing import hash_payload


def compute_certificate_hash(document: Document) -> str:
    """Hash over the document identity, principal and full ledger."""
    return hash_payload({
        "document_id": str(document.id),
        "kind": document.kind.value,
        "principal": document.principal_amount,
        "payments": [
            {
                "payment_id": str(p.payment_id),
                "sequence": p.sequence,
                "amount": p.amount,
                "method": p.method.value,
                "reference": p.reference,
                "evidence_id": p.evidence.evidence_id,
            }
            for p in document.payments
        ],
    })


def _evidence_holds(
    payment: PaymentRecord,
    reverified: dict[str, EvidenceRef] | None,
    status: VoucherStatus,
    require_review: bool,
) -> bool:
    if not payment.evidence.is_valid or status == VoucherStatus.REJECTED:
        return False
    if require_review and status != VoucherStatus.APPROVED:
        return False
    if reverified is None:
        return True
    fresh = reverified.get(payment.evidence.evidence_id)
    return fresh is not None and fresh.is_valid


class InvoiceGate:
    """Performs the approved-and-paid -> invoiced transition."""

    def __init__(
        self,
        role_policy: RolePolicy,
        clock: Clock,
        require_voucher_review: bool = False,
    ):
        self._role_policy = role_policy
        self._clock = clock
        self._require_voucher_review = require_voucher_review

    def emit_invoice(
        self,
        document: Document,
        actor: Actor,
        reverified_evidence: dict[str, EvidenceRef] | None = None,
    ) -> LifecycleResult:
        doc_id = str(document.id)

        if not self._role_policy.permits(actor, CommandType.EMIT_INVOICE):
            return LifecycleResult.failure(
                ErrorCode.INSUFFICIENT_ROLE,
                f"Role {actor.role.value} may not emit invoices",
                role=actor.role.value,
                document_id=doc_id,
            )

        if document.approval_state != ApprovalState.APPROVED:
            return LifecycleResult.failure(
                ErrorCode.NOT_APPROVED,
                "Only approved documents can be invoiced",
                document_id=doc_id,
                approval_state=document.approval_state.value,
            )

        if document.payment_state != PaymentState.PAID:
            return LifecycleResult.failure(
                ErrorCode.PAYMENT_INCOMPLETE,
                f"Document is {document.payment_state.value}; "
                f"{document.balance_due} is still outstanding",
                document_id=doc_id,
                payment_state=document.payment_state.value,
                balance_due=str(document.balance_due.amount),
            )

        if document.invoice_state == InvoiceState.INVOICED:
            return LifecycleResult.failure(
                ErrorCode.ALREADY_INVOICED,
                f"Document {document.id} has already been invoiced",
                document_id=doc_id,
            )

        unverified = [
            p.evidence.evidence_id
            for p in document.payments
            if not _evidence_holds(
                p,
                reverified_evidence,
                document.voucher_status(p.payment_id),
                self._require_voucher_review,
            )
        ]
        if not document.payments or unverified:
            return LifecycleResult.failure(
                ErrorCode.MISSING_EVIDENCE,
                "Every payment must be backed by a verified voucher before invoicing",
                document_id=doc_id,
                unverified_evidence=unverified,
            )

        certificate_hash = compute_certificate_hash(document)
        record = InvoiceRecord(
            certified_by=actor.actor_id,
            certified_at=self._clock.now(),
            certificate_hash=certificate_hash,
        )
        return LifecycleResult.success(
            document.evolve(
                invoice_state=InvoiceState.INVOICED,
                invoice_record=record,
            ),
            certificate=InvoiceCertificate(
                document_id=document.id,
                certificate_hash=certificate_hash,
            ),
        )
