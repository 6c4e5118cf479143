"""
Conversions between ORM rows and the frozen domain ``Document``.

Shared by DocumentRepository (write side) and DocumentSelector (read side)
so both see documents identically.  Pure functions over already-loaded
objects; nothing here touches a session.
"""

from decimal import Decimal

from obligation_kernel.domain.document import (
    ApprovalAction,
    ApprovalRecord,
    ApprovalState,
    Document,
    DocumentKind,
    InvoiceRecord,
    InvoiceState,
    PaymentMethod,
    PaymentRecord,
    PaymentState,
)
from obligation_kernel.domain.evidence import EvidenceRef, VoucherReview, VoucherStatus
from obligation_kernel.domain.tax import TaxBreakdown
from obligation_kernel.domain.values import Currency, Money
from obligation_kernel.models.document import (
    ApprovalModel,
    DocumentModel,
    PaymentModel,
    VoucherReviewModel,
)


def payment_from_model(row: PaymentModel) -> PaymentRecord:
    return PaymentRecord(
        payment_id=row.id,
        sequence=row.sequence,
        amount=Money(row.amount_minor_units, Currency(row.currency)),
        method=PaymentMethod(row.method),
        reference=row.reference,
        evidence=EvidenceRef(
            evidence_id=row.evidence_id,
            content_type=row.evidence_content_type,
            size_bytes=row.evidence_size_bytes,
            is_valid=row.evidence_valid,
        ),
        registered_by=row.registered_by_id,
        registered_at=row.registered_at,
        paid_on=row.paid_on,
        notes=row.notes,
    )


def voucher_review_from_model(row: VoucherReviewModel) -> VoucherReview:
    return VoucherReview(
        payment_id=row.payment_id,
        status=VoucherStatus(row.status),
        reviewed_by=row.reviewed_by_id,
        reviewer_label=row.reviewer_label,
        reviewed_at=row.reviewed_at,
        reason=row.reason,
    )


def document_from_model(model: DocumentModel) -> Document:
    """Rebuild the domain document from its rows."""
    currency = Currency(model.currency)

    tax = None
    if model.tax_net_minor_units is not None:
        tax = TaxBreakdown(
            net=Money(model.tax_net_minor_units, currency),
            # Numeric columns pad to their scale; 0.120000 reads back as 0.12.
            rate=Decimal(model.tax_rate).normalize(),
            tax=Money(model.tax_minor_units, currency),
        )

    approval_record = None
    if model.approval is not None:
        approval_record = ApprovalRecord(
            actor_id=model.approval.actor_id,
            actor_label=model.approval.actor_label,
            action=ApprovalAction(model.approval.action),
            decided_at=model.approval.decided_at,
            notes=model.approval.notes,
        )

    invoice_record = None
    if model.certificate_hash is not None:
        invoice_record = InvoiceRecord(
            certified_by=model.invoice_certified_by_id,
            certified_at=model.invoice_certified_at,
            certificate_hash=model.certificate_hash,
            invoice_number=model.invoice_number,
        )

    return Document(
        id=model.id,
        kind=DocumentKind(model.kind),
        principal_amount=Money(model.principal_minor_units, currency),
        created_by=model.created_by_id,
        created_at=model.created_at,
        approval_state=ApprovalState(model.approval_state),
        payment_state=PaymentState(model.payment_state),
        invoice_state=InvoiceState(model.invoice_state),
        payments=tuple(payment_from_model(p) for p in model.payments),
        approval_record=approval_record,
        invoice_record=invoice_record,
        counterparty=model.counterparty,
        description=model.description,
        external_reference=model.external_reference,
        due_date=model.due_date,
        tax=tax,
        voucher_reviews=tuple(voucher_review_from_model(r) for r in model.voucher_reviews),
        version=model.version,
    )


def write_state(model: DocumentModel, document: Document) -> None:
    """Copy the mutable state columns onto an existing row."""
    model.approval_state = document.approval_state.value
    model.payment_state = document.payment_state.value
    model.invoice_state = document.invoice_state.value
    if document.invoice_record is not None:
        record = document.invoice_record
        model.invoice_certified_by_id = record.certified_by
        model.invoice_certified_at = record.certified_at
        model.certificate_hash = record.certificate_hash
        model.invoice_number = record.invoice_number


def model_from_document(document: Document) -> DocumentModel:
    tax = document.tax
    model = DocumentModel(
        id=document.id,
        kind=document.kind.value,
        currency=document.currency.code,
        principal_minor_units=document.principal_amount.minor_units,
        counterparty=document.counterparty,
        description=document.description,
        external_reference=document.external_reference,
        due_date=document.due_date,
        tax_net_minor_units=tax.net.minor_units if tax else None,
        tax_rate=tax.rate if tax else None,
        tax_minor_units=tax.tax.minor_units if tax else None,
        created_by_id=document.created_by,
        created_at=document.created_at,
    )
    write_state(model, document)
    return model


def payment_model_from_record(payment: PaymentRecord) -> PaymentModel:
    return PaymentModel(
        id=payment.payment_id,
        sequence=payment.sequence,
        amount_minor_units=payment.amount.minor_units,
        currency=payment.amount.currency.code,
        method=payment.method.value,
        reference=payment.reference,
        evidence_id=payment.evidence.evidence_id,
        evidence_content_type=payment.evidence.content_type,
        evidence_size_bytes=payment.evidence.size_bytes,
        evidence_valid=payment.evidence.is_valid,
        registered_by_id=payment.registered_by,
        registered_at=payment.registered_at,
        paid_on=payment.paid_on,
        notes=payment.notes,
    )


def approval_model_from_record(record: ApprovalRecord) -> ApprovalModel:
    return ApprovalModel(
        actor_id=record.actor_id,
        actor_label=record.actor_label,
        action=record.action.value,
        decided_at=record.decided_at,
        notes=record.notes,
    )


def voucher_review_model_from_record(review: VoucherReview, position: int) -> VoucherReviewModel:
    return VoucherReviewModel(
        payment_id=review.payment_id,
        position=position,
        status=review.status.value,
        reviewed_by_id=review.reviewed_by,
        reviewer_label=review.reviewer_label,
        reviewed_at=review.reviewed_at,
        reason=review.reason,
    )
