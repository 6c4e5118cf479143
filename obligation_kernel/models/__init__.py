"""ORM models for the obligation kernel."""

from obligation_kernel.models.audit_event import AuditAction, DocumentAuditEvent
from obligation_kernel.models.document import (
    ApprovalModel,
    DocumentModel,
    PaymentModel,
    VoucherReviewModel,
)

__all__ = [
    "ApprovalModel",
    "AuditAction",
    "DocumentAuditEvent",
    "DocumentModel",
    "PaymentModel",
    "VoucherReviewModel",
]
