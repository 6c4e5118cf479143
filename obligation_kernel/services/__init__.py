"""Services for the obligation kernel (write side)."""

from obligation_kernel.services.auditor_service import AuditorService, AuditTrail
from obligation_kernel.services.document_repository import DocumentRepository
from obligation_kernel.services.invoice_numbering import (
    InvoiceNumberIssuer,
    SequenceInvoiceNumberIssuer,
)
from obligation_kernel.services.lifecycle_service import LifecycleService
from obligation_kernel.services.sequence_service import SequenceService

__all__ = [
    "AuditTrail",
    "AuditorService",
    "DocumentRepository",
    "InvoiceNumberIssuer",
    "LifecycleService",
    "SequenceInvoiceNumberIssuer",
    "SequenceService",
]
