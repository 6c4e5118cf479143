"""
Pure domain layer for the obligation kernel.

Nothing in this package performs I/O.  Gates receive documents, actors and
already-verified evidence and return results; persistence and collaborator
calls live in ``obligation_kernel.services``.
"""

from obligation_kernel.domain.actors import Actor, Role, RolePolicy
from obligation_kernel.domain.commands import (
    CreateDocument,
    DecideDocument,
    DeleteDocument,
    EmitInvoice,
    RegisterPayment,
    ReviewVoucher,
)
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
from obligation_kernel.domain.evidence import (
    EvidencePolicy,
    EvidenceRef,
    VoucherReview,
    VoucherStatus,
)
from obligation_kernel.domain.lifecycle_engine import LifecycleEngine
from obligation_kernel.domain.results import ErrorCode, LifecycleError, LifecycleResult
from obligation_kernel.domain.values import Currency, Money

__all__ = [
    "Actor",
    "ApprovalAction",
    "ApprovalRecord",
    "ApprovalState",
    "CreateDocument",
    "Currency",
    "DecideDocument",
    "DeleteDocument",
    "Document",
    "DocumentKind",
    "EmitInvoice",
    "ErrorCode",
    "EvidencePolicy",
    "EvidenceRef",
    "InvoiceRecord",
    "InvoiceState",
    "LifecycleEngine",
    "LifecycleError",
    "LifecycleResult",
    "Money",
    "PaymentMethod",
    "PaymentRecord",
    "PaymentState",
    "RegisterPayment",
    "ReviewVoucher",
    "Role",
    "RolePolicy",
    "VoucherReview",
    "VoucherStatus",
]
