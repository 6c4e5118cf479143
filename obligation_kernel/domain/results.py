"""
Lifecycle results and the error taxonomy (``obligation_kernel.domain.results``).

Gates never raise for business-rule violations.  They return a
``LifecycleResult`` carrying either the updated ``Document`` or exactly one
``LifecycleError`` -- the first precondition that failed.  The engine and
the service pass these through untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from obligation_kernel.domain.document import Document


class ErrorCode(str, Enum):
    """Machine-readable reasons a lifecycle command was refused."""

    NOT_APPROVED = "NOT_APPROVED"
    ALREADY_DECIDED = "ALREADY_DECIDED"
    REJECTION_REQUIRES_NOTES = "REJECTION_REQUIRES_NOTES"
    INSUFFICIENT_ROLE = "INSUFFICIENT_ROLE"
    OVERPAYMENT_ATTEMPT = "OVERPAYMENT_ATTEMPT"
    MISSING_EVIDENCE = "MISSING_EVIDENCE"
    PAYMENT_INCOMPLETE = "PAYMENT_INCOMPLETE"
    ALREADY_INVOICED = "ALREADY_INVOICED"
    DELETION_FORBIDDEN = "DELETION_FORBIDDEN"
    DOCUMENT_NOT_FOUND = "DOCUMENT_NOT_FOUND"
    INVALID_PAYMENT = "INVALID_PAYMENT"
    INVALID_DOCUMENT = "INVALID_DOCUMENT"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"


@dataclass(frozen=True)
class LifecycleError:
    """
    A single refused-command reason.

    Contract:
        Carries a machine-readable code, a human-readable message and
        optional structured details (amounts as strings, ids, states).

    Non-goals:
        - Does NOT raise -- it IS the error representation.
        - Does NOT carry user-facing translations.
    """

    code: ErrorCode
    message: str
    details: dict[str, Any] | None = None


@dataclass(frozen=True)
class InvoiceCertificate:
    """Eligibility certificate returned by a successful invoice emission.

    Downstream formal numbering (FEL) keys off ``certificate_hash``.
    """

    document_id: Any
    certificate_hash: str
    invoice_number: str | None = None


@dataclass(frozen=True)
class LifecycleResult:
    """Outcome of one lifecycle command."""

    document: Document | None = None
    error: LifecycleError | None = None
    deleted: bool = False
    certificate: InvoiceCertificate | None = None

    @classmethod
    def success(
        cls,
        document: Document,
        *,
        deleted: bool = False,
        certificate: InvoiceCertificate | None = None,
    ) -> LifecycleResult:
        return cls(document=document, deleted=deleted, certificate=certificate)

    @classmethod
    def failure(
        cls,
        code: ErrorCode,
        message: str,
        **details: Any,
    ) -> LifecycleResult:
        return cls(error=LifecycleError(code=code, message=message, details=details or None))

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def error_code(self) -> ErrorCode | None:
        return self.error.code if self.error else None

    def unwrap(self) -> Document:
        """Return the document, or raise ``LifecycleRejectedError``."""
        if self.error is not None:
            from obligation_kernel.exceptions import LifecycleRejectedError

            raise LifecycleRejectedError(self.error)
        assert self.document is not None
        return self.document

    def __bool__(self) -> bool:
        return self.is_success
