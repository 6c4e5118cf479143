"""
ORM-level immutability enforcement for write-once records.

SQLAlchemy fires mapper events before UPDATE/DELETE statements reach the
database.  The listeners here intercept them and raise
ImmutabilityViolationError, aborting the flush so nothing is written:

    session.flush()
         |
         v
    [before_update] --> _forbid_update() --> ImmutabilityViolationError
    [before_delete] --> _forbid_delete() --> ImmutabilityViolationError

Protected entities
------------------
Entity               | UPDATE | DELETE | Why
---------------------|--------|--------|-----------------------------------
PaymentModel         | never  | never  | The ledger is append-only
ApprovalModel        | never  | cascade| Decision is final; a rejected
                     |        |        | document may still be deleted
VoucherReviewModel   | never  | never  | A voucher review is final
DocumentAuditEvent   | never  | never  | The audit trail is the record

Corrections to the ledger are new entries, never edits.
"""

from sqlalchemy import event

from obligation_kernel.exceptions import ImmutabilityViolationError
from obligation_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _blocked(entity_type: str, target, operation: str, reason: str) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=reason,
    )


def _check_payment_update(mapper, connection, target):
    _blocked("DocumentPayment", target, "UPDATE",
             "Ledger entries are append-only and cannot be modified")


def _check_payment_delete(mapper, connection, target):
    _blocked("DocumentPayment", target, "DELETE",
             "Ledger entries are append-only and cannot be deleted")


def _check_approval_update(mapper, connection, target):
    _blocked("DocumentApproval", target, "UPDATE",
             "An approval decision is recorded once and never changed")


def _check_voucher_review_update(mapper, connection, target):
    _blocked("DocumentVoucherReview", target, "UPDATE",
             "A voucher review is recorded once and never changed")


def _check_voucher_review_delete(mapper, connection, target):
    _blocked("DocumentVoucherReview", target, "DELETE",
             "A voucher review cannot be deleted")


def _check_audit_event_update(mapper, connection, target):
    _blocked("DocumentAuditEvent", target, "UPDATE",
             "Audit events are immutable and cannot be modified")


def _check_audit_event_delete(mapper, connection, target):
    _blocked("DocumentAuditEvent", target, "DELETE",
             "Audit events cannot be deleted")


_LISTENERS = (
    ("PaymentModel", "before_update", _check_payment_update),
    ("PaymentModel", "before_delete", _check_payment_delete),
    ("ApprovalModel", "before_update", _check_approval_update),
    ("VoucherReviewModel", "before_update", _check_voucher_review_update),
    ("VoucherReviewModel", "before_delete", _check_voucher_review_delete),
    ("DocumentAuditEvent", "before_update", _check_audit_event_update),
    ("DocumentAuditEvent", "before_delete", _check_audit_event_delete),
)


def register_immutability_listeners() -> None:
    """
    Register all immutability listeners.  Safe to call more than once.

    Called by create_tables() and by LifecycleService on construction.
    """
    from obligation_kernel.models.audit_event import DocumentAuditEvent
    from obligation_kernel.models.document import (
        ApprovalModel,
        PaymentModel,
        VoucherReviewModel,
    )

    targets = {
        "PaymentModel": PaymentModel,
        "ApprovalModel": ApprovalModel,
        "VoucherReviewModel": VoucherReviewModel,
        "DocumentAuditEvent": DocumentAuditEvent,
    }
    for name, identifier, fn in _LISTENERS:
        model = targets[name]
        if not event.contains(model, identifier, fn):
            event.listen(model, identifier, fn)
