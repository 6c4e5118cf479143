"""
Document Invariants Contract.

These invariants are structural law. They hold for every Document at every
observable point, and no configuration may relax them.

This module declares them explicitly. The checks live in
``Document.violated_invariants()``; the LifecycleEngine asserts them after
every successful transition, and the gates are written so that a violation
can only come from a programming error.
"""

from enum import Enum, unique


@unique
class DocumentInvariant(str, Enum):
    """Non-configurable invariants enforced by the lifecycle kernel."""

    NO_OVERPAYMENT = "no_overpayment"
    """sum(payments.amount) <= principal_amount. Enforced by PaymentLedger
    against a balance recomputed from the ledger on every call."""

    PAYMENT_STATE_DERIVED = "payment_state_derived"
    """payment_state is exactly Unpaid/Partial/Paid as the ledger sum is
    zero/between/equal to the principal."""

    REJECTED_IS_INERT = "rejected_is_inert"
    """A rejected document has no payments, is unpaid and not invoiced."""

    INVOICED_IS_SETTLED = "invoiced_is_settled"
    """An invoiced document is approved, paid, and has at least one
    payment."""

    APPROVAL_RECORDED = "approval_recorded"
    """approval_record is set if and only if the document is no longer
    pending approval."""


ALL_DOCUMENT_INVARIANTS: frozenset[DocumentInvariant] = frozenset(DocumentInvariant)
