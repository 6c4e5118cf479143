"""Document query filter shared by repositories and selectors."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from obligation_kernel.domain.document import (
    ApprovalState,
    Document,
    DocumentKind,
    InvoiceState,
    PaymentState,
)


@dataclass(frozen=True)
class DocumentFilter:
    """
    Conjunctive filter over documents.  Empty tuples and None match all.

    ``counterparty_contains`` is a case-insensitive substring match;
    ``due_before`` is exclusive.  Results are ordered by ``created_at``.
    """

    kinds: tuple[DocumentKind, ...] = ()
    approval_states: tuple[ApprovalState, ...] = ()
    payment_states: tuple[PaymentState, ...] = ()
    invoice_states: tuple[InvoiceState, ...] = ()
    counterparty_contains: str | None = None
    created_by: UUID | None = None
    due_before: date | None = None
    limit: int | None = None

    def __post_init__(self) -> None:
        if self.limit is not None and self.limit <= 0:
            raise ValueError("limit must be positive")

    def matches(self, document: Document) -> bool:
        if self.kinds and document.kind not in self.kinds:
            return False
        if self.approval_states and document.approval_state not in self.approval_states:
            return False
        if self.payment_states and document.payment_state not in self.payment_states:
            return False
        if self.invoice_states and document.invoice_state not in self.invoice_states:
            return False
        if self.counterparty_contains:
            if self.counterparty_contains.lower() not in document.counterparty.lower():
                return False
        if self.created_by is not None and document.created_by != self.created_by:
            return False
        if self.due_before is not None:
            if document.due_date is None or document.due_date >= self.due_before:
                return False
        return True
