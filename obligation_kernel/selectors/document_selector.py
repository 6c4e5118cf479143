"""
Module: obligation_kernel.selectors.document_selector
Responsibility: Read-only document queries for the console dashboards --
    filtered listings, the overdue and rejected queues, payment history and
    the portfolio summary.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Balances are derived from ``document_payments`` at query time; no
      balance is stored anywhere.
    - "Overdue" is a query (approved, not fully paid, past due), not a
      stored payment state.
    - Portfolio totals are per currency; amounts in other currencies are
      never mixed in.
"""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from obligation_kernel.domain.currency import DEFAULT_CURRENCY_CODE
from obligation_kernel.domain.document import (
    ApprovalState,
    Document,
    InvoiceState,
    PaymentRecord,
    PaymentState,
)
from obligation_kernel.domain.filters import DocumentFilter
from obligation_kernel.domain.values import Currency, Money
from obligation_kernel.models.document import DocumentModel, PaymentModel
from obligation_kernel.models.mapping import document_from_model, payment_from_model
from obligation_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class PortfolioSummary:
    """Dashboard figures for one currency as of a date."""

    currency: Currency
    as_of: date
    pending_count: int
    approved_count: int
    rejected_count: int
    invoiced_count: int
    overdue_count: int
    pending_principal: Money
    outstanding_balance: Money
    total_collected: Money

    @property
    def document_count(self) -> int:
        return self.pending_count + self.approved_count + self.rejected_count


class DocumentSelector(BaseSelector):
    """Read-only queries over documents and their ledgers.

    ``currency`` is the book currency ``summary`` reports in when the caller
    does not name one.
    """

    def __init__(
        self,
        session: Session,
        currency: str | Currency = DEFAULT_CURRENCY_CODE,
    ):
        super().__init__(session)
        self.currency = currency if isinstance(currency, Currency) else Currency(currency)

    def list_by_filter(self, criteria: DocumentFilter | None = None) -> list[Document]:
        criteria = criteria or DocumentFilter()
        stmt = select(DocumentModel)

        if criteria.kinds:
            stmt = stmt.where(DocumentModel.kind.in_([k.value for k in criteria.kinds]))
        if criteria.approval_states:
            stmt = stmt.where(
                DocumentModel.approval_state.in_([s.value for s in criteria.approval_states])
            )
        if criteria.payment_states:
            stmt = stmt.where(
                DocumentModel.payment_state.in_([s.value for s in criteria.payment_states])
            )
        if criteria.invoice_states:
            stmt = stmt.where(
                DocumentModel.invoice_state.in_([s.value for s in criteria.invoice_states])
            )
        if criteria.counterparty_contains:
            # Wildcards in the term are literal, as in DocumentFilter.matches.
            stmt = stmt.where(
                DocumentModel.counterparty.icontains(
                    criteria.counterparty_contains, autoescape=True
                )
            )
        if criteria.created_by is not None:
            stmt = stmt.where(DocumentModel.created_by_id == criteria.created_by)
        if criteria.due_before is not None:
            stmt = stmt.where(
                DocumentModel.due_date.is_not(None),
                DocumentModel.due_date < criteria.due_before,
            )

        stmt = stmt.order_by(DocumentModel.created_at, DocumentModel.id)
        if criteria.limit is not None:
            stmt = stmt.limit(criteria.limit)

        return [document_from_model(m) for m in self.session.execute(stmt).scalars()]

    def overdue(self, as_of: date) -> list[Document]:
        """Approved, not fully paid documents whose due date is before ``as_of``."""
        return self.list_by_filter(
            DocumentFilter(
                approval_states=(ApprovalState.APPROVED,),
                payment_states=(PaymentState.UNPAID, PaymentState.PARTIAL),
                due_before=as_of,
            )
        )

    def rejected(self) -> list[Document]:
        return self.list_by_filter(
            DocumentFilter(approval_states=(ApprovalState.REJECTED,))
        )

    def payment_history(self, document_id: UUID) -> list[PaymentRecord]:
        """Ledger entries for one document in sequence order."""
        rows = self.session.execute(
            select(PaymentModel)
            .where(PaymentModel.document_id == document_id)
            .order_by(PaymentModel.sequence)
        ).scalars()
        return [payment_from_model(r) for r in rows]

    def summary(
        self,
        as_of: date,
        currency: str | Currency | None = None,
    ) -> PortfolioSummary:
        if currency is None:
            currency = self.currency
        elif not isinstance(currency, Currency):
            currency = Currency(currency)
        code = currency.code

        counts = dict(
            self.session.execute(
                select(DocumentModel.approval_state, func.count(DocumentModel.id))
                .where(DocumentModel.currency == code)
                .group_by(DocumentModel.approval_state)
            ).all()
        )

        invoiced_count = self.session.execute(
            select(func.count(DocumentModel.id)).where(
                DocumentModel.currency == code,
                DocumentModel.invoice_state == InvoiceState.INVOICED.value,
            )
        ).scalar_one()

        overdue_count = self.session.execute(
            select(func.count(DocumentModel.id)).where(
                DocumentModel.currency == code,
                DocumentModel.approval_state == ApprovalState.APPROVED.value,
                DocumentModel.payment_state != PaymentState.PAID.value,
                DocumentModel.due_date.is_not(None),
                DocumentModel.due_date < as_of,
            )
        ).scalar_one()

        pending_principal = self.session.execute(
            select(func.coalesce(func.sum(DocumentModel.principal_minor_units), 0)).where(
                DocumentModel.currency == code,
                DocumentModel.approval_state == ApprovalState.PENDING_APPROVAL.value,
            )
        ).scalar_one()

        approved_principal = self.session.execute(
            select(func.coalesce(func.sum(DocumentModel.principal_minor_units), 0)).where(
                DocumentModel.currency == code,
                DocumentModel.approval_state == ApprovalState.APPROVED.value,
            )
        ).scalar_one()

        # Payments only exist on approved documents.
        collected = self.session.execute(
            select(func.coalesce(func.sum(PaymentModel.amount_minor_units), 0))
            .join(DocumentModel, PaymentModel.document_id == DocumentModel.id)
            .where(DocumentModel.currency == code)
        ).scalar_one()

        return PortfolioSummary(
            currency=currency,
            as_of=as_of,
            pending_count=counts.get(ApprovalState.PENDING_APPROVAL.value, 0),
            approved_count=counts.get(ApprovalState.APPROVED.value, 0),
            rejected_count=counts.get(ApprovalState.REJECTED.value, 0),
            invoiced_count=invoiced_count,
            overdue_count=overdue_count,
            pending_principal=Money(int(pending_principal), currency),
            outstanding_balance=Money(int(approved_principal) - int(collected), currency),
            total_collected=Money(int(collected), currency),
        )
