"""
Tests for DocumentSelector -- the read side behind the console dashboards.
"""

from datetime import date

import pytest

from obligation_kernel.domain.document import (
    ApprovalState,
    DocumentKind,
    PaymentMethod,
    PaymentState,
)
from obligation_kernel.domain.filters import DocumentFilter
from obligation_kernel.domain.values import Money
from obligation_kernel.selectors.document_selector import DocumentSelector

AS_OF = date(2025, 10, 15)


def gtq(amount: str) -> Money:
    return Money.of(amount, "GTQ")


@pytest.fixture
def portfolio(service, service_pay, staff, deterministic_clock):
    """
    Five documents:

    - paid_partial: approved GTQ 1,000.00, 400.00 paid, due 2025-11-30
    - pending:      GTQ 200.00 awaiting approval
    - rejected:     GTQ 300.00 rejected by the board
    - overdue:      approved GTQ 500.00, unpaid, due 2025-10-01
    - dollars:      USD 100.00 awaiting approval
    """

    def _create(amount: Money, counterparty: str, **kwargs):
        deterministic_clock.advance(60)
        return service.create(
            staff.reception.actor_id,
            DocumentKind.PAYABLE,
            amount,
            counterparty=counterparty,
            **kwargs,
        ).unwrap().id

    ids = {
        "paid_partial": _create(
            gtq("1000.00"), "Laboratorio Clinico", due_date=date(2025, 11, 30)
        ),
        "pending": _create(gtq("200.00"), "Papeleria Minerva"),
        "rejected": _create(gtq("300.00"), "Laboratorio Norte"),
        "overdue": _create(gtq("500.00"), "Empresa Electrica", due_date=date(2025, 10, 1)),
        "dollars": _create(Money.of("100.00", "USD"), "Proveedor Externo"),
    }
    service.approve(ids["paid_partial"], staff.finance.actor_id).unwrap()
    service.approve(ids["overdue"], staff.board.actor_id).unwrap()
    service.reject(ids["rejected"], staff.board.actor_id, "cotizacion vencida").unwrap()
    service_pay(ids["paid_partial"], "150.00").unwrap()
    service_pay(ids["paid_partial"], "250.00").unwrap()
    return ids


@pytest.fixture
def selector(portfolio, session):
    return DocumentSelector(session)


class TestListByFilter:
    def test_unfiltered_in_creation_order(self, selector, portfolio):
        assert [d.id for d in selector.list_by_filter()] == list(portfolio.values())

    def test_by_approval_state(self, selector, portfolio):
        approved = selector.list_by_filter(
            DocumentFilter(approval_states=(ApprovalState.APPROVED,))
        )
        assert [d.id for d in approved] == [portfolio["paid_partial"], portfolio["overdue"]]

    def test_by_payment_state(self, selector, portfolio):
        partial = selector.list_by_filter(
            DocumentFilter(payment_states=(PaymentState.PARTIAL,))
        )
        assert [d.id for d in partial] == [portfolio["paid_partial"]]
        assert partial[0].paid_total == gtq("400.00")

    def test_counterparty_is_case_insensitive(self, selector, portfolio):
        labs = selector.list_by_filter(DocumentFilter(counterparty_contains="laboratorio"))
        assert {d.id for d in labs} == {portfolio["paid_partial"], portfolio["rejected"]}

    def test_created_by(self, selector, staff):
        mine = selector.list_by_filter(DocumentFilter(created_by=staff.reception.actor_id))
        assert len(mine) == 5
        assert selector.list_by_filter(DocumentFilter(created_by=staff.finance.actor_id)) == []

    def test_limit(self, selector, portfolio):
        assert len(selector.list_by_filter(DocumentFilter(limit=2))) == 2

    def test_matches_in_memory_filter(self, selector):
        criteria = DocumentFilter(
            approval_states=(ApprovalState.APPROVED, ApprovalState.PENDING_APPROVAL),
            counterparty_contains="a",
        )
        everything = selector.list_by_filter()
        expected = [d.id for d in everything if criteria.matches(d)]
        assert [d.id for d in selector.list_by_filter(criteria)] == expected


    @pytest.mark.parametrize(
        "term, expected",
        [
            ("%", ["discount"]),
            ("_", ["underscore"]),
            ("50%", ["discount"]),
            ("a_n", ["underscore"]),
        ],
    )
    def test_wildcards_are_literal(self, selector, service, staff, portfolio, term, expected):
        extra = {
            "discount": service.create(
                staff.reception.actor_id,
                DocumentKind.PAYABLE,
                gtq("75.00"),
                counterparty="Farmacia 50% Descuento",
            ).unwrap().id,
            "underscore": service.create(
                staff.reception.actor_id,
                DocumentKind.PAYABLE,
                gtq("80.00"),
                counterparty="Taller_Norte",
            ).unwrap().id,
        }
        criteria = DocumentFilter(counterparty_contains=term)

        found = selector.list_by_filter(criteria)

        assert {d.id for d in found} == {extra[name] for name in expected}
        everything = selector.list_by_filter()
        assert [d.id for d in found] == [d.id for d in everything if criteria.matches(d)]


class TestQueues:
    def test_overdue(self, selector, portfolio):
        overdue = selector.overdue(AS_OF)
        assert [d.id for d in overdue] == [portfolio["overdue"]]
        assert all(d.is_overdue(AS_OF) for d in overdue)

    def test_overdue_moves_with_date(self, selector, portfolio):
        later = selector.overdue(date(2025, 12, 15))
        assert [d.id for d in later] == [portfolio["paid_partial"], portfolio["overdue"]]
        assert selector.overdue(date(2025, 9, 1)) == []

    def test_paid_document_is_not_overdue(self, selector, service_pay, portfolio):
        service_pay(portfolio["overdue"], "500.00").unwrap()

        assert selector.overdue(AS_OF) == []

    def test_rejected(self, selector, portfolio):
        rejected = selector.rejected()
        assert [d.id for d in rejected] == [portfolio["rejected"]]
        assert rejected[0].approval_record.notes == "cotizacion vencida"


class TestPaymentHistory:
    def test_in_sequence_order(self, selector, portfolio):
        history = selector.payment_history(portfolio["paid_partial"])

        assert [p.sequence for p in history] == [1, 2]
        assert [p.amount for p in history] == [gtq("150.00"), gtq("250.00")]
        assert all(p.method == PaymentMethod.BANK_TRANSFER for p in history)
        assert all(p.evidence.is_valid for p in history)

    def test_empty_for_unpaid(self, selector, portfolio):
        assert selector.payment_history(portfolio["pending"]) == []


class TestSummary:
    def test_gtq_figures(self, selector):
        summary = selector.summary(AS_OF)

        assert summary.pending_count == 1
        assert summary.approved_count == 2
        assert summary.rejected_count == 1
        assert summary.document_count == 4
        assert summary.invoiced_count == 0
        assert summary.overdue_count == 1
        assert summary.pending_principal == gtq("200.00")
        assert summary.outstanding_balance == gtq("1100.00")
        assert summary.total_collected == gtq("400.00")

    def test_currencies_never_mix(self, selector):
        summary = selector.summary(AS_OF, "USD")

        assert summary.document_count == 1
        assert summary.pending_principal == Money.of("100.00", "USD")
        assert summary.total_collected.is_zero

    def test_empty_currency(self, selector):
        summary = selector.summary(AS_OF, "EUR")
        assert summary.document_count == 0
        assert summary.outstanding_balance == Money.zero("EUR")

    def test_default_currency_follows_selector(self, session, portfolio):
        summary = DocumentSelector(session, currency="USD").summary(AS_OF)

        assert summary.currency.code == "USD"
        assert summary.document_count == 1
        assert summary.pending_principal == Money.of("100.00", "USD")
