"""
Hypothesis-based property tests over the pure LifecycleEngine.

Boundaries fuzzed here:
- Payment amounts against the remaining balance (never overpaid)
- Arbitrary command sequences from arbitrary roles (invariants always hold,
  terminal states stay terminal)
- Net amounts and tax rates (gross = net + tax, exactly)

Persistence and concurrency are covered by tests/services and
tests/concurrency; nothing here touches the database.
"""

from decimal import Decimal
from uuid import uuid4

from hypothesis import given, settings
from hypothesis import strategies as st
from hypothesis.strategies import composite

from obligation_kernel.domain.actors import InMemoryActorRegistry, Role
from obligation_kernel.domain.clock import DeterministicClock
from obligation_kernel.domain.commands import (
    CreateDocument,
    DecideDocument,
    DeleteDocument,
    EmitInvoice,
    RegisterPayment,
)
from obligation_kernel.domain.document import (
    ApprovalAction,
    ApprovalState,
    DocumentKind,
    InvoiceState,
    PaymentMethod,
    PaymentState,
)
from obligation_kernel.domain.evidence import EvidenceRef
from obligation_kernel.domain.lifecycle_engine import LifecycleEngine
from obligation_kernel.domain.results import ErrorCode
from obligation_kernel.domain.tax import TaxBreakdown
from obligation_kernel.domain.values import Money

PAYMENT_ORDER = {PaymentState.UNPAID: 0, PaymentState.PARTIAL: 1, PaymentState.PAID: 2}

_registry = InMemoryActorRegistry()
ACTORS = {role: _registry.register(uuid4(), role, role.value.title()) for role in Role}


def _engine() -> LifecycleEngine:
    return LifecycleEngine(clock=DeterministicClock())


def _voucher() -> EvidenceRef:
    return EvidenceRef(f"vouchers/{uuid4().hex}", "image/png", 48_000, True)


def _create(engine, principal_minor: int):
    return engine.apply(
        CreateDocument(
            kind=DocumentKind.PAYABLE,
            principal_amount=Money(principal_minor, "GTQ"),
        ),
        ACTORS[Role.FINANCE],
    ).unwrap()


def _payment(amount_minor: int) -> RegisterPayment:
    return RegisterPayment(
        amount=Money(amount_minor, "GTQ"),
        method=PaymentMethod.BANK_DEPOSIT,
        reference=f"DEP-{uuid4().hex[:6]}",
        evidence=_voucher(),
    )


@composite
def command_steps(draw):
    """One (command, role) pair drawn from the whole command surface."""
    kind = draw(st.sampled_from(["approve", "reject", "pay", "invoice", "delete"]))
    role = draw(st.sampled_from(list(Role)))
    if kind == "approve":
        command = DecideDocument(ApprovalAction.APPROVE)
    elif kind == "reject":
        notes = draw(
            st.one_of(st.none(), st.just("   "), st.text(min_size=1, max_size=20))
        )
        command = DecideDocument(ApprovalAction.REJECT, notes)
    elif kind == "pay":
        command = _payment(draw(st.integers(min_value=-500, max_value=150_000)))
    elif kind == "invoice":
        command = EmitInvoice()
    else:
        command = DeleteDocument()
    return command, ACTORS[role]


class TestPaymentLedgerProperties:
    @given(
        principal=st.integers(min_value=1, max_value=10_000_000),
        amounts=st.lists(st.integers(min_value=1, max_value=12_000_000), max_size=15),
    )
    @settings(max_examples=200)
    def test_ledger_never_exceeds_principal(self, principal, amounts):
        engine = _engine()
        document = engine.apply(
            DecideDocument(ApprovalAction.APPROVE),
            ACTORS[Role.BOARD],
            _create(engine, principal),
        ).unwrap()

        for amount in amounts:
            balance = document.balance_due.minor_units
            result = engine.apply(_payment(amount), ACTORS[Role.RECEPTION], document)

            if amount > balance:
                assert result.error_code == ErrorCode.OVERPAYMENT_ATTEMPT
                continue
            assert result.is_success
            document = result.document
            assert document.balance_due.minor_units == balance - amount

        paid = sum(p.amount.minor_units for p in document.payments)
        assert paid <= principal
        assert document.paid_total.minor_units == paid
        assert [p.sequence for p in document.payments] == list(
            range(1, len(document.payments) + 1)
        )

    @given(principal=st.integers(min_value=1, max_value=10_000_000))
    @settings(max_examples=100)
    def test_exact_settlement_is_paid(self, principal):
        engine = _engine()
        approved = engine.apply(
            DecideDocument(ApprovalAction.APPROVE),
            ACTORS[Role.FINANCE],
            _create(engine, principal),
        ).unwrap()

        paid = engine.apply(_payment(principal), ACTORS[Role.FINANCE], approved).unwrap()

        assert paid.payment_state == PaymentState.PAID
        assert paid.balance_due.is_zero
        assert paid.paid_ratio == Decimal(1)


class TestCommandSequenceProperties:
    @given(
        principal=st.integers(min_value=1, max_value=500_000),
        steps=st.lists(command_steps(), max_size=25),
    )
    @settings(max_examples=300)
    def test_invariants_hold_for_any_sequence(self, principal, steps):
        engine = _engine()
        document = _create(engine, principal)

        for command, actor in steps:
            before = document
            result = engine.apply(command, actor, before)

            if not result.is_success:
                continue
            assert actor.role != Role.RECEPTION or not isinstance(command, DecideDocument)

            if result.deleted:
                assert before.approval_state != ApprovalState.APPROVED
                assert before.payment_state == PaymentState.UNPAID
                return

            document = result.document
            assert document.violated_invariants() == ()
            assert document.approval_state != ApprovalState.PENDING_APPROVAL or (
                before.approval_state == ApprovalState.PENDING_APPROVAL
            )
            assert PAYMENT_ORDER[document.payment_state] >= PAYMENT_ORDER[before.payment_state]
            if before.approval_state != ApprovalState.PENDING_APPROVAL:
                assert document.approval_record == before.approval_record
            if before.approval_state == ApprovalState.REJECTED:
                raise AssertionError("a rejected document accepted a command")
            if before.invoice_state == InvoiceState.INVOICED:
                raise AssertionError("an invoiced document accepted a command")
            if document.invoice_state == InvoiceState.INVOICED:
                assert document.payment_state == PaymentState.PAID


class TestTaxProperties:
    @given(
        net_minor=st.integers(min_value=0, max_value=10**12),
        rate=st.decimals(min_value=0, max_value=Decimal("0.99"), places=4),
    )
    @settings(max_examples=200)
    def test_gross_is_net_plus_tax(self, net_minor, rate):
        breakdown = TaxBreakdown.compute(Money(net_minor, "GTQ"), rate)

        assert breakdown.gross.minor_units == net_minor + breakdown.tax.minor_units
        exact = Decimal(net_minor) * rate
        assert abs(Decimal(breakdown.tax.minor_units) - exact) <= Decimal("0.5")
