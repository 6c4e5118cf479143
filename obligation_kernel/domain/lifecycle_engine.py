"""
LifecycleEngine -- the single mutation entry point for documents.

Responsibility:
    Routes each lifecycle command to the gate that owns it, handles the
    two commands no gate owns (Create, Delete), and asserts the document
    invariants on every successful outcome.  Holds no state beyond its
    collaborators.

Architecture position:
    Kernel > Domain -- pure functional core.  The service layer fetches
    the document, verifies evidence, calls ``apply()`` and persists the
    result; the engine itself performs no I/O.

Invariants enforced:
    - Gate errors pass through unchanged; the engine never reinterprets
      or swallows them.
    - A failed command returns no document, so nothing can be partially
      applied.
    - Every successful transition is checked with
      ``Document.violated_invariants()``; a violation raises
      InvariantViolationError (a programming error, never a user error).

Failure modes:
    - DOCUMENT_NOT_FOUND for any non-create command without a document.
    - INVALID_DOCUMENT for a malformed Create, including an amount outside
      the engine's configured currency.
    - DELETION_FORBIDDEN when the document is approved or has payments.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

from obligation_kernel.domain.actors import Actor, CommandType, RolePolicy
from obligation_kernel.domain.approval_gate import ApprovalGate
from obligation_kernel.domain.clock import Clock, SystemClock
from obligation_kernel.domain.commands import (
    Command,
    CreateDocument,
    DecideDocument,
    DeleteDocument,
    EmitInvoice,
    RegisterPayment,
    ReviewVoucher,
)
from obligation_kernel.domain.document import (
    ApprovalState,
    Document,
    PaymentState,
)
from obligation_kernel.domain.invoice_gate import InvoiceGate
from obligation_kernel.domain.payment_ledger import PaymentLedger
from obligation_kernel.domain.results import ErrorCode, LifecycleResult
from obligation_kernel.domain.tax import DEFAULT_TAX_RATE, TaxBreakdown
from obligation_kernel.domain.values import Currency
from obligation_kernel.domain.voucher_review import VoucherReviewGate
from obligation_kernel.exceptions import InvariantViolationError


class LifecycleEngine:
    """
    Dispatches commands against one document.

    Usage:
        engine = LifecycleEngine(clock=clock)
        result = engine.apply(CreateDocument(kind=..., principal_amount=...), actor)
        result = engine.apply(DecideDocument(ApprovalAction.APPROVE), approver, result.document)
    """

    def __init__(
        self,
        role_policy: RolePolicy | None = None,
        clock: Clock | None = None,
        default_tax_rate: Decimal = DEFAULT_TAX_RATE,
        currency: str | Currency | None = None,
        require_voucher_review: bool = False,
    ):
        self._role_policy = role_policy or RolePolicy()
        self._clock = clock or SystemClock()
        self._default_tax_rate = default_tax_rate
        # None accepts any currency; a configured engine books only one.
        self._currency = Currency(currency) if isinstance(currency, str) else currency
        self._approval_gate = ApprovalGate(self._role_policy, self._clock)
        self._payment_ledger = PaymentLedger(self._role_policy, self._clock)
        self._voucher_review_gate = VoucherReviewGate(self._role_policy, self._clock)
        self._invoice_gate = InvoiceGate(
            self._role_policy, self._clock, require_voucher_review=require_voucher_review
        )

    @property
    def role_policy(self) -> RolePolicy:
        return self._role_policy

    @property
    def currency(self) -> Currency | None:
        return self._currency

    def apply(
        self,
        command: Command,
        actor: Actor,
        document: Document | None = None,
    ) -> LifecycleResult:
        """Apply one command and return the outcome."""
        if isinstance(command, CreateDocument):
            result = self._create(command, actor)
        elif document is None:
            return LifecycleResult.failure(
                ErrorCode.DOCUMENT_NOT_FOUND,
                "No document supplied for command",
                command=command.command_type.value,
            )
        elif isinstance(command, DecideDocument):
            result = self._approval_gate.decide(
                document, actor, command.action, command.notes
            )
        elif isinstance(command, RegisterPayment):
            result = self._payment_ledger.register_payment(
                document,
                actor,
                amount=command.amount,
                method=command.method,
                reference=command.reference,
                evidence=command.evidence,
                paid_on=command.paid_on,
                notes=command.notes,
            )
        elif isinstance(command, ReviewVoucher):
            result = self._voucher_review_gate.review(
                document, actor, command.payment_id, command.action, command.reason
            )
        elif isinstance(command, EmitInvoice):
            result = self._invoice_gate.emit_invoice(
                document, actor, command.reverified_evidence
            )
        elif isinstance(command, DeleteDocument):
            result = self._delete(document, actor)
        else:
            raise TypeError(f"Unsupported command: {type(command).__name__}")

        if result.is_success and result.document is not None:
            self._assert_invariants(result.document)
        return result

    def _create(self, command: CreateDocument, actor: Actor) -> LifecycleResult:
        if not self._role_policy.permits(actor, CommandType.CREATE):
            return LifecycleResult.failure(
                ErrorCode.INSUFFICIENT_ROLE,
                f"Role {actor.role.value} may not create documents",
                role=actor.role.value,
            )

        has_principal = command.principal_amount is not None
        has_net = command.net_amount is not None
        if has_principal == has_net:
            return LifecycleResult.failure(
                ErrorCode.INVALID_DOCUMENT,
                "Provide exactly one of principal_amount or net_amount",
            )
        if has_principal and command.tax_rate is not None:
            return LifecycleResult.failure(
                ErrorCode.INVALID_DOCUMENT,
                "tax_rate applies only together with net_amount",
            )

        requested = command.principal_amount if has_principal else command.net_amount
        if self._currency is not None and requested.currency != self._currency:
            return LifecycleResult.failure(
                ErrorCode.INVALID_DOCUMENT,
                f"Documents are booked in {self._currency.code}, got {requested.currency.code}",
                currency=requested.currency.code,
                expected_currency=self._currency.code,
            )

        tax = None
        if has_net:
            try:
                tax = TaxBreakdown.compute(
                    command.net_amount,
                    self._default_tax_rate if command.tax_rate is None else command.tax_rate,
                )
            except (TypeError, ValueError) as exc:
                return LifecycleResult.failure(ErrorCode.INVALID_DOCUMENT, str(exc))
            principal = tax.gross
        else:
            principal = command.principal_amount

        if not principal.is_positive:
            return LifecycleResult.failure(
                ErrorCode.INVALID_DOCUMENT,
                "Principal amount must be greater than zero",
                principal_amount=str(principal.amount),
            )

        document = Document(
            id=command.document_id or uuid4(),
            kind=command.kind,
            principal_amount=principal,
            created_by=actor.actor_id,
            created_at=self._clock.now(),
            counterparty=command.counterparty.strip(),
            description=command.description.strip(),
            external_reference=command.external_reference,
            due_date=command.due_date,
            tax=tax,
        )
        return LifecycleResult.success(document)

    def _delete(self, document: Document, actor: Actor) -> LifecycleResult:
        if not self._role_policy.permits(actor, CommandType.DELETE):
            return LifecycleResult.failure(
                ErrorCode.INSUFFICIENT_ROLE,
                f"Role {actor.role.value} may not delete documents",
                role=actor.role.value,
                document_id=str(document.id),
            )

        if (
            document.approval_state == ApprovalState.APPROVED
            or document.payment_state != PaymentState.UNPAID
        ):
            return LifecycleResult.failure(
                ErrorCode.DELETION_FORBIDDEN,
                "Approved or paid documents cannot be deleted; "
                "escalate to Finance for a manual reversal",
                document_id=str(document.id),
                approval_state=document.approval_state.value,
                payment_state=document.payment_state.value,
            )

        return LifecycleResult.success(document, deleted=True)

    @staticmethod
    def _assert_invariants(document: Document) -> None:
        violations = document.violated_invariants()
        if violations:
            raise InvariantViolationError(
                str(document.id), [v.value for v in violations]
            )
