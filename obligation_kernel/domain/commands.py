"""Lifecycle commands dispatched by ``LifecycleEngine.apply()``."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from obligation_kernel.domain.actors import CommandType
from obligation_kernel.domain.document import ApprovalAction, DocumentKind, PaymentMethod
from obligation_kernel.domain.evidence import EvidenceRef
from obligation_kernel.domain.values import Money


@dataclass(frozen=True)
class CreateDocument:
    """Open a new obligation in PendingApproval.

    Exactly one of ``principal_amount`` or ``net_amount`` is given; with
    ``net_amount`` the principal is net plus tax at ``tax_rate``.
    """

    kind: DocumentKind
    principal_amount: Money | None = None
    net_amount: Money | None = None
    tax_rate: Decimal | None = None
    counterparty: str = ""
    description: str = ""
    external_reference: str | None = None
    due_date: date | None = None
    document_id: UUID | None = None

    command_type = CommandType.CREATE


@dataclass(frozen=True)
class DecideDocument:
    action: ApprovalAction
    notes: str | None = None

    command_type = CommandType.DECIDE


@dataclass(frozen=True)
class RegisterPayment:
    amount: Money
    method: PaymentMethod | str
    reference: str
    evidence: EvidenceRef
    paid_on: date | None = None
    notes: str | None = None

    command_type = CommandType.REGISTER_PAYMENT


@dataclass(frozen=True)
class EmitInvoice:
    """Certify a fully paid document for invoicing.

    ``reverified_evidence`` holds fresh verification results keyed by
    evidence id; when given, each ledger entry must still verify.
    """

    reverified_evidence: dict[str, EvidenceRef] | None = None

    command_type = CommandType.EMIT_INVOICE


@dataclass(frozen=True)
class ReviewVoucher:
    """Approve or reject the voucher behind one ledger entry.

    A rejection must carry ``reason``.
    """

    payment_id: UUID
    action: ApprovalAction
    reason: str | None = None

    command_type = CommandType.REVIEW_VOUCHER


@dataclass(frozen=True)
class DeleteDocument:
    command_type = CommandType.DELETE


Command = (
    CreateDocument
    | DecideDocument
    | RegisterPayment
    | ReviewVoucher
    | EmitInvoice
    | DeleteDocument
)
