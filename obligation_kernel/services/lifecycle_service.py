"""
LifecycleService -- transactional shell around the LifecycleEngine.

Responsibility:
    Runs every lifecycle command as one atomic check-then-apply unit:
    resolve the actor, lock and load the document, verify evidence, call
    the pure engine, persist the outcome, issue the invoice number and
    append the audit event -- all in a single transaction.

Architecture position:
    Kernel > Services -- imperative shell.  Owns transaction boundaries
    (one ``session_scope`` per attempt); DocumentRepository, AuditorService
    and the invoice issuer only flush.

Invariants enforced:
    - Serialization per document: an in-process lock per document id,
      a ``SELECT ... FOR UPDATE`` row lock, and the optimistic version
      check on save.  Two payments can never both pass the balance check
      against the same ledger sum.
    - Commands on different documents share no lock.
    - Evidence is re-verified through the EvidenceVerifier on every
      payment and every invoice emission; caller-supplied validity flags
      are never trusted.
    - All-or-nothing: a refused command writes nothing; a failure after
      the engine succeeded rolls back the document, the invoice number
      and the audit event together.

Failure modes:
    - CONCURRENT_MODIFICATION once ``max_retries`` optimistic-lock retries
      are exhausted.
    - INSUFFICIENT_ROLE for an actor the registry does not know.
    - Any gate error, passed through unchanged.
    - Unexpected exceptions (database down, InvariantViolationError)
      propagate after rollback.
"""

from __future__ import annotations

import dataclasses
import threading
import time
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Iterator
from uuid import UUID, uuid4

from sqlalchemy.orm import Session, sessionmaker

from obligation_kernel.db.engine import session_scope
from obligation_kernel.db.immutability import register_immutability_listeners
from obligation_kernel.domain.actors import Actor, ActorRegistry, resolve_actor
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
    ApprovalAction,
    Document,
    DocumentKind,
    PaymentMethod,
)
from obligation_kernel.domain.evidence import EvidenceRef, EvidenceVerifier
from obligation_kernel.domain.lifecycle_engine import LifecycleEngine
from obligation_kernel.domain.results import ErrorCode, LifecycleResult
from obligation_kernel.domain.values import Money
from obligation_kernel.exceptions import OptimisticLockError
from obligation_kernel.logging_config import LogContext, get_logger
from obligation_kernel.services.auditor_service import AuditorService
from obligation_kernel.services.document_repository import DocumentRepository
from obligation_kernel.services.invoice_numbering import InvoiceNumberIssuer

logger = get_logger("services.lifecycle")

DEFAULT_MAX_RETRIES = 3


class _DocumentLocks:
    """Reference-counted mutex per document id."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[UUID, list] = {}

    @contextmanager
    def hold(self, document_id: UUID) -> Iterator[None]:
        with self._guard:
            entry = self._locks.get(document_id)
            if entry is None:
                entry = self._locks[document_id] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[document_id]


class LifecycleService:
    """
    Public mutation API for persisted documents.

    Usage:
        service = LifecycleService(session_factory, registry, verifier)
        result = service.create(reception_id, DocumentKind.PAYABLE,
                                Money.of("1000.00", "GTQ"))
        service.decide(result.document.id, finance_id, ApprovalAction.APPROVE)
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        actor_registry: ActorRegistry,
        evidence_verifier: EvidenceVerifier,
        *,
        engine: LifecycleEngine | None = None,
        clock: Clock | None = None,
        invoice_issuer: InvoiceNumberIssuer | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ):
        if max_retries < 0:
            raise ValueError("max_retries must not be negative")
        self._session_factory = session_factory
        self._actor_registry = actor_registry
        self._evidence_verifier = evidence_verifier
        self._clock = clock or SystemClock()
        self._engine = engine or LifecycleEngine(clock=self._clock)
        self._invoice_issuer = invoice_issuer
        self._max_retries = max_retries
        self._locks = _DocumentLocks()
        register_immutability_listeners()

    # ------------------------------------------------------------------
    # Command API
    # ------------------------------------------------------------------

    def create(
        self,
        actor_id: UUID,
        kind: DocumentKind,
        principal_amount: Money | None = None,
        *,
        net_amount: Money | None = None,
        tax_rate: Decimal | None = None,
        counterparty: str = "",
        description: str = "",
        external_reference: str | None = None,
        due_date: date | None = None,
        document_id: UUID | None = None,
    ) -> LifecycleResult:
        return self.execute(
            CreateDocument(
                kind=kind,
                principal_amount=principal_amount,
                net_amount=net_amount,
                tax_rate=tax_rate,
                counterparty=counterparty,
                description=description,
                external_reference=external_reference,
                due_date=due_date,
                document_id=document_id,
            ),
            actor_id,
        )

    def decide(
        self,
        document_id: UUID,
        actor_id: UUID,
        action: ApprovalAction,
        notes: str | None = None,
    ) -> LifecycleResult:
        return self.execute(DecideDocument(action=action, notes=notes), actor_id, document_id)

    def approve(
        self, document_id: UUID, actor_id: UUID, notes: str | None = None
    ) -> LifecycleResult:
        return self.decide(document_id, actor_id, ApprovalAction.APPROVE, notes)

    def reject(self, document_id: UUID, actor_id: UUID, notes: str | None) -> LifecycleResult:
        return self.decide(document_id, actor_id, ApprovalAction.REJECT, notes)

    def register_payment(
        self,
        document_id: UUID,
        actor_id: UUID,
        amount: Money,
        method: PaymentMethod | str,
        reference: str,
        evidence_id: str,
        paid_on: date | None = None,
        notes: str | None = None,
    ) -> LifecycleResult:
        return self.execute(
            RegisterPayment(
                amount=amount,
                method=method,
                reference=reference,
                evidence=EvidenceRef.unverified(evidence_id),
                paid_on=paid_on,
                notes=notes,
            ),
            actor_id,
            document_id,
        )

    def review_voucher(
        self,
        document_id: UUID,
        actor_id: UUID,
        payment_id: UUID,
        action: ApprovalAction,
        reason: str | None = None,
    ) -> LifecycleResult:
        return self.execute(
            ReviewVoucher(payment_id=payment_id, action=action, reason=reason),
            actor_id,
            document_id,
        )

    def emit_invoice(self, document_id: UUID, actor_id: UUID) -> LifecycleResult:
        return self.execute(EmitInvoice(), actor_id, document_id)

    def delete(self, document_id: UUID, actor_id: UUID) -> LifecycleResult:
        return self.execute(DeleteDocument(), actor_id, document_id)

    def execute(
        self,
        command: Command,
        actor_id: UUID,
        document_id: UUID | None = None,
    ) -> LifecycleResult:
        """Run one command with logging, serialization and retries."""
        if isinstance(command, CreateDocument):
            if command.document_id is None:
                command = dataclasses.replace(command, document_id=uuid4())
            document_id = command.document_id

        with LogContext.bind(
            correlation_id=str(uuid4()),
            document_id=str(document_id) if document_id else None,
            actor_id=str(actor_id),
            command=command.command_type.value,
        ):
            logger.info("lifecycle_command_started")
            t0 = time.monotonic()
            try:
                result = self._execute(command, actor_id, document_id)
            except Exception:
                logger.error(
                    "lifecycle_command_failed",
                    extra={"duration_ms": round((time.monotonic() - t0) * 1000, 2)},
                    exc_info=True,
                )
                raise

            duration_ms = round((time.monotonic() - t0) * 1000, 2)
            if result.is_success:
                logger.info(
                    "lifecycle_command_completed",
                    extra={
                        "duration_ms": duration_ms,
                        "deleted": result.deleted,
                        "version": result.document.version if result.document else None,
                    },
                )
            else:
                logger.warning(
                    "lifecycle_command_rejected",
                    extra={
                        "duration_ms": duration_ms,
                        "error_code": result.error.code.value,
                        "error_message": result.error.message,
                    },
                )
            return result

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, document_id: UUID) -> Document | None:
        with session_scope(self._session_factory) as session:
            return DocumentRepository(session).get(document_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _execute(
        self,
        command: Command,
        actor_id: UUID,
        document_id: UUID | None,
    ) -> LifecycleResult:
        actor = resolve_actor(self._actor_registry, actor_id)
        if actor is None:
            return LifecycleResult.failure(
                ErrorCode.INSUFFICIENT_ROLE,
                f"Unknown actor {actor_id} has no role",
                actor_id=str(actor_id),
            )
        if document_id is None:
            return LifecycleResult.failure(
                ErrorCode.DOCUMENT_NOT_FOUND,
                "No document id supplied",
            )

        with self._locks.hold(document_id):
            attempts = self._max_retries + 1
            for attempt in range(1, attempts + 1):
                try:
                    return self._attempt(command, actor, document_id)
                except OptimisticLockError:
                    logger.warning(
                        "lifecycle_optimistic_lock_conflict",
                        extra={"attempt": attempt, "max_attempts": attempts},
                    )

        return LifecycleResult.failure(
            ErrorCode.CONCURRENT_MODIFICATION,
            f"Document {document_id} kept changing; gave up after {attempts} attempts",
            document_id=str(document_id),
            attempts=attempts,
        )

    def _attempt(
        self,
        command: Command,
        actor: Actor,
        document_id: UUID,
    ) -> LifecycleResult:
        with session_scope(self._session_factory) as session:
            repository = DocumentRepository(session)

            if isinstance(command, CreateDocument):
                if repository.exists(document_id):
                    return LifecycleResult.failure(
                        ErrorCode.INVALID_DOCUMENT,
                        f"Document {document_id} already exists",
                        document_id=str(document_id),
                    )
                document = None
            else:
                document = repository.get(document_id, for_update=True)
                if document is None:
                    return LifecycleResult.failure(
                        ErrorCode.DOCUMENT_NOT_FOUND,
                        f"Document {document_id} does not exist",
                        document_id=str(document_id),
                    )
                command = self._verify_evidence(command, document)

            result = self._engine.apply(command, actor, document)
            if not result.is_success:
                return result

            return self._persist(session, repository, command, actor, result)

    def _verify_evidence(self, command: Command, document: Document) -> Command:
        if isinstance(command, RegisterPayment):
            return dataclasses.replace(
                command,
                evidence=self._evidence_verifier.verify(command.evidence.evidence_id),
            )
        if isinstance(command, EmitInvoice):
            return dataclasses.replace(
                command,
                reverified_evidence={
                    p.evidence.evidence_id: self._evidence_verifier.verify(
                        p.evidence.evidence_id
                    )
                    for p in document.payments
                },
            )
        return command

    def _persist(
        self,
        session: Session,
        repository: DocumentRepository,
        command: Command,
        actor: Actor,
        result: LifecycleResult,
    ) -> LifecycleResult:
        auditor = AuditorService(session, self._clock)
        document = result.document
        certificate = result.certificate

        if result.deleted:
            repository.delete(document)
            auditor.record_deleted(document, actor)
            return result

        if isinstance(command, EmitInvoice) and self._invoice_issuer is not None:
            number = self._invoice_issuer.issue(session, certificate)
            certificate = dataclasses.replace(certificate, invoice_number=number)
            document = document.evolve(
                invoice_record=dataclasses.replace(
                    document.invoice_record, invoice_number=number
                )
            )

        saved = repository.save(document)

        if isinstance(command, CreateDocument):
            auditor.record_created(saved, actor)
        elif isinstance(command, DecideDocument):
            auditor.record_decision(saved, actor)
        elif isinstance(command, RegisterPayment):
            auditor.record_payment(saved, actor)
        elif isinstance(command, ReviewVoucher):
            auditor.record_voucher_review(saved, actor)
        elif isinstance(command, EmitInvoice):
            auditor.record_invoice(saved, actor)

        return LifecycleResult.success(saved, certificate=certificate)
