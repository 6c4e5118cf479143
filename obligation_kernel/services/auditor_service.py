"""
AuditorService -- tamper-evident audit trail for the document lifecycle.

Responsibility:
    Appends one hash-chained audit event per successful lifecycle command
    and provides chain validation and per-document trails.

Architecture position:
    Kernel > Services -- imperative shell, called by LifecycleService in
    the same transaction as the document write.

Invariants enforced:
    - Sequence monotonicity via SequenceService (locked counter row).
    - Chain integrity: ``hash = H(entity_type | entity_id | action |
      payload_hash | prev_hash)``; every event links to its predecessor.
    - Append-only: DocumentAuditEvent rows are protected by ORM listeners.

Failure modes:
    - AuditChainBrokenError: a recomputed hash does not match the stored
      one, or a prev_hash does not match its predecessor.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from obligation_kernel.domain.actors import Actor
from obligation_kernel.domain.clock import Clock, SystemClock
from obligation_kernel.domain.document import ApprovalState, Document
from obligation_kernel.domain.evidence import VoucherStatus
from obligation_kernel.exceptions import AuditChainBrokenError
from obligation_kernel.logging_config import get_logger
from obligation_kernel.models.audit_event import AuditAction, DocumentAuditEvent
from obligation_kernel.services.sequence_service import SequenceService
from obligation_kernel.utils.hashing import hash_audit_event, hash_payload

logger = get_logger("services.auditor")

ENTITY_TYPE = "Document"


@dataclass(frozen=True)
class AuditTrailEntry:
    """A single entry in a document's audit trail."""

    seq: int
    action: AuditAction
    occurred_at: datetime
    actor_id: UUID
    payload: dict[str, Any]
    hash: str


@dataclass(frozen=True)
class AuditTrail:
    """All audit events for one document in chronological order."""

    document_id: UUID
    entries: tuple[AuditTrailEntry, ...]

    @property
    def is_empty(self) -> bool:
        return len(self.entries) == 0

    @property
    def actions(self) -> tuple[AuditAction, ...]:
        return tuple(e.action for e in self.entries)

    @property
    def last_action(self) -> AuditAction | None:
        return self.entries[-1].action if self.entries else None


class AuditorService:
    """
    Creates and validates hash-chained audit events.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()
        self._sequence_service = SequenceService(session)

    def _get_last_hash(self) -> str | None:
        last_event = self._session.execute(
            select(DocumentAuditEvent)
            .order_by(DocumentAuditEvent.seq.desc())
            .limit(1)
        ).scalar_one_or_none()
        return last_event.hash if last_event else None

    def _create_audit_event(
        self,
        entity_id: UUID,
        action: AuditAction,
        actor_id: UUID,
        payload: dict[str, Any],
    ) -> DocumentAuditEvent:
        # The counter lock serializes chain appends across transactions.
        seq = self._sequence_service.next_value(SequenceService.AUDIT_EVENT)
        prev_hash = self._get_last_hash()

        payload_hash = hash_payload(payload)
        event_hash = hash_audit_event(
            entity_type=ENTITY_TYPE,
            entity_id=str(entity_id),
            action=action.value,
            payload_hash=payload_hash,
            prev_hash=prev_hash,
        )

        audit_event = DocumentAuditEvent(
            seq=seq,
            entity_type=ENTITY_TYPE,
            entity_id=entity_id,
            action=action.value,
            actor_id=actor_id,
            occurred_at=self._clock.now(),
            payload=payload,
            payload_hash=payload_hash,
            prev_hash=prev_hash,
            hash=event_hash,
        )
        self._session.add(audit_event)
        self._session.flush()

        logger.info(
            "audit_event_created",
            extra={
                "entity_id": str(entity_id),
                "action": action.value,
                "seq": seq,
            },
        )
        return audit_event

    # Domain-specific recording methods

    def record_created(self, document: Document, actor: Actor) -> DocumentAuditEvent:
        return self._create_audit_event(
            document.id,
            AuditAction.DOCUMENT_CREATED,
            actor.actor_id,
            {
                "kind": document.kind.value,
                "principal_minor_units": document.principal_amount.minor_units,
                "currency": document.currency.code,
                "counterparty": document.counterparty,
            },
        )

    def record_decision(self, document: Document, actor: Actor) -> DocumentAuditEvent:
        record = document.approval_record
        action = (
            AuditAction.DOCUMENT_APPROVED
            if document.approval_state == ApprovalState.APPROVED
            else AuditAction.DOCUMENT_REJECTED
        )
        return self._create_audit_event(
            document.id,
            action,
            actor.actor_id,
            {
                "actor_label": record.actor_label if record else actor.label,
                "notes": record.notes if record else None,
            },
        )

    def record_payment(self, document: Document, actor: Actor) -> DocumentAuditEvent:
        payment = document.payments[-1]
        return self._create_audit_event(
            document.id,
            AuditAction.PAYMENT_REGISTERED,
            actor.actor_id,
            {
                "payment_id": str(payment.payment_id),
                "sequence": payment.sequence,
                "amount_minor_units": payment.amount.minor_units,
                "method": payment.method.value,
                "reference": payment.reference,
                "evidence_id": payment.evidence.evidence_id,
                "payment_state": document.payment_state.value,
            },
        )

    def record_voucher_review(self, document: Document, actor: Actor) -> DocumentAuditEvent:
        review = document.voucher_reviews[-1]
        action = (
            AuditAction.VOUCHER_APPROVED
            if review.status == VoucherStatus.APPROVED
            else AuditAction.VOUCHER_REJECTED
        )
        return self._create_audit_event(
            document.id,
            action,
            actor.actor_id,
            {
                "payment_id": str(review.payment_id),
                "reviewer_label": review.reviewer_label,
                "reason": review.reason,
            },
        )

    def record_invoice(self, document: Document, actor: Actor) -> DocumentAuditEvent:
        record = document.invoice_record
        return self._create_audit_event(
            document.id,
            AuditAction.INVOICE_EMITTED,
            actor.actor_id,
            {
                "certificate_hash": record.certificate_hash if record else None,
                "invoice_number": record.invoice_number if record else None,
            },
        )

    def record_deleted(self, document: Document, actor: Actor) -> DocumentAuditEvent:
        return self._create_audit_event(
            document.id,
            AuditAction.DOCUMENT_DELETED,
            actor.actor_id,
            {
                "approval_state": document.approval_state.value,
                "principal_minor_units": document.principal_amount.minor_units,
            },
        )

    # Validation and queries

    def validate_chain(self) -> bool:
        """
        Validate the entire audit chain.

        Raises:
            AuditChainBrokenError: At the first event whose hashes do not
                recompute or link.
        """
        events = self._session.execute(
            select(DocumentAuditEvent).order_by(DocumentAuditEvent.seq)
        ).scalars().all()

        prev: DocumentAuditEvent | None = None
        for event in events:
            expected_prev = prev.hash if prev is not None else None
            if event.prev_hash != expected_prev:
                logger.critical("audit_chain_broken", extra={"seq": event.seq})
                raise AuditChainBrokenError(
                    str(event.id), str(expected_prev), str(event.prev_hash)
                )

            expected_payload_hash = hash_payload(event.payload or {})
            if event.payload_hash != expected_payload_hash:
                logger.critical("audit_chain_broken", extra={"seq": event.seq})
                raise AuditChainBrokenError(
                    str(event.id), expected_payload_hash, event.payload_hash
                )

            expected_hash = hash_audit_event(
                entity_type=event.entity_type,
                entity_id=str(event.entity_id),
                action=event.action,
                payload_hash=event.payload_hash,
                prev_hash=event.prev_hash,
            )
            if event.hash != expected_hash:
                logger.critical("audit_chain_broken", extra={"seq": event.seq})
                raise AuditChainBrokenError(str(event.id), expected_hash, event.hash)
            prev = event

        logger.info("audit_chain_valid", extra={"event_count": len(events)})
        return True

    def trail(self, document_id: UUID) -> AuditTrail:
        events = self._session.execute(
            select(DocumentAuditEvent)
            .where(
                DocumentAuditEvent.entity_type == ENTITY_TYPE,
                DocumentAuditEvent.entity_id == document_id,
            )
            .order_by(DocumentAuditEvent.seq)
        ).scalars().all()

        return AuditTrail(
            document_id=document_id,
            entries=tuple(
                AuditTrailEntry(
                    seq=e.seq,
                    action=AuditAction(e.action),
                    occurred_at=e.occurred_at,
                    actor_id=e.actor_id,
                    payload=e.payload or {},
                    hash=e.hash,
                )
                for e in events
            ),
        )
