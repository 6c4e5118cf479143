"""
Module: obligation_kernel.models.audit_event
Responsibility: ORM persistence for the tamper-evident document audit chain.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Audit records are append-only; no UPDATE or DELETE (ORM listeners).
    - hash = H(entity_type | entity_id | action | payload_hash | prev_hash),
      validated by AuditorService.
    - seq is monotonically increasing, allocated by SequenceService.

Audit events carry no foreign key to ``documents``: the trail of a deleted
document outlives it.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import JSON, BigInteger, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from obligation_kernel.db.base import Base, UTCDateTime, UUIDString


class AuditAction(str, Enum):
    """One member per successful lifecycle command outcome."""

    DOCUMENT_CREATED = "document_created"
    DOCUMENT_APPROVED = "document_approved"
    DOCUMENT_REJECTED = "document_rejected"
    PAYMENT_REGISTERED = "payment_registered"
    VOUCHER_APPROVED = "voucher_approved"
    VOUCHER_REJECTED = "voucher_rejected"
    INVOICE_EMITTED = "invoice_emitted"
    DOCUMENT_DELETED = "document_deleted"


class DocumentAuditEvent(Base):
    """
    Audit event with hash chain for tamper evidence.

    Guarantees:
        - seq is unique and monotonically increasing.
        - prev_hash is None only for the genesis event.

    Non-goals:
        - Does NOT compute hashes at INSERT time; AuditorService does.
    """

    __tablename__ = "document_audit_events"

    __table_args__ = (
        Index("idx_doc_audit_entity", "entity_type", "entity_id"),
        Index("idx_doc_audit_action", "action"),
        Index("idx_doc_audit_seq", "seq"),
    )

    seq: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    actor_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    payload: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    payload_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    prev_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    hash: Mapped[str] = mapped_column(String(64), nullable=False)

    def __repr__(self) -> str:
        return f"<DocumentAuditEvent #{self.seq} {self.action} on {self.entity_id}>"

    @property
    def is_genesis(self) -> bool:
        return self.prev_hash is None
