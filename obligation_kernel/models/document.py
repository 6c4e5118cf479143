"""
Module: obligation_kernel.models.document
Responsibility: ORM persistence for documents, their payment ledger, their
    approval record and the voucher reviews of their payments.
Architecture position: Kernel > Models.  May import from db/base.py only.
    Conversion to and from the frozen domain ``Document`` lives in
    DocumentRepository, not here.

Invariants enforced:
    - ``documents.version`` is the SQLAlchemy version_id_col: every UPDATE
      is conditioned on the version read, so a stale writer fails with
      StaleDataError.
    - ``document_payments`` is append-only (ORM listeners in
      db/immutability.py).  (document_id, sequence) is unique.
    - ``document_approvals`` holds at most one row per document and is
      never updated.
    - ``document_voucher_reviews`` holds at most one row per payment and is
      never updated.

Failure modes:
    - ImmutabilityViolationError on UPDATE of a payment or approval row,
      or DELETE of a payment row.
    - IntegrityError on a duplicate ledger sequence, second approval or
      second review of one voucher.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from obligation_kernel.db.base import Base, UTCDateTime, UUIDString


class DocumentModel(Base):
    """
    One row per document.

    State columns mirror the three domain sub-states.  The optional tax
    breakdown and invoice certification are stored as nullable columns.
    """

    __tablename__ = "documents"

    __table_args__ = (
        Index("idx_document_kind", "kind"),
        Index("idx_document_states", "approval_state", "payment_state", "invoice_state"),
        Index("idx_document_due", "due_date"),
        Index("idx_document_created", "created_at"),
    )

    kind: Mapped[str] = mapped_column(String(30), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    principal_minor_units: Mapped[int] = mapped_column(BigInteger, nullable=False)

    approval_state: Mapped[str] = mapped_column(String(30), nullable=False)
    payment_state: Mapped[str] = mapped_column(String(30), nullable=False)
    invoice_state: Mapped[str] = mapped_column(String(30), nullable=False)

    counterparty: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    description: Mapped[str] = mapped_column(String(4000), nullable=False, default="")
    external_reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Tax breakdown, fixed at creation
    tax_net_minor_units: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    tax_rate: Mapped[Decimal | None] = mapped_column(Numeric(9, 6), nullable=True)
    tax_minor_units: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    created_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    # Invoice certification, set once by the invoice gate
    invoice_certified_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    invoice_certified_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    certificate_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    invoice_number: Mapped[str | None] = mapped_column(
        String(50), nullable=True, unique=True
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    payments: Mapped[list["PaymentModel"]] = relationship(
        back_populates="document",
        order_by="PaymentModel.sequence",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    approval: Mapped[Optional["ApprovalModel"]] = relationship(
        back_populates="document",
        cascade="all, delete-orphan",
        uselist=False,
        lazy="selectin",
    )

    voucher_reviews: Mapped[list["VoucherReviewModel"]] = relationship(
        back_populates="document",
        order_by="VoucherReviewModel.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<Document {self.id} {self.kind} "
            f"{self.approval_state}/{self.payment_state}/{self.invoice_state} v{self.version}>"
        )


class PaymentModel(Base):
    """One ledger entry.  Append-only: never updated, never deleted."""

    __tablename__ = "document_payments"

    __table_args__ = (
        UniqueConstraint("document_id", "sequence", name="uq_payment_document_sequence"),
        Index("idx_payment_document", "document_id"),
        Index("idx_payment_registered", "registered_at"),
    )

    document_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    amount_minor_units: Mapped[int] = mapped_column(BigInteger, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    method: Mapped[str] = mapped_column(String(30), nullable=False)
    reference: Mapped[str] = mapped_column(String(255), nullable=False)

    evidence_id: Mapped[str] = mapped_column(String(255), nullable=False)
    evidence_content_type: Mapped[str] = mapped_column(String(100), nullable=False)
    evidence_size_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False)
    evidence_valid: Mapped[bool] = mapped_column(Boolean, nullable=False)

    registered_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    registered_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    paid_on: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    document: Mapped[DocumentModel] = relationship(back_populates="payments")

    def __repr__(self) -> str:
        return f"<Payment #{self.sequence} {self.amount_minor_units} {self.currency}>"


class ApprovalModel(Base):
    """The single approve/reject decision on a document."""

    __tablename__ = "document_approvals"

    document_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    actor_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    actor_label: Mapped[str] = mapped_column(String(255), nullable=False)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    decided_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    notes: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    document: Mapped[DocumentModel] = relationship(back_populates="approval")

    def __repr__(self) -> str:
        return f"<Approval {self.action} on {self.document_id}>"


class VoucherReviewModel(Base):
    """The single approve/reject review of one payment's voucher."""

    __tablename__ = "document_voucher_reviews"

    __table_args__ = (
        UniqueConstraint("document_id", "position", name="uq_voucher_review_position"),
        Index("idx_voucher_review_document", "document_id"),
    )

    document_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
    )
    payment_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("document_payments.id"),
        nullable=False,
        unique=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    reviewed_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    reviewer_label: Mapped[str] = mapped_column(String(255), nullable=False)
    reviewed_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    reason: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    document: Mapped[DocumentModel] = relationship(back_populates="voucher_reviews")

    def __repr__(self) -> str:
        return f"<VoucherReview {self.status} on payment {self.payment_id}>"
