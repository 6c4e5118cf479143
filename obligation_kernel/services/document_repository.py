"""
DocumentRepository -- SQL persistence for the frozen domain Document.

Responsibility:
    Writes ``Document`` to the ``documents``, ``document_payments``,
    ``document_approvals`` and ``document_voucher_reviews`` rows and reads
    it back.  The only code that writes those tables.

Architecture position:
    Kernel > Services -- imperative shell.  Used by LifecycleService inside
    its per-command transaction.  Filtered listing is delegated to
    DocumentSelector so reads go through one query path.

Invariants enforced:
    - Optimistic concurrency: ``save`` refuses a document whose ``version``
      differs from the stored row, and the UPDATE itself is conditioned on
      the version (SQLAlchemy version_id_col).  Every save of an existing
      document emits that UPDATE, even when only ledger rows were added.
    - Append-only ledger: ``save`` only ever inserts payment rows past the
      stored ledger length; it never touches existing ones.
    - The approval row is inserted once and never rewritten.
    - Voucher reviews are appended like ledger entries, never rewritten.

Failure modes:
    - OptimisticLockError on a stale version or a shorter ledger than stored.
    - DocumentNotFoundError from ``require`` and ``delete``.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.orm.exc import StaleDataError

from obligation_kernel.domain.document import Document
from obligation_kernel.domain.filters import DocumentFilter
from obligation_kernel.exceptions import DocumentNotFoundError, OptimisticLockError
from obligation_kernel.logging_config import get_logger
from obligation_kernel.models.document import DocumentModel
from obligation_kernel.models.mapping import (
    approval_model_from_record,
    document_from_model,
    model_from_document,
    payment_model_from_record,
    voucher_review_model_from_record,
    write_state,
)
from obligation_kernel.selectors.document_selector import DocumentSelector

logger = get_logger("services.document_repository")


class DocumentRepository:
    """
    Repository over the document tables.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.
        - Does NOT apply business rules; it stores what the engine produced.
    """

    def __init__(self, session: Session):
        self._session = session

    def _load(self, document_id: UUID, for_update: bool = False) -> DocumentModel | None:
        stmt = (
            select(DocumentModel)
            .where(DocumentModel.id == document_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self._session.execute(stmt).scalar_one_or_none()

    def get(self, document_id: UUID, for_update: bool = False) -> Document | None:
        """
        Fetch a document, or None.

        ``for_update`` takes a row lock held until the transaction ends.
        """
        model = self._load(document_id, for_update=for_update)
        return document_from_model(model) if model is not None else None

    def require(self, document_id: UUID, for_update: bool = False) -> Document:
        document = self.get(document_id, for_update=for_update)
        if document is None:
            raise DocumentNotFoundError(str(document_id))
        return document

    def exists(self, document_id: UUID) -> bool:
        return self._session.execute(
            select(DocumentModel.id).where(DocumentModel.id == document_id)
        ).first() is not None

    def save(self, document: Document) -> Document:
        """
        Insert or update a document and append its new ledger entries.

        Returns the document carrying the version now stored.

        Raises:
            OptimisticLockError: The stored row has moved on since
                ``document`` was read.
        """
        model = self._load(document.id)

        if model is None:
            if document.version != 0:
                raise OptimisticLockError("Document", str(document.id))
            model = model_from_document(document)
            self._session.add(model)
        else:
            if model.version != document.version:
                logger.warning(
                    "document_version_conflict",
                    extra={
                        "document_id": str(document.id),
                        "stored_version": model.version,
                        "expected_version": document.version,
                    },
                )
                raise OptimisticLockError("Document", str(document.id))
            write_state(model, document)
            # Force the versioned UPDATE even when only child rows change.
            flag_modified(model, "payment_state")

        stored = len(model.payments)
        if stored > len(document.payments):
            raise OptimisticLockError("Document", str(document.id))
        for payment in document.payments[stored:]:
            model.payments.append(payment_model_from_record(payment))

        if document.approval_record is not None and model.approval is None:
            model.approval = approval_model_from_record(document.approval_record)

        reviewed = len(model.voucher_reviews)
        if reviewed > len(document.voucher_reviews):
            raise OptimisticLockError("Document", str(document.id))
        new_reviews = document.voucher_reviews[reviewed:]
        for position, review in enumerate(new_reviews, start=reviewed + 1):
            model.voucher_reviews.append(voucher_review_model_from_record(review, position))

        try:
            self._session.flush()
        except StaleDataError as exc:
            raise OptimisticLockError("Document", str(document.id)) from exc

        return document.evolve(version=model.version)

    def delete(self, document: Document) -> None:
        """Delete a document and its approval row (version-checked)."""
        model = self._load(document.id)
        if model is None:
            raise DocumentNotFoundError(str(document.id))
        if model.version != document.version:
            raise OptimisticLockError("Document", str(document.id))
        self._session.delete(model)
        try:
            self._session.flush()
        except StaleDataError as exc:
            raise OptimisticLockError("Document", str(document.id)) from exc

    def list_by_filter(self, criteria: DocumentFilter | None = None) -> list[Document]:
        return DocumentSelector(self._session).list_by_filter(criteria)
