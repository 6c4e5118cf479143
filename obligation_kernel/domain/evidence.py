"""
Payment evidence (``obligation_kernel.domain.evidence``).

Responsibility
--------------
Models proof-of-payment vouchers as opaque references.  Byte storage lives
in an external ``EvidenceStore``; the kernel only ever reasons about the
metadata the store reports and whether it satisfies ``EvidencePolicy``.

Architecture position
---------------------
**Kernel domain layer**.  ``EvidenceVerifier`` calls the store protocol and
is used by the service layer *before* the pure engine runs, so the gates
receive already-verified ``EvidenceRef`` values.

A voucher is also reviewed by a person.  ``VoucherReview`` records that
one-time decision on a ledger entry; a voucher with no review is pending.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Protocol
from uuid import UUID

DEFAULT_ACCEPTED_CONTENT_TYPES: frozenset[str] = frozenset({
    "image/jpeg",
    "image/jpg",
    "image/png",
    "application/pdf",
})

DEFAULT_MAX_SIZE_BYTES = 5 * 1024 * 1024


@dataclass(frozen=True)
class EvidenceMetadata:
    """What the evidence store knows about one stored artifact."""

    evidence_id: str
    content_type: str
    size_bytes: int
    exists: bool = True


@dataclass(frozen=True)
class EvidencePolicy:
    """Accepted content types and size ceiling for payment vouchers."""

    accepted_content_types: frozenset[str] = field(
        default_factory=lambda: DEFAULT_ACCEPTED_CONTENT_TYPES
    )
    max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES

    def __post_init__(self) -> None:
        if self.max_size_bytes <= 0:
            raise ValueError("max_size_bytes must be positive")
        object.__setattr__(
            self,
            "accepted_content_types",
            frozenset(ct.lower().strip() for ct in self.accepted_content_types),
        )

    def accepts(self, metadata: EvidenceMetadata | None) -> bool:
        if metadata is None or not metadata.exists:
            return False
        if metadata.content_type.lower().strip() not in self.accepted_content_types:
            return False
        return 0 < metadata.size_bytes <= self.max_size_bytes


@dataclass(frozen=True)
class EvidenceRef:
    """
    Reference to a stored voucher plus the result of validating it.

    ``is_valid`` is the boolean contract the gates rely on; it is only ever
    set by ``EvidenceVerifier`` (or restored from persistence).
    """

    evidence_id: str
    content_type: str = ""
    size_bytes: int = 0
    is_valid: bool = False

    @classmethod
    def unverified(cls, evidence_id: str) -> EvidenceRef:
        return cls(evidence_id=evidence_id)


class EvidenceStore(Protocol):
    """External storage for uploaded vouchers."""

    def validate(self, evidence_id: str) -> EvidenceMetadata | None:
        """Return stored metadata, or None when nothing is stored under the id."""
        ...


class InMemoryEvidenceStore:
    """Dict-backed EvidenceStore."""

    def __init__(self) -> None:
        self._items: dict[str, EvidenceMetadata] = {}

    def put(self, evidence_id: str, content_type: str, size_bytes: int) -> EvidenceMetadata:
        metadata = EvidenceMetadata(
            evidence_id=evidence_id,
            content_type=content_type,
            size_bytes=size_bytes,
        )
        self._items[evidence_id] = metadata
        return metadata

    def remove(self, evidence_id: str) -> None:
        self._items.pop(evidence_id, None)

    def validate(self, evidence_id: str) -> EvidenceMetadata | None:
        return self._items.get(evidence_id)


class EvidenceVerifier:
    """Turns an evidence id into a verified ``EvidenceRef``."""

    def __init__(self, store: EvidenceStore, policy: EvidencePolicy | None = None):
        self._store = store
        self._policy = policy or EvidencePolicy()

    @property
    def policy(self) -> EvidencePolicy:
        return self._policy

    def verify(self, evidence_id: str) -> EvidenceRef:
        if not evidence_id or not evidence_id.strip():
            return EvidenceRef.unverified(evidence_id or "")
        metadata = self._store.validate(evidence_id)
        if metadata is None:
            return EvidenceRef.unverified(evidence_id)
        return EvidenceRef(
            evidence_id=evidence_id,
            content_type=metadata.content_type,
            size_bytes=metadata.size_bytes,
            is_valid=self._policy.accepts(metadata),
        )


class VoucherStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class VoucherReview:
    """The single review decision on one payment's voucher. Immutable.

    ``reason`` is mandatory for a rejection.
    """

    payment_id: UUID
    status: VoucherStatus
    reviewed_by: UUID
    reviewer_label: str
    reviewed_at: datetime
    reason: str | None = None
