"""
Typed exception hierarchy for the obligation kernel.

Business-rule refusals are NOT exceptions: the gates return
``LifecycleResult`` values carrying a ``LifecycleError``.  The classes below
cover what is genuinely exceptional -- storage conflicts, tampering,
programming errors -- plus ``LifecycleRejectedError`` for callers that opt
into exceptions via ``LifecycleResult.unwrap()``.

Every class has a class-level ``code`` so callers catch by type and report
by code, never by parsing messages.

    ObligationKernelError (base)
    |
    +-- LifecycleRejectedError
    |
    +-- DocumentError
    |   +-- DocumentNotFoundError
    |   +-- InvariantViolationError
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- AuditError
    |   +-- AuditChainBrokenError
    |
    +-- ConfigurationError
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from obligation_kernel.domain.results import LifecycleError


class ObligationKernelError(Exception):
    """
    Base exception for all obligation kernel errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    identification.
    """

    code: str = "OBLIGATION_KERNEL_ERROR"


class LifecycleRejectedError(ObligationKernelError):
    """A lifecycle command was refused; wraps the ``LifecycleError``."""

    code: str = "LIFECYCLE_REJECTED"

    def __init__(self, error: LifecycleError):
        self.error = error
        self.error_code = error.code.value
        self.details: dict[str, Any] = dict(error.details or {})
        super().__init__(f"{error.code.value}: {error.message}")


# Document-related exceptions


class DocumentError(ObligationKernelError):
    code: str = "DOCUMENT_ERROR"


class DocumentNotFoundError(DocumentError):
    """Document with given ID does not exist."""

    code: str = "DOCUMENT_NOT_FOUND"

    def __init__(self, document_id: str):
        self.document_id = document_id
        super().__init__(f"Document not found: {document_id}")


class InvariantViolationError(DocumentError):
    """
    A transition produced a document that breaks a document invariant.

    Never expected in correct operation; raised by the engine after a
    gate returns success, before anything is persisted.
    """

    code: str = "INVARIANT_VIOLATION"

    def __init__(self, document_id: str, invariants: list[str]):
        self.document_id = document_id
        self.invariants = invariants
        super().__init__(
            f"Document {document_id} violates invariants: {', '.join(invariants)}"
        )


# Concurrency-related exceptions


class ConcurrencyError(ObligationKernelError):
    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )


# Immutability-related exceptions


class ImmutabilityError(ObligationKernelError):
    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an immutable record.

    Payment ledger rows, approval records and audit events are write-once.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Audit-related exceptions


class AuditError(ObligationKernelError):
    code: str = "AUDIT_ERROR"


class AuditChainBrokenError(AuditError):
    """Audit hash chain validation failed."""

    code: str = "AUDIT_CHAIN_BROKEN"

    def __init__(self, audit_event_id: str, expected_hash: str, actual_hash: str):
        self.audit_event_id = audit_event_id
        self.expected_hash = expected_hash
        self.actual_hash = actual_hash
        super().__init__(
            f"Audit chain broken at {audit_event_id}: "
            f"expected {expected_hash}, found {actual_hash}"
        )


# Configuration


class ConfigurationError(ObligationKernelError):
    """Lifecycle configuration failed to load or validate."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, message: str, errors: list[str] | None = None):
        self.errors = errors or []
        super().__init__(message)
