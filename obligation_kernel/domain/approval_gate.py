"""
ApprovalGate -- the approve/reject decision on a pending document.

Responsibility:
    Validates and applies the one-time approval decision.  A document
    leaves PendingApproval exactly once, to Approved or Rejected, and the
    gate never moves it again.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Called only by
    LifecycleEngine.

Preconditions (checked in order, first failure wins):
    1. actor role in the Decide set        -> INSUFFICIENT_ROLE
    2. approval_state == PendingApproval   -> ALREADY_DECIDED
    3. Reject carries non-empty notes      -> REJECTION_REQUIRES_NOTES
"""

from __future__ import annotations

from obligation_kernel.domain.actors import Actor, CommandType, RolePolicy
from obligation_kernel.domain.clock import Clock
from obligation_kernel.domain.document import (
    ApprovalAction,
    ApprovalRecord,
    ApprovalState,
    Document,
)
from obligation_kernel.domain.results import ErrorCode, LifecycleResult


class ApprovalGate:
    """Applies approve/reject transitions."""

    def __init__(self, role_policy: RolePolicy, clock: Clock):
        self._role_policy = role_policy
        self._clock = clock

    def decide(
        self,
        document: Document,
        actor: Actor,
        action: ApprovalAction,
        notes: str | None = None,
    ) -> LifecycleResult:
        if not self._role_policy.permits(actor, CommandType.DECIDE):
            return LifecycleResult.failure(
                ErrorCode.INSUFFICIENT_ROLE,
                f"Role {actor.role.value} may not approve or reject documents",
                role=actor.role.value,
                document_id=str(document.id),
            )

        if document.approval_state != ApprovalState.PENDING_APPROVAL:
            return LifecycleResult.failure(
                ErrorCode.ALREADY_DECIDED,
                f"Document {document.id} was already {document.approval_state.value}",
                document_id=str(document.id),
                approval_state=document.approval_state.value,
            )

        cleaned_notes = notes.strip() if notes else ""

        if action == ApprovalAction.REJECT and not cleaned_notes:
            return LifecycleResult.failure(
                ErrorCode.REJECTION_REQUIRES_NOTES,
                "A rejection must state its reason",
                document_id=str(document.id),
            )

        record = ApprovalRecord(
            actor_id=actor.actor_id,
            actor_label=actor.label,
            action=action,
            decided_at=self._clock.now(),
            notes=cleaned_notes or None,
        )
        new_state = (
            ApprovalState.APPROVED
            if action == ApprovalAction.APPROVE
            else ApprovalState.REJECTED
        )
        return LifecycleResult.success(
            document.evolve(approval_state=new_state, approval_record=record)
        )
