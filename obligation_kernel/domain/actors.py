"""
Actor and role types (``obligation_kernel.domain.actors``).

Responsibility
--------------
Defines who may issue lifecycle commands.  ``RolePolicy`` is the single
authorization predicate for the engine: each command has one allowed-role
set, evaluated once per command before any state precondition.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  Role lookup is
delegated to the ``ActorRegistry`` protocol, implemented outside the
domain (``InMemoryActorRegistry`` here is a plain dict for tests and
local use).

Invariants enforced
-------------------
* Separation of duties -- the decision set is fixed at Finance, Board and
  SuperAdmin.  Reception may create documents but never decide them.
  ``RolePolicy`` refuses any override of ``DECIDE`` that differs from
  that set.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol
from uuid import UUID


class Role(str, Enum):
    """Organizational roles known to the console."""

    RECEPTION = "reception"
    FINANCE = "finance"
    BOARD = "board"
    SUPER_ADMIN = "super_admin"
    DOCTOR = "doctor"
    MEMBER = "member"


class CommandType(str, Enum):
    """Lifecycle commands subject to role authorization."""

    CREATE = "create"
    DECIDE = "decide"
    REGISTER_PAYMENT = "register_payment"
    EMIT_INVOICE = "emit_invoice"
    REVIEW_VOUCHER = "review_voucher"
    DELETE = "delete"


@dataclass(frozen=True)
class Actor:
    """A resolved caller: identity plus role."""

    actor_id: UUID
    role: Role
    display_name: str = ""

    @property
    def label(self) -> str:
        """Display identity for records, e.g. ``"Ana Lopez (finance)"``."""
        name = self.display_name or str(self.actor_id)
        return f"{name} ({self.role.value})"


DEFAULT_ALLOWED_ROLES: dict[CommandType, frozenset[Role]] = {
    CommandType.CREATE: frozenset({Role.RECEPTION, Role.FINANCE, Role.SUPER_ADMIN}),
    CommandType.DECIDE: frozenset({Role.FINANCE, Role.BOARD, Role.SUPER_ADMIN}),
    CommandType.REGISTER_PAYMENT: frozenset({Role.RECEPTION, Role.FINANCE, Role.SUPER_ADMIN}),
    CommandType.EMIT_INVOICE: frozenset({Role.RECEPTION, Role.FINANCE, Role.SUPER_ADMIN}),
    CommandType.REVIEW_VOUCHER: frozenset({Role.FINANCE, Role.SUPER_ADMIN}),
    CommandType.DELETE: frozenset({Role.RECEPTION, Role.FINANCE, Role.SUPER_ADMIN}),
}


@dataclass(frozen=True)
class RolePolicy:
    """Allowed-role set per command.

    Missing commands fall back to ``DEFAULT_ALLOWED_ROLES``.  ``DECIDE`` is
    not configurable: an override must equal the default set.
    """

    allowed: dict[CommandType, frozenset[Role]] = field(
        default_factory=lambda: dict(DEFAULT_ALLOWED_ROLES)
    )

    def __post_init__(self) -> None:
        merged = dict(DEFAULT_ALLOWED_ROLES)
        merged.update(self.allowed)
        decide = frozenset(merged[CommandType.DECIDE])
        if decide != DEFAULT_ALLOWED_ROLES[CommandType.DECIDE]:
            raise ValueError(
                "Approval authority is fixed to finance, board and super_admin; "
                f"got {sorted(r.value for r in decide)}"
            )
        object.__setattr__(self, "allowed", merged)

    def roles_for(self, command: CommandType) -> frozenset[Role]:
        return self.allowed[command]

    def permits(self, actor: Actor, command: CommandType) -> bool:
        return actor.role in self.allowed[command]


class ActorRegistry(Protocol):
    """Pluggable interface for resolving callers to roles."""

    def resolve_role(self, actor_id: UUID) -> Role | None:
        """Return the actor's role, or None if the actor is unknown."""
        ...

    def display_name(self, actor_id: UUID) -> str:
        """Return a human-readable identity for records."""
        ...


class InMemoryActorRegistry:
    """Dict-backed ActorRegistry."""

    def __init__(self) -> None:
        self._actors: dict[UUID, Actor] = {}

    def register(self, actor_id: UUID, role: Role, display_name: str = "") -> Actor:
        actor = Actor(actor_id=actor_id, role=role, display_name=display_name)
        self._actors[actor_id] = actor
        return actor

    def resolve_role(self, actor_id: UUID) -> Role | None:
        actor = self._actors.get(actor_id)
        return actor.role if actor else None

    def display_name(self, actor_id: UUID) -> str:
        actor = self._actors.get(actor_id)
        return actor.display_name if actor else ""


def resolve_actor(registry: ActorRegistry, actor_id: UUID) -> Actor | None:
    """Build an ``Actor`` from a registry lookup; None if unknown."""
    role = registry.resolve_role(actor_id)
    if role is None:
        return None
    return Actor(
        actor_id=actor_id,
        role=role,
        display_name=registry.display_name(actor_id),
    )
