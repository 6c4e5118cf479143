"""
Module: obligation_kernel.selectors.base
Responsibility: Base class for read-only query selectors, the query side of
    the kernel.
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    domain value types.  MUST NOT import from services/.

Invariants enforced:
    - Read-only access: selectors MUST NOT call session.add(),
      session.delete(), session.commit() or session.flush().
    - DTO return convention: selectors return domain objects or frozen
      dataclasses, never ORM instances.
    - Session ownership: the caller owns the session and its transaction.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseSelector(ABC):
    """Holds the caller's session for subclass queries."""

    def __init__(self, session: Session):
        self.session = session
