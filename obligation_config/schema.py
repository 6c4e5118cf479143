"""
LifecycleConfig schema.

The human-authored configuration for the document lifecycle, parsed from
YAML by the loader and validated before use.  Everything here is plain
frozen data; bridges.py turns it into kernel policy objects.

Only the configurable surface lives here.  The document invariants and the
gate precondition order are structural and cannot be configured.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RolePolicyDef:
    """Allowed role names per command name (``create``, ``decide``, ...)."""

    allowed: dict[str, tuple[str, ...]] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Evidence
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EvidencePolicyDef:
    accepted_content_types: tuple[str, ...]
    max_size_bytes: int
    require_voucher_review: bool = False


# ---------------------------------------------------------------------------
# Concurrency and invoicing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ConcurrencyDef:
    """How many times a command is retried after an optimistic-lock conflict."""

    max_retries: int = 3


@dataclass(frozen=True)
class InvoicingDef:
    series: str = "FAC"
    tax_rate: Decimal = Decimal("0.12")


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LifecycleConfig:
    """
    Complete lifecycle configuration.

    ``checksum`` is the SHA-256 of the canonical JSON of the source YAML
    data, so two configs with the same checksum govern identically.
    """

    config_id: str
    version: int
    currency: str
    roles: RolePolicyDef
    evidence: EvidencePolicyDef
    concurrency: ConcurrencyDef
    invoicing: InvoicingDef
    checksum: str = ""
    description: str = ""
