"""
Config -> Kernel Bridges.

Functions that convert a ``LifecycleConfig`` into kernel objects.  They
live here (the producer) because the kernel must NEVER import
obligation_config.

Usage:
    from obligation_config.bridges import build_lifecycle_service

    config = get_active_config()
    service = build_lifecycle_service(config, get_session_factory(),
                                      registry, evidence_store)
"""

from __future__ import annotations

from sqlalchemy.orm import Session, sessionmaker

from obligation_config.schema import LifecycleConfig
from obligation_kernel.domain.actors import ActorRegistry, CommandType, Role, RolePolicy
from obligation_kernel.domain.clock import Clock, SystemClock
from obligation_kernel.domain.evidence import EvidencePolicy, EvidenceStore, EvidenceVerifier
from obligation_kernel.domain.lifecycle_engine import LifecycleEngine
from obligation_kernel.selectors.document_selector import DocumentSelector
from obligation_kernel.services.invoice_numbering import SequenceInvoiceNumberIssuer
from obligation_kernel.services.lifecycle_service import LifecycleService


def build_role_policy(config: LifecycleConfig) -> RolePolicy:
    """Commands absent from the config keep their default role sets."""
    return RolePolicy(
        allowed={
            CommandType(command): frozenset(Role(r) for r in roles)
            for command, roles in config.roles.allowed.items()
        }
    )


def build_evidence_policy(config: LifecycleConfig) -> EvidencePolicy:
    return EvidencePolicy(
        accepted_content_types=frozenset(config.evidence.accepted_content_types),
        max_size_bytes=config.evidence.max_size_bytes,
    )


def build_invoice_issuer(
    config: LifecycleConfig,
    clock: Clock | None = None,
) -> SequenceInvoiceNumberIssuer:
    return SequenceInvoiceNumberIssuer(series=config.invoicing.series, clock=clock)


def build_engine(config: LifecycleConfig, clock: Clock | None = None) -> LifecycleEngine:
    return LifecycleEngine(
        role_policy=build_role_policy(config),
        clock=clock,
        default_tax_rate=config.invoicing.tax_rate,
        currency=config.currency,
        require_voucher_review=config.evidence.require_voucher_review,
    )


def build_document_selector(config: LifecycleConfig, session: Session) -> DocumentSelector:
    """Selector whose summaries default to the configured book currency."""
    return DocumentSelector(session, currency=config.currency)


def build_lifecycle_service(
    config: LifecycleConfig,
    session_factory: sessionmaker[Session],
    actor_registry: ActorRegistry,
    evidence_store: EvidenceStore,
    clock: Clock | None = None,
) -> LifecycleService:
    """Wire a fully configured LifecycleService.

    The engine, the invoice issuer and the service share one clock so
    every record written by a command carries the same notion of "now".
    """
    clock = clock or SystemClock()
    return LifecycleService(
        session_factory,
        actor_registry,
        EvidenceVerifier(evidence_store, build_evidence_policy(config)),
        engine=build_engine(config, clock),
        clock=clock,
        invoice_issuer=build_invoice_issuer(config, clock),
        max_retries=config.concurrency.max_retries,
    )
