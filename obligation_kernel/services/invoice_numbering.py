"""
Invoice numbering -- the formal-number authority behind the invoice gate.

The InvoiceGate only certifies eligibility.  The number printed on the
invoice comes from an ``InvoiceNumberIssuer``; the default issues
``<series>-<year>-<seq:06d>`` from a locked counter row in the same
transaction as the invoice flip, so a rolled-back emission consumes no
number and two emissions never share one.
"""

from typing import Protocol

from sqlalchemy.orm import Session

from obligation_kernel.domain.clock import Clock, SystemClock
from obligation_kernel.domain.results import InvoiceCertificate
from obligation_kernel.logging_config import get_logger
from obligation_kernel.services.sequence_service import SequenceService

logger = get_logger("services.invoice_numbering")

DEFAULT_SERIES = "FAC"


class InvoiceNumberIssuer(Protocol):
    """Assigns the formal number for a certified invoice."""

    def issue(self, session: Session, certificate: InvoiceCertificate) -> str:
        ...


class SequenceInvoiceNumberIssuer:
    """Per-series, per-year gapless numbering from SequenceService."""

    def __init__(self, series: str = DEFAULT_SERIES, clock: Clock | None = None):
        series = series.strip().upper()
        if not series:
            raise ValueError("invoice series must not be empty")
        self._series = series
        self._clock = clock or SystemClock()

    @property
    def series(self) -> str:
        return self._series

    def issue(self, session: Session, certificate: InvoiceCertificate) -> str:
        year = self._clock.now().year
        value = SequenceService(session).next_value(f"invoice:{self._series}:{year}")
        number = f"{self._series}-{year}-{value:06d}"
        logger.info(
            "invoice_number_issued",
            extra={
                "document_id": str(certificate.document_id),
                "invoice_number": number,
            },
        )
        return number
