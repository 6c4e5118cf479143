"""Tax breakdown for sales documents (IVA)."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from obligation_kernel.domain.values import Money

# Guatemalan IVA
DEFAULT_TAX_RATE = Decimal("0.12")


@dataclass(frozen=True)
class TaxBreakdown:
    """Net amount, rate and the tax computed from them.

    ``tax`` is rounded once, at ``compute()`` time, with banker's rounding.
    It is stored alongside the document and never recomputed.
    """

    net: Money
    rate: Decimal
    tax: Money

    @classmethod
    def compute(cls, net: Money, rate: Decimal = DEFAULT_TAX_RATE) -> TaxBreakdown:
        if not isinstance(rate, Decimal):
            raise TypeError("tax rate must be Decimal")
        if rate < 0:
            raise ValueError(f"tax rate must not be negative: {rate}")
        if net.is_negative:
            raise ValueError("net amount must not be negative")
        return cls(net=net, rate=rate, tax=net.apply_rate(rate))

    @property
    def gross(self) -> Money:
        return self.net + self.tax
