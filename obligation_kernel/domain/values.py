"""
Values -- Immutable, self-validating monetary value objects.

Responsibility:
    Provides Currency and Money, the only monetary types used by the
    lifecycle engine.  Money stores an integer count of minor units
    (centavos for GTQ) paired with its currency; floats never appear.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every other domain module.  No outward dependencies except
    obligation_kernel.domain.currency (CurrencyRegistry).

Invariants enforced:
    - Minor-unit storage: amounts are ints, so ledger sums are exact.
    - No silent truncation: parsing a major-unit value with more digits
      than the currency allows is rejected, never rounded.
    - Single rounding point: apply_rate() is the one place a fractional
      result is rounded, using banker's rounding (ROUND_HALF_EVEN).
    - No currency mixing: arithmetic and comparison require equal currencies.

Failure modes:
    - TypeError when constructed from float or combined with non-Money.
    - ValueError on unknown currency, excess precision, or currency mismatch.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation

from obligation_kernel.domain.currency import CurrencyInfo, CurrencyRegistry


@dataclass(frozen=True, slots=True)
class Currency:
    """
    ISO 4217 currency code value object.

    Contract:
        Wraps a three-letter code, validated and upper-cased on construction.

    Guarantees:
        - Immutable and hashable.
        - code is always known to CurrencyRegistry.
    """

    code: str

    def __post_init__(self) -> None:
        normalized = self.code.upper().strip() if isinstance(self.code, str) else ""
        if not CurrencyRegistry.is_valid(normalized):
            raise ValueError(f"Invalid ISO 4217 currency code: {self.code!r}")
        object.__setattr__(self, "code", normalized)

    @property
    def info(self) -> CurrencyInfo:
        info = CurrencyRegistry.get_info(self.code)
        assert info is not None
        return info

    @property
    def decimal_places(self) -> int:
        return self.info.decimal_places

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Currency({self.code!r})"


def _coerce_currency(currency: str | Currency) -> Currency:
    if isinstance(currency, Currency):
        return currency
    if isinstance(currency, str):
        return Currency(currency)
    raise TypeError(f"currency must be Currency or str, got {type(currency).__name__}")


@dataclass(frozen=True, slots=True)
class Money:
    """
    Monetary amount value object in integer minor units.

    Contract:
        Pairs an int count of minor units with its Currency.  This is the
        canonical representation of every amount the engine stores or
        compares: principal amounts, payments, balances and tax.

    Guarantees:
        - Immutable and hashable.
        - minor_units is always an int (never float, never Decimal).
        - Arithmetic enforces same-currency operands.

    Non-goals:
        - Does NOT enforce non-negativity; entities that store Money
          (Document, PaymentRecord) validate their own sign rules.
        - Does NOT format for display.
    """

    minor_units: int
    currency: Currency

    def __post_init__(self) -> None:
        if isinstance(self.minor_units, bool) or not isinstance(self.minor_units, int):
            raise TypeError(
                f"minor_units must be int, got {type(self.minor_units).__name__}"
            )
        object.__setattr__(self, "currency", _coerce_currency(self.currency))

    @classmethod
    def of(cls, amount: Decimal | str | int, currency: str | Currency) -> Money:
        """
        Create Money from a major-unit amount ("1000.00" -> 100000 minor units).

        Preconditions:
            - amount is a Decimal, str or int (float is refused).
            - amount has no more fractional digits than the currency allows.

        Raises:
            TypeError: If amount is a float.
            ValueError: If amount is not numeric or would need rounding.
        """
        if isinstance(amount, float):
            raise TypeError("Money cannot be created from float; use str or Decimal")
        currency = _coerce_currency(currency)
        try:
            value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"Invalid amount: {amount!r}") from e
        if not value.is_finite():
            raise ValueError(f"Invalid amount: {amount!r}")

        scaled = value.scaleb(currency.decimal_places)
        if scaled != scaled.to_integral_value():
            raise ValueError(
                f"Amount {amount} has more precision than {currency.code} allows "
                f"({currency.decimal_places} decimal places)"
            )
        return cls(minor_units=int(scaled), currency=currency)

    @classmethod
    def from_minor(cls, minor_units: int, currency: str | Currency) -> Money:
        """Create Money directly from minor units."""
        return cls(minor_units=minor_units, currency=_coerce_currency(currency))

    @classmethod
    def zero(cls, currency: str | Currency) -> Money:
        """Create a zero amount in the given currency."""
        return cls(minor_units=0, currency=_coerce_currency(currency))

    @property
    def amount(self) -> Decimal:
        """Major-unit Decimal value (100000 GTQ minor units -> Decimal('1000.00'))."""
        return Decimal(self.minor_units).scaleb(-self.currency.decimal_places)

    @property
    def is_zero(self) -> bool:
        return self.minor_units == 0

    @property
    def is_positive(self) -> bool:
        return self.minor_units > 0

    @property
    def is_negative(self) -> bool:
        return self.minor_units < 0

    def apply_rate(self, rate: Decimal | str) -> Money:
        """
        Multiply by a rate and round once to the minor unit.

        Uses ROUND_HALF_EVEN (banker's rounding).  Callers store the result;
        it is never re-derived from the rate later.

        Raises:
            TypeError: If rate is a float.
        """
        if isinstance(rate, float):
            raise TypeError("rate must be Decimal or str, not float")
        rate = rate if isinstance(rate, Decimal) else Decimal(rate)
        product = Decimal(self.minor_units) * rate
        rounded = product.quantize(Decimal(1), rounding=ROUND_HALF_EVEN)
        return Money(minor_units=int(rounded), currency=self.currency)

    def _require_same_currency(self, other: Money, op: str) -> None:
        if self.currency != other.currency:
            raise ValueError(
                f"Cannot {op} Money with different currencies: "
                f"{self.currency} and {other.currency}"
            )

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._require_same_currency(other, "add")
        return Money(minor_units=self.minor_units + other.minor_units, currency=self.currency)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._require_same_currency(other, "subtract")
        return Money(minor_units=self.minor_units - other.minor_units, currency=self.currency)

    def __neg__(self) -> Money:
        return Money(minor_units=-self.minor_units, currency=self.currency)

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._require_same_currency(other, "compare")
        return self.minor_units < other.minor_units

    def __le__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._require_same_currency(other, "compare")
        return self.minor_units <= other.minor_units

    def __gt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._require_same_currency(other, "compare")
        return self.minor_units > other.minor_units

    def __ge__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._require_same_currency(other, "compare")
        return self.minor_units >= other.minor_units

    def __str__(self) -> str:
        return f"{self.amount} {self.currency.code}"

    def __repr__(self) -> str:
        return f"Money({self.minor_units!r}, {self.currency!r})"


def sum_money(values: Iterable[Money], currency: str | Currency) -> Money:
    """Sum Money values, starting from zero in ``currency``."""
    total = Money.zero(currency)
    for value in values:
        total = total + value
    return total
