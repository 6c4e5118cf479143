"""Currency -- ISO 4217 registry and minor-unit scaling."""

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar

# Quetzal; the console books everything in GTQ unless configured otherwise.
DEFAULT_CURRENCY_CODE = "GTQ"


@dataclass(frozen=True)
class CurrencyInfo:
    """Information about a single ISO 4217 currency."""

    code: str
    decimal_places: int
    name: str

    @property
    def minor_unit_factor(self) -> int:
        """Number of minor units in one major unit (100 for GTQ)."""
        return 10 ** self.decimal_places

    @property
    def quantum(self) -> Decimal:
        """Smallest representable major-unit step, for Decimal.quantize()."""
        return Decimal(1).scaleb(-self.decimal_places)


class CurrencyRegistry:
    """Registry of the ISO 4217 currencies the kernel accepts."""

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        # Operating currency of the source organization
        "GTQ": CurrencyInfo("GTQ", 2, "Guatemalan Quetzal"),
        # Major currencies
        "USD": CurrencyInfo("USD", 2, "US Dollar"),
        "EUR": CurrencyInfo("EUR", 2, "Euro"),
        "GBP": CurrencyInfo("GBP", 2, "Pound Sterling"),
        "CAD": CurrencyInfo("CAD", 2, "Canadian Dollar"),
        "CHF": CurrencyInfo("CHF", 2, "Swiss Franc"),
        "JPY": CurrencyInfo("JPY", 0, "Japanese Yen"),
        # Central America and neighbours
        "BZD": CurrencyInfo("BZD", 2, "Belize Dollar"),
        "CRC": CurrencyInfo("CRC", 2, "Costa Rican Colon"),
        "HNL": CurrencyInfo("HNL", 2, "Honduran Lempira"),
        "MXN": CurrencyInfo("MXN", 2, "Mexican Peso"),
        "NIO": CurrencyInfo("NIO", 2, "Nicaraguan Cordoba"),
        "PAB": CurrencyInfo("PAB", 2, "Panamanian Balboa"),
        "SVC": CurrencyInfo("SVC", 2, "Salvadoran Colon"),
        "COP": CurrencyInfo("COP", 2, "Colombian Peso"),
        "DOP": CurrencyInfo("DOP", 2, "Dominican Peso"),
        # Zero and three decimal currencies
        "CLP": CurrencyInfo("CLP", 0, "Chilean Peso"),
        "KRW": CurrencyInfo("KRW", 0, "South Korean Won"),
        "PYG": CurrencyInfo("PYG", 0, "Paraguayan Guarani"),
        "BHD": CurrencyInfo("BHD", 3, "Bahraini Dinar"),
        "KWD": CurrencyInfo("KWD", 3, "Kuwaiti Dinar"),
        "OMR": CurrencyInfo("OMR", 3, "Omani Rial"),
    }

    @classmethod
    def is_valid(cls, code: str) -> bool:
        """Check if a currency code is known to the registry."""
        if not code or not isinstance(code, str):
            return False
        return code.upper().strip() in cls._CURRENCIES

    @classmethod
    def get_info(cls, code: str) -> CurrencyInfo | None:
        """Get currency information by code."""
        if not code or not isinstance(code, str):
            return None
        return cls._CURRENCIES.get(code.upper().strip())

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        """Get decimal places for a currency."""
        info = cls.get_info(code)
        if info is None:
            raise ValueError(f"Unknown currency code: {code!r}")
        return info.decimal_places

    @classmethod
    def validate(cls, code: str) -> str:
        """Validate and normalize a currency code."""
        if not code or not isinstance(code, str):
            raise ValueError(f"Invalid currency code: {code!r}")

        normalized = code.upper().strip()

        if len(normalized) != 3:
            raise ValueError(f"Currency code must be 3 characters: {code!r}")

        if normalized not in cls._CURRENCIES:
            raise ValueError(f"Invalid ISO 4217 currency code: {code!r}")

        return normalized

    @classmethod
    def all_codes(cls) -> frozenset[str]:
        """Get all valid currency codes."""
        return frozenset(cls._CURRENCIES.keys())
