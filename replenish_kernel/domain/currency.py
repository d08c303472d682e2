"""Currency -- ISO 4217 registry and precision-derived rounding."""

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar


@dataclass(frozen=True)
class CurrencyInfo:
    """Information about a single ISO 4217 currency."""

    code: str
    decimal_places: int
    name: str
    symbol: str = ""

    @property
    def quantize_string(self) -> str:
        """String for Decimal.quantize() to round to this currency's precision."""
        if self.decimal_places == 0:
            return "1"
        return "0." + "0" * self.decimal_places


class CurrencyRegistry:
    """Registry of the sourcing and marketplace currencies the planner prices in."""

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        # Sourcing
        "CNY": CurrencyInfo("CNY", 2, "Chinese Yuan", "¥"),
        "HKD": CurrencyInfo("HKD", 2, "Hong Kong Dollar", "HK$"),
        "TWD": CurrencyInfo("TWD", 2, "New Taiwan Dollar", "NT$"),
        "VND": CurrencyInfo("VND", 0, "Vietnamese Dong", "₫"),
        "INR": CurrencyInfo("INR", 2, "Indian Rupee", "₹"),
        "THB": CurrencyInfo("THB", 2, "Thai Baht", "฿"),
        "KRW": CurrencyInfo("KRW", 0, "South Korean Won", "₩"),
        # Marketplaces
        "USD": CurrencyInfo("USD", 2, "US Dollar", "$"),
        "CAD": CurrencyInfo("CAD", 2, "Canadian Dollar", "C$"),
        "MXN": CurrencyInfo("MXN", 2, "Mexican Peso", "MX$"),
        "BRL": CurrencyInfo("BRL", 2, "Brazilian Real", "R$"),
        "EUR": CurrencyInfo("EUR", 2, "Euro", "€"),
        "GBP": CurrencyInfo("GBP", 2, "Pound Sterling", "£"),
        "SEK": CurrencyInfo("SEK", 2, "Swedish Krona", "kr"),
        "PLN": CurrencyInfo("PLN", 2, "Polish Zloty", "zł"),
        "TRY": CurrencyInfo("TRY", 2, "Turkish Lira", "₺"),
        "AED": CurrencyInfo("AED", 2, "UAE Dirham", "AED"),
        "SAR": CurrencyInfo("SAR", 2, "Saudi Riyal", "SAR"),
        "JPY": CurrencyInfo("JPY", 0, "Japanese Yen", "¥"),
        "SGD": CurrencyInfo("SGD", 2, "Singapore Dollar", "S$"),
        "AUD": CurrencyInfo("AUD", 2, "Australian Dollar", "A$"),
    }

    DEFAULT_DECIMAL_PLACES: ClassVar[int] = 2

    @classmethod
    def is_valid(cls, code: str) -> bool:
        """Check if a currency code is registered."""
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
        return info.decimal_places if info else cls.DEFAULT_DECIMAL_PLACES

    @classmethod
    def get_symbol(cls, code: str) -> str:
        """Display symbol, falling back to the code itself."""
        info = cls.get_info(code)
        return info.symbol if info and info.symbol else code

    @classmethod
    def all_codes(cls) -> frozenset[str]:
        """Get all valid currency codes."""
        return frozenset(cls._CURRENCIES.keys())
