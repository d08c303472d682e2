"""
Pure domain layer.

Immutable, deterministic value objects with NO dependencies on
I/O, clocks, or persistence.
"""

from replenish_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from replenish_kernel.domain.values import Currency, ExchangeRate, Money

__all__ = [
    "CurrencyInfo",
    "CurrencyRegistry",
    "Currency",
    "ExchangeRate",
    "Money",
]
