"""
Module: replenish_engines.simulation.params
Responsibility:
    Immutable input records for one replenishment simulation run:
    the batch plan, global purchase terms, logistics lanes and the
    twelve-month sales plan.

Architecture position:
    Engines -- pure data, zero I/O.  Built by callers directly or by
    ``replenish_config.loader`` from scenario YAML.

Invariants enforced:
    - Every numeric field is a Decimal after construction (floats and ints
      are coerced through ``str`` so 0.15 becomes Decimal("0.15")).
    - Every record is frozen and hashable, so a whole SimulationParams can
      key a memo cache.
    - Every batch ships on a shipment type that has a logistics lane.

Failure modes:
    - UnknownShipmentTypeError when a batch references a missing lane.
    - ValueError for unparseable numbers, unknown shipment type strings
      and unregistered currency codes.
    Values are otherwise not validated: zero or negative quantities give
    degenerate but well-formed simulations.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any

from replenish_kernel.domain.values import Currency
from replenish_kernel.exceptions import UnknownShipmentTypeError
from replenish_kernel.logging_config import get_logger

logger = get_logger("engines.simulation.params")

MONTHS_PER_YEAR = 12


def to_decimal(value: Any) -> Decimal:
    """Coerce a numeric input to Decimal without binary float artefacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Expected a number, got bool {value!r}")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Expected a number, got {value!r}") from e


class ShipmentType(str, Enum):
    """Freight mode of a batch."""

    SEA = "sea"
    AIR = "air"
    EXPRESS = "express"


@dataclass(frozen=True, slots=True)
class LogisticsLane:
    """Transit time (days) and per-unit freight price for one shipment type."""

    days: Decimal
    price: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "days", to_decimal(self.days))
        object.__setattr__(self, "price", to_decimal(self.price))


@dataclass(frozen=True, slots=True)
class BatchSpec:
    """
    One purchase order in the replenishment plan.

    ``offset`` is the simulation day the order is placed; ``prod_days`` is
    the production lead time before it ships.  ``extra_percent`` inflates
    the ordered quantity (safety buffer).
    """

    batch_id: str
    name: str
    shipment_type: ShipmentType
    qty: Decimal
    extra_percent: Decimal = Decimal("0")
    offset: Decimal = Decimal("0")
    prod_days: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        object.__setattr__(self, "shipment_type", ShipmentType(self.shipment_type))
        for name in ("qty", "extra_percent", "offset", "prod_days"):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))

    @property
    def final_qty(self) -> Decimal:
        """Ordered quantity after the extra percentage, rounded to whole units."""
        raw = self.qty * (1 + self.extra_percent / 100)
        return raw.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


@dataclass(frozen=True, slots=True)
class PaymentTerms:
    """Deposit and balance as percentages of production cost."""

    deposit: Decimal = Decimal("30")
    balance: Decimal = Decimal("70")

    def __post_init__(self) -> None:
        object.__setattr__(self, "deposit", to_decimal(self.deposit))
        object.__setattr__(self, "balance", to_decimal(self.balance))

    @property
    def deposit_rate(self) -> Decimal:
        return self.deposit / 100

    @property
    def balance_rate(self) -> Decimal:
        return self.balance / 100


@dataclass(frozen=True, slots=True)
class GlobalTerms:
    """
    Purchase terms shared by all batches.

    ``unit_cost`` is in the base (purchasing) currency; ``exch_rate``
    converts one unit of settlement currency into base currency.  The
    currency codes are used for presentation only.
    """

    unit_cost: Decimal
    exch_rate: Decimal
    payment_terms: PaymentTerms = field(default_factory=PaymentTerms)
    base_currency: str = "CNY"
    settlement_currency: str = "USD"

    def __post_init__(self) -> None:
        object.__setattr__(self, "unit_cost", to_decimal(self.unit_cost))
        object.__setattr__(self, "exch_rate", to_decimal(self.exch_rate))
        object.__setattr__(self, "base_currency", Currency(self.base_currency).code)
        object.__setattr__(
            self, "settlement_currency", Currency(self.settlement_currency).code,
        )


@dataclass(frozen=True, slots=True)
class MonthlyFees:
    """
    Marketplace deductions for one month.

    ``commission`` and ``tacos`` are rates of the sale price; ``fba``,
    ``other`` and ``storage`` are fixed per-unit charges in settlement
    currency.
    """

    commission: Decimal = Decimal("0")
    tacos: Decimal = Decimal("0")
    fba: Decimal = Decimal("0")
    other: Decimal = Decimal("0")
    storage: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        for name in ("commission", "tacos", "fba", "other", "storage"):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))

    @property
    def fixed_per_unit(self) -> Decimal:
        return self.fba + self.other + self.storage


_ZERO_FEES = MonthlyFees()


@dataclass(frozen=True, slots=True)
class SalesPlan:
    """
    Twelve-slot monthly assumptions indexed by calendar month (0 = January).

    Shorter sequences are allowed.  A missing demand or price slot reads as
    zero; a missing fee slot falls back to January's schedule, and to zero
    fees when no schedule is given at all.
    """

    daily_sales: tuple[Decimal, ...] = ()
    prices: tuple[Decimal, ...] = ()
    fees: tuple[MonthlyFees, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "daily_sales", tuple(to_decimal(v) for v in self.daily_sales))
        object.__setattr__(self, "prices", tuple(to_decimal(v) for v in self.prices))
        object.__setattr__(self, "fees", tuple(self.fees))

    def demand_for(self, month: int) -> Decimal:
        if 0 <= month < len(self.daily_sales):
            return self.daily_sales[month]
        return Decimal("0")

    def price_for(self, month: int) -> Decimal:
        if 0 <= month < len(self.prices):
            return self.prices[month]
        return Decimal("0")

    def fees_for(self, month: int) -> MonthlyFees:
        if 0 <= month < len(self.fees):
            return self.fees[month]
        if self.fees:
            return self.fees[0]
        return _ZERO_FEES


@dataclass(frozen=True, slots=True)
class SimulationParams:
    """
    Complete, hashable input of one simulation run.

    ``logistics`` accepts a mapping of shipment type to lane and is stored
    as a sorted tuple of pairs; use ``lane()`` or ``lanes`` to read it.
    """

    sim_start: date
    batches: tuple[BatchSpec, ...]
    terms: GlobalTerms
    logistics: tuple[tuple[ShipmentType, LogisticsLane], ...]
    sales: SalesPlan
    max_days: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "batches", tuple(self.batches))
        object.__setattr__(self, "logistics", _normalize_lanes(self.logistics))

        available = {t for t, _ in self.logistics}
        for batch in self.batches:
            if batch.shipment_type not in available:
                codes = tuple(t.value for t, _ in self.logistics)
                logger.warning("unknown_shipment_type", extra={
                    "batch_id": batch.batch_id,
                    "shipment_type": batch.shipment_type.value,
                    "available": list(codes),
                })
                raise UnknownShipmentTypeError(
                    batch.batch_id, batch.shipment_type.value, codes,
                )

    @property
    def lanes(self) -> dict[ShipmentType, LogisticsLane]:
        return dict(self.logistics)

    def lane(self, shipment_type: ShipmentType) -> LogisticsLane:
        for t, lane in self.logistics:
            if t == shipment_type:
                return lane
        raise KeyError(shipment_type)


def _normalize_lanes(
    logistics: Mapping[Any, LogisticsLane] | Iterable[tuple[Any, LogisticsLane]],
) -> tuple[tuple[ShipmentType, LogisticsLane], ...]:
    items = logistics.items() if isinstance(logistics, Mapping) else logistics
    pairs = {ShipmentType(t): lane for t, lane in items}
    return tuple(sorted(pairs.items(), key=lambda kv: kv[0].value))
