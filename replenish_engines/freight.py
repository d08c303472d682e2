"""
Module: replenish_engines.freight
Responsibility:
    Per-unit freight pricing from a carton specification and a freight
    channel quote, and conversion of a channel into the LogisticsLane the
    simulation consumes.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Decimal-only arithmetic.
    - Volume weight is L x W x H / divisor, rounded to 2 places.
    - Billable weight is the largest of volume, actual and minimum weight.
    - Sea channels quoted per cubic metre bill by volume; all others bill
      billable weight per kilogram.
    - per_box and per_unit are rounded to the channel currency precision.

Failure modes:
    - InvalidPackageSpecError when pieces per box or any dimension is not
      positive.
    - ValueError from ExchangeRate.convert when the rate does not match the
      channel currency.

Usage:
    package = PackageSpec(60, 40, 40, 15, 20)
    quote = calculate_shipping_cost(package, channel)
    lane = lane_for_channel(package, channel)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from replenish_engines.simulation.params import LogisticsLane, ShipmentType, to_decimal
from replenish_engines.tracer import traced_engine
from replenish_kernel.domain.values import ExchangeRate, Money
from replenish_kernel.exceptions import InvalidPackageSpecError
from replenish_kernel.logging_config import get_logger

logger = get_logger("engines.freight")

DEFAULT_VOLUME_DIVISOR = Decimal("5000")
CM3_PER_CBM = Decimal("1000000")


class BillingMethod(str, Enum):
    WEIGHT = "weight"
    VOLUME = "volume"


@dataclass(frozen=True, slots=True)
class PackageSpec:
    """Master carton: dimensions in cm, gross weight in kg, units per carton."""

    length_cm: Decimal
    width_cm: Decimal
    height_cm: Decimal
    weight_kg: Decimal
    pcs_per_box: int

    def __post_init__(self) -> None:
        for name in ("length_cm", "width_cm", "height_cm", "weight_kg"):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))
        object.__setattr__(self, "pcs_per_box", int(self.pcs_per_box))

    @property
    def volume_cm3(self) -> Decimal:
        return self.length_cm * self.width_cm * self.height_cm


@dataclass(frozen=True, slots=True)
class FreightChannel:
    """A forwarder quote for one shipment type."""

    channel_id: str
    name: str
    shipment_type: ShipmentType
    transit_days: Decimal
    price_per_kg: Decimal
    price_per_cbm: Decimal | None = None
    min_weight_kg: Decimal = Decimal("0")
    vol_divisor: Decimal = DEFAULT_VOLUME_DIVISOR
    currency: str = "CNY"

    def __post_init__(self) -> None:
        object.__setattr__(self, "shipment_type", ShipmentType(self.shipment_type))
        for name in ("transit_days", "price_per_kg", "min_weight_kg", "vol_divisor"):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))
        if self.price_per_cbm is not None:
            object.__setattr__(self, "price_per_cbm", to_decimal(self.price_per_cbm))

    @property
    def bills_by_cbm(self) -> bool:
        return self.shipment_type == ShipmentType.SEA and bool(self.price_per_cbm)


@dataclass(frozen=True, slots=True)
class ShippingCostResult:
    """Freight quote for one package on one channel."""

    channel: FreightChannel
    per_unit: Money
    per_box: Money
    method: BillingMethod
    volume_weight: Decimal
    actual_weight: Decimal
    billable_weight: Decimal


def volume_weight(
    length: Decimal,
    width: Decimal,
    height: Decimal,
    divisor: Decimal = DEFAULT_VOLUME_DIVISOR,
) -> Decimal:
    """Dimensional weight in kg, rounded to 2 places."""
    raw = to_decimal(length) * to_decimal(width) * to_decimal(height) / to_decimal(divisor)
    return raw.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _validate(package: PackageSpec) -> None:
    checks = (
        ("pcs_per_box", package.pcs_per_box),
        ("length_cm", package.length_cm),
        ("width_cm", package.width_cm),
        ("height_cm", package.height_cm),
    )
    for field, value in checks:
        if value <= 0:
            logger.warning("invalid_package_spec", extra={"field": field, "value": str(value)})
            raise InvalidPackageSpecError(field, str(value))


@traced_engine("freight", "1.0", fingerprint_fields=("package", "channel"))
def calculate_shipping_cost(package: PackageSpec, channel: FreightChannel) -> ShippingCostResult:
    """Price one carton and one unit of ``package`` on ``channel``."""
    _validate(package)

    vol = volume_weight(
        package.length_cm, package.width_cm, package.height_cm, channel.vol_divisor,
    )
    actual = package.weight_kg
    billable = max(vol, actual, channel.min_weight_kg)

    if channel.bills_by_cbm:
        cbm = package.volume_cm3 / CM3_PER_CBM
        per_box = Money.of(cbm * channel.price_per_cbm, channel.currency).round()
        method = BillingMethod.VOLUME
    else:
        per_box = Money.of(billable * channel.price_per_kg, channel.currency).round()
        method = BillingMethod.VOLUME if vol > actual else BillingMethod.WEIGHT

    per_unit = (per_box / package.pcs_per_box).round()

    logger.debug("shipping_cost_calculated", extra={
        "channel_id": channel.channel_id,
        "method": method,
        "billable_weight": str(billable),
        "per_box": str(per_box.amount),
        "per_unit": str(per_unit.amount),
    })

    return ShippingCostResult(
        channel=channel,
        per_unit=per_unit,
        per_box=per_box,
        method=method,
        volume_weight=vol,
        actual_weight=actual,
        billable_weight=billable,
    )


def compare_channels(
    package: PackageSpec,
    channels: Sequence[FreightChannel],
) -> list[ShippingCostResult]:
    """Quotes for every channel, cheapest per unit first."""
    quotes = [calculate_shipping_cost(package, channel) for channel in channels]
    quotes.sort(key=lambda q: q.per_unit.amount)
    return quotes


def lane_for_channel(
    package: PackageSpec,
    channel: FreightChannel,
    rate: ExchangeRate | None = None,
) -> LogisticsLane:
    """
    LogisticsLane for the simulation: transit days and per-unit freight.

    The per-unit price is the rounded carton price divided by pieces per
    carton, left unrounded.  When ``rate`` is given the carton price is
    converted first (channel currency into the plan's base currency).
    """
    per_box = calculate_shipping_cost(package, channel).per_box
    if rate is not None:
        per_box = rate.convert(per_box)
    return LogisticsLane(
        days=channel.transit_days,
        price=per_box.amount / package.pcs_per_box,
    )
