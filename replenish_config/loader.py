"""
Scenario Loader (``replenish_config.loader``).

Responsibility
--------------
Loads scenario YAML files and parses them into the engine's frozen
input dataclasses (``SimulationParams`` and friends).  The public entry
point for callers is ``replenish_config.load_scenario()``.

Architecture position
---------------------
**Config layer** -- infrastructure tooling above ``replenish_engines``.
The engines never import from this package.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass.
* Numbers are parsed to Decimal through ``str`` (no float artefacts).
* Twelve-slot monthly values may be written as a scalar or a single fee
  mapping; they are broadcast to all twelve months.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the
  document for scenario identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``ScenarioNotFoundError``.
* Malformed YAML, missing keys, bad values  -> ``InvalidScenarioError``
  naming the offending field.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from replenish_config.schema import FreightPlan, ScenarioDefinition
from replenish_engines.freight import (
    FreightChannel,
    PackageSpec,
    compare_channels,
    lane_for_channel,
)
from replenish_engines.simulation.params import (
    MONTHS_PER_YEAR,
    BatchSpec,
    GlobalTerms,
    LogisticsLane,
    MonthlyFees,
    PaymentTerms,
    SalesPlan,
    ShipmentType,
    SimulationParams,
)
from replenish_kernel.domain.values import ExchangeRate
from replenish_kernel.exceptions import (
    InvalidScenarioError,
    ReplenishmentError,
    ScenarioNotFoundError,
)
from replenish_kernel.logging_config import get_logger

logger = get_logger("config.loader")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        ScenarioNotFoundError: if the file does not exist.
        InvalidScenarioError: if the file is not valid YAML or its top
            level is not a mapping.
    """
    path = Path(path)
    if not path.is_file():
        logger.warning("scenario_not_found", extra={"path": str(path)})
        raise ScenarioNotFoundError(str(path))
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        logger.warning("scenario_yaml_error", extra={"path": str(path), "error": str(e)})
        raise InvalidScenarioError(str(path), "<document>", f"invalid YAML: {e}") from e
    if not isinstance(data, dict):
        raise InvalidScenarioError(str(path), "<document>", "top level must be a mapping")
    return data


def parse_date(value: Any) -> date:
    """Parse a date from YAML (string or date object)."""
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def parse_decimal(value: Any) -> Decimal:
    """Parse a number from YAML without passing through binary float."""
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Expected a number, got {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Expected a number, got {value!r}") from e


def _monthly(value: Any) -> tuple[Decimal, ...]:
    if isinstance(value, (list, tuple)):
        return tuple(parse_decimal(v) for v in value)
    return (parse_decimal(value),) * MONTHS_PER_YEAR


def parse_fees(data: dict[str, Any]) -> MonthlyFees:
    """Parse one month's MonthlyFees from a dict; absent charges are zero."""
    return MonthlyFees(
        commission=parse_decimal(data.get("commission", 0)),
        tacos=parse_decimal(data.get("tacos", 0)),
        fba=parse_decimal(data.get("fba", 0)),
        other=parse_decimal(data.get("other", 0)),
        storage=parse_decimal(data.get("storage", 0)),
    )


def parse_sales_plan(data: dict[str, Any]) -> SalesPlan:
    """
    Parse a SalesPlan.

    ``daily_sales`` and ``prices`` are lists indexed by calendar month or
    scalars; ``fees`` is a list of fee mappings or a single mapping.
    """
    fees_data = data.get("fees", [])
    if isinstance(fees_data, dict):
        fees = (parse_fees(fees_data),) * MONTHS_PER_YEAR
    else:
        fees = tuple(parse_fees(f) for f in fees_data)
    return SalesPlan(
        daily_sales=_monthly(data["daily_sales"]),
        prices=_monthly(data["prices"]),
        fees=fees,
    )


def parse_terms(data: dict[str, Any]) -> GlobalTerms:
    """Parse GlobalTerms; payment terms default to 30 / 70."""
    payment = data.get("payment_terms", {})
    return GlobalTerms(
        unit_cost=parse_decimal(data["unit_cost"]),
        exch_rate=parse_decimal(data["exch_rate"]),
        payment_terms=PaymentTerms(
            deposit=parse_decimal(payment.get("deposit", 30)),
            balance=parse_decimal(payment.get("balance", 70)),
        ),
        base_currency=data.get("base_currency", "CNY"),
        settlement_currency=data.get("settlement_currency", "USD"),
    )


def parse_batch(data: dict[str, Any], index: int = 0) -> BatchSpec:
    """Parse one BatchSpec; ``batch_id`` and ``name`` default from the index."""
    batch_id = str(data.get("batch_id", f"B{index + 1}"))
    return BatchSpec(
        batch_id=batch_id,
        name=str(data.get("name", batch_id)),
        shipment_type=ShipmentType(str(data["shipment_type"]).lower()),
        qty=parse_decimal(data["qty"]),
        extra_percent=parse_decimal(data.get("extra_percent", 0)),
        offset=parse_decimal(data.get("offset", 0)),
        prod_days=parse_decimal(data.get("prod_days", 0)),
    )


def parse_logistics(data: dict[str, Any]) -> dict[ShipmentType, LogisticsLane]:
    """Parse ``{sea: {days, price}, ...}`` into lanes keyed by ShipmentType."""
    return {
        ShipmentType(str(key).lower()): LogisticsLane(
            days=parse_decimal(lane["days"]),
            price=parse_decimal(lane["price"]),
        )
        for key, lane in data.items()
    }


def parse_package(data: dict[str, Any]) -> PackageSpec:
    return PackageSpec(
        length_cm=parse_decimal(data["length_cm"]),
        width_cm=parse_decimal(data["width_cm"]),
        height_cm=parse_decimal(data["height_cm"]),
        weight_kg=parse_decimal(data["weight_kg"]),
        pcs_per_box=int(data["pcs_per_box"]),
    )


def parse_channel(data: dict[str, Any], currency: str) -> FreightChannel:
    price_per_cbm = data.get("price_per_cbm")
    return FreightChannel(
        channel_id=str(data["channel_id"]),
        name=str(data.get("name", data["channel_id"])),
        shipment_type=ShipmentType(str(data["shipment_type"]).lower()),
        transit_days=parse_decimal(data["transit_days"]),
        price_per_kg=parse_decimal(data.get("price_per_kg", 0)),
        price_per_cbm=parse_decimal(price_per_cbm) if price_per_cbm is not None else None,
        min_weight_kg=parse_decimal(data.get("min_weight_kg", 0)),
        vol_divisor=parse_decimal(data.get("vol_divisor", 5000)),
        currency=currency,
    )


def parse_freight_plan(data: dict[str, Any], base_currency: str) -> FreightPlan:
    """Parse the carton spec and channel quotes of a ``freight`` section."""
    currency = str(data.get("currency", base_currency)).upper()
    return FreightPlan(
        package=parse_package(data["package"]),
        channels=tuple(parse_channel(c, currency) for c in data["channels"]),
        currency=currency,
        selected={str(k).lower(): str(v) for k, v in data.get("selected", {}).items()},
    )


def lanes_from_freight(
    plan: FreightPlan,
    terms: GlobalTerms,
) -> dict[ShipmentType, LogisticsLane]:
    """
    One lane per shipment type from the plan's channels.

    The channel named in ``selected`` wins; otherwise the cheapest per
    unit.  Quotes in the settlement currency are converted to base
    currency with the terms' exchange rate.
    """
    rate = None
    if plan.currency != terms.base_currency:
        if plan.currency != terms.settlement_currency:
            raise ValueError(
                f"freight currency {plan.currency} is neither {terms.base_currency} "
                f"nor {terms.settlement_currency}"
            )
        rate = ExchangeRate.of(terms.settlement_currency, terms.base_currency, terms.exch_rate)

    lanes: dict[ShipmentType, LogisticsLane] = {}
    for quote in compare_channels(plan.package, plan.channels):
        channel = quote.channel
        wanted = plan.selected.get(channel.shipment_type.value)
        if wanted is not None and wanted != channel.channel_id:
            continue
        if channel.shipment_type in lanes:
            continue
        lanes[channel.shipment_type] = lane_for_channel(plan.package, channel, rate)
    return lanes


def _field(path: str, name: str, parse: Any, *args: Any) -> Any:
    try:
        return parse(*args)
    except KeyError as e:
        raise InvalidScenarioError(path, name, f"missing key {e.args[0]!r}") from e
    except ReplenishmentError as e:
        if isinstance(e, InvalidScenarioError):
            raise
        raise InvalidScenarioError(path, name, str(e)) from e
    except (ValueError, TypeError, AttributeError) as e:
        raise InvalidScenarioError(path, name, str(e)) from e


def parse_scenario(data: dict[str, Any], source: str = "<memory>") -> ScenarioDefinition:
    """
    Parse a whole scenario document.

    Raises:
        InvalidScenarioError: naming the section that failed to parse.
    """
    if "sim_start" not in data:
        raise InvalidScenarioError(source, "sim_start", "required")
    if "terms" not in data:
        raise InvalidScenarioError(source, "terms", "required")
    if "sales" not in data:
        raise InvalidScenarioError(source, "sales", "required")

    sim_start = _field(source, "sim_start", parse_date, data["sim_start"])
    terms = _field(source, "terms", parse_terms, data["terms"])
    sales = _field(source, "sales", parse_sales_plan, data["sales"])

    raw_batches = data.get("batches") or []
    if not isinstance(raw_batches, list):
        raise InvalidScenarioError(source, "batches", "must be a list")
    batches = tuple(
        _field(source, f"batches[{i}]", parse_batch, b, i)
        for i, b in enumerate(raw_batches)
    )

    freight = None
    if "logistics" in data:
        logistics = _field(source, "logistics", parse_logistics, data["logistics"])
    elif "freight" in data:
        freight = _field(
            source, "freight", parse_freight_plan, data["freight"], terms.base_currency,
        )
        logistics = _field(source, "freight", lanes_from_freight, freight, terms)
    else:
        raise InvalidScenarioError(source, "logistics", "one of 'logistics' or 'freight' is required")

    max_days = data.get("max_days")
    if max_days is not None:
        max_days = _field(source, "max_days", int, max_days)
    params = _field(
        source, "batches", SimulationParams, sim_start, batches, terms, logistics, sales, max_days,
    )

    return ScenarioDefinition(
        name=str(data.get("name", Path(source).stem)),
        description=str(data.get("description", "")),
        params=params,
        checksum=compute_checksum(data),
        source_path=Path(source) if source != "<memory>" else None,
        freight=freight,
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
