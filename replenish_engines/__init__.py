"""
Module: replenish_engines
Responsibility:
    Package entrypoint for the pure calculation layer: the replenishment
    simulation pipeline, freight pricing and unit economics.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import replenish_kernel (values, exceptions, logging).
    MUST NOT import replenish_services or replenish_config.

Invariants enforced:
    - Purity: engines never read the clock for business logic; the
      simulation start date is an explicit parameter.
    - Decimal-only arithmetic: no floats in amounts, quantities or rates.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Engine invocations are traced via ``@traced_engine`` (see
    ``replenish_engines.tracer``), emitting REPLENISH_ENGINE_TRACE records
    with engine name, version, input fingerprint and duration.

Usage:
    from replenish_engines import simulate_replenishment, SimulationParams
    from replenish_engines.freight import PackageSpec, FreightChannel
"""

from replenish_engines.freight import (
    BillingMethod,
    FreightChannel,
    PackageSpec,
    ShippingCostResult,
    calculate_shipping_cost,
    compare_channels,
    lane_for_channel,
    volume_weight,
)
from replenish_engines.policy import DEFAULT_POLICY, EnginePolicy
from replenish_engines.simulation import (
    BatchSpec,
    GlobalTerms,
    LogisticsLane,
    MonthlyFees,
    PaymentTerms,
    SalesPlan,
    ShipmentType,
    SimulationParams,
    SimulationResult,
    UnitEconomics,
    compute_unit_economics,
    simulate_replenishment,
)

__all__ = [
    "BatchSpec",
    "BillingMethod",
    "DEFAULT_POLICY",
    "EnginePolicy",
    "FreightChannel",
    "GlobalTerms",
    "LogisticsLane",
    "MonthlyFees",
    "PackageSpec",
    "PaymentTerms",
    "SalesPlan",
    "ShipmentType",
    "ShippingCostResult",
    "SimulationParams",
    "SimulationResult",
    "UnitEconomics",
    "calculate_shipping_cost",
    "compare_channels",
    "compute_unit_economics",
    "lane_for_channel",
    "simulate_replenishment",
]
