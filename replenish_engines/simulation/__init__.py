"""
Replenishment cash-flow and inventory simulation.

Pipeline: ``timeline.build_batch_schedule`` -> ``loop.run_daily_loop`` ->
``aggregation.aggregate``, wrapped by ``engine.simulate_replenishment``.
"""

from replenish_engines.simulation.economics import UnitEconomics, compute_unit_economics
from replenish_engines.simulation.engine import simulate_replenishment
from replenish_engines.simulation.inventory import FifoQueue, InventoryLot
from replenish_engines.simulation.params import (
    BatchSpec,
    GlobalTerms,
    LogisticsLane,
    MonthlyFees,
    PaymentTerms,
    SalesPlan,
    ShipmentType,
    SimulationParams,
)
from replenish_engines.simulation.records import (
    AnnotationTone,
    ArrivalEvent,
    ChartAnnotation,
    FinancialEvent,
    FinancialEventType,
    GanttSegment,
    SalePeriod,
    SegmentKind,
)
from replenish_engines.simulation.result import (
    DayMetric,
    SeriesPoint,
    SimulationKpis,
    SimulationResult,
)

__all__ = [
    "AnnotationTone",
    "ArrivalEvent",
    "BatchSpec",
    "ChartAnnotation",
    "DayMetric",
    "FifoQueue",
    "FinancialEvent",
    "FinancialEventType",
    "GanttSegment",
    "GlobalTerms",
    "InventoryLot",
    "LogisticsLane",
    "MonthlyFees",
    "PaymentTerms",
    "SalePeriod",
    "SalesPlan",
    "SegmentKind",
    "SeriesPoint",
    "ShipmentType",
    "SimulationKpis",
    "SimulationParams",
    "SimulationResult",
    "UnitEconomics",
    "compute_unit_economics",
    "simulate_replenishment",
]
