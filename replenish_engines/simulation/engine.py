"""
Module: replenish_engines.simulation.engine
Responsibility:
    Entry point of the replenishment simulation.  Runs the three stages
    (batch timeline, daily loop, aggregation) in order and returns the
    published SimulationResult.

Architecture position:
    Engines -- pure function of its input, zero I/O.  Memoization belongs
    to the caller (see ``replenish_services.simulation_service``).

Invariants enforced:
    - Purity: identical params and policy give deep-equal results.
    - An empty batch plan yields None, never an empty result.

Failure modes:
    - None for a validated SimulationParams.

Usage:
    from replenish_engines.simulation import simulate_replenishment

    result = simulate_replenishment(params)
    if result is not None:
        print(result.kpis.min_cash, result.kpis.breakeven_day)
"""

from __future__ import annotations

from replenish_engines.policy import DEFAULT_POLICY, EnginePolicy
from replenish_engines.simulation.aggregation import aggregate
from replenish_engines.simulation.loop import run_daily_loop
from replenish_engines.simulation.params import SimulationParams
from replenish_engines.simulation.result import SimulationResult
from replenish_engines.simulation.timeline import build_batch_schedule
from replenish_engines.tracer import traced_engine
from replenish_kernel.logging_config import get_logger

logger = get_logger("engines.simulation")

ENGINE_NAME = "replenishment_simulation"
ENGINE_VERSION = "1.0"


@traced_engine(ENGINE_NAME, ENGINE_VERSION, fingerprint_fields=("params", "policy"))
def simulate_replenishment(
    params: SimulationParams,
    policy: EnginePolicy | None = None,
) -> SimulationResult | None:
    """Simulate the batch plan day by day; None when there are no batches."""
    if not params.batches:
        logger.info("replenishment_simulation_skipped", extra={"reason": "no_batches"})
        return None

    policy = policy or DEFAULT_POLICY
    horizon = policy.resolve_horizon(params.max_days)

    logger.info("replenishment_simulation_started", extra={
        "batch_count": len(params.batches),
        "sim_start": params.sim_start,
        "horizon": horizon,
    })

    schedule = build_batch_schedule(params, horizon)
    ledger = run_daily_loop(params, schedule, horizon, policy)
    result = aggregate(params, schedule, ledger, policy)

    kpis = result.kpis
    logger.info("replenishment_simulation_completed", extra={
        "min_cash": str(kpis.min_cash),
        "final_cash": str(kpis.final_cash),
        "total_net_profit": str(kpis.total_net_profit),
        "breakeven_day": kpis.breakeven_day,
        "total_stockout_days": kpis.total_stockout_days,
    })
    return result
