"""
Module: replenish_engines.simulation.loop
Responsibility:
    Day-by-day simulation.  Advances a virtual calendar one day at a time,
    ingests arrivals into a FIFO inventory queue, looks up the calendar
    month's demand, price and fees, sells inventory oldest-lot-first and
    records daily inventory, cash and profit deltas and stockout flags.

Architecture position:
    Engines -- second stage of the simulation pipeline, zero I/O.
    Consumes a BatchSchedule, produces a DailyLedger for aggregation.

Invariants enforced:
    - FIFO: the head lot is always the earliest ``(arrival_day,
      batch_index)``; it is drained before any later lot is touched.
    - No lot quantity goes negative; exhausted lots leave the queue.
    - A day is a stockout only on or after the first sale day, and only
      when unmet demand exceeds the policy epsilon.
    - No rounding: every amount is an exact Decimal so that
      ``sum(profit_change) == total_net_profit`` and the cumulative cash
      equals ``sum(cash_change)``.
    - Sale proceeds settle ``settlement_delay_days`` later; settlements
      past the horizon are dropped.

Failure modes:
    - None for a validated SimulationParams.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from replenish_engines.dates import month_index
from replenish_engines.policy import EnginePolicy
from replenish_engines.simulation.economics import compute_unit_economics
from replenish_engines.simulation.inventory import FifoQueue, InventoryLot
from replenish_engines.simulation.params import SimulationParams
from replenish_engines.simulation.records import SalePeriod
from replenish_engines.simulation.timeline import BatchSchedule
from replenish_kernel.logging_config import get_logger

logger = get_logger("engines.simulation.loop")

_ZERO = Decimal("0")


@dataclass(frozen=True, slots=True)
class SettlementRecord:
    """Sale proceeds of one batch paid out on ``day`` (merged per day)."""

    day: int
    amount: Decimal


@dataclass(frozen=True)
class DailyLedger:
    """
    Raw output of the daily loop; every array has ``horizon`` entries.

    ``cash_out`` holds the scheduled purchase flows (negative), ``cash_in``
    the settled sale proceeds, and ``cash_change`` their sum.
    """

    horizon: int
    inventory: tuple[Decimal, ...]
    cash_change: tuple[Decimal, ...]
    cash_in: tuple[Decimal, ...]
    cash_out: tuple[Decimal, ...]
    profit_change: tuple[Decimal, ...]
    stockout: tuple[bool, ...]
    first_sale_day: int | None
    sale_periods: tuple[SalePeriod, ...]
    batch_revenue: tuple[Decimal, ...]
    batch_sold_qty: tuple[Decimal, ...]
    settlements: tuple[tuple[SettlementRecord, ...], ...]
    total_revenue: Decimal
    total_net_profit: Decimal
    total_gmv: Decimal
    total_sold_qty: Decimal
    ending_inventory: Decimal
    remaining_lots: tuple[InventoryLot, ...]


def run_daily_loop(
    params: SimulationParams,
    schedule: BatchSchedule,
    horizon: int,
    policy: EnginePolicy,
) -> DailyLedger:
    """Simulate days ``0 .. horizon-1`` against the batch schedule."""
    batch_count = len(params.batches)
    exch_rate = params.terms.exch_rate
    sales = params.sales

    inventory = [_ZERO] * horizon
    cash_in = [_ZERO] * horizon
    cash_out = [_ZERO] * horizon
    profit_change = [_ZERO] * horizon
    stockout = [False] * horizon

    for event in schedule.events:
        cash_out[event.day] += event.amount

    starts: list[int | None] = [None] * batch_count
    ends: list[int | None] = [None] * batch_count
    arrived: list[int | None] = [None] * batch_count
    batch_revenue = [_ZERO] * batch_count
    batch_sold = [_ZERO] * batch_count
    settlements: list[list[list]] = [[] for _ in range(batch_count)]

    queue = FifoQueue()
    current_inv = _ZERO
    first_sale_day: int | None = None
    total_revenue = _ZERO
    total_net_profit = _ZERO
    total_gmv = _ZERO
    total_sold = _ZERO

    for d in range(horizon):
        landing = schedule.arrivals.get(d)
        if landing:
            for event in landing:
                arrived[event.batch_index] = d
            current_inv += queue.receive(InventoryLot.from_arrival(e) for e in landing)

        month = month_index(params.sim_start, d)
        demand = sales.demand_for(month)
        remaining = demand

        if current_inv > 0 and demand > 0:
            if first_sale_day is None:
                first_sale_day = d
                logger.debug("first_sale_day", extra={"day": d, "inventory": str(current_inv)})

            price = sales.price_for(month)
            unit_recall = compute_unit_economics(
                price, sales.fees_for(month), exch_rate,
            ).recall_base

            while remaining > 0 and queue:
                idx = queue.head.batch_index
                if starts[idx] is None:
                    starts[idx] = d
                ends[idx] = d + 1

                lot, take = queue.take_from_head(remaining)
                revenue = take * unit_recall
                profit = revenue - take * lot.landed_unit_cost

                total_revenue += revenue
                total_net_profit += profit
                profit_change[d] += profit

                pay_day = d + policy.settlement_delay_days
                if pay_day < horizon:
                    cash_in[pay_day] += revenue
                    records = settlements[idx]
                    if records and records[-1][0] == pay_day:
                        records[-1][1] += revenue
                    else:
                        records.append([pay_day, revenue])

                batch_revenue[idx] += revenue
                batch_sold[idx] += take
                total_gmv += take * price
                total_sold += take
                current_inv -= take
                remaining -= take

        if (
            first_sale_day is not None
            and d >= first_sale_day
            and remaining > policy.stockout_epsilon
        ):
            stockout[d] = True

        inventory[d] = current_inv

    logger.debug("daily_loop_completed", extra={
        "horizon": horizon,
        "first_sale_day": first_sale_day,
        "ending_inventory": str(current_inv),
        "stockout_days": sum(stockout),
    })

    return DailyLedger(
        horizon=horizon,
        inventory=tuple(inventory),
        cash_change=tuple(o + i for o, i in zip(cash_out, cash_in)),
        cash_in=tuple(cash_in),
        cash_out=tuple(cash_out),
        profit_change=tuple(profit_change),
        stockout=tuple(stockout),
        first_sale_day=first_sale_day,
        sale_periods=tuple(
            SalePeriod(batch_index=i, start_day=starts[i], end_day=ends[i], arrival_day=arrived[i])
            for i in range(batch_count)
        ),
        batch_revenue=tuple(batch_revenue),
        batch_sold_qty=tuple(batch_sold),
        settlements=tuple(
            tuple(SettlementRecord(day=day, amount=amount) for day, amount in records)
            for records in settlements
        ),
        total_revenue=total_revenue,
        total_net_profit=total_net_profit,
        total_gmv=total_gmv,
        total_sold_qty=total_sold,
        ending_inventory=current_inv,
        remaining_lots=queue.snapshot(),
    )
