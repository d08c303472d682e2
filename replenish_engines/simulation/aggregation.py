"""
Module: replenish_engines.simulation.aggregation
Responsibility:
    Post-processor of the simulation.  Turns the daily ledger into the
    published result: sell and hold bars, merged stockout intervals,
    cumulative cash and profit series with breakeven detection, batch
    settlement markers, chunked recall events and the KPI summary.

Architecture position:
    Engines -- third stage of the simulation pipeline, zero I/O.

Invariants enforced:
    - Cumulative cash at day d is the exact running sum of
      ``cash_change[0..d]``; ``final_cash`` is the sum over the horizon.
    - Breakeven and profitability days are the first negative to
      non-negative crossings after the guard day.
    - Stockout intervals only cover days from the first sale day up to the
      display window end; a run still open there is not reported.
    - ``total_stockout_days`` is the sum of interval gap days.
    - ROI and turnover are zero when cash never dipped below zero.

Failure modes:
    - None.

Stockout attribution:
    Each interval is drawn on the row of the batch whose sell window ended
    most recently, but no later than ``stockout_lookback_days`` after the
    interval start; equal ends go to the lower batch index, and batch 0 is
    used when none qualifies.  This places the bar for display only; it is
    not a cost attribution.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType

from replenish_engines.dates import day_to_date, short_label
from replenish_engines.policy import EnginePolicy
from replenish_engines.simulation.loop import DailyLedger, SettlementRecord
from replenish_engines.simulation.params import SimulationParams
from replenish_engines.simulation.records import (
    AnnotationTone,
    ChartAnnotation,
    FinancialEvent,
    FinancialEventType,
    GanttSegment,
    SalePeriod,
    SegmentKind,
)
from replenish_engines.simulation.result import SeriesPoint, SimulationKpis, SimulationResult
from replenish_engines.simulation.timeline import BatchSchedule
from replenish_kernel.domain.values import Money
from replenish_kernel.logging_config import get_logger

logger = get_logger("engines.simulation.aggregation")

_ZERO = Decimal("0")

ZERO_LINE_ID = "zero_line"


@dataclass(frozen=True)
class CumulativeSeries:
    """Running cash and profit over the horizon, plus the display series."""

    cash_points: tuple[SeriesPoint, ...]
    profit_points: tuple[SeriesPoint, ...]
    inventory_points: tuple[SeriesPoint, ...]
    min_cash: Decimal
    final_cash: Decimal
    final_profit: Decimal
    breakeven_day: int | None
    profitability_day: int | None


def build_sale_segments(
    sale_periods: Sequence[SalePeriod],
    batch_revenue: Sequence[Decimal],
) -> tuple[tuple[GanttSegment, ...], tuple[GanttSegment, ...]]:
    """Sell bars for every batch that sold, hold bars where stock sat idle first."""
    sell: list[GanttSegment] = []
    hold: list[GanttSegment] = []
    for period in sale_periods:
        if not period.has_sold:
            continue
        i = period.batch_index
        sell.append(GanttSegment(
            kind=SegmentKind.SELL,
            batch_index=i,
            start=period.start_day,
            end=period.end_day,
            revenue=batch_revenue[i],
        ))
        if period.arrival_day is not None and period.start_day > period.arrival_day:
            hold.append(GanttSegment(
                kind=SegmentKind.HOLD,
                batch_index=i,
                start=period.arrival_day,
                end=period.start_day,
                duration=period.start_day - period.arrival_day,
            ))
    return tuple(sell), tuple(hold)


def attribute_stockout(
    start: int,
    sale_periods: Sequence[SalePeriod],
    lookback_days: int,
) -> int:
    """Batch row a stockout starting on ``start`` is drawn on."""
    best = 0
    max_end = -1
    for period in sale_periods:
        end = period.end_day
        if end is not None and end <= start + lookback_days and end > max_end:
            max_end = end
            best = period.batch_index
    return best


def merge_stockout_intervals(
    stockout: Sequence[bool],
    first_sale_day: int | None,
    sale_periods: Sequence[SalePeriod],
    policy: EnginePolicy,
) -> tuple[GanttSegment, ...]:
    """Collapse consecutive stockout days into attributed intervals."""
    if first_sale_day is None:
        return ()

    window_end = min(policy.display_window_days, len(stockout))
    segments: list[GanttSegment] = []

    def close(start: int, end: int) -> None:
        batch = attribute_stockout(start, sale_periods, policy.stockout_lookback_days)
        segments.append(GanttSegment(
            kind=SegmentKind.STOCKOUT,
            batch_index=batch,
            start=start,
            end=end,
            gap_days=end - start,
        ))

    open_start: int | None = None
    for d in range(first_sale_day, window_end):
        if stockout[d]:
            if open_start is None:
                open_start = d
        elif open_start is not None:
            close(open_start, d)
            open_start = None

    return tuple(segments)


def integrate_cumulative(ledger: DailyLedger, policy: EnginePolicy) -> CumulativeSeries:
    """Integrate daily deltas into running cash and profit."""
    cash_points: list[SeriesPoint] = []
    profit_points: list[SeriesPoint] = []
    inventory_points: list[SeriesPoint] = []

    running_cash = _ZERO
    running_profit = _ZERO
    min_cash = _ZERO
    breakeven_day: int | None = None
    profitability_day: int | None = None
    guard = policy.breakeven_guard_days

    for d in range(ledger.horizon):
        prev_cash = running_cash
        prev_profit = running_profit
        running_cash += ledger.cash_change[d]
        running_profit += ledger.profit_change[d]

        if running_cash < min_cash:
            min_cash = running_cash

        if breakeven_day is None and prev_cash < 0 <= running_cash and d > guard:
            breakeven_day = d
        if profitability_day is None and prev_profit < 0 <= running_profit and d > guard:
            profitability_day = d

        if d <= policy.display_window_days:
            cash_points.append(SeriesPoint(d, running_cash))
            profit_points.append(SeriesPoint(d, running_profit))
            inventory_points.append(SeriesPoint(d, ledger.inventory[d]))

    return CumulativeSeries(
        cash_points=tuple(cash_points),
        profit_points=tuple(profit_points),
        inventory_points=tuple(inventory_points),
        min_cash=min_cash,
        final_cash=running_cash,
        final_profit=running_profit,
        breakeven_day=breakeven_day,
        profitability_day=profitability_day,
    )


def settlement_annotations(
    schedule: BatchSchedule,
    ledger: DailyLedger,
    policy: EnginePolicy,
    currency: str,
) -> dict[str, ChartAnnotation]:
    """
    One marker per arrived batch at its approximate full-settlement day.

    The day is the end of selling plus the settlement delay, or arrival
    plus ``unsold_settlement_days`` for a batch that never sold.  A batch is
    profitable when its attributed revenue exceeds its landed cost.
    """
    markers: dict[str, ChartAnnotation] = {}
    for period in ledger.sale_periods:
        if period.arrival_day is None:
            continue
        i = period.batch_index
        if period.end_day is not None:
            day = period.end_day + policy.settlement_delay_days
        else:
            day = period.arrival_day + policy.unsold_settlement_days
        if day >= ledger.horizon:
            continue

        total_cost = schedule.final_quantities[i] * schedule.landed_unit_costs[i]
        margin = ledger.batch_revenue[i] - total_cost
        profitable = ledger.batch_revenue[i] > total_cost
        annotation_id = f"ret_{i}"
        markers[annotation_id] = ChartAnnotation(
            annotation_id=annotation_id,
            day=day,
            tone=AnnotationTone.PROFIT if profitable else AnnotationTone.LOSS,
            lines=(
                f"B{i + 1} {'profit' if profitable else 'loss'}",
                Money.of(margin, currency).thousands_label(),
            ),
            amount=margin,
        )
    return markers


def chunk_recall_events(
    settlements: Sequence[SettlementRecord],
    batch_index: int,
    params: SimulationParams,
    policy: EnginePolicy,
    horizon: int,
) -> tuple[FinancialEvent, ...]:
    """
    Group one batch's settlement records into recall events.

    A chunk opens at a record's day and absorbs later records up to
    ``recall_chunk_days`` after it.  Chunks worth more than
    ``recall_min_amount`` emit an event ``recall_marker_offset_days`` after
    the chunk start.
    """
    if not settlements:
        return ()

    events: list[FinancialEvent] = []
    currency = params.terms.base_currency

    def emit(start: int, amount: Decimal) -> None:
        if amount <= policy.recall_min_amount:
            return
        day = start + policy.recall_marker_offset_days
        if day >= horizon:
            return
        events.append(FinancialEvent(
            day=day,
            event_type=FinancialEventType.RECALL,
            amount=amount,
            batch_index=batch_index,
            label=(
                f"#{batch_index + 1} recall {Money.of(amount, currency).thousands_label()} "
                f"{short_label(params.sim_start, day)}"
            ),
        ))

    records = sorted(settlements, key=lambda r: r.day)
    chunk_start = records[0].day
    chunk_amount = _ZERO
    for record in records:
        if record.day - chunk_start > policy.recall_chunk_days:
            emit(chunk_start, chunk_amount)
            chunk_start = record.day
            chunk_amount = _ZERO
        chunk_amount += record.amount
    emit(chunk_start, chunk_amount)

    return tuple(events)


def _ratio(numerator: Decimal, min_cash: Decimal) -> Decimal:
    if min_cash == 0:
        return _ZERO
    return abs(numerator / min_cash)


def aggregate(
    params: SimulationParams,
    schedule: BatchSchedule,
    ledger: DailyLedger,
    policy: EnginePolicy,
) -> SimulationResult:
    """Assemble the published SimulationResult from the stage outputs."""
    horizon = ledger.horizon
    currency = params.terms.base_currency

    sell, hold = build_sale_segments(ledger.sale_periods, ledger.batch_revenue)
    stockouts = merge_stockout_intervals(
        ledger.stockout, ledger.first_sale_day, ledger.sale_periods, policy,
    )
    series = integrate_cumulative(ledger, policy)

    annotations = dict(schedule.annotations)
    annotations.update(settlement_annotations(schedule, ledger, policy, currency))
    annotations[ZERO_LINE_ID] = ChartAnnotation(
        annotation_id=ZERO_LINE_ID, day=None, tone=AnnotationTone.NEUTRAL,
    )

    recalls: list[FinancialEvent] = []
    for i, records in enumerate(ledger.settlements):
        recalls.extend(chunk_recall_events(records, i, params, policy, horizon))
    financial_events = tuple(sorted(
        schedule.events + tuple(recalls), key=lambda e: (e.day, e.batch_index),
    ))

    total_stockout_days = sum(s.gap_days for s in stockouts)
    kpis = SimulationKpis(
        min_cash=series.min_cash,
        final_cash=series.final_cash,
        total_revenue=ledger.total_revenue,
        total_net_profit=ledger.total_net_profit,
        roi=_ratio(ledger.total_net_profit, series.min_cash),
        turnover=_ratio(ledger.total_revenue, series.min_cash),
        breakeven_day=series.breakeven_day,
        profitability_day=series.profitability_day,
        total_stockout_days=total_stockout_days,
        total_gmv=ledger.total_gmv,
        total_sold_qty=ledger.total_sold_qty,
        first_sale_day=ledger.first_sale_day,
        breakeven_date=(
            day_to_date(params.sim_start, series.breakeven_day)
            if series.breakeven_day is not None else None
        ),
        profitability_date=(
            day_to_date(params.sim_start, series.profitability_day)
            if series.profitability_day is not None else None
        ),
    )

    logger.debug("aggregation_completed", extra={
        "sell_segments": len(sell),
        "hold_segments": len(hold),
        "stockout_segments": len(stockouts),
        "recall_events": len(recalls),
        "annotation_count": len(annotations),
    })

    return SimulationResult(
        sim_start=params.sim_start,
        currency=currency,
        settlement_currency=params.terms.settlement_currency,
        horizon_days=horizon,
        x_min=0,
        x_max=max(min(policy.display_window_days, horizon - 1), 0),
        cash_points=series.cash_points,
        profit_points=series.profit_points,
        inventory_points=series.inventory_points,
        daily_inventory=ledger.inventory,
        daily_cash_change=ledger.cash_change,
        daily_cash_in=ledger.cash_in,
        daily_cash_out=ledger.cash_out,
        daily_profit_change=ledger.profit_change,
        daily_stockout=ledger.stockout,
        production=schedule.production,
        shipping=schedule.shipping,
        hold=hold,
        sell=sell,
        stockout=stockouts,
        kpis=kpis,
        annotations=MappingProxyType(annotations),
        financial_events=financial_events,
        sale_periods=ledger.sale_periods,
        batch_revenue=ledger.batch_revenue,
    )
