"""
Module: replenish_engines.simulation.timeline
Responsibility:
    Batch timeline and event preprocessor.  Converts each batch of the
    plan into absolute day offsets (order, ship, arrival), schedules its
    deposit, balance and freight cash-out events and its arrival, and
    emits the production and shipping timeline bars.

Architecture position:
    Engines -- first stage of the simulation pipeline, zero I/O.
    Output feeds ``loop.run_daily_loop`` and ``aggregation.aggregate``.

Invariants enforced:
    - Cash events land on whole days: ``floor`` of the order, ship and
      arrival offsets.
    - Events outside ``[0, horizon)`` are dropped without error.
    - Zero-amount cash events are not emitted.  The deposit and freight
      annotations are still placed so their ids stay stable; a zero
      balance gets none.
    - Same-day events are kept separately; the loop sums them.

Failure modes:
    - None for a validated SimulationParams.

Usage:
    schedule = build_batch_schedule(params, horizon=400)
    schedule.arrivals[40]   # (ArrivalEvent(...),)
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType

from replenish_engines.dates import short_label
from replenish_engines.simulation.params import SimulationParams
from replenish_engines.simulation.records import (
    AnnotationTone,
    ArrivalEvent,
    ChartAnnotation,
    FinancialEvent,
    FinancialEventType,
    GanttSegment,
    SegmentKind,
)
from replenish_kernel.domain.values import Money
from replenish_kernel.logging_config import get_logger

logger = get_logger("engines.simulation.timeline")

_ANNOTATION_PREFIX = {
    FinancialEventType.DEPOSIT: "dep",
    FinancialEventType.BALANCE: "bal",
    FinancialEventType.FREIGHT: "fre",
}

_TONES = {
    FinancialEventType.DEPOSIT: AnnotationTone.DEPOSIT,
    FinancialEventType.BALANCE: AnnotationTone.BALANCE,
    FinancialEventType.FREIGHT: AnnotationTone.FREIGHT,
}


@dataclass(frozen=True)
class BatchSchedule:
    """
    Everything the later stages need to know about the batch plan.

    ``final_quantities`` and ``landed_unit_costs`` are indexed by batch;
    ``arrivals`` maps a day to the batches landing that day.
    """

    final_quantities: tuple[Decimal, ...]
    landed_unit_costs: tuple[Decimal, ...]
    events: tuple[FinancialEvent, ...]
    arrivals: Mapping[int, tuple[ArrivalEvent, ...]]
    production: tuple[GanttSegment, ...]
    shipping: tuple[GanttSegment, ...]
    annotations: Mapping[str, ChartAnnotation]


def build_batch_schedule(params: SimulationParams, horizon: int) -> BatchSchedule:
    """Schedule every batch of ``params`` within ``horizon`` days."""
    terms = params.terms
    deposit_rate = terms.payment_terms.deposit_rate
    balance_rate = terms.payment_terms.balance_rate

    final_quantities: list[Decimal] = []
    landed: list[Decimal] = []
    events: list[FinancialEvent] = []
    arrivals: dict[int, list[ArrivalEvent]] = {}
    production: list[GanttSegment] = []
    shipping: list[GanttSegment] = []
    annotations: dict[str, ChartAnnotation] = {}

    def schedule_cash_out(
        index: int,
        event_type: FinancialEventType,
        day: int,
        amount: Decimal,
    ) -> None:
        if not 0 <= day < horizon:
            return
        ordinal = f"#{index + 1} {event_type.value}"
        if amount != 0:
            events.append(FinancialEvent(
                day=day,
                event_type=event_type,
                amount=-amount,
                batch_index=index,
                label=f"{ordinal} {short_label(params.sim_start, day)}",
            ))
        elif event_type == FinancialEventType.BALANCE:
            return
        annotation_id = f"{_ANNOTATION_PREFIX[event_type]}_{index}"
        annotations[annotation_id] = ChartAnnotation(
            annotation_id=annotation_id,
            day=day,
            tone=_TONES[event_type],
            lines=(ordinal, Money.of(amount, terms.base_currency).thousands_label()),
            amount=-amount,
        )

    for i, batch in enumerate(params.batches):
        lane = params.lane(batch.shipment_type)
        final_qty = batch.final_qty

        t0 = batch.offset
        t1 = t0 + batch.prod_days
        t2 = t1 + lane.days
        freight_day = math.floor(t2)

        cost_prod = final_qty * terms.unit_cost
        cost_freight = final_qty * lane.price

        schedule_cash_out(i, FinancialEventType.DEPOSIT, math.floor(t0), cost_prod * deposit_rate)
        schedule_cash_out(i, FinancialEventType.BALANCE, math.floor(t1), cost_prod * balance_rate)
        schedule_cash_out(i, FinancialEventType.FREIGHT, freight_day, cost_freight)

        production.append(GanttSegment(
            kind=SegmentKind.PRODUCTION, batch_index=i, start=t0, end=t1, cost=cost_prod,
        ))
        shipping.append(GanttSegment(
            kind=SegmentKind.SHIPPING, batch_index=i, start=t1, end=t2, freight=cost_freight,
        ))

        arrivals.setdefault(freight_day, []).append(ArrivalEvent(
            batch_index=i,
            qty=final_qty,
            unit_cost=terms.unit_cost,
            unit_freight=lane.price,
            arrival_day=freight_day,
        ))

        final_quantities.append(final_qty)
        landed.append(terms.unit_cost + lane.price)

        logger.debug("batch_scheduled", extra={
            "batch_index": i,
            "batch_id": batch.batch_id,
            "final_qty": str(final_qty),
            "order_day": str(t0),
            "ship_day": str(t1),
            "arrival_day": freight_day,
        })

    events.sort(key=lambda e: e.day)

    logger.debug("batch_schedule_built", extra={
        "batch_count": len(params.batches),
        "event_count": len(events),
        "arrival_days": sorted(arrivals),
        "horizon": horizon,
    })

    return BatchSchedule(
        final_quantities=tuple(final_quantities),
        landed_unit_costs=tuple(landed),
        events=tuple(events),
        arrivals=MappingProxyType({day: tuple(evs) for day, evs in arrivals.items()}),
        production=tuple(production),
        shipping=tuple(shipping),
        annotations=MappingProxyType(annotations),
    )
