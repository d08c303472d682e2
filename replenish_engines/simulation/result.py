"""
Module: replenish_engines.simulation.result
Responsibility:
    The immutable output of one simulation run: display series, full
    horizon daily arrays, timeline segments, KPIs, chart annotations and
    financial events, plus presentation helpers (``day_metrics`` and
    ``kpi_summary``).

Architecture position:
    Engines -- pure data.  Built once by ``aggregation.aggregate`` and
    never mutated; ``annotations`` is a read-only mapping view.

Invariants enforced:
    - Amounts are exact Decimals in base currency, except ``total_gmv``
      which is in settlement currency.
    - Rounding to currency precision happens only in ``kpi_summary``.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from replenish_engines.dates import day_to_date, short_label
from replenish_engines.simulation.records import (
    ChartAnnotation,
    FinancialEvent,
    GanttSegment,
    SalePeriod,
)
from replenish_kernel.domain.values import Money


@dataclass(frozen=True, slots=True)
class SeriesPoint:
    """One chart point: ``value`` on simulation ``day``."""

    day: int
    value: Decimal


@dataclass(frozen=True, slots=True)
class SimulationKpis:
    """
    Scalar summary of a run.

    ``roi`` and ``turnover`` are ratios to the deepest cash exposure
    (``|x / min_cash|``) and are zero when cash never went negative.
    Day fields are None when the event never happened.
    """

    min_cash: Decimal
    final_cash: Decimal
    total_revenue: Decimal
    total_net_profit: Decimal
    roi: Decimal
    turnover: Decimal
    breakeven_day: int | None
    profitability_day: int | None
    total_stockout_days: int
    total_gmv: Decimal
    total_sold_qty: Decimal
    first_sale_day: int | None
    breakeven_date: date | None
    profitability_date: date | None


@dataclass(frozen=True, slots=True)
class DayMetric:
    """One row of the daily breakdown table."""

    day: int
    date: date
    label: str
    inventory: Decimal
    cash_balance: Decimal
    accumulated_profit: Decimal
    cash_in: Decimal
    cash_out: Decimal
    profit: Decimal
    is_stockout: bool


@dataclass(frozen=True)
class SimulationResult:
    """Complete, internally consistent outcome of ``simulate_replenishment``."""

    sim_start: date
    currency: str
    settlement_currency: str
    horizon_days: int
    x_min: int
    x_max: int

    cash_points: tuple[SeriesPoint, ...]
    profit_points: tuple[SeriesPoint, ...]
    inventory_points: tuple[SeriesPoint, ...]

    daily_inventory: tuple[Decimal, ...]
    daily_cash_change: tuple[Decimal, ...]
    daily_cash_in: tuple[Decimal, ...]
    daily_cash_out: tuple[Decimal, ...]
    daily_profit_change: tuple[Decimal, ...]
    daily_stockout: tuple[bool, ...]

    production: tuple[GanttSegment, ...]
    shipping: tuple[GanttSegment, ...]
    hold: tuple[GanttSegment, ...]
    sell: tuple[GanttSegment, ...]
    stockout: tuple[GanttSegment, ...]

    kpis: SimulationKpis
    annotations: Mapping[str, ChartAnnotation]
    financial_events: tuple[FinancialEvent, ...]
    sale_periods: tuple[SalePeriod, ...]
    batch_revenue: tuple[Decimal, ...]

    def day_metrics(self) -> Iterator[DayMetric]:
        """Yield one DayMetric per display day."""
        for cash, profit, inv in zip(self.cash_points, self.profit_points, self.inventory_points):
            d = cash.day
            yield DayMetric(
                day=d,
                date=day_to_date(self.sim_start, d),
                label=short_label(self.sim_start, d),
                inventory=inv.value,
                cash_balance=cash.value,
                accumulated_profit=profit.value,
                cash_in=self.daily_cash_in[d],
                cash_out=self.daily_cash_out[d],
                profit=self.daily_profit_change[d],
                is_stockout=self.daily_stockout[d],
            )

    def kpi_summary(self) -> dict[str, Any]:
        """KPIs rounded to currency precision for display or JSON export."""
        k = self.kpis

        def money(amount: Decimal, currency: str) -> Money:
            return Money.of(amount, currency).round()

        return {
            "min_cash": money(k.min_cash, self.currency),
            "final_cash": money(k.final_cash, self.currency),
            "total_revenue": money(k.total_revenue, self.currency),
            "total_net_profit": money(k.total_net_profit, self.currency),
            "total_gmv": money(k.total_gmv, self.settlement_currency),
            "roi": k.roi.quantize(Decimal("0.0001")),
            "turnover": k.turnover.quantize(Decimal("0.0001")),
            "total_sold_qty": k.total_sold_qty,
            "total_stockout_days": k.total_stockout_days,
            "first_sale_day": k.first_sale_day,
            "breakeven_day": k.breakeven_day,
            "breakeven_date": k.breakeven_date,
            "profitability_day": k.profitability_day,
            "profitability_date": k.profitability_date,
        }
