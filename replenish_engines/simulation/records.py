"""
Value records shared by the simulation stages.

Events and segments are produced by the batch timeline and the
post-processor; chart annotations by both.  All records are frozen.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class FinancialEventType(str, Enum):
    DEPOSIT = "deposit"
    BALANCE = "balance"
    FREIGHT = "freight"
    RECALL = "recall"


class SegmentKind(str, Enum):
    PRODUCTION = "production"
    SHIPPING = "shipping"
    HOLD = "hold"
    SELL = "sell"
    STOCKOUT = "stockout"


class AnnotationTone(str, Enum):
    """Colour family a renderer should use for an annotation."""

    DEPOSIT = "deposit"
    BALANCE = "balance"
    FREIGHT = "freight"
    PROFIT = "profit"
    LOSS = "loss"
    NEUTRAL = "neutral"


@dataclass(frozen=True, slots=True)
class FinancialEvent:
    """A scheduled cash delta.  ``amount`` is negative for cash-out."""

    day: int
    event_type: FinancialEventType
    amount: Decimal
    batch_index: int
    label: str


@dataclass(frozen=True, slots=True)
class ArrivalEvent:
    """A batch landing in sellable stock on ``arrival_day``."""

    batch_index: int
    qty: Decimal
    unit_cost: Decimal
    unit_freight: Decimal
    arrival_day: int


@dataclass(frozen=True, slots=True)
class SalePeriod:
    """
    First and last-plus-one day units of a batch were sold, and its arrival.

    Any field is None when the event never happened within the horizon.
    """

    batch_index: int
    start_day: int | None
    end_day: int | None
    arrival_day: int | None

    @property
    def has_sold(self) -> bool:
        return self.start_day is not None and self.end_day is not None


@dataclass(frozen=True, slots=True)
class GanttSegment:
    """
    One bar of the timeline chart, ``[start, end)`` in simulation days.

    Production and shipping bars keep fractional bounds when lead times are
    fractional.  Exactly one of the tag fields is set, depending on kind.
    """

    kind: SegmentKind
    batch_index: int
    start: Decimal | int
    end: Decimal | int
    cost: Decimal | None = None
    freight: Decimal | None = None
    revenue: Decimal | None = None
    duration: int | None = None
    gap_days: int | None = None


@dataclass(frozen=True, slots=True)
class ChartAnnotation:
    """
    A marker for the line chart.

    Day markers are vertical lines at ``day``; the zero line is a
    horizontal rule with ``day`` None.  ``lines`` is the badge text.
    """

    annotation_id: str
    day: int | None
    tone: AnnotationTone
    lines: tuple[str, ...] = ()
    amount: Decimal | None = None

    @property
    def is_zero_line(self) -> bool:
        return self.day is None
