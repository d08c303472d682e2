"""Day-offset helpers: simulation day index to calendar date, month slot and label."""

from __future__ import annotations

from datetime import date, timedelta


def day_to_date(sim_start: date, day: int) -> date:
    """Calendar date of simulation day ``day`` (day 0 is ``sim_start``)."""
    return sim_start + timedelta(days=day)


def month_index(sim_start: date, day: int) -> int:
    """Zero-based calendar month (0 = January) of simulation day ``day``."""
    return day_to_date(sim_start, day).month - 1


def short_label(sim_start: date, day: int) -> str:
    """``M/D`` label used on charts and event names, e.g. ``3/7``."""
    d = day_to_date(sim_start, day)
    return f"{d.month}/{d.day}"
