"""
EnginePolicy -- Named constants governing the replenishment simulation.

These values were fixed numbers in the planner's first engine.  They are
collected here so they are visible, documented and overridable per call
(``simulate_replenishment(params, policy=...)``) without being read from
configuration files.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True, slots=True)
class EnginePolicy:
    """
    Immutable set of simulation constants.

    Fields:
        horizon_days: Number of simulated days when the params do not cap it.
        settlement_delay_days: Days between a sale and the platform paying out.
        stockout_lookback_days: Window before a stockout start in which a
            sell period may end and still be blamed for the gap.  This is a
            display heuristic, not an accounting rule.
        display_window_days: Last day (inclusive) of the display series and
            of stockout interval detection.
        breakeven_guard_days: Crossings on or before this day are ignored so
            the opening zero balance is not reported as breakeven.
        stockout_epsilon: Unmet demand at or below this is not a stockout.
        unsold_settlement_days: Settlement marker offset from arrival for a
            batch that never sold.
        recall_chunk_days: Maximum spread of settlement records in one
            recall chunk.
        recall_min_amount: Chunks at or below this amount emit no event.
        recall_marker_offset_days: Recall event day relative to chunk start.
    """

    horizon_days: int = 400
    settlement_delay_days: int = 14
    stockout_lookback_days: int = 5
    display_window_days: int = 365
    breakeven_guard_days: int = 10
    stockout_epsilon: Decimal = Decimal("0.01")
    unsold_settlement_days: int = 60
    recall_chunk_days: int = 14
    recall_min_amount: Decimal = Decimal("10")
    recall_marker_offset_days: int = 7

    def resolve_horizon(self, max_days: int | None) -> int:
        """Number of days to simulate; ``max_days`` can shorten the horizon, never extend it."""
        if max_days is None:
            return self.horizon_days
        return min(max(int(max_days), 0), self.horizon_days)


DEFAULT_POLICY = EnginePolicy()
