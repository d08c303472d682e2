"""
Property-based tests for the replenishment simulation.

Hypothesis generates batch plans (quantities, order offsets, lead times,
shipment types) and monthly demand, and checks the invariants that must
hold for every plan:
- quantity conservation between arrivals, sales and ending stock
- exact cash and profit identities against the daily deltas
- stockout days only on or after the first sale
- FIFO: a batch never starts selling before an earlier-arriving batch
- purity: the same plan gives the same result
"""

from datetime import date
from decimal import Decimal

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from replenish_engines.policy import EnginePolicy
from replenish_engines.simulation import (
    BatchSpec,
    GlobalTerms,
    LogisticsLane,
    MonthlyFees,
    PaymentTerms,
    SalesPlan,
    ShipmentType,
    SimulationParams,
    simulate_replenishment,
)

pytestmark = pytest.mark.slow

# A short horizon keeps each example fast without changing the rules.
POLICY = EnginePolicy(horizon_days=150, display_window_days=140)

LANES = {
    ShipmentType.SEA: LogisticsLane(days=30, price="2"),
    ShipmentType.AIR: LogisticsLane(days=10, price="15"),
    ShipmentType.EXPRESS: LogisticsLane(days="4.5", price="25"),
}


@st.composite
def batch_specs(draw, index: int):
    return BatchSpec(
        batch_id=f"B{index}",
        name=f"Batch {index}",
        shipment_type=draw(st.sampled_from(list(ShipmentType))),
        qty=draw(st.integers(min_value=0, max_value=2000)),
        extra_percent=draw(st.integers(min_value=0, max_value=20)),
        offset=draw(st.integers(min_value=-5, max_value=120)),
        prod_days=draw(st.decimals(min_value=0, max_value=30, places=1)),
    )


@st.composite
def simulation_params(draw):
    count = draw(st.integers(min_value=1, max_value=4))
    batches = tuple(draw(batch_specs(i + 1)) for i in range(count))
    daily = draw(st.lists(
        st.decimals(min_value=0, max_value=80, places=2), min_size=12, max_size=12,
    ))
    return SimulationParams(
        sim_start=draw(st.dates(min_value=date(2024, 1, 1), max_value=date(2026, 12, 31))),
        batches=batches,
        terms=GlobalTerms(
            unit_cost=Decimal("20"),
            exch_rate=Decimal("7.1"),
            payment_terms=PaymentTerms(deposit=30, balance=70),
        ),
        logistics=LANES,
        sales=SalesPlan(
            daily_sales=daily,
            prices=(Decimal("29.99"),) * 12,
            fees=(MonthlyFees(commission="0.15", tacos="0.1", fba="5.2"),),
        ),
    )


class TestSimulationProperties:

    @given(params=simulation_params())
    @settings(max_examples=40, deadline=None, suppress_health_check=[HealthCheck.too_slow])
    def test_cash_and_profit_identities(self, params):
        result = simulate_replenishment(params, POLICY)

        assert sum(result.daily_cash_change) == result.kpis.final_cash
        assert sum(result.daily_profit_change) == result.kpis.total_net_profit
        assert result.kpis.min_cash <= 0
        assert all(p.value >= result.kpis.min_cash for p in result.cash_points)

    @given(params=simulation_params())
    @settings(max_examples=40, deadline=None, suppress_health_check=[HealthCheck.too_slow])
    def test_quantity_conservation(self, params):
        result = simulate_replenishment(params, POLICY)

        arrived = sum(
            batch.final_qty
            for batch, period in zip(params.batches, result.sale_periods)
            if period.arrival_day is not None and batch.final_qty > 0
        )
        assert result.kpis.total_sold_qty + result.daily_inventory[-1] == arrived
        assert all(q >= 0 for q in result.daily_inventory)

    @given(params=simulation_params())
    @settings(max_examples=40, deadline=None, suppress_health_check=[HealthCheck.too_slow])
    def test_stockouts_only_after_first_sale(self, params):
        result = simulate_replenishment(params, POLICY)
        first = result.kpis.first_sale_day

        if first is None:
            assert not any(result.daily_stockout)
        else:
            assert not any(result.daily_stockout[:first])
        assert result.kpis.total_stockout_days == sum(s.gap_days for s in result.stockout)

    @given(params=simulation_params())
    @settings(max_examples=40, deadline=None, suppress_health_check=[HealthCheck.too_slow])
    def test_fifo_sale_order(self, params):
        """A batch that started selling later arrived no earlier."""
        result = simulate_replenishment(params, POLICY)
        sold = [p for p in result.sale_periods if p.start_day is not None]

        for a in sold:
            for b in sold:
                if (a.arrival_day, a.batch_index) < (b.arrival_day, b.batch_index):
                    assert a.start_day <= b.start_day

    @given(params=simulation_params())
    @settings(max_examples=20, deadline=None, suppress_health_check=[HealthCheck.too_slow])
    def test_deterministic(self, params):
        assert simulate_replenishment(params, POLICY) == simulate_replenishment(params, POLICY)
