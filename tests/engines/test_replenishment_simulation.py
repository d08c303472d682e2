"""
End-to-end tests for simulate_replenishment.

The reference plan is one sea batch of 1000 units at 20 CNY, ordered on
day 0, shipped on day 10 and landing on day 40.  It sells 50 units a day
at $30 with 15% commission, 10% TACoS and $5 FBA, so every unit recalls
17.5 USD = 122.5 CNY against a landed cost of 22 CNY.
"""

from decimal import Decimal

import pytest

from replenish_engines.policy import DEFAULT_POLICY, EnginePolicy
from replenish_engines.simulation import (
    FinancialEventType,
    LogisticsLane,
    MonthlyFees,
    SalesPlan,
    ShipmentType,
    simulate_replenishment,
)
from replenish_engines.simulation.loop import run_daily_loop
from replenish_engines.simulation.timeline import build_batch_schedule


class TestReferencePlan:
    """Hand-computed KPIs for the single-batch plan."""

    @pytest.fixture
    def result(self, single_batch_params):
        return simulate_replenishment(single_batch_params)

    def test_min_cash_is_total_outlay(self, result):
        """Deposit 6000 + balance 14000 + freight 2000 before any proceeds."""
        assert result.kpis.min_cash == Decimal("-22000")

    def test_first_sale_on_arrival(self, result):
        assert result.kpis.first_sale_day == 40
        assert result.daily_inventory[39] == 0
        assert result.daily_inventory[40] == Decimal("950")

    def test_inventory_depletes_after_twenty_days(self, result):
        assert result.daily_inventory[58] == Decimal("50")
        assert result.daily_inventory[59] == 0
        assert result.kpis.total_sold_qty == Decimal("1000")

    def test_revenue_and_profit(self, result):
        assert result.kpis.total_revenue == Decimal("122500")
        assert result.kpis.total_net_profit == Decimal("100500")
        assert result.kpis.total_gmv == Decimal("30000")

    def test_proceeds_settle_fourteen_days_later(self, result):
        assert result.daily_cash_in[53] == 0
        assert result.daily_cash_in[54] == Decimal("6125")
        assert result.daily_cash_in[73] == Decimal("6125")
        assert result.daily_cash_in[74] == 0

    def test_breakeven_day(self, result):
        """-22000 + 4 * 6125 >= 0 first on the fourth payout day."""
        assert result.kpis.breakeven_day == 57
        assert result.cash_points[56].value == Decimal("-3625")
        assert result.cash_points[57].value == Decimal("2500")
        assert str(result.kpis.breakeven_date) == "2025-02-27"

    def test_profit_never_negative_has_no_profitability_day(self, result):
        assert result.kpis.profitability_day is None
        assert result.kpis.profitability_date is None

    def test_final_cash(self, result):
        assert result.kpis.final_cash == Decimal("100500")

    def test_roi_and_turnover(self, result):
        assert result.kpis.roi == Decimal("100500") / Decimal("22000")
        assert result.kpis.turnover == Decimal("122500") / Decimal("22000")

    def test_sell_out_without_restock_reports_no_interval(self, result):
        """The run from day 60 is never closed by a restock, so it is not counted."""
        assert result.daily_stockout[60]
        assert result.stockout == ()
        assert result.kpis.total_stockout_days == 0

    def test_sell_segment_without_hold(self, result):
        assert len(result.sell) == 1
        sell = result.sell[0]
        assert (sell.start, sell.end) == (40, 60)
        assert sell.revenue == Decimal("122500")
        assert result.hold == ()

    def test_settlement_marker(self, result):
        marker = result.annotations["ret_0"]
        assert marker.day == 74
        assert marker.lines == ("B1 profit", "¥101k")
        assert marker.amount == Decimal("100500")

    def test_recall_events_chunked(self, result):
        recalls = [e for e in result.financial_events if e.event_type == FinancialEventType.RECALL]
        assert [(e.day, e.amount) for e in recalls] == [
            (61, Decimal("91875")),
            (76, Decimal("30625")),
        ]

    def test_display_window(self, result):
        assert result.horizon_days == 400
        assert (result.x_min, result.x_max) == (0, 365)
        assert len(result.cash_points) == 366
        assert len(result.daily_cash_change) == 400


class TestScenarios:
    """Edge-case plans."""

    def test_empty_plan_returns_none(self, make_params):
        assert simulate_replenishment(make_params(batches=[])) is None

    def test_arrival_past_horizon(self, make_params, make_batch):
        """Only the deposit falls inside the horizon; nothing is ever sold."""
        params = make_params(batches=[make_batch(offset=390, prod_days=10)])
        result = simulate_replenishment(params)

        assert result.kpis.first_sale_day is None
        assert result.stockout == ()
        assert result.kpis.total_revenue == 0
        assert result.kpis.min_cash == Decimal("-6000")
        assert result.sell == ()
        assert "ret_0" not in result.annotations

    def test_zero_payment_terms(self, make_params, make_terms):
        result = simulate_replenishment(make_params(terms=make_terms(deposit=0, balance=0)))

        assert result.kpis.min_cash == Decimal("-2000")
        assert result.financial_events[0].event_type == FinancialEventType.FREIGHT

    def test_no_demand_means_no_stockout(self, make_params, flat_sales):
        result = simulate_replenishment(make_params(sales=flat_sales(daily=0)))

        assert result.kpis.first_sale_day is None
        assert result.stockout == ()
        assert result.daily_inventory[-1] == Decimal("1000")
        assert result.kpis.roi == 0

    def test_demand_follows_calendar_month(self, make_params, make_batch):
        """Stock on hand from day 0 waits for February demand."""
        sales = SalesPlan(
            daily_sales=(Decimal("0"),) + (Decimal("10"),) * 11,
            prices=(Decimal("30"),) * 12,
            fees=(MonthlyFees(),),
        )
        params = make_params(
            batches=[make_batch(offset=0, prod_days=0)],
            logistics={ShipmentType.SEA: LogisticsLane(days=0, price=2)},
            sales=sales,
        )
        result = simulate_replenishment(params)

        assert result.kpis.first_sale_day == 31
        assert not any(result.daily_stockout[:31])
        assert result.hold[0].start == 0
        assert result.hold[0].end == 31
        assert result.hold[0].duration == 31

    def test_restock_closes_stockout_interval(self, make_params, make_batch):
        """Sold out on day 60, restocked on day 120; the later sell-out stays open."""
        params = make_params(batches=[make_batch(1), make_batch(2, offset=80)])
        result = simulate_replenishment(params)

        assert [(s.start, s.end, s.gap_days, s.batch_index) for s in result.stockout] == [
            (60, 120, 60, 0),
        ]
        assert result.daily_stockout[140]
        assert result.kpis.total_stockout_days == 60

    def test_unmet_demand_within_epsilon_is_not_stockout(self, make_params, make_batch, flat_sales):
        """Selling out 0.005 units short of demand does not trip the flag."""
        params = make_params(batches=[make_batch(qty=100)], sales=flat_sales(daily="100.005"))
        ledger = run_daily_loop(params, build_batch_schedule(params, 400), 400, DEFAULT_POLICY)

        assert ledger.first_sale_day == 40
        assert ledger.stockout[40] is False
        assert ledger.stockout[41] is True

    def test_max_days_caps_horizon(self, make_params):
        result = simulate_replenishment(make_params(max_days=100))

        assert result.horizon_days == 100
        assert len(result.daily_inventory) == 100
        assert len(result.cash_points) == 100
        assert result.x_max == 99
        assert result.stockout == ()

    def test_max_days_cannot_extend_horizon(self, make_params):
        result = simulate_replenishment(make_params(max_days=1000))

        assert result.horizon_days == 400
        assert len(result.daily_cash_change) == 400

    @pytest.mark.parametrize("max_days, expected", [(None, 400), (120, 120), (400, 400), (-5, 0)])
    def test_resolve_horizon(self, max_days, expected):
        assert DEFAULT_POLICY.resolve_horizon(max_days) == expected

    def test_settlements_past_horizon_dropped(self, make_params):
        """With a 60-day horizon only payouts on days 54..59 land."""
        result = simulate_replenishment(make_params(max_days=60))

        assert result.kpis.total_revenue == Decimal("122500")
        assert result.kpis.final_cash == Decimal("-22000") + 6 * Decimal("6125")
        assert result.kpis.breakeven_day == 57

    def test_policy_override(self, single_batch_params):
        policy = EnginePolicy(settlement_delay_days=30)
        result = simulate_replenishment(single_batch_params, policy=policy)

        assert result.daily_cash_in[70] == Decimal("6125")
        assert result.annotations["ret_0"].day == 90


class TestFifo:
    """Oldest stock sells first regardless of batch order."""

    def test_earlier_arrival_sells_first(self, make_params, make_batch):
        """An air batch ordered alongside a sea batch lands and sells first."""
        params = make_params(batches=[
            make_batch(1),
            make_batch(2, shipment_type=ShipmentType.AIR),
        ])
        result = simulate_replenishment(params)

        sea, air = result.sale_periods
        assert air.arrival_day == 20
        assert (air.start_day, air.end_day) == (20, 40)
        assert (sea.start_day, sea.end_day) == (40, 60)
        assert result.stockout == ()

    def test_day_split_across_lots(self, make_params, make_batch):
        """30 units from the first lot, then 20 from the second."""
        params = make_params(batches=[make_batch(1, qty=30), make_batch(2, qty=1000)])
        schedule = build_batch_schedule(params, 400)
        ledger = run_daily_loop(params, schedule, 400, DEFAULT_POLICY)

        assert ledger.batch_sold_qty == (Decimal("30"), Decimal("1000"))
        assert ledger.sale_periods[0].end_day == 41
        assert ledger.sale_periods[1].start_day == 40
        assert ledger.batch_revenue[0] == Decimal("30") * Decimal("122.5")


class TestInvariants:
    """Properties that hold for any plan."""

    def test_quantity_conservation(self, make_params, make_batch, flat_sales):
        params = make_params(
            batches=[make_batch(1, qty=700), make_batch(2, qty=400, offset=60)],
            sales=flat_sales(daily=7),
        )
        schedule = build_batch_schedule(params, 400)
        ledger = run_daily_loop(params, schedule, 400, DEFAULT_POLICY)

        assert ledger.total_sold_qty + ledger.ending_inventory == sum(schedule.final_quantities)
        assert ledger.ending_inventory == sum(lot.qty_remaining for lot in ledger.remaining_lots)

    def test_cash_and_profit_identities(self, make_params, make_batch):
        params = make_params(batches=[
            make_batch(1), make_batch(2, offset=45), make_batch(3, offset=90, extra_percent=5),
        ])
        result = simulate_replenishment(params)

        assert sum(result.daily_cash_change) == result.kpis.final_cash
        assert sum(result.daily_profit_change) == result.kpis.total_net_profit
        assert min(p.value for p in result.cash_points) >= result.kpis.min_cash

    def test_more_demand_never_fewer_stockout_days(self, make_params, make_batch, flat_sales):
        batches = [make_batch(1), make_batch(2, offset=80)]
        slow = simulate_replenishment(make_params(batches=batches, sales=flat_sales(daily=50)))
        fast = simulate_replenishment(make_params(batches=batches, sales=flat_sales(daily=100)))

        assert slow.kpis.total_stockout_days == 60
        assert fast.kpis.total_stockout_days == 70
        assert fast.kpis.total_stockout_days >= slow.kpis.total_stockout_days

    def test_stockout_days_equal_interval_gaps(self, make_params, make_batch):
        params = make_params(batches=[make_batch(1), make_batch(2, offset=80)])
        result = simulate_replenishment(params)

        assert result.kpis.total_stockout_days == sum(s.gap_days for s in result.stockout)
        for gap in result.stockout:
            assert all(result.daily_stockout[gap.start:gap.end])

    def test_deterministic(self, single_batch_params):
        assert simulate_replenishment(single_batch_params) == simulate_replenishment(single_batch_params)


class TestLogging:
    """Structured log records emitted by a run."""

    def test_lifecycle_and_trace(self, single_batch_params, captured_logs):
        simulate_replenishment(single_batch_params)
        messages = [r["message"] for r in captured_logs()]

        assert "replenishment_simulation_started" in messages
        assert "replenishment_simulation_completed" in messages
        assert "REPLENISH_ENGINE_TRACE" in messages

    def test_completed_record_carries_kpis(self, single_batch_params, captured_logs):
        simulate_replenishment(single_batch_params)
        done = next(r for r in captured_logs() if r["message"] == "replenishment_simulation_completed")

        assert Decimal(done["min_cash"]) == Decimal("-22000")
        assert done["breakeven_day"] == 57
        assert done["total_stockout_days"] == 0

    def test_skipped_plan_logged(self, make_params, captured_logs):
        simulate_replenishment(make_params(batches=[]))
        skipped = [r for r in captured_logs() if r["message"] == "replenishment_simulation_skipped"]
        assert skipped[0]["reason"] == "no_batches"
