"""Tests for per-unit economics under monthly fee schedules."""

from decimal import Decimal

from replenish_engines.simulation import MonthlyFees, SalesPlan, compute_unit_economics


class TestComputeUnitEconomics:
    """Unit recall = (price - commission - ads - fixed) * exchange rate."""

    def setup_method(self):
        self.fees = MonthlyFees(
            commission="0.15", tacos="0.10", fba="5", other="0.30", storage="0.20",
        )

    def test_breakdown(self):
        econ = compute_unit_economics(Decimal("30"), self.fees, Decimal("7"))

        assert econ.commission == Decimal("4.50")
        assert econ.ads == Decimal("3.00")
        assert econ.fixed_fees == Decimal("5.50")
        assert econ.recall_settlement == Decimal("17.00")
        assert econ.recall_base == Decimal("119.00")
        assert econ.total_deductions == Decimal("13.00")

    def test_unit_profit_only_with_landed_cost(self):
        assert compute_unit_economics(Decimal("30"), self.fees, Decimal("7")).unit_profit is None

        econ = compute_unit_economics(
            Decimal("30"), self.fees, Decimal("7"), landed_cost=Decimal("22"),
        )
        assert econ.unit_profit == Decimal("97.00")

    def test_no_rounding(self):
        """Exact decimals survive; rounding is for presentation only."""
        fees = MonthlyFees(commission="0.153")
        econ = compute_unit_economics(Decimal("19.99"), fees, Decimal("7.1234"))
        assert econ.commission == Decimal("3.05847")
        assert econ.recall_base == (Decimal("19.99") - Decimal("3.05847")) * Decimal("7.1234")

    def test_fees_exceeding_price_give_negative_recall(self):
        econ = compute_unit_economics(Decimal("4"), MonthlyFees(fba="5"), Decimal("7"))
        assert econ.recall_base == Decimal("-7")

    def test_accepts_plain_numbers(self):
        econ = compute_unit_economics("30", self.fees, 7)
        assert econ.recall_base == Decimal("119.00")


class TestSalesPlanLookup:
    """Calendar-month lookups with fallbacks."""

    def test_missing_demand_and_price_read_as_zero(self):
        plan = SalesPlan(daily_sales=(Decimal("50"),), prices=(Decimal("30"),))
        assert plan.demand_for(5) == 0
        assert plan.price_for(5) == 0

    def test_missing_fee_month_falls_back_to_january(self):
        january = MonthlyFees(commission="0.15")
        plan = SalesPlan(daily_sales=(), prices=(), fees=(january,))
        assert plan.fees_for(7) is january

    def test_no_fee_schedule_means_zero_fees(self):
        plan = SalesPlan()
        assert plan.fees_for(0) == MonthlyFees()

    def test_values_coerced_to_decimal(self):
        plan = SalesPlan(daily_sales=[50, "55.5"], prices=[19.99])
        assert plan.daily_sales == (Decimal("50"), Decimal("55.5"))
        assert plan.prices == (Decimal("19.99"),)
