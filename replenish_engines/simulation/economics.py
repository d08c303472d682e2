"""
Per-unit economics under a monthly fee schedule.

Given a settlement-currency sale price and the month's MonthlyFees, the
platform deducts commission and advertising as rates of the price and
fixed per-unit charges (fulfilment, other, storage).  What is left is the
unit recall: the cash the marketplace pays out per unit sold, converted
into base currency with the exchange rate.

No rounding happens here; callers round at presentation boundaries.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from replenish_engines.simulation.params import MonthlyFees, to_decimal


@dataclass(frozen=True, slots=True)
class UnitEconomics:
    """
    Breakdown of one unit sold.

    Settlement-currency fields: price, commission, ads, fixed_fees,
    recall_settlement.  Base-currency fields: recall_base, unit_profit.
    ``unit_profit`` is None unless a landed cost was supplied.
    """

    price: Decimal
    commission: Decimal
    ads: Decimal
    fixed_fees: Decimal
    recall_settlement: Decimal
    recall_base: Decimal
    unit_profit: Decimal | None = None

    @property
    def total_deductions(self) -> Decimal:
        return self.commission + self.ads + self.fixed_fees


def compute_unit_economics(
    price: Decimal,
    fees: MonthlyFees,
    exch_rate: Decimal,
    landed_cost: Decimal | None = None,
) -> UnitEconomics:
    """Unit recall (and optionally unit profit) for one sale at ``price``."""
    price = to_decimal(price)
    exch_rate = to_decimal(exch_rate)

    commission = price * fees.commission
    ads = price * fees.tacos
    fixed_fees = fees.fixed_per_unit
    recall_settlement = price - commission - ads - fixed_fees
    recall_base = recall_settlement * exch_rate

    unit_profit = None
    if landed_cost is not None:
        unit_profit = recall_base - to_decimal(landed_cost)

    return UnitEconomics(
        price=price,
        commission=commission,
        ads=ads,
        fixed_fees=fixed_fees,
        recall_settlement=recall_settlement,
        recall_base=recall_base,
        unit_profit=unit_profit,
    )
