"""
Pytest fixtures for the replenishment planner test suite.

Provides:
- Structured logging configured once per session, LogContext cleared per test
- ``captured_logs`` for asserting on emitted JSON log records
- Builders for simulation inputs with realistic defaults
"""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest

from replenish_engines.simulation import (
    BatchSpec,
    GlobalTerms,
    LogisticsLane,
    MonthlyFees,
    PaymentTerms,
    SalesPlan,
    ShipmentType,
    SimulationParams,
)
from replenish_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

SIM_START = date(2025, 1, 1)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture replenish_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            simulate_replenishment(params)
            logs = captured_logs()
            assert any(r["message"] == "replenishment_simulation_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("replenish_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Simulation input builders
# =============================================================================


def flat_sales(
    daily: str | int = 50,
    price: str = "30",
    commission: str = "0.15",
    tacos: str = "0.10",
    fba: str = "5",
) -> SalesPlan:
    """Same demand, price and fees in every calendar month."""
    return SalesPlan(
        daily_sales=(Decimal(str(daily)),) * 12,
        prices=(Decimal(price),) * 12,
        fees=(MonthlyFees(commission=commission, tacos=tacos, fba=fba),) * 12,
    )


def default_terms(deposit: str | int = 30, balance: str | int = 70) -> GlobalTerms:
    return GlobalTerms(
        unit_cost=Decimal("20"),
        exch_rate=Decimal("7"),
        payment_terms=PaymentTerms(deposit=deposit, balance=balance),
    )


def default_lanes() -> dict[ShipmentType, LogisticsLane]:
    return {
        ShipmentType.SEA: LogisticsLane(days=30, price="2"),
        ShipmentType.AIR: LogisticsLane(days=10, price="15"),
        ShipmentType.EXPRESS: LogisticsLane(days=5, price="25"),
    }


def batch(
    index: int = 1,
    qty: int | str = 1000,
    offset: int | str = 0,
    prod_days: int | str = 10,
    shipment_type: ShipmentType = ShipmentType.SEA,
    extra_percent: int | str = 0,
) -> BatchSpec:
    return BatchSpec(
        batch_id=f"B{index}",
        name=f"Batch {index}",
        shipment_type=shipment_type,
        qty=qty,
        extra_percent=extra_percent,
        offset=offset,
        prod_days=prod_days,
    )


def make_params(
    batches=None,
    terms: GlobalTerms | None = None,
    sales: SalesPlan | None = None,
    logistics=None,
    sim_start: date = SIM_START,
    max_days: int | None = None,
) -> SimulationParams:
    return SimulationParams(
        sim_start=sim_start,
        batches=tuple(batches) if batches is not None else (batch(),),
        terms=terms or default_terms(),
        logistics=logistics if logistics is not None else default_lanes(),
        sales=sales or flat_sales(),
        max_days=max_days,
    )


@pytest.fixture
def single_batch_params() -> SimulationParams:
    """One sea batch of 1000 units: ordered day 0, ships day 10, lands day 40."""
    return make_params()


@pytest.fixture(name="make_params")
def make_params_fixture():
    """Factory for SimulationParams; every argument has a realistic default."""
    return make_params


@pytest.fixture(name="make_batch")
def make_batch_fixture():
    """Factory for BatchSpec."""
    return batch


@pytest.fixture(name="flat_sales")
def flat_sales_fixture():
    """Factory for a SalesPlan identical in every month."""
    return flat_sales


@pytest.fixture(name="make_terms")
def make_terms_fixture():
    """Factory for GlobalTerms with adjustable payment terms."""
    return default_terms
