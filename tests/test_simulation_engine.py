"""
tests/test_simulation_engine.py

What-if estimates for automated late-delivery compensation.
"""

from __future__ import annotations

import logging

import pytest

from app.domain.delivery import SchemaConfig, SimulationResult
from simulation.engine import SimulationEngine, supported_actions

SCHEMA = SchemaConfig(total_duration="mins", order_total="total")


@pytest.fixture()
def engine() -> SimulationEngine:
    return SimulationEngine()


@pytest.fixture()
def records() -> list[dict]:
    return [
        {"mins": 30, "total": 10},
        {"mins": 60, "total": 20},
        {"mins": 90, "total": 40},
    ]


def test_empty_impacted_set_is_all_zero(engine: SimulationEngine, records: list[dict]) -> None:
    result = engine.simulate(records, 500, "full_refund", SCHEMA)
    assert result == SimulationResult(impacted_count=0, estimated_cost=0.0, hours_saved=0.0)
    assert engine.simulate([], 0, "credit_5", SCHEMA).impacted_count == 0


@pytest.mark.parametrize(
    "action, expected_cost",
    [("credit_5", 10.0), ("credit_10", 20.0), ("full_refund", 60.0)],
)
def test_costs(engine: SimulationEngine, records: list[dict], action: str, expected_cost: float) -> None:
    result = engine.simulate(records, 60, action, SCHEMA)

    assert result.impacted_count == 2
    assert result.estimated_cost == pytest.approx(expected_cost)
    assert result.hours_saved == pytest.approx(0.5)
    assert result.operational_savings == pytest.approx(12.5)


def test_roi(engine: SimulationEngine, records: list[dict]) -> None:
    assert engine.simulate(records, 60, "credit_5", SCHEMA).is_positive_roi
    assert not engine.simulate(records, 60, "full_refund", SCHEMA).is_positive_roi


def test_unknown_action_costs_nothing(
    engine: SimulationEngine,
    records: list[dict],
    caplog: pytest.LogCaptureFixture,
) -> None:
    with caplog.at_level(logging.WARNING, logger="simulation.engine"):
        result = engine.simulate(records, 0, "voucher", SCHEMA)

    assert result.impacted_count == 3
    assert result.estimated_cost == 0.0
    assert "voucher" in caplog.text


def test_supported_actions() -> None:
    assert supported_actions() == ["credit_5", "credit_10", "full_refund"]
