"""
simulation/engine.py

What-if estimator for automated late-delivery compensation.

Formulas
--------
Impacted        = orders with total duration >= minute_threshold
Cost per action = flat credit for ``credit_*`` kinds;
                  mean order total of the impacted set for ``full_refund``
Estimated cost  = impacted_count * cost_per_action
Hours saved     = impacted_count * 15 min handle time / 60
Ops savings     = hours_saved * 25 (agent cost per hour)

Every division guards its denominator with ``max(count, 1)``, so an empty
impacted set yields zeros rather than an error.
"""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

from app.domain.cell_values import column_number
from app.domain.delivery import DEFAULT_SCHEMA, Record, SchemaConfig, SimulationResult

logger = logging.getLogger(__name__)

FULL_REFUND = "full_refund"

FLAT_ACTION_COSTS: Mapping[str, float] = {
    "credit_5": 5.0,
    "credit_10": 10.0,
}

HANDLE_MINUTES_SAVED_PER_ACTION = 15
AGENT_COST_PER_HOUR = 25.0


def supported_actions() -> list[str]:
    return [*FLAT_ACTION_COSTS, FULL_REFUND]


class SimulationEngine:
    """
    Pure, deterministic estimator; holds only its cost table.
    """

    def __init__(
        self,
        *,
        flat_costs: Mapping[str, float] = FLAT_ACTION_COSTS,
        handle_minutes_saved: float = HANDLE_MINUTES_SAVED_PER_ACTION,
        agent_cost_per_hour: float = AGENT_COST_PER_HOUR,
    ) -> None:
        self._flat_costs = dict(flat_costs)
        self._handle_minutes_saved = handle_minutes_saved
        self._agent_cost_per_hour = agent_cost_per_hour

    def simulate(
        self,
        records: Sequence[Record],
        minute_threshold: float,
        action_kind: str,
        schema: SchemaConfig = DEFAULT_SCHEMA,
    ) -> SimulationResult:
        """
        Estimate the impact of compensating every order at or above
        *minute_threshold* with *action_kind*.

        Unknown action kinds cost nothing; they are logged, not raised.
        """
        impacted = [
            record
            for record in records
            if column_number(record, schema.total_duration) >= minute_threshold
        ]
        count = len(impacted)

        cost_per_action = self._cost_per_action(impacted, action_kind, schema)
        hours_saved = count * self._handle_minutes_saved / 60

        result = SimulationResult(
            impacted_count=count,
            estimated_cost=count * cost_per_action,
            hours_saved=hours_saved,
            operational_savings=hours_saved * self._agent_cost_per_hour,
        )
        logger.debug(
            "simulate threshold=%s action=%r -> impacted=%d cost=%.2f hours=%.2f",
            minute_threshold,
            action_kind,
            result.impacted_count,
            result.estimated_cost,
            result.hours_saved,
        )
        return result

    def _cost_per_action(
        self,
        impacted: Sequence[Record],
        action_kind: str,
        schema: SchemaConfig,
    ) -> float:
        if action_kind == FULL_REFUND:
            total = sum(column_number(record, schema.order_total) for record in impacted)
            return total / max(len(impacted), 1)
        if action_kind in self._flat_costs:
            return self._flat_costs[action_kind]
        logger.warning("Unknown simulation action kind %r; costing it at 0.", action_kind)
        return 0.0
