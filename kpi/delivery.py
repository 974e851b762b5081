"""
kpi/delivery.py

Delivery operations KPI formula implementation.

Expected inputs
---------------
durations : list[float]
    Total delivery time in minutes for each order (0.0 when unknown).
order_totals : list[float]
    Order value for each order (0.0 when unknown).
late_threshold : float
    Minutes after which an order counts as late.

Formulas
--------
Total Orders       = len(durations)
Avg Delivery Time  = mean(durations)  (kpi.base.mean_or_zero)
Total Revenue      = sum(order_totals)
Late Order %       = count(duration > late_threshold) / total_orders * 100

An empty order list yields zero for every metric.
"""

from __future__ import annotations

from typing import Any

from kpi.base import BaseKPIFormula, mean_or_zero


class DeliveryKPIFormula(BaseKPIFormula):
    """
    Deterministic delivery KPI calculations with zero-order handling.
    """

    def calculate(self, inputs: dict[str, Any]) -> dict[str, float | int]:
        """
        Returns
        -------
        dict
            Keys: ``total_orders``, ``avg_delivery_time``, ``total_revenue``,
            ``late_order_pct``.
        """
        durations: list[float] = inputs["durations"]
        order_totals: list[float] = inputs["order_totals"]
        late_threshold: float = inputs["late_threshold"]

        total_orders = len(durations)

        return {
            "total_orders": total_orders,
            "avg_delivery_time": mean_or_zero(durations),
            "total_revenue": sum(order_totals),
            "late_order_pct": _late_pct(durations, late_threshold),
        }


def _late_pct(durations: list[float], late_threshold: float) -> float:
    """Share of orders strictly over the threshold, as a percentage."""
    if not durations:
        return 0.0
    late = sum(1 for duration in durations if duration > late_threshold)
    return late / len(durations) * 100
