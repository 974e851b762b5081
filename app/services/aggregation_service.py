"""
app/services/aggregation_service.py

Group-by / aggregate engine for dashboard analytics.

Every method is a pure function of (records, SchemaConfig, KPISettings):
records are read, never mutated, and results are freshly built dataclasses.

Unmapped roles
--------------
A role mapped to ``""`` reads as absent for every record, so dependent
numbers collapse to zero and region grouping collapses to ``"Unknown"``.

Pivot aggregation rule
----------------------
Bar and line pivots sum the metric when its column name contains one of the
configured sum keywords (``"amount"`` / ``"total"``, case-insensitive) and
average it otherwise. This naming heuristic is intentional and must not be
replaced with type inspection.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Sequence

from app.domain.cell_values import column_number, column_value, is_missing, to_number, to_text
from app.domain.delivery import KPISettings, Record, SchemaConfig
from app.mappers.rule_table import RuleTable, load_rule_table
from app.services.time_normalizer import hour_of_day
from kpi.base import mean_or_zero
from kpi.delivery import DeliveryKPIFormula

logger = logging.getLogger(__name__)

DEFAULT_LATE_THRESHOLD = 60.0
UNKNOWN_CATEGORY = "Unknown"
ALL_FILTER = "ALL"


class ChartType(str, Enum):
    BAR = "BAR"
    LINE = "LINE"
    SCATTER = "SCATTER"


@dataclass(frozen=True)
class KPIRollup:
    total_orders: int
    avg_delivery_time: float
    total_revenue: float
    late_order_pct: float


@dataclass(frozen=True)
class CategoryBucket:
    name: str
    orders: int
    refunds: float
    avg_time: float


@dataclass(frozen=True)
class PivotBucket:
    name: str
    value: float


@dataclass(frozen=True)
class ScatterPoint:
    x: Any
    y: float


@dataclass(frozen=True)
class TimelinePoint:
    name: str
    duration: float
    value: float
    prep: float
    drive: float


class AggregationService:
    """
    Computes KPI rollups, region breakdowns, and ad-hoc pivots over an
    in-memory record set.

    Parameters
    ----------
    rules:
        Keyword table supplying the sum-vs-mean metric keywords.
    formula:
        KPI formula used by :meth:`kpi_rollup`.
    """

    def __init__(
        self,
        *,
        rules: RuleTable | None = None,
        formula: DeliveryKPIFormula | None = None,
    ) -> None:
        self._rules = rules or load_rule_table()
        self._formula = formula or DeliveryKPIFormula()

    # ------------------------------------------------------------------
    # KPI rollup
    # ------------------------------------------------------------------

    def kpi_rollup(
        self,
        records: Sequence[Record],
        schema: SchemaConfig,
        settings: KPISettings | None = None,
    ) -> KPIRollup:
        """
        Order count, mean delivery time, revenue, and late-order share.

        Late orders have a total duration strictly above
        ``settings.late_delivery_threshold`` (60 minutes without settings).
        """
        late_threshold = (
            settings.late_delivery_threshold if settings is not None else DEFAULT_LATE_THRESHOLD
        )
        metrics = self._formula.calculate(
            {
                "durations": [column_number(r, schema.total_duration) for r in records],
                "order_totals": [column_number(r, schema.order_total) for r in records],
                "late_threshold": late_threshold,
            }
        )
        rollup = KPIRollup(**metrics)
        logger.debug("kpi_rollup over %d records -> %s", len(records), rollup)
        return rollup

    # ------------------------------------------------------------------
    # Category breakdown
    # ------------------------------------------------------------------

    def category_breakdown(
        self,
        records: Sequence[Record],
        schema: SchemaConfig,
    ) -> list[CategoryBucket]:
        """
        Group by the region role; buckets keep first-seen order.

        ``avg_time`` is the mean total duration rounded to one decimal.
        """
        groups: OrderedDict[str, dict[str, Any]] = OrderedDict()
        for record in records:
            raw_region = column_value(record, schema.region)
            name = UNKNOWN_CATEGORY if is_missing(raw_region) else to_text(raw_region)
            bucket = groups.setdefault(name, {"durations": [], "refunds": 0.0})
            bucket["durations"].append(column_number(record, schema.total_duration))
            bucket["refunds"] += column_number(record, schema.refund_amount)

        return [
            CategoryBucket(
                name=name,
                orders=len(bucket["durations"]),
                refunds=bucket["refunds"],
                avg_time=round(mean_or_zero(bucket["durations"]), 1),
            )
            for name, bucket in groups.items()
        ]

    # ------------------------------------------------------------------
    # Generic pivot
    # ------------------------------------------------------------------

    def is_sum_metric(self, metric_column: str) -> bool:
        lowered = metric_column.lower()
        return any(keyword in lowered for keyword in self._rules.sum_metric_keywords)

    def pivot(
        self,
        records: Sequence[Record],
        group_column: str,
        metric_column: str,
        chart_type: ChartType | str = ChartType.BAR,
    ) -> list[PivotBucket] | list[ScatterPoint]:
        """
        Group *records* by *group_column* and aggregate *metric_column*.

        Scatter mode emits one point per record (raw x, numeric y), unsorted
        and with duplicates. Bar and line modes group by the text form of x
        and emit the sum or the mean (two decimals) per group.
        """
        if not group_column or not metric_column:
            return []

        mode = chart_type if isinstance(chart_type, ChartType) else ChartType(chart_type.upper())
        if mode is ChartType.SCATTER:
            return [
                ScatterPoint(x=record.get(group_column), y=to_number(record.get(metric_column)))
                for record in records
            ]

        groups: OrderedDict[str, list[float]] = OrderedDict()
        for record in records:
            key = to_text(record.get(group_column))
            groups.setdefault(key, []).append(to_number(record.get(metric_column)))

        use_sum = self.is_sum_metric(metric_column)
        logger.debug(
            "pivot %r by %r: %d groups, aggregation=%s",
            metric_column,
            group_column,
            len(groups),
            "sum" if use_sum else "mean",
        )
        return [
            PivotBucket(
                name=key,
                value=sum(values) if use_sum else round(mean_or_zero(values), 2),
            )
            for key, values in groups.items()
        ]

    # ------------------------------------------------------------------
    # Dashboard helpers
    # ------------------------------------------------------------------

    @staticmethod
    def filter_records(
        records: Sequence[Record],
        schema: SchemaConfig,
        *,
        date: str | None = None,
        region: str | None = None,
    ) -> list[Record]:
        """
        Keep records matching the selected date and region.

        ``None`` or ``"ALL"`` disables a filter; a filter on an unmapped
        role matches nothing.
        """

        def _matches(record: Record, column: str, selected: str | None) -> bool:
            if selected is None or selected == ALL_FILTER:
                return True
            return to_text(column_value(record, column)) == selected

        return [
            record
            for record in records
            if _matches(record, schema.date, date) and _matches(record, schema.region, region)
        ]

    @staticmethod
    def available_values(records: Sequence[Record], column: str) -> list[str]:
        """Sorted distinct non-missing values of *column*, as text."""
        return sorted(
            {
                to_text(column_value(record, column))
                for record in records
                if not is_missing(column_value(record, column))
            }
        )

    @staticmethod
    def available_columns(records: Sequence[Record]) -> list[str]:
        if not records:
            return []
        return list(records[0].keys())

    @staticmethod
    def timeline(records: Sequence[Record], schema: SchemaConfig) -> list[TimelinePoint]:
        """
        Per-order series ordered by time of day of the time role.
        """

        ordered = sorted(records, key=lambda record: hour_of_day(column_value(record, schema.time)))
        return [
            TimelinePoint(
                name=to_text(column_value(record, schema.time)),
                duration=column_number(record, schema.total_duration),
                value=column_number(record, schema.order_total),
                prep=column_number(record, schema.prep_duration),
                drive=column_number(record, schema.drive_duration),
            )
            for record in ordered
        ]


@lru_cache(maxsize=1)
def get_aggregation_service() -> AggregationService:
    return AggregationService()
