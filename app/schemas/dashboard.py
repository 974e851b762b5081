"""
app/schemas/dashboard.py

Response schemas for dashboard analytics.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class KPIRollupResponse(BaseModel):
    total_orders: int = Field(..., ge=0)
    avg_delivery_time: float
    total_revenue: float
    late_order_pct: float


class CategoryBucketResponse(BaseModel):
    name: str
    orders: int = Field(..., ge=0)
    refunds: float
    avg_time: float


class PivotRequest(BaseModel):
    group_column: str
    metric_column: str
    chart_type: str = "BAR"
    date: str | None = None
    region: str | None = None


class PivotBucketResponse(BaseModel):
    name: str
    value: float


class ScatterPointResponse(BaseModel):
    x: Any = None
    y: float


class PivotResponse(BaseModel):
    chart_type: str
    aggregation: str
    buckets: list[PivotBucketResponse] = Field(default_factory=list)
    points: list[ScatterPointResponse] = Field(default_factory=list)


class TimelinePointResponse(BaseModel):
    name: str
    duration: float
    value: float
    prep: float
    drive: float


class FilterOptionsResponse(BaseModel):
    dates: list[str]
    regions: list[str]
    columns: list[str]
