"""
app/api/routers/dashboard.py

Dashboard analytics over the committed record set.

Every endpoint reads one workspace snapshot and recomputes from scratch;
``date`` / ``region`` query parameters narrow the records first (``ALL``
or omitted means no filter).
"""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.dependencies import get_workspace
from app.domain.delivery import Record
from app.schemas.dashboard import (
    CategoryBucketResponse,
    FilterOptionsResponse,
    KPIRollupResponse,
    PivotBucketResponse,
    PivotRequest,
    PivotResponse,
    ScatterPointResponse,
    TimelinePointResponse,
)
from app.services.aggregation_service import (
    AggregationService,
    ChartType,
    PivotBucket,
    get_aggregation_service,
)
from app.services.workspace_state import WorkspaceSnapshot, WorkspaceState

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def _filtered(
    snapshot: WorkspaceSnapshot,
    date: str | None,
    region: str | None,
) -> list[Record]:
    return AggregationService.filter_records(
        snapshot.records,
        snapshot.schema,
        date=date,
        region=region,
    )


@router.get("/kpis", response_model=KPIRollupResponse)
def get_kpis(
    date: str | None = Query(default=None),
    region: str | None = Query(default=None),
    workspace: WorkspaceState = Depends(get_workspace),
    aggregation: AggregationService = Depends(get_aggregation_service),
) -> KPIRollupResponse:
    snapshot = workspace.snapshot
    rollup = aggregation.kpi_rollup(
        _filtered(snapshot, date, region),
        snapshot.schema,
        snapshot.settings,
    )
    return KPIRollupResponse(**asdict(rollup))


@router.get("/breakdown", response_model=list[CategoryBucketResponse])
def get_breakdown(
    date: str | None = Query(default=None),
    region: str | None = Query(default=None),
    workspace: WorkspaceState = Depends(get_workspace),
    aggregation: AggregationService = Depends(get_aggregation_service),
) -> list[CategoryBucketResponse]:
    snapshot = workspace.snapshot
    buckets = aggregation.category_breakdown(_filtered(snapshot, date, region), snapshot.schema)
    return [CategoryBucketResponse(**asdict(bucket)) for bucket in buckets]


@router.get("/timeline", response_model=list[TimelinePointResponse])
def get_timeline(
    date: str | None = Query(default=None),
    region: str | None = Query(default=None),
    workspace: WorkspaceState = Depends(get_workspace),
) -> list[TimelinePointResponse]:
    snapshot = workspace.snapshot
    points = AggregationService.timeline(_filtered(snapshot, date, region), snapshot.schema)
    return [TimelinePointResponse(**asdict(point)) for point in points]


@router.get("/filters", response_model=FilterOptionsResponse)
def get_filters(workspace: WorkspaceState = Depends(get_workspace)) -> FilterOptionsResponse:
    snapshot = workspace.snapshot
    return FilterOptionsResponse(
        dates=AggregationService.available_values(snapshot.records, snapshot.schema.date),
        regions=AggregationService.available_values(snapshot.records, snapshot.schema.region),
        columns=AggregationService.available_columns(snapshot.records),
    )


@router.post("/pivot", response_model=PivotResponse)
def post_pivot(
    body: PivotRequest,
    workspace: WorkspaceState = Depends(get_workspace),
    aggregation: AggregationService = Depends(get_aggregation_service),
) -> PivotResponse:
    """
    "Pick any two columns" exploration.
    """

    try:
        chart_type = ChartType(body.chart_type.strip().upper())
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported chart_type: {body.chart_type}",
        ) from exc

    snapshot = workspace.snapshot
    result = aggregation.pivot(
        _filtered(snapshot, body.date, body.region),
        body.group_column,
        body.metric_column,
        chart_type,
    )

    if chart_type is ChartType.SCATTER:
        return PivotResponse(
            chart_type=chart_type.value,
            aggregation="none",
            points=[ScatterPointResponse(x=point.x, y=point.y) for point in result],
        )
    return PivotResponse(
        chart_type=chart_type.value,
        aggregation="sum" if aggregation.is_sum_metric(body.metric_column) else "mean",
        buckets=[
            PivotBucketResponse(name=bucket.name, value=bucket.value)
            for bucket in result
            if isinstance(bucket, PivotBucket)
        ],
    )
