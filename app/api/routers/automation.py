"""
app/api/routers/automation.py

Action center, automation simulation, and KPI settings endpoints.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from action_rules.evaluator import ActionRuleEvaluator
from app.api.dependencies import get_action_rule_evaluator, get_simulation_engine, get_workspace
from app.domain.delivery import Stakeholder
from app.schemas.automation import (
    ActionCenterResponse,
    ActionItemResponse,
    KPISettingsPayload,
    SimulationRequest,
    SimulationResponse,
)
from app.services.workspace_state import WorkspaceState
from simulation.engine import SimulationEngine, supported_actions

logger = logging.getLogger(__name__)

router = APIRouter(tags=["automation"])


@router.get("/actions", response_model=ActionCenterResponse)
def get_actions(
    stakeholder: str | None = Query(default=None, description="Merchant, Dasher or Customer"),
    workspace: WorkspaceState = Depends(get_workspace),
    evaluator: ActionRuleEvaluator = Depends(get_action_rule_evaluator),
) -> ActionCenterResponse:
    """
    Evaluate the stakeholder rules over the committed records.
    """

    selected: Stakeholder | None = None
    if stakeholder:
        try:
            selected = Stakeholder(stakeholder.strip().capitalize())
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unsupported stakeholder: {stakeholder}",
            ) from exc

    snapshot = workspace.snapshot
    items = evaluator.evaluate(snapshot.records, snapshot.settings, snapshot.schema)
    grouped = evaluator.group_by_stakeholder(items)
    if selected is not None:
        items = grouped[selected]

    return ActionCenterResponse(
        total=len(items),
        counts={key.value: len(value) for key, value in grouped.items()},
        items=[
            ActionItemResponse(
                id=item.item_id,
                order_id=item.order_id,
                stakeholder=item.stakeholder.value,
                issue_type=item.issue_type,
                metric_value=item.metric_value,
                suggested_action=item.suggested_action,
            )
            for item in items
        ],
    )


@router.get("/simulate/actions", response_model=list[str])
def list_simulation_actions() -> list[str]:
    return supported_actions()


@router.post("/simulate", response_model=SimulationResponse)
def post_simulation(
    body: SimulationRequest,
    workspace: WorkspaceState = Depends(get_workspace),
    engine: SimulationEngine = Depends(get_simulation_engine),
) -> SimulationResponse:
    snapshot = workspace.snapshot
    result = engine.simulate(
        snapshot.records,
        body.minute_threshold,
        body.action_kind,
        snapshot.schema,
    )
    return SimulationResponse(
        impacted_count=result.impacted_count,
        estimated_cost=result.estimated_cost,
        hours_saved=result.hours_saved,
        operational_savings=result.operational_savings,
        is_positive_roi=result.is_positive_roi,
    )


@router.get("/settings", response_model=KPISettingsPayload)
def get_settings(workspace: WorkspaceState = Depends(get_workspace)) -> KPISettingsPayload:
    return KPISettingsPayload.from_domain(workspace.snapshot.settings)


@router.put("/settings", response_model=KPISettingsPayload)
def put_settings(
    body: KPISettingsPayload,
    workspace: WorkspaceState = Depends(get_workspace),
) -> KPISettingsPayload:
    snapshot = workspace.update_settings(body.to_domain())
    return KPISettingsPayload.from_domain(snapshot.settings)
