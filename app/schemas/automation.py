"""
app/schemas/automation.py

Schemas for the action center, simulation, and KPI settings endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from app.domain.delivery import KPISettings


class ActionItemResponse(BaseModel):
    id: str
    order_id: str
    stakeholder: str
    issue_type: str
    metric_value: float
    suggested_action: str


class ActionCenterResponse(BaseModel):
    total: int = Field(..., ge=0)
    counts: dict[str, int]
    items: list[ActionItemResponse]


class SimulationRequest(BaseModel):
    minute_threshold: float = Field(..., ge=0)
    action_kind: str


class SimulationResponse(BaseModel):
    impacted_count: int = Field(..., ge=0)
    estimated_cost: float
    hours_saved: float
    operational_savings: float
    is_positive_roi: bool


class KPISettingsPayload(BaseModel):
    max_acceptable_prep_time: float = Field(..., ge=0)
    max_acceptable_drive_time: float = Field(..., ge=0)
    high_refund_threshold: float = Field(..., ge=0)
    late_delivery_threshold: float = Field(..., ge=0)

    @classmethod
    def from_domain(cls, settings: KPISettings) -> "KPISettingsPayload":
        return cls(**settings.to_dict())

    def to_domain(self) -> KPISettings:
        return KPISettings(**self.model_dump())
