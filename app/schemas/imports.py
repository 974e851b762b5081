"""
app/schemas/imports.py

Request/response schemas for the import review endpoints.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ImportRecordsRequest(BaseModel):
    """
    Rows posted directly as JSON objects.
    """

    records: list[dict[str, Any]] = Field(default_factory=list)
    column_names: list[str] | None = None


class SchemaOverrideRequest(BaseModel):
    """
    Reviewer corrections: role -> column (``""`` unmaps the role).
    """

    overrides: dict[str, str] = Field(default_factory=dict)


class ColumnProfileResponse(BaseModel):
    name: str
    expected_representation: str
    observed_representation: str
    missing_count: int = Field(..., ge=0)
    invalid_count: int = Field(..., ge=0)
    sample_value: str
    is_format_valid: bool
    description: str
    kpi_utility: str
    imputation_tip: str
    valid_pct: float
    missing_pct: float
    invalid_pct: float
    action: str


class RoleMappingResponse(BaseModel):
    role: str
    column: str
    label: str


class ImportReportResponse(BaseModel):
    row_count: int = Field(..., ge=0)
    column_names: list[str]
    schema_mapping: list[RoleMappingResponse]
    profiles: list[ColumnProfileResponse]


class CommitResponse(BaseModel):
    row_count: int = Field(..., ge=0)
    column_names: list[str]
    schema_mapping: list[RoleMappingResponse]
