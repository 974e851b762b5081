"""
app/api/routers/imports.py

Import review HTTP endpoints: analyse a batch, correct its schema, commit it.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, UploadFile, status

from app.api.dependencies import get_spreadsheet_upload, get_workspace, read_upload_bytes
from app.domain.delivery import ROLE_NAMES, ImportReport, SchemaConfig
from app.schemas.imports import (
    ColumnProfileResponse,
    CommitResponse,
    ImportRecordsRequest,
    ImportReportResponse,
    RoleMappingResponse,
    SchemaOverrideRequest,
)
from app.services.import_service import DatasetImportService, get_dataset_import_service
from app.services.record_source import RecordSourceError
from app.services.workspace_state import PendingImportMissingError, WorkspaceSnapshot, WorkspaceState
from app.validators.column_profiler import ColumnProfiler
from app.validators.mapping_validator import SchemaMappingError

router = APIRouter(prefix="/import", tags=["import"])


def role_mappings(schema: SchemaConfig) -> list[RoleMappingResponse]:
    return [
        RoleMappingResponse(role=role, column=schema.column_for(role), label=schema.display(role))
        for role in ROLE_NAMES
    ]


def report_response(report: ImportReport) -> ImportReportResponse:
    profiles = []
    for profile in report.profiles:
        health = ColumnProfiler.health(profile, report.row_count)
        profiles.append(
            ColumnProfileResponse(
                **profile.to_dict(),
                valid_pct=health.valid_pct,
                missing_pct=health.missing_pct,
                invalid_pct=health.invalid_pct,
                action=health.action,
            )
        )
    return ImportReportResponse(
        row_count=report.row_count,
        column_names=list(report.column_names),
        schema_mapping=role_mappings(report.schema),
        profiles=profiles,
    )


def commit_response(snapshot: WorkspaceSnapshot) -> CommitResponse:
    return CommitResponse(
        row_count=snapshot.row_count,
        column_names=list(snapshot.column_names),
        schema_mapping=role_mappings(snapshot.schema),
    )


@router.post("", response_model=ImportReportResponse)
def import_records(
    body: ImportRecordsRequest,
    workspace: WorkspaceState = Depends(get_workspace),
    import_service: DatasetImportService = Depends(get_dataset_import_service),
) -> ImportReportResponse:
    """
    Analyse rows posted as JSON and stage them for review.
    """

    report = import_service.import_records(body.records, body.column_names)
    workspace.stage(report)
    return report_response(report)


@router.post("/upload", response_model=ImportReportResponse)
def import_upload(
    file: UploadFile = Depends(get_spreadsheet_upload),
    workspace: WorkspaceState = Depends(get_workspace),
    import_service: DatasetImportService = Depends(get_dataset_import_service),
) -> ImportReportResponse:
    """
    Analyse an uploaded CSV / XLSX file and stage it for review.
    """

    filename = file.filename or ""
    data = read_upload_bytes(file)
    try:
        report = import_service.import_upload(filename, data)
    except RecordSourceError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    workspace.stage(report)
    return report_response(report)


@router.post("/schema", response_model=ImportReportResponse)
def override_schema(
    body: SchemaOverrideRequest,
    workspace: WorkspaceState = Depends(get_workspace),
    import_service: DatasetImportService = Depends(get_dataset_import_service),
) -> ImportReportResponse:
    """
    Apply reviewer role overrides to the staged import.
    """

    try:
        pending = workspace.require_pending()
        report = import_service.apply_overrides(pending, body.overrides)
    except PendingImportMissingError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except SchemaMappingError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.to_dict(),
        ) from exc

    workspace.stage(report)
    return report_response(report)


@router.post("/commit", response_model=CommitResponse)
def commit_import(workspace: WorkspaceState = Depends(get_workspace)) -> CommitResponse:
    """
    Replace the committed record set with the staged import.
    """

    try:
        snapshot = workspace.commit_pending()
    except PendingImportMissingError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return commit_response(snapshot)
