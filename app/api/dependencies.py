"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation and service wiring.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import File, HTTPException, UploadFile, status

from action_rules.evaluator import ActionRuleEvaluator
from app.config import get_import_settings
from app.services.workspace_state import WorkspaceState, get_workspace_state
from llm_advisory.advisor import QueryAssistant, build_query_assistant
from simulation.engine import SimulationEngine

SPREADSHEET_EXTENSIONS = (".csv", ".xlsx")
SPREADSHEET_CONTENT_TYPES = {
    "text/csv",
    "application/csv",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


def get_spreadsheet_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded file is a CSV or Excel workbook by extension
    or MIME type.
    """

    filename = (file.filename or "").strip().lower()
    content_type = (file.content_type or "").strip().lower()

    if not filename.endswith(SPREADSHEET_EXTENSIONS) and content_type not in SPREADSHEET_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only CSV or Excel (.xlsx) files are allowed.",
        )

    return file


def read_upload_bytes(file: UploadFile) -> bytes:
    """
    Read the whole upload, enforcing ``IMPORT_MAX_UPLOAD_BYTES``.
    """

    limit = get_import_settings().max_upload_bytes
    try:
        data = file.file.read(limit + 1)
    finally:
        file.file.close()
    if len(data) > limit:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Upload exceeds the {limit} byte limit.",
        )
    return data


def get_workspace() -> WorkspaceState:
    return get_workspace_state()


@lru_cache(maxsize=1)
def get_action_rule_evaluator() -> ActionRuleEvaluator:
    return ActionRuleEvaluator()


@lru_cache(maxsize=1)
def get_simulation_engine() -> SimulationEngine:
    return SimulationEngine()


@lru_cache(maxsize=1)
def get_query_assistant() -> QueryAssistant:
    return build_query_assistant()
