from __future__ import annotations

import logging
import os

from fastapi import Depends, FastAPI

from app.api.dependencies import get_workspace
from app.config import get_advisory_settings, get_rules_path, load_env_files
from app.mappers.rule_table import load_rule_table
from app.schemas.console import HealthResponse
from app.services.workspace_state import WorkspaceState


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _log_startup() -> None:
    """
    Report the effective advisory adapter and keyword table at boot.
    """

    log = logging.getLogger(__name__)
    advisory = get_advisory_settings()
    rules = load_rule_table()
    log.info(
        "Advisory adapter=%s model=%s; schema rules from %s (%d roles)",
        advisory.adapter,
        advisory.model,
        get_rules_path(),
        len(rules.role_keywords),
    )


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    load_env_files()
    _configure_logging()
    _log_startup()

    application = FastAPI(
        title="Delivery Ops Insights API",
        version="1.0.0",
    )

    from app.api.routers import (
        automation_router,
        console_router,
        dashboard_router,
        imports_router,
    )

    application.include_router(imports_router)
    application.include_router(dashboard_router)
    application.include_router(automation_router)
    application.include_router(console_router)

    @application.get("/health", response_model=HealthResponse)
    def healthcheck(workspace: WorkspaceState = Depends(get_workspace)) -> HealthResponse:
        return HealthResponse(
            status="ok",
            committed_rows=workspace.snapshot.row_count,
            advisory_adapter=get_advisory_settings().adapter,
        )

    return application


app = create_app()
