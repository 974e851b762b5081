"""
app/api/routers/console.py

SQL console over the staged import (or the committed records) and the
natural-language assistant.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.dependencies import get_query_assistant, get_workspace
from app.api.routers.imports import commit_response
from app.config import get_import_settings
from app.schemas.console import (
    AssistantAnswerResponse,
    AssistantQuestionRequest,
    CleaningSuggestionResponse,
    ConsoleQueryRequest,
    ConsoleQueryResponse,
)
from app.schemas.imports import CommitResponse
from app.services.query_console_service import QueryConsoleError, QueryConsoleService
from app.services.workspace_state import WorkspaceState
from llm_advisory.advisor import QueryAssistant

router = APIRouter(tags=["console"])


@router.post("/console/query", response_model=ConsoleQueryResponse)
def run_console_query(
    body: ConsoleQueryRequest,
    workspace: WorkspaceState = Depends(get_workspace),
) -> ConsoleQueryResponse:
    """
    Run one statement. The returned rows are a preview capped at
    ``CONSOLE_PREVIEW_ROWS``; ``row_count`` is the full size.
    """

    try:
        result = workspace.console().run(body.sql)
    except QueryConsoleError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.to_dict(),
        ) from exc

    return ConsoleQueryResponse(
        is_mutation=result.is_mutation,
        row_count=len(result.rows),
        columns=result.columns,
        rows=result.preview(get_import_settings().console_preview_rows),
    )


@router.get("/console/suggestions", response_model=list[CleaningSuggestionResponse])
def get_console_suggestions(
    workspace: WorkspaceState = Depends(get_workspace),
) -> list[CleaningSuggestionResponse]:
    snapshot = workspace.snapshot
    source = snapshot.pending
    profiles = source.profiles if source is not None else snapshot.profiles
    schema = source.schema if source is not None else snapshot.schema
    return [
        CleaningSuggestionResponse(label=suggestion.label, sql=suggestion.sql)
        for suggestion in QueryConsoleService.cleaning_suggestions(profiles, schema)
    ]


@router.post("/console/commit", response_model=CommitResponse)
def commit_console(workspace: WorkspaceState = Depends(get_workspace)) -> CommitResponse:
    """
    Commit the console table as the new record set.
    """

    try:
        snapshot = workspace.commit_console()
    except QueryConsoleError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.to_dict(),
        ) from exc
    return commit_response(snapshot)


@router.post("/assistant/ask", response_model=AssistantAnswerResponse)
def ask_assistant(
    body: AssistantQuestionRequest,
    workspace: WorkspaceState = Depends(get_workspace),
    assistant: QueryAssistant = Depends(get_query_assistant),
) -> AssistantAnswerResponse:
    answer = assistant.ask(workspace.snapshot.records, body.question)
    return AssistantAnswerResponse(answer=answer.answer, sql=answer.sql)
