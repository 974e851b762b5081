"""
app/schemas/console.py

Schemas for the SQL console and the natural-language assistant.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ConsoleQueryRequest(BaseModel):
    sql: str = Field(..., min_length=1)


class ConsoleQueryResponse(BaseModel):
    is_mutation: bool
    row_count: int = Field(..., ge=0)
    columns: list[str]
    rows: list[dict[str, Any]]


class CleaningSuggestionResponse(BaseModel):
    label: str
    sql: str


class AssistantQuestionRequest(BaseModel):
    question: str = Field(..., min_length=1)


class AssistantAnswerResponse(BaseModel):
    answer: str
    sql: str


class HealthResponse(BaseModel):
    status: str
    committed_rows: int = Field(..., ge=0)
    advisory_adapter: str
