"""
app/schemas package marker.
"""

from app.schemas.automation import (
    ActionCenterResponse,
    ActionItemResponse,
    KPISettingsPayload,
    SimulationRequest,
    SimulationResponse,
)
from app.schemas.console import (
    AssistantAnswerResponse,
    AssistantQuestionRequest,
    CleaningSuggestionResponse,
    ConsoleQueryRequest,
    ConsoleQueryResponse,
    HealthResponse,
)
from app.schemas.dashboard import (
    CategoryBucketResponse,
    FilterOptionsResponse,
    KPIRollupResponse,
    PivotRequest,
    PivotResponse,
    TimelinePointResponse,
)
from app.schemas.imports import (
    ColumnProfileResponse,
    CommitResponse,
    ImportRecordsRequest,
    ImportReportResponse,
    SchemaOverrideRequest,
)

__all__ = [
    "ActionCenterResponse",
    "ActionItemResponse",
    "AssistantAnswerResponse",
    "AssistantQuestionRequest",
    "CategoryBucketResponse",
    "CleaningSuggestionResponse",
    "ColumnProfileResponse",
    "CommitResponse",
    "ConsoleQueryRequest",
    "ConsoleQueryResponse",
    "FilterOptionsResponse",
    "HealthResponse",
    "ImportRecordsRequest",
    "ImportReportResponse",
    "KPIRollupResponse",
    "KPISettingsPayload",
    "PivotRequest",
    "PivotResponse",
    "SchemaOverrideRequest",
    "SimulationRequest",
    "SimulationResponse",
    "TimelinePointResponse",
]
