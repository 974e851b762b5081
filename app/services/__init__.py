"""
app/services package marker.
"""

from app.services.aggregation_service import AggregationService, ChartType, get_aggregation_service
from app.services.import_service import DatasetImportService, get_dataset_import_service
from app.services.query_console_service import QueryConsoleError, QueryConsoleService
from app.services.record_source import RecordSource, RecordSourceError
from app.services.time_normalizer import TimeNormalizer
from app.services.workspace_state import WorkspaceState, get_workspace_state

__all__ = [
    "AggregationService",
    "ChartType",
    "get_aggregation_service",
    "DatasetImportService",
    "get_dataset_import_service",
    "QueryConsoleError",
    "QueryConsoleService",
    "RecordSource",
    "RecordSourceError",
    "TimeNormalizer",
    "WorkspaceState",
    "get_workspace_state",
]
