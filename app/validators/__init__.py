"""
app/validators package marker.
"""

from app.validators.column_profiler import ColumnHealth, ColumnProfiler
from app.validators.mapping_validator import MappingErrorDetail, MappingValidator, SchemaMappingError

__all__ = [
    "ColumnHealth",
    "ColumnProfiler",
    "MappingErrorDetail",
    "MappingValidator",
    "SchemaMappingError",
]
