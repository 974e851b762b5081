"""
app/domain package marker.
"""

from app.domain.cell_values import CellKind, CellValue
from app.domain.delivery import (
    DEFAULT_SCHEMA,
    ActionItem,
    ColumnProfile,
    ImportReport,
    KPISettings,
    Representation,
    SchemaConfig,
    SimulationResult,
    Stakeholder,
)

__all__ = [
    "ActionItem",
    "CellKind",
    "CellValue",
    "ColumnProfile",
    "DEFAULT_SCHEMA",
    "ImportReport",
    "KPISettings",
    "Representation",
    "SchemaConfig",
    "SimulationResult",
    "Stakeholder",
]
