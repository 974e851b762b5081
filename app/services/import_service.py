"""
app/services/import_service.py

Import workflow for one batch:

    1. RecordSource              reads the upload (or JSON rows) into records
    2. SchemaInferencer          maps semantic roles to source columns
    3. Column advisor            optional business annotations (never blocks)
    4. ColumnProfiler            per-column data-quality profile

The result is an immutable ``ImportReport``. Reviewer overrides produce a new
report; nothing is committed until the caller hands the report to the
workspace.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from functools import lru_cache
from typing import Mapping, Sequence

from app.domain.delivery import ImportReport, Record
from app.mappers.schema_inferencer import SchemaInferencer
from app.services.record_source import RecordSource
from app.validators.column_profiler import ColumnProfiler
from llm_advisory.advisor import BaseColumnAdvisor, NullColumnAdvisor, build_column_advisor

logger = logging.getLogger(__name__)


class DatasetImportService:
    """
    Coordinates reading, schema inference, advisory annotation and profiling.
    """

    def __init__(
        self,
        *,
        inferencer: SchemaInferencer | None = None,
        profiler: ColumnProfiler | None = None,
        advisor: BaseColumnAdvisor | None = None,
        record_source: RecordSource | None = None,
    ) -> None:
        self._inferencer = inferencer or SchemaInferencer()
        self._profiler = profiler or ColumnProfiler()
        self._advisor = advisor or NullColumnAdvisor()
        self._record_source = record_source or RecordSource()

    def import_records(
        self,
        records: Sequence[Record],
        column_names: Sequence[str] | None = None,
    ) -> ImportReport:
        """
        Infer and profile an already-parsed batch.

        ``column_names`` defaults to the first-seen union of record keys.
        """

        copied, discovered = self._record_source.from_json(records)
        names = tuple(column_names) if column_names is not None else tuple(discovered)

        schema = self._inferencer.infer_schema(names)
        insights = self._advisor.advise(names, copied)
        profiles = self._profiler.profile_records(copied, names, insights)

        report = ImportReport(
            records=tuple(copied),
            column_names=names,
            schema=schema,
            profiles=tuple(profiles),
        )
        logger.info(
            "Import analysed: %d rows, %d columns, %d annotated",
            report.row_count,
            len(names),
            len(insights),
        )
        return report

    def import_upload(self, filename: str, data: bytes) -> ImportReport:
        """
        Read an uploaded CSV / XLSX file and analyse it.

        Raises
        ------
        RecordSourceError
            The file cannot be read.
        """

        records, column_names = self._record_source.read_upload(filename, data)
        return self.import_records(records, column_names)

    def apply_overrides(self, report: ImportReport, overrides: Mapping[str, str]) -> ImportReport:
        """
        Return a copy of *report* with reviewer role overrides applied.

        Raises
        ------
        SchemaMappingError
            Unknown role, unknown column, or a column backing two roles.
        """

        schema = self._inferencer.apply_overrides(report.schema, overrides, report.column_names)
        return replace(report, schema=schema)


@lru_cache(maxsize=1)
def get_dataset_import_service() -> DatasetImportService:
    """
    Build and cache the import service with the configured advisor.
    """

    return DatasetImportService(advisor=build_column_advisor())
