"""
app/services/workspace_state.py

Single-tenant in-memory workspace: the committed record set, its schema and
profiles, the KPI settings snapshot, and at most one pending import.

Every change replaces the relevant snapshot wholesale under a lock; readers
always see a complete, consistent snapshot. The SQL console session is the
only mutable piece and is discarded whenever the staged import changes.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field, replace
from functools import lru_cache
from pathlib import Path
from typing import Sequence

from app.config import get_kpi_settings_defaults, get_sample_data_path
from app.domain.delivery import (
    DEFAULT_SCHEMA,
    ColumnProfile,
    ImportReport,
    KPISettings,
    Record,
    SchemaConfig,
)
from app.services.query_console_service import QueryConsoleService
from app.services.record_source import column_names_of

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkspaceSnapshot:
    records: tuple[Record, ...] = ()
    column_names: tuple[str, ...] = ()
    schema: SchemaConfig = DEFAULT_SCHEMA
    profiles: tuple[ColumnProfile, ...] = ()
    settings: KPISettings = field(default_factory=KPISettings)
    pending: ImportReport | None = None

    @property
    def row_count(self) -> int:
        return len(self.records)


class PendingImportMissingError(LookupError):
    """
    Raised when an operation needs a staged import and none exists.
    """


class WorkspaceState:
    """
    Holder for the current :class:`WorkspaceSnapshot`.
    """

    def __init__(self, snapshot: WorkspaceSnapshot | None = None) -> None:
        self._lock = threading.RLock()
        self._snapshot = snapshot or WorkspaceSnapshot()
        self._console: QueryConsoleService | None = None

    @property
    def snapshot(self) -> WorkspaceSnapshot:
        with self._lock:
            return self._snapshot

    def _swap(self, **changes) -> WorkspaceSnapshot:
        with self._lock:
            self._snapshot = replace(self._snapshot, **changes)
            if "pending" in changes:
                self._console = None
            return self._snapshot

    def update_settings(self, settings: KPISettings) -> WorkspaceSnapshot:
        logger.info("KPI settings updated: %s", settings.to_dict())
        return self._swap(settings=settings)

    def stage(self, report: ImportReport) -> WorkspaceSnapshot:
        logger.info(
            "Staged import of %d rows x %d columns",
            report.row_count,
            len(report.column_names),
        )
        return self._swap(pending=report)

    def require_pending(self) -> ImportReport:
        pending = self.snapshot.pending
        if pending is None:
            raise PendingImportMissingError("No import is staged; upload a batch first.")
        return pending

    def commit(
        self,
        records: Sequence[Record],
        schema: SchemaConfig,
        *,
        column_names: Sequence[str] | None = None,
        profiles: Sequence[ColumnProfile] = (),
    ) -> WorkspaceSnapshot:
        """
        Replace the committed record set and clear any staged import.
        """

        committed = tuple(dict(record) for record in records)
        names = tuple(column_names) if column_names is not None else tuple(column_names_of(committed))
        snapshot = self._swap(
            records=committed,
            column_names=names,
            schema=schema,
            profiles=tuple(profiles),
            pending=None,
        )
        logger.info("Committed %d records (%d columns)", len(committed), len(names))
        return snapshot

    def commit_pending(self, records: Sequence[Record] | None = None) -> WorkspaceSnapshot:
        """
        Commit the staged import, optionally with cleaned replacement rows.
        """

        pending = self.require_pending()
        if records is None:
            return self.commit(
                pending.records,
                pending.schema,
                column_names=pending.column_names,
                profiles=pending.profiles,
            )
        return self.commit(records, pending.schema, profiles=pending.profiles)

    def console(self) -> QueryConsoleService:
        """
        Console session over the staged import, or over the committed
        records when nothing is staged. Reused until the next stage/commit.
        Raises ``QueryConsoleError`` when the columns cannot form a table.
        """

        with self._lock:
            if self._console is None:
                source = self._snapshot.pending
                if source is not None:
                    self._console = QueryConsoleService(source.records, source.column_names)
                else:
                    self._console = QueryConsoleService(
                        self._snapshot.records, self._snapshot.column_names
                    )
            return self._console

    def commit_console(self) -> WorkspaceSnapshot:
        """
        Commit the console table as the new record set.
        """

        with self._lock:
            rows, column_names = self.console().snapshot()
            current = self._snapshot
            source = current.pending
            schema = source.schema if source is not None else current.schema
            profiles = source.profiles if source is not None else current.profiles
            return self.commit(rows, schema, column_names=column_names, profiles=profiles)


def load_sample_records(path: Path | None) -> list[dict]:
    """
    Read a JSON array of records; a missing or unreadable file yields ``[]``.
    """

    if path is None or not path.exists():
        return []
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Could not read sample data %s: %s", path, exc)
        return []
    if not isinstance(payload, list):
        logger.warning("Sample data %s is not a JSON array; ignoring it", path)
        return []
    return [record for record in payload if isinstance(record, dict)]


@lru_cache(maxsize=1)
def get_workspace_state() -> WorkspaceState:
    """
    Build and cache the process-wide workspace, seeded with the demo data.
    """

    records = load_sample_records(get_sample_data_path())
    return WorkspaceState(
        WorkspaceSnapshot(
            records=tuple(records),
            column_names=tuple(column_names_of(records)),
            schema=DEFAULT_SCHEMA,
            settings=get_kpi_settings_defaults(),
        )
    )
