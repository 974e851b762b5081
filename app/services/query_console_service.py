"""
app/services/query_console_service.py

In-memory SQL console over the committed record set.

The records are loaded into a private SQLite database as the table
``deliveries``. Row-returning statements produce a result set; any other
statement mutates the table, and the full table is returned as the
candidate replacement for the committed records. Columns that held only
booleans come back as booleans, since SQLite stores them as 0/1.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

import pandas as pd
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from app.domain.cell_values import is_missing
from app.domain.delivery import ColumnProfile, Record, SchemaConfig
from app.services.record_source import column_names_of, frame_to_records

logger = logging.getLogger(__name__)

TABLE_NAME = "deliveries"
DEFAULT_QUERY = f"SELECT * FROM {TABLE_NAME}"
EXTREME_DURATION_MINUTES = 180


class QueryConsoleError(ValueError):
    """
    Raised when a console statement cannot be executed.
    """

    def __init__(self, message: str, *, sql: str) -> None:
        super().__init__(message)
        self.message = message
        self.sql = sql

    def to_dict(self) -> dict[str, str]:
        return {"message": self.message, "sql": self.sql}


@dataclass(frozen=True)
class ConsoleResult:
    rows: list[dict[str, Any]]
    is_mutation: bool
    columns: list[str] = field(default_factory=list)

    def preview(self, limit: int) -> list[dict[str, Any]]:
        return self.rows[: max(limit, 0)]


@dataclass(frozen=True)
class CleaningSuggestion:
    label: str
    sql: str


def quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def _boolean_columns(records: Sequence[Record], column_names: Sequence[str]) -> frozenset[str]:
    """
    Columns whose present values are all booleans (at least one present).
    """

    flagged = set()
    for column in column_names:
        present = [record.get(column) for record in records if not is_missing(record.get(column))]
        if present and all(isinstance(value, bool) for value in present):
            flagged.add(column)
    return frozenset(flagged)


class QueryConsoleService:
    """
    One console session. Each instance owns its own in-memory database.
    """

    def __init__(self, records: Sequence[Record], column_names: Sequence[str] | None = None) -> None:
        self._engine: Engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        self._column_names = list(column_names) if column_names else column_names_of(records)
        self._boolean_columns = _boolean_columns(records, self._column_names)
        self._load(records)

    def _load(self, records: Sequence[Record]) -> None:
        """
        Raises
        ------
        QueryConsoleError
            The columns cannot form a SQLite table, e.g. two names that
            differ only by case.
        """

        if not self._column_names:
            logger.debug("Console opened without columns; table %s not created", TABLE_NAME)
            return
        frame = pd.DataFrame.from_records(
            [dict(record) for record in records],
            columns=self._column_names,
        )
        try:
            frame.to_sql(TABLE_NAME, self._engine, index=False, if_exists="replace")
        except SQLAlchemyError as exc:
            message = str(getattr(exc, "orig", None) or exc)
            logger.warning("Could not create console table %s: %s", TABLE_NAME, message)
            raise QueryConsoleError(message, sql=f"CREATE TABLE {TABLE_NAME}") from exc
        logger.debug("Loaded %d rows into console table %s", len(frame), TABLE_NAME)

    def _restore_booleans(self, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        # SQLite stores booleans as 0/1.
        for row in rows:
            for column in self._boolean_columns.intersection(row):
                value = row[column]
                if not isinstance(value, (bool, str)) and value in (0, 1):
                    row[column] = bool(value)
        return rows

    def run(self, sql: str) -> ConsoleResult:
        """
        Execute one statement.

        Raises
        ------
        QueryConsoleError
            Blank statement or any database error.
        """

        statement = (sql or "").strip()
        if not statement:
            raise QueryConsoleError("SQL statement is empty.", sql=sql or "")

        try:
            with self._engine.begin() as connection:
                result = connection.execute(text(statement))
                if result.returns_rows:
                    columns = list(result.keys())
                    rows = self._restore_booleans([dict(row._mapping) for row in result])
                    return ConsoleResult(rows=rows, is_mutation=False, columns=columns)
        except SQLAlchemyError as exc:
            message = str(getattr(exc, "orig", None) or exc)
            logger.debug("Console statement failed: %s", message)
            raise QueryConsoleError(message, sql=statement) from exc

        rows, columns = self.snapshot()
        logger.info("Console statement modified %s (%d rows now)", TABLE_NAME, len(rows))
        return ConsoleResult(rows=rows, is_mutation=True, columns=columns)

    def snapshot(self) -> tuple[list[dict[str, Any]], list[str]]:
        """
        Full current contents of the table.
        """

        if not self._column_names:
            return [], []
        try:
            frame = pd.read_sql_query(text(DEFAULT_QUERY), self._engine)
        except SQLAlchemyError as exc:
            raise QueryConsoleError(str(getattr(exc, "orig", None) or exc), sql=DEFAULT_QUERY) from exc
        rows = self._restore_booleans(frame_to_records(frame))
        return rows, [str(column) for column in frame.columns]

    @staticmethod
    def cleaning_suggestions(
        profiles: Sequence[ColumnProfile],
        schema: SchemaConfig,
    ) -> list[CleaningSuggestion]:
        """
        Canned fixes for issues visible in the column profiles.
        """

        suggestions: list[CleaningSuggestion] = []
        by_name = {profile.name: profile for profile in profiles}

        region_profile = by_name.get(schema.region) if schema.region else None
        if region_profile is None:
            region_profile = next(
                (profile for profile in profiles if "region" in profile.name.lower()),
                None,
            )
        if region_profile is not None and region_profile.missing_count > 0:
            column = quote_identifier(region_profile.name)
            suggestions.append(
                CleaningSuggestion(
                    label=f"Remove {region_profile.missing_count} rows with missing Region",
                    sql=f"DELETE FROM {TABLE_NAME} WHERE {column} IS NULL OR {column} = ''",
                )
            )

        if schema.total_duration:
            column = quote_identifier(schema.total_duration)
            suggestions.append(
                CleaningSuggestion(
                    label="Flag Long Duration Orders",
                    sql=(
                        f"SELECT * FROM {TABLE_NAME} "
                        f"WHERE CAST({column} AS REAL) > {EXTREME_DURATION_MINUTES}"
                    ),
                )
            )
        return suggestions
