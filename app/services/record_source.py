"""
app/services/record_source.py

Turns uploaded CSV / XLSX files into plain record dictionaries.
"""

from __future__ import annotations

import io
import logging
import math
import zipfile
from datetime import date, datetime, time
from typing import Any, Iterable, Sequence

import pandas as pd

from app.domain.delivery import Record

logger = logging.getLogger(__name__)

CSV_EXTENSIONS = (".csv", ".txt")
EXCEL_EXTENSIONS = (".xlsx",)


class RecordSourceError(ValueError):
    """
    Raised when an upload cannot be read into records.
    """


def _to_cell(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, pd.Timestamp):
        if pd.isna(value):
            return None
        return value.isoformat()
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if value is pd.NaT:
        return None
    return value


def column_names_of(records: Iterable[Record]) -> list[str]:
    """
    Union of record keys in first-seen order.
    """

    seen: dict[str, None] = {}
    for record in records:
        for key in record.keys():
            seen.setdefault(str(key), None)
    return list(seen)


def frame_to_records(frame: pd.DataFrame) -> list[dict[str, Any]]:
    """
    Convert a DataFrame to records with Python scalars; NaN/NaT become None.
    """

    boxed = frame.astype(object).where(pd.notna(frame), None)
    return [
        {str(column): _to_cell(value) for column, value in row.items()}
        for row in boxed.to_dict(orient="records")
    ]


class RecordSource:
    """
    Reads one uploaded file into (records, column_names).
    """

    def read_upload(self, filename: str, data: bytes) -> tuple[list[dict[str, Any]], list[str]]:
        """
        Parse *data* according to the extension of *filename*.

        Raises
        ------
        RecordSourceError
            Unsupported extension, empty payload or unreadable content.
        """

        name = (filename or "").strip().lower()
        if not data:
            raise RecordSourceError("Uploaded file is empty.")

        try:
            if name.endswith(CSV_EXTENSIONS):
                frame = pd.read_csv(io.BytesIO(data), encoding="utf-8-sig")
            elif name.endswith(EXCEL_EXTENSIONS):
                frame = pd.read_excel(io.BytesIO(data), sheet_name=0)
            else:
                raise RecordSourceError(
                    f"Unsupported file type for '{filename}'. Expected .csv or .xlsx."
                )
        except RecordSourceError:
            raise
        except (
            ValueError,
            UnicodeDecodeError,
            zipfile.BadZipFile,
            pd.errors.ParserError,
            pd.errors.EmptyDataError,
        ) as exc:
            raise RecordSourceError(f"Could not read '{filename}': {exc}") from exc

        records = frame_to_records(frame)
        column_names = [str(column) for column in frame.columns]
        logger.info(
            "Read %d rows x %d columns from %s",
            len(records),
            len(column_names),
            filename,
        )
        return records, column_names

    @staticmethod
    def from_json(records: Sequence[Record]) -> tuple[list[dict[str, Any]], list[str]]:
        """
        Accept records posted as JSON objects; column order is first-seen.
        """

        copied = [dict(record) for record in records]
        return copied, column_names_of(copied)
