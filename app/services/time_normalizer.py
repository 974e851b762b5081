"""
app/services/time_normalizer.py

Date and time normalization across spreadsheet encodings.

Supported inputs
----------------
Spreadsheet serial date   45226        -> "2023-10-27"
Spreadsheet day fraction  0.5          -> "12:00:00"
ISO / unambiguous string  "2023-10-27", "10/27/2023", "2023-10-27T14:05:00Z"
12-hour clock string      "2:52:12 AM" -> "02:52:12"

Anything else is passed through unchanged. Numeric consumers treat such
pass-through strings as zero (see ``app.domain.cell_values``).
"""

from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

logger = logging.getLogger(__name__)

SERIAL_UNIX_EPOCH_OFFSET_DAYS = 25569
SECONDS_PER_DAY = 86400
SERIAL_EPOCH = date(1899, 12, 30)

_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
    "%m/%d/%Y %H:%M:%S",
)

_TWELVE_HOUR_PATTERN = re.compile(
    r"^(?P<hour>\d{1,2})(?::(?P<minute>\d{1,2}))?(?::(?P<second>\d{1,2}))?\s*(?P<meridiem>[ap]\.?m\.?)$",
    re.IGNORECASE,
)
_MERIDIEM_PATTERN = re.compile(r"am|pm", re.IGNORECASE)


def _is_numeric(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_iso_datetime(raw: str) -> datetime | None:
    normalized = raw[:-1] + "+00:00" if raw.endswith("Z") else raw
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        parsed = None
    if parsed is None:
        for fmt in DATE_FORMATS:
            try:
                parsed = datetime.strptime(raw, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _format_clock(hours: int, minutes: int, seconds: int) -> str:
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def serial_to_date(serial: float) -> date | None:
    """
    Convert a spreadsheet serial day count to a UTC calendar date.
    """

    if not math.isfinite(serial):
        return None
    millis = round((serial - SERIAL_UNIX_EPOCH_OFFSET_DAYS) * SECONDS_PER_DAY * 1000)
    try:
        return (_UNIX_EPOCH + timedelta(milliseconds=millis)).date()
    except OverflowError:
        return None


def date_to_serial(value: date) -> int:
    """Inverse of :func:`serial_to_date` at day precision."""
    return (value - SERIAL_EPOCH).days


def normalize_date(raw: Any) -> str:
    """
    Normalize a raw date cell to ``YYYY-MM-DD``.

    Returns ``""`` for falsy input (``None``, ``""``, ``0``, ``NaN`` and
    ``False``), so serial 0 reads as an empty cell rather than 1899-12-30.
    Returns the original string when the value cannot be interpreted.
    """

    if raw is None or raw is False or raw == "":
        return ""
    if _is_numeric(raw) and (raw == 0 or math.isnan(raw)):
        return ""

    if _is_numeric(raw):
        converted = serial_to_date(float(raw))
        if converted is not None:
            return converted.isoformat()
        return str(raw)

    text = str(raw).strip()
    parsed = _parse_iso_datetime(text)
    if parsed is not None:
        return parsed.date().isoformat()
    return text


def _parse_twelve_hour(text: str) -> str | None:
    match = _TWELVE_HOUR_PATTERN.match(text)
    if match is None:
        return None

    hours = int(match.group("hour"))
    minutes = int(match.group("minute") or 0)
    seconds = int(match.group("second") or 0)
    if not 1 <= hours <= 12 or minutes > 59 or seconds > 59:
        return None

    is_pm = match.group("meridiem").lower().startswith("p")
    if is_pm and hours != 12:
        hours += 12
    elif not is_pm and hours == 12:
        hours = 0
    return _format_clock(hours, minutes, seconds)


def normalize_time(raw: Any) -> str:
    """
    Normalize a raw time cell to 24-hour ``HH:MM:SS``.

    Numbers are fractions of a day and wrap at 24h. Strings are tried as ISO
    times/datetimes first, then as 12-hour clock strings.
    """

    if raw is None or raw == "" or isinstance(raw, bool):
        return ""

    if _is_numeric(raw):
        if not math.isfinite(float(raw)):
            return str(raw)
        total_seconds = round(float(raw) * SECONDS_PER_DAY)
        hours = (total_seconds // 3600) % 24
        minutes = (total_seconds % 3600) // 60
        seconds = total_seconds % 60
        return _format_clock(hours, minutes, seconds)

    text = str(raw).strip()

    if _MERIDIEM_PATTERN.search(text):
        converted = _parse_twelve_hour(text)
        return converted if converted is not None else text

    if ":" not in text:
        return text

    try:
        parsed_time = time.fromisoformat(text)
        return _format_clock(parsed_time.hour, parsed_time.minute, parsed_time.second)
    except ValueError:
        pass

    parsed = _parse_iso_datetime(text)
    if parsed is not None:
        return _format_clock(parsed.hour, parsed.minute, parsed.second)
    return text


def combine_date_time(date_text: str | None, time_text: str | None) -> datetime | None:
    """
    Combine a canonical date and a canonical time into one UTC instant.

    Accepts ``HH:MM`` as well as ``HH:MM:SS``. Returns ``None`` when either
    part is blank or invalid.
    """

    if not date_text or not time_text:
        return None
    clock = time_text if time_text.count(":") != 1 else f"{time_text}:00"
    return _parse_iso_datetime(f"{date_text}T{clock}")


def _as_instant(value: datetime | str | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str) and value.strip():
        return _parse_iso_datetime(value.strip())
    return None


def minutes_between(start: datetime | str | None, end: datetime | str | None) -> float:
    """
    Signed minutes from *start* to *end*; ``0.0`` if either is missing/invalid.

    No midnight correction is applied: a start and end time combined with
    the same date can yield a negative result.
    """

    start_instant = _as_instant(start)
    end_instant = _as_instant(end)
    if start_instant is None or end_instant is None:
        return 0.0
    return (end_instant - start_instant).total_seconds() / 60


def hour_of_day(raw: Any) -> float:
    """
    Fractional hour of a clock cell (``"3:30 PM"`` -> 15.5), for ordering.

    Unparsable input yields ``0.0``.
    """

    if raw is None or raw == "":
        return 0.0
    normalized = normalize_time(raw)
    parts = normalized.split(":")
    if len(parts) != 3:
        return 0.0
    try:
        hours, minutes, seconds = (int(part) for part in parts)
    except ValueError:
        return 0.0
    return hours + minutes / 60 + seconds / 3600


class TimeNormalizer:
    """
    Object facade over the module functions for dependency injection.
    """

    normalize_date = staticmethod(normalize_date)
    normalize_time = staticmethod(normalize_time)
    minutes_between = staticmethod(minutes_between)
    combine_date_time = staticmethod(combine_date_time)
    hour_of_day = staticmethod(hour_of_day)
