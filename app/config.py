"""
app/config.py

Environment-driven settings for the API process.

Values come from the process environment, optionally pre-filled from
``.env`` / ``.env.local``. Every getter is cached and falls back to a safe
default when a variable is unset or unparsable.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Callable, TypeVar

from app.domain.delivery import KPISettings

PROJECT_ROOT = Path(__file__).resolve().parents[1]

_ALLOWED_LLM_ADAPTERS = {"none", "mock", "openai"}

_NumberT = TypeVar("_NumberT", int, float)


def _parse_env_line(line: str) -> tuple[str, str] | None:
    line = line.strip()
    if not line or line.startswith("#") or "=" not in line:
        return None
    key, value = line.split("=", 1)
    key = key.strip()
    if not key:
        return None
    return key, value.strip().strip("\"'")


def load_env_files() -> None:
    """
    Export ``KEY=VALUE`` lines from ``.env`` then ``.env.local`` at the
    project root. Variables already in the process environment win.
    """

    for env_path in (PROJECT_ROOT / ".env", PROJECT_ROOT / ".env.local"):
        if not env_path.is_file():
            continue
        for line in env_path.read_text(encoding="utf-8").splitlines():
            parsed = _parse_env_line(line)
            if parsed is not None:
                os.environ.setdefault(*parsed)


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    load_env_files()


def _get_optional_str_env(name: str) -> str | None:
    """
    Stripped value of *name*; unset and blank both read as ``None``.
    """

    _load_env_once()
    value = (os.getenv(name) or "").strip()
    return value or None


def _get_str_env(name: str, default: str) -> str:
    return _get_optional_str_env(name) or default


def _get_number_env(name: str, default: _NumberT, cast: Callable[[str], _NumberT]) -> _NumberT:
    raw_value = _get_optional_str_env(name)
    if raw_value is None:
        return default
    try:
        return cast(raw_value)
    except ValueError:
        return default


def _get_int_env(name: str, default: int) -> int:
    return _get_number_env(name, default, int)


def _get_float_env(name: str, default: float) -> float:
    return _get_number_env(name, default, float)


@dataclass(frozen=True)
class AdvisorySettings:
    """
    Settings for the optional generative collaborators.

    ``adapter="none"`` disables column insights and the query assistant;
    profiling then relies on its deterministic fallback text.
    """

    adapter: str = "none"
    model: str = "gpt-4o-mini"
    api_key: str | None = None
    base_url: str | None = None
    timeout_seconds: float = 20.0
    max_retries: int = 1


@dataclass(frozen=True)
class ImportSettings:
    """
    Limits applied while importing and inspecting a batch.
    """

    max_upload_bytes: int = 20 * 1024 * 1024
    advisory_sample_rows: int = 3
    assistant_sample_rows: int = 15
    console_preview_rows: int = 100


@lru_cache(maxsize=1)
def get_kpi_settings_defaults() -> KPISettings:
    """
    Return the KPI thresholds a fresh workspace starts with.
    """

    defaults = KPISettings()
    return KPISettings(
        max_acceptable_prep_time=_get_float_env(
            "KPI_MAX_PREP_MINUTES", defaults.max_acceptable_prep_time
        ),
        max_acceptable_drive_time=_get_float_env(
            "KPI_MAX_DRIVE_MINUTES", defaults.max_acceptable_drive_time
        ),
        high_refund_threshold=_get_float_env(
            "KPI_HIGH_REFUND_THRESHOLD", defaults.high_refund_threshold
        ),
        late_delivery_threshold=_get_float_env(
            "KPI_LATE_DELIVERY_MINUTES", defaults.late_delivery_threshold
        ),
    )


@lru_cache(maxsize=1)
def get_advisory_settings() -> AdvisorySettings:
    """
    Return advisory collaborator settings from environment variables.

    Unknown ``LLM_ADAPTER`` values fall back to ``"none"``.
    """

    adapter = _get_str_env("LLM_ADAPTER", "none").lower()
    if adapter not in _ALLOWED_LLM_ADAPTERS:
        adapter = "none"
    return AdvisorySettings(
        adapter=adapter,
        model=_get_str_env("LLM_MODEL", "gpt-4o-mini"),
        api_key=_get_optional_str_env("LLM_API_KEY") or _get_optional_str_env("OPENAI_API_KEY"),
        base_url=_get_optional_str_env("LLM_BASE_URL"),
        timeout_seconds=max(1.0, _get_float_env("LLM_TIMEOUT_SECONDS", 20.0)),
        max_retries=max(0, _get_int_env("LLM_MAX_RETRIES", 1)),
    )


@lru_cache(maxsize=1)
def get_import_settings() -> ImportSettings:
    """
    Return import and console limits from environment variables.
    """

    return ImportSettings(
        max_upload_bytes=max(1, _get_int_env("IMPORT_MAX_UPLOAD_BYTES", 20 * 1024 * 1024)),
        advisory_sample_rows=min(3, max(0, _get_int_env("ADVISORY_SAMPLE_ROWS", 3))),
        assistant_sample_rows=max(0, _get_int_env("ASSISTANT_SAMPLE_ROWS", 15)),
        console_preview_rows=max(1, _get_int_env("CONSOLE_PREVIEW_ROWS", 100)),
    )


def get_rules_path() -> Path:
    """
    Location of the keyword rule table used by schema inference and profiling.
    """

    configured = _get_optional_str_env("SCHEMA_RULES_PATH")
    if configured:
        return Path(configured)
    return PROJECT_ROOT / "config" / "schema_rules.json"


def get_sample_data_path() -> Path | None:
    """
    Demo dataset a fresh workspace is seeded with; ``None`` disables seeding.

    ``SAMPLE_DATA_PATH=none`` starts the workspace empty.
    """

    configured = _get_optional_str_env("SAMPLE_DATA_PATH")
    if configured is not None and configured.lower() == "none":
        return None
    if configured:
        return Path(configured)
    return PROJECT_ROOT / "config" / "sample_deliveries.json"
