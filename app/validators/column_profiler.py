"""
app/validators/column_profiler.py

Per-column data-quality profiling for an import batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

from app.domain.cell_values import CellKind, CellValue, parse_decimal
from app.domain.delivery import ColumnProfile, Record, Representation
from app.mappers.rule_table import RuleTable, load_rule_table

logger = logging.getLogger(__name__)

OBSERVED_SERIAL_DATE = "spreadsheet serial date"
OBSERVED_SLASH_DATE = "slash-delimited date"
OBSERVED_NUMERIC = "numeric"
OBSERVED_TEXT = "text"

SERIAL_DATE_FLOOR = 30000
NO_SAMPLE = "N/A"

FALLBACK_DESCRIPTION = "Standard data column."
FALLBACK_KPI_UTILITY = "General reporting."
FALLBACK_TIP_MISSING = "Manual review required"
FALLBACK_TIP_COMPLETE = "None needed"

_NUMBER_PUNCTUATION = str.maketrans("", "", "$,%")
_SAMPLE_PUNCTUATION = str.maketrans("", "", "$,")


@dataclass(frozen=True)
class ColumnHealth:
    """
    Share of valid / missing / invalid cells, as shown in the import review.
    """

    valid_pct: float
    missing_pct: float
    invalid_pct: float
    action: str


def _guidance_field(insight: Any, name: str) -> str | None:
    if insight is None:
        return None
    if isinstance(insight, Mapping):
        value = insight.get(name)
    else:
        value = getattr(insight, name, None)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


class ColumnProfiler:
    """
    Classifies expected vs. observed representation and counts missing and
    invalid cells. Never fails: every input, including an empty column,
    yields a profile.
    """

    def __init__(self, *, rules: RuleTable | None = None) -> None:
        self._rules = rules or load_rule_table()

    def expected_representation(self, column_name: str) -> Representation:
        lowered = column_name.lower()
        for representation, keywords in self._rules.representation_keywords:
            if any(keyword in lowered for keyword in keywords):
                return representation
        return Representation.STRING

    def profile(
        self,
        column_name: str,
        values: Iterable[Any],
        insight: Any = None,
    ) -> ColumnProfile:
        """
        Profile one column from the full list of its cell values.

        ``insight`` is an optional advisory annotation exposing
        ``description`` / ``kpi_utility`` / ``imputation_tip``; blank or
        absent fields fall back to deterministic text.
        """

        expected = self.expected_representation(column_name)
        missing_count = 0
        invalid_count = 0
        first_present: CellValue | None = None

        for value in values:
            cell = CellValue.of(value)
            if cell.is_absent:
                missing_count += 1
                continue
            if first_present is None:
                first_present = cell
            if expected is Representation.NUMBER and not self._is_number(cell):
                invalid_count += 1

        if first_present is None:
            sample = NO_SAMPLE
            observed = OBSERVED_TEXT
        else:
            sample = first_present.to_text()
            observed = self._observed_representation(sample, expected)

        description = _guidance_field(insight, "description") or FALLBACK_DESCRIPTION
        kpi_utility = _guidance_field(insight, "kpi_utility") or FALLBACK_KPI_UTILITY
        imputation_tip = _guidance_field(insight, "imputation_tip") or (
            FALLBACK_TIP_MISSING if missing_count > 0 else FALLBACK_TIP_COMPLETE
        )

        return ColumnProfile(
            name=column_name,
            expected_representation=expected,
            observed_representation=observed,
            missing_count=missing_count,
            invalid_count=invalid_count,
            sample_value=sample,
            description=description,
            kpi_utility=kpi_utility,
            imputation_tip=imputation_tip,
        )

    def profile_records(
        self,
        records: Sequence[Record],
        column_names: Sequence[str],
        insights: Mapping[str, Any] | None = None,
    ) -> list[ColumnProfile]:
        """
        Profile every column of a batch; absent keys count as missing.
        """

        insights = insights or {}
        profiles = [
            self.profile(
                column_name,
                (record.get(column_name) for record in records),
                insights.get(column_name),
            )
            for column_name in column_names
        ]
        flagged = sum(1 for profile in profiles if not profile.is_format_valid)
        logger.debug(
            "Profiled %d columns over %d records (%d with invalid cells)",
            len(profiles),
            len(records),
            flagged,
        )
        return profiles

    @staticmethod
    def health(profile: ColumnProfile, row_count: int) -> ColumnHealth:
        if row_count <= 0:
            missing_pct = invalid_pct = 0.0
        else:
            missing_pct = profile.missing_count / row_count * 100
            invalid_pct = profile.invalid_count / row_count * 100
        return ColumnHealth(
            valid_pct=100 - missing_pct - invalid_pct,
            missing_pct=missing_pct,
            invalid_pct=invalid_pct,
            action="Check SQL" if profile.missing_count > 0 else "Ready",
        )

    @staticmethod
    def _is_number(cell: CellValue) -> bool:
        if cell.kind in (CellKind.NUMBER, CellKind.BOOLEAN):
            return True
        return parse_decimal(cell.to_text().translate(_NUMBER_PUNCTUATION)) is not None

    @staticmethod
    def _observed_representation(sample: str, expected: Representation) -> str:
        as_number = parse_decimal(sample) if sample.strip() else None
        if (
            as_number is not None
            and as_number > SERIAL_DATE_FLOOR
            and expected is Representation.TIMESTAMP
        ):
            return OBSERVED_SERIAL_DATE
        if "/" in sample:
            return OBSERVED_SLASH_DATE
        if parse_decimal(sample.translate(_SAMPLE_PUNCTUATION)) is not None:
            return OBSERVED_NUMERIC
        return OBSERVED_TEXT
