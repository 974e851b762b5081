"""
app/mappers/schema_inferencer.py

Keyword-driven semantic role detection over source column names.
"""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

from app.domain.delivery import SchemaConfig
from app.mappers.rule_table import RuleTable, load_rule_table
from app.validators.mapping_validator import MappingValidator

logger = logging.getLogger(__name__)


class SchemaInferencer:
    """
    Assigns each semantic role to at most one source column.

    For every role, in rule-table order, the first column (in source order)
    whose lowercased name contains any of the role's keywords wins. A column
    already claimed by an earlier role is skipped. This is a fast,
    explainable heuristic: false positives and misses are expected and are
    surfaced to a reviewer through the column profiles, never raised.
    """

    def __init__(
        self,
        *,
        rules: RuleTable | None = None,
        validator: MappingValidator | None = None,
    ) -> None:
        self._rules = rules or load_rule_table()
        self._validator = validator or MappingValidator()

    def infer_schema(self, column_names: Sequence[str]) -> SchemaConfig:
        """
        Resolve a SchemaConfig from *column_names*. Never fails.
        """

        columns = [name for name in column_names if isinstance(name, str) and name]
        lowered = [(name, name.lower()) for name in columns]

        resolved: dict[str, str] = {}
        used_columns: set[str] = set()
        for role, keywords in self._rules.role_keywords:
            match = self._first_match(lowered, keywords, used_columns)
            resolved[role] = match
            if match:
                used_columns.add(match)

        schema = SchemaConfig.from_mapping(resolved)
        logger.debug(
            "Inferred schema from %d columns: %d/%d roles mapped",
            len(columns),
            len(used_columns),
            len(self._rules.role_keywords),
        )
        return schema

    def apply_overrides(
        self,
        schema: SchemaConfig,
        overrides: Mapping[str, str],
        column_names: Sequence[str],
    ) -> SchemaConfig:
        """
        Apply reviewer corrections on top of an inferred schema.

        ``overrides`` maps role -> column (``""`` unmaps the role).

        Raises
        ------
        SchemaMappingError
            Unknown role, unknown column, or a column backing two roles.
        """

        cleaned = {
            role.strip(): (column or "").strip()
            for role, column in overrides.items()
        }
        merged = {**schema.to_dict(), **cleaned}
        self._validator.validate(mapping=merged, source_columns=column_names)
        return schema.with_overrides(cleaned)

    @staticmethod
    def _first_match(
        lowered: Sequence[tuple[str, str]],
        keywords: Sequence[str],
        used_columns: set[str],
    ) -> str:
        for original, name in lowered:
            if original in used_columns:
                continue
            if any(keyword in name for keyword in keywords):
                return original
        return ""
