"""
app/validators/mapping_validator.py

Checks applied to a reviewer-edited role -> column mapping before it
replaces the inferred schema.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict, dataclass
from typing import Any, Iterator, Mapping, Sequence

from app.domain.delivery import ROLE_NAMES

CODE_INVALID_ROLE = "invalid_role"
CODE_UNKNOWN_COLUMN = "unknown_source_column"
CODE_DUPLICATE_COLUMN = "duplicate_source_column"


@dataclass(frozen=True)
class MappingErrorDetail:
    code: str
    message: str
    role: str | None = None
    source_column: str | None = None
    context: dict[str, Any] | None = None


class SchemaMappingError(ValueError):
    """
    One or more role overrides are unusable; ``errors`` lists every problem.
    """

    def __init__(self, *, message: str, errors: Sequence[MappingErrorDetail]) -> None:
        super().__init__(message)
        self.message = message
        self.errors = tuple(errors)

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "errors": [asdict(error) for error in self.errors]}


class MappingValidator:
    """
    A blank column leaves the role unmapped. Any other column must exist in
    the batch and may back one role only.
    """

    def __init__(self, *, roles: Sequence[str] = ROLE_NAMES) -> None:
        self._roles = tuple(roles)

    def validate(
        self,
        *,
        mapping: Mapping[str, str],
        source_columns: Sequence[str],
    ) -> None:
        problems = [
            *self._unknown_roles(mapping),
            *self._unknown_columns(mapping, source_columns),
            *self._shared_columns(mapping),
        ]
        if not problems:
            return
        codes = ", ".join(sorted({problem.code for problem in problems}))
        raise SchemaMappingError(
            message=f"Schema mapping validation failed: {codes}.",
            errors=problems,
        )

    def _unknown_roles(self, mapping: Mapping[str, str]) -> Iterator[MappingErrorDetail]:
        for role, column in mapping.items():
            if role not in self._roles:
                yield MappingErrorDetail(
                    code=CODE_INVALID_ROLE,
                    message=f"'{role}' is not a semantic role.",
                    role=role,
                    source_column=column,
                    context={"roles": list(self._roles)},
                )

    def _unknown_columns(
        self,
        mapping: Mapping[str, str],
        source_columns: Sequence[str],
    ) -> Iterator[MappingErrorDetail]:
        available = set(source_columns)
        for role, column in mapping.items():
            if role in self._roles and column and column not in available:
                yield MappingErrorDetail(
                    code=CODE_UNKNOWN_COLUMN,
                    message=f"Column '{column}' is not part of the imported batch.",
                    role=role,
                    source_column=column,
                    context={"source_columns": list(source_columns)},
                )

    def _shared_columns(self, mapping: Mapping[str, str]) -> Iterator[MappingErrorDetail]:
        roles_by_column: dict[str, list[str]] = defaultdict(list)
        for role, column in mapping.items():
            if role in self._roles and column:
                roles_by_column[column].append(role)
        for column, roles in roles_by_column.items():
            if len(roles) > 1:
                yield MappingErrorDetail(
                    code=CODE_DUPLICATE_COLUMN,
                    message=f"Column '{column}' is assigned to more than one role.",
                    source_column=column,
                    context={"roles": sorted(roles)},
                )
