"""Turns raw advisory text into typed payloads.

Models frequently wrap JSON in markdown code fences; those are removed
before decoding. Decoding failures are reported at stage ``json_parse`` and
shape failures at stage ``schema``.
"""

import json
import logging
from typing import Any, Dict, List, Sequence

from pydantic import ValidationError

from llm_advisory.schema import ColumnInsight, QueryAnswer

logger = logging.getLogger(__name__)

STAGE_JSON = "json_parse"
STAGE_SCHEMA = "schema"


class LLMOutputValidationError(ValueError):
    """Advisory output could not be decoded or did not have the expected shape."""

    def __init__(self, stage: str, errors: List[str], raw_response: str) -> None:
        super().__init__(f"{stage}: {'; '.join(errors)}")
        self.stage = stage
        self.errors = errors
        self.raw_response = raw_response


def _strip_markdown_fences(text: str) -> str:
    lines = text.strip().splitlines()
    if len(lines) >= 2 and lines[0].startswith("```") and lines[-1].strip() == "```":
        lines = lines[1:-1]
    elif len(lines) == 1 and lines[0].startswith("```") and lines[0].endswith("```"):
        lines = [lines[0].strip("`").removeprefix("json")]
    return "\n".join(lines).strip()


def _decode_object(raw_response: str) -> Dict[str, Any]:
    try:
        data = json.loads(_strip_markdown_fences(raw_response or ""))
    except json.JSONDecodeError as exc:
        raise LLMOutputValidationError(STAGE_JSON, [exc.msg], raw_response) from exc

    if isinstance(data, dict):
        return data
    raise LLMOutputValidationError(
        STAGE_SCHEMA,
        [f"expected a JSON object, got {type(data).__name__}"],
        raw_response,
    )


def _describe(exc: ValidationError) -> List[str]:
    described = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "<root>"
        described.append(f"{location}: {error['msg']}")
    return described


def validate_column_insights(
    raw_response: str,
    column_names: Sequence[str],
) -> Dict[str, ColumnInsight]:
    """Column header -> insight.

    Only the top level must be well formed: entries for unknown headers and
    entries that fail validation are skipped one by one.
    """
    payload = _decode_object(raw_response)
    wanted = set(column_names)
    insights: Dict[str, ColumnInsight] = {}
    for column, entry in payload.items():
        if column not in wanted or not isinstance(entry, dict):
            logger.debug("Skipping insight for unexpected key %r", column)
            continue
        try:
            insights[column] = ColumnInsight.model_validate(entry)
        except ValidationError as exc:
            logger.debug("Skipping malformed insight for %r: %s", column, _describe(exc))
    return insights


def validate_query_answer(raw_response: str) -> QueryAnswer:
    payload = _decode_object(raw_response)
    try:
        return QueryAnswer.model_validate(payload)
    except ValidationError as exc:
        raise LLMOutputValidationError(STAGE_SCHEMA, _describe(exc), raw_response) from exc
