"""Advisory collaborators: column insights and the natural-language assistant.

Both collaborators degrade instead of raising: any adapter or validation
failure is logged and turned into a fallback value.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Sequence

from app.config import AdvisorySettings, get_advisory_settings, get_import_settings
from llm_advisory.adapter import BaseLLMAdapter, build_adapter
from llm_advisory.prompt_builder import ColumnInsightPromptBuilder, QueryPromptBuilder
from llm_advisory.retry import generate_with_retry
from llm_advisory.schema import ColumnInsight, QueryAnswer
from llm_advisory.validator import (
    LLMOutputValidationError,
    validate_column_insights,
    validate_query_answer,
)

logger = logging.getLogger(__name__)

MAX_INSIGHT_SAMPLE_ROWS = 3

NO_RESPONSE_ANSWER = "No response generated."
UNPARSABLE_SQL = "-- SQL generation failed to parse"
UNAVAILABLE_ANSWER = (
    "Unable to analyze data at this time. Please check your API configuration."
)


def _sample_rows(records: Sequence[Mapping[str, Any]], limit: int) -> List[Dict[str, Any]]:
    return [dict(record) for record in list(records)[: max(limit, 0)]]


class BaseColumnAdvisor(ABC):
    """Produces business annotations for the columns of an import batch."""

    @abstractmethod
    def advise(
        self,
        column_names: Sequence[str],
        sample_records: Sequence[Mapping[str, Any]],
    ) -> Dict[str, ColumnInsight]:
        """Return insights keyed by column name; missing keys are allowed."""


class NullColumnAdvisor(BaseColumnAdvisor):
    """No-op advisor; profiling falls back to its deterministic text."""

    def advise(
        self,
        column_names: Sequence[str],
        sample_records: Sequence[Mapping[str, Any]],
    ) -> Dict[str, ColumnInsight]:
        return {}


class LLMColumnAdvisor(BaseColumnAdvisor):
    """Asks an LLM for per-column annotations.

    Sends the headers and at most three sample rows. Never raises.
    """

    def __init__(
        self,
        adapter: BaseLLMAdapter,
        sample_rows: int = MAX_INSIGHT_SAMPLE_ROWS,
        max_retries: int = 1,
        prompt_builder: Optional[ColumnInsightPromptBuilder] = None,
    ) -> None:
        self._adapter = adapter
        self._sample_rows = min(max(sample_rows, 0), MAX_INSIGHT_SAMPLE_ROWS)
        self._max_retries = max_retries
        self._prompt_builder = prompt_builder or ColumnInsightPromptBuilder()

    def advise(
        self,
        column_names: Sequence[str],
        sample_records: Sequence[Mapping[str, Any]],
    ) -> Dict[str, ColumnInsight]:
        if not column_names:
            return {}

        samples = _sample_rows(sample_records, self._sample_rows)
        prompt = self._prompt_builder.build_prompt(column_names, samples)
        try:
            insights = generate_with_retry(
                self._adapter,
                prompt,
                validate=lambda raw: validate_column_insights(raw, column_names),
                max_retries=self._max_retries,
                system=self._prompt_builder.system,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("Column insight generation failed: %s", exc)
            return {}

        logger.info("Column insights generated for %d/%d columns", len(insights), len(column_names))
        return insights


class QueryAssistant:
    """Answers a free-form question about the committed records.

    A missing adapter is treated like an adapter failure.
    """

    def __init__(
        self,
        adapter: Optional[BaseLLMAdapter],
        sample_rows: int = 15,
        prompt_builder: Optional[QueryPromptBuilder] = None,
    ) -> None:
        self._adapter = adapter
        self._sample_rows = sample_rows
        self._prompt_builder = prompt_builder or QueryPromptBuilder()

    @property
    def is_available(self) -> bool:
        return self._adapter is not None

    def ask(self, records: Sequence[Mapping[str, Any]], question: str) -> QueryAnswer:
        if self._adapter is None:
            logger.warning("Query assistant called without a configured adapter")
            return QueryAnswer.failure(UNAVAILABLE_ANSWER)

        samples = _sample_rows(records, self._sample_rows)
        column_names = list(samples[0].keys()) if samples else []
        system = self._prompt_builder.build_system(column_names, samples)
        try:
            raw = self._adapter.generate(self._prompt_builder.build_prompt(question), system=system)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Query assistant adapter failed: %s", exc)
            return QueryAnswer.failure(UNAVAILABLE_ANSWER)

        if not raw or not raw.strip():
            return QueryAnswer.failure(NO_RESPONSE_ANSWER)

        try:
            return validate_query_answer(raw)
        except LLMOutputValidationError as exc:
            logger.warning("Query assistant returned unparsable output (%s)", exc.stage)
            return QueryAnswer(answer=raw, sql=UNPARSABLE_SQL)


def build_column_advisor(settings: Optional[AdvisorySettings] = None) -> BaseColumnAdvisor:
    """Return the configured column advisor, or the no-op advisor."""
    settings = settings or get_advisory_settings()
    adapter = build_adapter(settings)
    if adapter is None:
        return NullColumnAdvisor()
    return LLMColumnAdvisor(
        adapter,
        sample_rows=get_import_settings().advisory_sample_rows,
        max_retries=settings.max_retries,
    )


def build_query_assistant(settings: Optional[AdvisorySettings] = None) -> QueryAssistant:
    settings = settings or get_advisory_settings()
    return QueryAssistant(
        build_adapter(settings),
        sample_rows=get_import_settings().assistant_sample_rows,
    )
