"""
tests/test_llm_advisory.py

Advisory collaborators with the mock adapter and failing stubs; no network.
"""

from __future__ import annotations

import json
from typing import Optional

import pytest
from pydantic import ValidationError

from app.config import AdvisorySettings
from llm_advisory.adapter import BaseLLMAdapter, MockLLMAdapter, build_adapter
from llm_advisory.advisor import (
    NO_RESPONSE_ANSWER,
    UNAVAILABLE_ANSWER,
    UNPARSABLE_SQL,
    LLMColumnAdvisor,
    NullColumnAdvisor,
    QueryAssistant,
)
from llm_advisory.retry import LLMRetryExhaustedError, generate_with_retry
from llm_advisory.schema import ColumnInsight, QueryAnswer
from llm_advisory.validator import (
    LLMOutputValidationError,
    validate_column_insights,
    validate_query_answer,
)

_INSIGHTS = {
    "City": {
        "description": "Delivery city.",
        "kpiUtility": "Regional performance breakdown.",
        "imputationTip": "Fill with 'Unknown'.",
    },
    "Ghost Column": {"description": "Not in the batch."},
}


class FailingAdapter(BaseLLMAdapter):
    def __init__(self) -> None:
        self.calls = 0

    def generate(self, prompt: str, system: Optional[str] = None) -> str:
        self.calls += 1
        raise RuntimeError("connection refused")


class CountingAdapter(MockLLMAdapter):
    @property
    def calls(self) -> int:
        return len(self.prompts)


# ---------------------------------------------------------------------------
# Schema and validation
# ---------------------------------------------------------------------------


def test_column_insight_accepts_both_key_styles() -> None:
    camel = ColumnInsight.model_validate({"kpiUtility": "x", "imputationTip": "y"})
    snake = ColumnInsight(kpi_utility="x", imputation_tip="y")
    assert camel == snake


def test_query_answer_requires_answer() -> None:
    with pytest.raises(ValidationError):
        QueryAnswer.model_validate({"sql": "SELECT 1"})


def test_validate_column_insights_drops_unknown_columns() -> None:
    insights = validate_column_insights(json.dumps(_INSIGHTS), ["City", "Order Date"])

    assert list(insights) == ["City"]
    assert insights["City"].kpi_utility == "Regional performance breakdown."


def test_validate_strips_markdown_fences() -> None:
    raw = "```json\n" + json.dumps({"answer": "Palo Alto is slowest.", "sql": "SELECT 1"}) + "\n```"
    assert validate_query_answer(raw) == QueryAnswer(answer="Palo Alto is slowest.", sql="SELECT 1")


@pytest.mark.parametrize("raw, stage", [("not json", "json_parse"), ("[1, 2]", "schema")])
def test_validation_stages(raw: str, stage: str) -> None:
    with pytest.raises(LLMOutputValidationError) as excinfo:
        validate_column_insights(raw, ["City"])
    assert excinfo.value.stage == stage
    assert excinfo.value.raw_response == raw


# ---------------------------------------------------------------------------
# Retry
# ---------------------------------------------------------------------------


def test_retry_exhausted() -> None:
    adapter = CountingAdapter(response="still not json")
    with pytest.raises(LLMRetryExhaustedError) as excinfo:
        generate_with_retry(adapter, "prompt", validate_query_answer, max_retries=2)

    assert excinfo.value.attempts == 3
    assert len(excinfo.value.history) == 3
    assert adapter.calls == 3


def test_retry_returns_first_valid() -> None:
    adapter = MockLLMAdapter()
    answer = generate_with_retry(adapter, "prompt", validate_query_answer, max_retries=0)
    assert answer.answer == "Mock answer for testing purposes."


def test_transport_errors_are_not_retried() -> None:
    adapter = FailingAdapter()
    with pytest.raises(RuntimeError):
        generate_with_retry(adapter, "prompt", validate_query_answer, max_retries=3)
    assert adapter.calls == 1


# ---------------------------------------------------------------------------
# Column advisor
# ---------------------------------------------------------------------------


class TestColumnAdvisor:
    def test_returns_validated_insights(self) -> None:
        advisor = LLMColumnAdvisor(MockLLMAdapter(response=json.dumps(_INSIGHTS)))
        insights = advisor.advise(["City"], [{"City": "Palo Alto"}])

        assert insights["City"].description == "Delivery city."
        assert insights["City"].imputation_tip == "Fill with 'Unknown'."

    def test_sends_at_most_three_sample_rows(self) -> None:
        adapter = MockLLMAdapter(response="{}")
        records = [{"id": f"row-{index}"} for index in range(10)]
        LLMColumnAdvisor(adapter, sample_rows=10).advise(["id"], records)

        (prompt,) = adapter.prompts
        assert "row-2" in prompt
        assert "row-3" not in prompt

    def test_adapter_failure_yields_empty(self, caplog: pytest.LogCaptureFixture) -> None:
        advisor = LLMColumnAdvisor(FailingAdapter())
        assert advisor.advise(["City"], [{"City": "A"}]) == {}
        assert "Column insight generation failed" in caplog.text

    def test_unparsable_output_yields_empty_after_retry(self) -> None:
        adapter = CountingAdapter(response="not json")
        assert LLMColumnAdvisor(adapter, max_retries=1).advise(["City"], []) == {}
        assert adapter.calls == 2

    def test_no_columns_skips_adapter(self) -> None:
        adapter = CountingAdapter()
        assert LLMColumnAdvisor(adapter).advise([], []) == {}
        assert adapter.calls == 0

    def test_null_advisor(self) -> None:
        assert NullColumnAdvisor().advise(["City"], [{"City": "A"}]) == {}


# ---------------------------------------------------------------------------
# Query assistant
# ---------------------------------------------------------------------------


class TestQueryAssistant:
    records = [{"id": str(index), "region": "Palo Alto"} for index in range(20)]

    def test_answer(self) -> None:
        answer = QueryAssistant(MockLLMAdapter()).ask(self.records, "Which region is slowest?")
        assert answer.answer == "Mock answer for testing purposes."
        assert answer.sql.startswith("SELECT")

    def test_prompt_uses_question_and_samples(self) -> None:
        adapter = MockLLMAdapter()
        QueryAssistant(adapter, sample_rows=15).ask(self.records, "  Which region?  ")
        assert adapter.prompts == ["Which region?"]

    def test_empty_response(self) -> None:
        answer = QueryAssistant(MockLLMAdapter(response="  ")).ask(self.records, "q")
        assert answer == QueryAnswer(answer=NO_RESPONSE_ANSWER, sql="")

    def test_unparsable_response(self) -> None:
        answer = QueryAssistant(MockLLMAdapter(response="Palo Alto, probably.")).ask(self.records, "q")
        assert answer == QueryAnswer(answer="Palo Alto, probably.", sql=UNPARSABLE_SQL)

    def test_adapter_failure(self) -> None:
        answer = QueryAssistant(FailingAdapter()).ask(self.records, "q")
        assert answer == QueryAnswer(answer=UNAVAILABLE_ANSWER, sql="")

    def test_no_adapter(self) -> None:
        assistant = QueryAssistant(None)
        assert not assistant.is_available
        assert assistant.ask(self.records, "q").answer == UNAVAILABLE_ANSWER


def test_build_adapter() -> None:
    assert build_adapter(AdvisorySettings(adapter="none")) is None
    assert isinstance(build_adapter(AdvisorySettings(adapter="mock")), MockLLMAdapter)
