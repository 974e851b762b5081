"""Bounded re-asking of the advisory model when its output is malformed.

Only output that fails validation is retried; errors raised by the adapter
itself (network, auth, timeouts) reach the caller on the first attempt.
"""

import logging
from typing import Callable, List, Optional, TypeVar

from llm_advisory.adapter import BaseLLMAdapter
from llm_advisory.validator import LLMOutputValidationError

logger = logging.getLogger(__name__)

ParsedT = TypeVar("ParsedT")


class LLMRetryExhaustedError(RuntimeError):
    """Every attempt produced output that failed validation."""

    def __init__(
        self,
        attempts: int,
        last_error: LLMOutputValidationError,
        history: List[LLMOutputValidationError],
    ) -> None:
        super().__init__(
            f"No valid advisory output after {attempts} attempt(s) "
            f"(last failure at {last_error.stage})"
        )
        self.attempts = attempts
        self.last_error = last_error
        self.history = history


def generate_with_retry(
    adapter: BaseLLMAdapter,
    prompt: str,
    validate: Callable[[str], ParsedT],
    max_retries: int = 1,
    system: Optional[str] = None,
) -> ParsedT:
    """Ask *adapter* up to ``1 + max_retries`` times and return the first
    response that *validate* accepts.
    """
    budget = 1 + max(max_retries, 0)
    failures: List[LLMOutputValidationError] = []

    while len(failures) < budget:
        raw = adapter.generate(prompt, system=system)
        try:
            parsed = validate(raw)
        except LLMOutputValidationError as exc:
            failures.append(exc)
            logger.warning(
                "Advisory output rejected (%d/%d, %s): %s",
                len(failures),
                budget,
                exc.stage,
                "; ".join(exc.errors),
            )
            continue
        if failures:
            logger.info("Advisory output accepted after %d rejection(s)", len(failures))
        return parsed

    raise LLMRetryExhaustedError(attempts=budget, last_error=failures[-1], history=failures)
