"""Model adapters behind the advisory collaborators.

``build_adapter`` picks one from ``LLM_ADAPTER``: ``openai`` talks to any
OpenAI-compatible chat endpoint, ``mock`` answers with canned JSON, and
``none`` disables advisory output altogether.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from app.config import AdvisorySettings

logger = logging.getLogger(__name__)

MOCK_ANSWER = {
    "answer": "Mock answer for testing purposes.",
    "sql": "SELECT * FROM deliveries LIMIT 10",
}


class BaseLLMAdapter(ABC):
    """Single-turn text generation."""

    @abstractmethod
    def generate(self, prompt: str, system: Optional[str] = None) -> str:
        """Return the model's raw reply to *prompt* (JSON text expected)."""


class OpenAILLMAdapter(BaseLLMAdapter):
    """Chat-completions client in JSON mode at temperature 0."""

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        max_tokens: int = 2048,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_seconds: float = 20.0,
    ) -> None:
        from openai import OpenAI

        options: Dict[str, Any] = {"timeout": timeout_seconds}
        if api_key:
            options["api_key"] = api_key
        if base_url:
            options["base_url"] = base_url
        self._client = OpenAI(**options)
        self._model = model
        self._max_tokens = max_tokens

    @classmethod
    def from_settings(cls, settings: AdvisorySettings) -> "OpenAILLMAdapter":
        return cls(
            model=settings.model,
            api_key=settings.api_key,
            base_url=settings.base_url,
            timeout_seconds=settings.timeout_seconds,
        )

    def generate(self, prompt: str, system: Optional[str] = None) -> str:
        turns = [{"role": "user", "content": prompt}]
        if system:
            turns.insert(0, {"role": "system", "content": system})

        completion = self._client.chat.completions.create(
            model=self._model,
            messages=turns,
            temperature=0,
            max_tokens=self._max_tokens,
            response_format={"type": "json_object"},
        )
        return completion.choices[0].message.content or ""


class MockLLMAdapter(BaseLLMAdapter):
    """Offline adapter: always replies with *response* and keeps every prompt
    in ``prompts`` for inspection.
    """

    def __init__(self, response: Optional[str] = None) -> None:
        self._response = json.dumps(MOCK_ANSWER) if response is None else response
        self.prompts: List[str] = []

    def generate(self, prompt: str, system: Optional[str] = None) -> str:
        self.prompts.append(prompt)
        return self._response


def build_adapter(settings: AdvisorySettings) -> Optional[BaseLLMAdapter]:
    if settings.adapter == "mock":
        return MockLLMAdapter()
    if settings.adapter != "openai":
        return None
    try:
        return OpenAILLMAdapter.from_settings(settings)
    except Exception as exc:  # noqa: BLE001
        logger.warning("OpenAI adapter could not be created; advisory output disabled: %s", exc)
        return None
