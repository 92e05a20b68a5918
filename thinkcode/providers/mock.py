"""Deterministic provider for tests and offline runs."""

from __future__ import annotations

import json
from collections import deque
from typing import Deque, Iterable, List, Optional, Union

from .base import BaseProvider, GenerationOptions, GenerationResult, ProviderError, TokenUsage

ScriptedResponse = Union[str, GenerationResult, Exception]


class MockProvider(BaseProvider):
    """Provider that never touches the network.

    Without a script every call returns the same JSON answer. With a script,
    responses are consumed in order: strings and ``GenerationResult`` objects
    are returned, exceptions are raised. Once the script is exhausted the
    default answer is used again.
    """

    name = "mock"

    def __init__(
        self,
        responses: Optional[Iterable[ScriptedResponse]] = None,
        *,
        available: bool = True,
        model: str = "mock-model",
    ) -> None:
        self._script: Deque[ScriptedResponse] = deque(responses or [])
        self.available = available
        self.model = model
        self.prompts: List[str] = []

    @property
    def call_count(self) -> int:
        return len(self.prompts)

    async def is_available(self) -> bool:
        return self.available

    async def generate_text(
        self, prompt: str, options: Optional[GenerationOptions] = None
    ) -> GenerationResult:
        self.prompts.append(prompt)
        if not self.available:
            raise ProviderError(
                "Mock provider is disabled", code="PROVIDER_UNAVAILABLE", retryable=True
            )

        response = self._script.popleft() if self._script else self._default_text()
        if isinstance(response, Exception):
            raise response
        if isinstance(response, GenerationResult):
            return response
        return GenerationResult(
            text=response,
            usage=self._usage(prompt, response),
            metadata={"model": self.model},
        )

    def supported_models(self) -> list[str]:
        return [self.model]

    @staticmethod
    def _default_text() -> str:
        return json.dumps(
            {
                "analysis": "Mock analysis of the task",
                "actions_taken": ["Reviewed inputs", "Produced mock outputs"],
                "outputs": {"result": "mock result"},
                "confidence": 0.9,
                "recommendations": [],
            }
        )

    @staticmethod
    def _usage(prompt: str, text: str) -> TokenUsage:
        prompt_tokens = len(prompt.split())
        completion_tokens = len(text.split())
        return TokenUsage(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        )
