"""Base interface for text generation providers."""

from __future__ import annotations

import abc
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from ..constants import DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE


class GenerationOptions(BaseModel):
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    model: Optional[str] = None


class TokenUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class GenerationResult(BaseModel):
    """Text returned by a provider together with usage data."""

    text: str
    usage: Optional[TokenUsage] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ProviderError(Exception):
    """Failure reported by a provider.

    ``retryable`` tells the caller whether the same request may succeed
    when attempted again.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str = "PROVIDER_ERROR",
        retryable: bool = False,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.retryable = retryable
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }


class BaseProvider(metaclass=abc.ABCMeta):
    """Abstract base class for ML providers."""

    name: str = "base"
    version: str = "1.0.0"

    @abc.abstractmethod
    async def is_available(self) -> bool:
        """Return ``True`` when the provider is configured and usable."""
        raise NotImplementedError

    @abc.abstractmethod
    async def generate_text(
        self, prompt: str, options: Optional[GenerationOptions] = None
    ) -> GenerationResult:
        """Generate text for ``prompt``.

        Raises:
            ProviderError: If the backend rejects or fails the request.
        """
        raise NotImplementedError

    async def health_check(self) -> Dict[str, Any]:
        """Report provider health (availability only by default)."""
        if await self.is_available():
            return {"status": "healthy", "provider": self.name}
        return {"status": "unhealthy", "provider": self.name}

    def supported_models(self) -> list[str]:
        return []
