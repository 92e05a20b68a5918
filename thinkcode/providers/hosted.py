"""Hosted LLM backends accessed through ``pydantic_ai.Agent``."""

from __future__ import annotations

import logging
import os
from typing import Any, Optional

from pydantic_ai import Agent
from pydantic_ai.exceptions import ModelHTTPError, UnexpectedModelBehavior, UsageLimitExceeded
from pydantic_ai.models import Model

from ..config import ProviderConfig
from .base import BaseProvider, GenerationOptions, GenerationResult, ProviderError, TokenUsage

logger = logging.getLogger(__name__)

DEFAULT_MODELS = {
    "openai": "gpt-4",
    "anthropic": "claude-3-5-sonnet-latest",
    "google": "gemini-2.5-flash",
    "groq": "llama-3.1-70b-versatile",
}

SUPPORTED_MODELS = {
    "openai": ["gpt-4", "gpt-4o", "gpt-4o-mini", "gpt-3.5-turbo"],
    "anthropic": ["claude-3-5-sonnet-latest", "claude-3-5-haiku-latest"],
    "google": ["gemini-2.5-flash", "gemini-2.5-pro"],
    "groq": ["llama-3.1-70b-versatile", "llama-3.1-8b-instant", "mixtral-8x7b-32768"],
}

_RETRYABLE_STATUS_CODES = frozenset({408, 409, 429})

API_KEY_ENV_VARS = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "google": "GOOGLE_API_KEY",
    "groq": "GROQ_API_KEY",
}


def has_credential(config: ProviderConfig) -> bool:
    """Whether a key is configured or exported, or a custom endpoint is set."""
    if config.api_key or config.endpoint:
        return True
    env_var = API_KEY_ENV_VARS.get(config.type)
    return bool(env_var and os.getenv(env_var))


def _build_model(config: ProviderConfig, model_name: str) -> Model:
    """Instantiate the pydantic-ai model for ``config.type``.

    Backend SDKs are imported lazily so only the configured ones must be
    installed. A missing credential raises ``pydantic_ai.exceptions.UserError``.
    """
    if config.type == "openai":
        from pydantic_ai.models.openai import OpenAIChatModel
        from pydantic_ai.providers.openai import OpenAIProvider

        return OpenAIChatModel(
            model_name,
            provider=OpenAIProvider(base_url=config.endpoint, api_key=config.api_key),
        )
    if config.type == "anthropic":
        from pydantic_ai.models.anthropic import AnthropicModel
        from pydantic_ai.providers.anthropic import AnthropicProvider

        return AnthropicModel(model_name, provider=AnthropicProvider(api_key=config.api_key))
    if config.type == "google":
        from pydantic_ai.models.google import GoogleModel
        from pydantic_ai.providers.google import GoogleProvider

        return GoogleModel(model_name, provider=GoogleProvider(api_key=config.api_key))
    if config.type == "groq":
        from pydantic_ai.models.groq import GroqModel
        from pydantic_ai.providers.groq import GroqProvider

        return GroqModel(model_name, provider=GroqProvider(api_key=config.api_key))
    raise ValueError(f"Unsupported provider type: {config.type}")


class HostedProvider(BaseProvider):
    """Text generation through a hosted model.

    Construction fails when the backend SDK or credential is missing, which
    the resolver treats as an unavailable candidate.
    """

    def __init__(self, config: ProviderConfig, model: Optional[Model] = None) -> None:
        self.config = config
        self.name = config.name
        self.model_name = config.model or DEFAULT_MODELS[config.type]
        self._injected_model = model is not None
        self._model = model or _build_model(config, self.model_name)
        self._agent: Agent[None, str] = Agent(self._model, output_type=str)

    async def is_available(self) -> bool:
        if not self.config.enabled:
            return False
        # Injected models carry their own client.
        return self._injected_model or has_credential(self.config)

    async def generate_text(
        self, prompt: str, options: Optional[GenerationOptions] = None
    ) -> GenerationResult:
        options = options or GenerationOptions()
        settings: dict[str, Any] = {
            "temperature": options.temperature,
            "max_tokens": options.max_tokens,
            "timeout": self.config.timeout_ms / 1000,
        }
        try:
            result = await self._agent.run(prompt, model_settings=settings)
        except ModelHTTPError as e:
            retryable = e.status_code in _RETRYABLE_STATUS_CODES or e.status_code >= 500
            raise ProviderError(
                f"{self.name} returned HTTP {e.status_code}: {e.message}",
                code=f"HTTP_{e.status_code}",
                retryable=retryable,
                details={"model": e.model_name},
            ) from e
        except UsageLimitExceeded as e:
            raise ProviderError(str(e), code="USAGE_LIMIT_EXCEEDED") from e
        except UnexpectedModelBehavior as e:
            raise ProviderError(
                str(e), code="UNEXPECTED_MODEL_BEHAVIOR", retryable=True
            ) from e

        # A method in pydantic-ai 1.x, a property in 2.x.
        usage = result.usage() if callable(result.usage) else result.usage
        logger.debug(
            f"{self.name} generated {usage.output_tokens} tokens with {self.model_name}"
        )
        return GenerationResult(
            text=result.output,
            usage=TokenUsage(
                prompt_tokens=usage.input_tokens,
                completion_tokens=usage.output_tokens,
                total_tokens=usage.total_tokens,
            ),
            metadata={"model": self.model_name, "provider_type": self.config.type},
        )

    def supported_models(self) -> list[str]:
        return list(SUPPORTED_MODELS.get(self.config.type, []))
