"""Provider factory and default configurations."""

from __future__ import annotations

import os

from ..config import ProviderConfig
from .base import BaseProvider, GenerationOptions, GenerationResult, ProviderError, TokenUsage
from .mock import MockProvider

SUPPORTED_PROVIDER_TYPES = ("openai", "anthropic", "google", "groq", "mock")


def create_provider(config: ProviderConfig) -> BaseProvider:
    """Factory function to build a provider from its configuration.

    Raises whatever the backend raises on construction (missing SDK or
    credential); callers treat that as an unavailable provider.
    """

    if config.type == "mock":
        return MockProvider(model=config.model or "mock-model")
    if config.type in SUPPORTED_PROVIDER_TYPES:
        from .hosted import HostedProvider

        return HostedProvider(config)
    raise ValueError(f"Unsupported provider type: {config.type}")


def get_supported_provider_types() -> list[str]:
    return list(SUPPORTED_PROVIDER_TYPES)


def get_default_provider_configs() -> list[ProviderConfig]:
    """Provider candidates used when configuration lists none."""

    api_key = os.getenv("OPENAI_API_KEY")
    return [
        ProviderConfig(
            name="openai-primary",
            type="openai",
            api_key=api_key,
            model="gpt-4",
            enabled=bool(api_key),
            priority=1,
            retry_attempts=3,
            timeout_ms=30000,
        ),
        ProviderConfig(
            name="openai-fallback",
            type="openai",
            api_key=api_key,
            model="gpt-3.5-turbo",
            enabled=bool(api_key),
            priority=2,
            retry_attempts=2,
            timeout_ms=20000,
        ),
    ]


__all__ = [
    "BaseProvider",
    "GenerationOptions",
    "GenerationResult",
    "MockProvider",
    "ProviderError",
    "TokenUsage",
    "create_provider",
    "get_default_provider_configs",
    "get_supported_provider_types",
]
