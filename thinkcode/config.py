from __future__ import annotations

import os
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, Field

from .constants import (
    DEFAULT_BACKOFF_BASE,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
)

ProviderType = Literal["openai", "anthropic", "google", "groq", "mock"]


class ProviderConfig(BaseModel):
    """Configuration for a single ML provider candidate."""

    name: str
    type: ProviderType
    api_key: Optional[str] = None
    endpoint: Optional[str] = None
    model: Optional[str] = None
    enabled: bool = True
    priority: int = 1
    retry_attempts: int = 3
    timeout_ms: int = 30000
    metadata: dict[str, Any] = Field(default_factory=dict)


class ExecutionSettings(BaseModel):
    """Retry and generation settings for step execution."""

    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)
    backoff_base: float = Field(default=DEFAULT_BACKOFF_BASE, ge=0)
    backoff_jitter: float = Field(default=0.0, ge=0)
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    fallback_to_mock: bool = False


class ThinkcodeConfig(BaseModel):
    """Top-level configuration model."""

    database_url: Optional[str] = None
    execution: ExecutionSettings = ExecutionSettings()
    providers: list[ProviderConfig] = Field(default_factory=list)


def load_config(path: Optional[str] = None) -> ThinkcodeConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to THINKCODE_CONFIG env
            variable or 'config.yaml' in the current directory.
    """

    config_path = path or os.getenv("THINKCODE_CONFIG", "config.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = ThinkcodeConfig(**data)
    else:
        config = ThinkcodeConfig()

    env_db_url = os.getenv("THINKCODE_DATABASE_URL") or os.getenv("DATABASE_URL")
    if env_db_url:
        config.database_url = env_db_url
    return config
