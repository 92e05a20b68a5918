"""Shared defaults for step execution."""

DEFAULT_MAX_RETRIES = 3
DEFAULT_BACKOFF_BASE = 2.0
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2000

BASE_CONFIDENCE = 0.8
MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 1.0

DEFAULT_CAPABILITY = "general"
KNOWLEDGE_CONTEXT_PLACEHOLDER = (
    "Knowledge feeds will be loaded in future implementation"
)
