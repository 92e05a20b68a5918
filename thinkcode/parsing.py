"""Extraction of structured results from free-form model output."""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .constants import BASE_CONFIDENCE, MAX_CONFIDENCE, MIN_CONFIDENCE
from .providers import TokenUsage

# Greedy: first "{" to the last "}". Not a tokenizer; stray braces in prose
# around the JSON make the span undecodable and trigger the raw-text fallback.
_JSON_SPAN = re.compile(r"\{.*\}", re.DOTALL)


def _raw_fallback(text: str, step_name: str) -> Dict[str, Any]:
    return {
        "result": text,
        "stepName": step_name,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "parseError": True,
    }


def parse_execution_result(raw_text: str, step_name: str) -> Dict[str, Any]:
    """Return the JSON object embedded in ``raw_text``.

    Falls back to wrapping the trimmed text when no object can be decoded and
    synthesizes ``outputs`` when a decoded object has none (or null).
    """
    text = raw_text.strip()
    match = _JSON_SPAN.search(raw_text)
    if match is None:
        return _raw_fallback(text, step_name)

    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        return _raw_fallback(text, step_name)

    if not isinstance(parsed, dict):
        return _raw_fallback(text, step_name)
    if parsed.get("outputs") is None:
        parsed["outputs"] = {"result": text}
    return parsed


def calculate_confidence(
    usage: Optional[TokenUsage], description: Optional[str]
) -> float:
    """Heuristic quality score in ``[0.1, 1.0]``; not a calibrated probability."""
    confidence = BASE_CONFIDENCE

    if usage is not None and usage.completion_tokens:
        if usage.completion_tokens > 500:
            confidence += 0.1
        elif usage.completion_tokens < 100:
            confidence -= 0.1

    if description and len(description) > 100:
        confidence += 0.05

    return min(max(confidence, MIN_CONFIDENCE), MAX_CONFIDENCE)
