"""Prompt rendering for workflow step execution."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from .constants import DEFAULT_CAPABILITY, KNOWLEDGE_CONTEXT_PLACEHOLDER
from .contracts import ExecutionContext
from .persistence.models import AgentRecord, StepRecord

RESPONSE_FORMAT = """{
  "analysis": "Your analysis of the task and inputs",
  "actions_taken": ["List of actions you performed"],
  "outputs": {
    "key": "value pairs of your results"
  },
  "confidence": 0.95,
  "recommendations": ["Any recommendations for next steps"]
}"""


def parse_capabilities(raw: Optional[str]) -> List[str]:
    """Decode stored capabilities: JSON list first, comma list otherwise."""
    if not raw:
        return [DEFAULT_CAPABILITY]
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError:
        decoded = None
    if isinstance(decoded, list):
        return [str(item) for item in decoded]
    return [part.strip() for part in raw.split(",") if part.strip()] or [DEFAULT_CAPABILITY]


def parse_inputs(raw: Optional[str]) -> Dict[str, Any]:
    """Decode stored step inputs, wrapping anything that is not a JSON object."""
    if not raw:
        return {}
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError:
        return {"raw": raw}
    return decoded if isinstance(decoded, dict) else {"raw": raw}


def build_execution_prompt(
    step: StepRecord, agent: AgentRecord, context: ExecutionContext
) -> str:
    """Render ``step`` for ``agent``. Same inputs always give the same text."""
    capabilities = parse_capabilities(agent.capabilities)
    inputs = json.dumps(context.inputs, indent=2, default=str)
    workflow_type = context.metadata.get("workflow_type") or "unspecified"

    return "\n".join(
        [
            f"You are {agent.name}, an AI agent with the following capabilities: "
            f"{', '.join(capabilities)}.",
            "",
            "TASK CONTEXT:",
            f"- Workflow: {workflow_type}",
            f"- Step: {step.name}",
            f"- Description: {step.description or 'No description provided'}",
            f"- Step Number: {step.step_number}",
            "",
            "INPUTS:",
            inputs,
            "",
            "KNOWLEDGE CONTEXT:",
            KNOWLEDGE_CONTEXT_PLACEHOLDER,
            "",
            "INSTRUCTIONS:",
            "1. Analyze the task requirements based on your capabilities",
            "2. Process the inputs using your specialized knowledge",
            "3. Generate appropriate outputs for this workflow step",
            "4. Ensure outputs are valid JSON format",
            "",
            "Please provide your response in the following JSON structure:",
            RESPONSE_FORMAT,
            "",
            "Focus on delivering high-quality results that align with your agent "
            "capabilities and the workflow requirements.",
        ]
    )
