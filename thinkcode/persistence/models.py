"""Data models for persisted step and agent state."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ..contracts import StepStatus


class AgentRecord(BaseModel):
    """Agent assigned to workflow steps.

    ``capabilities`` is stored as serialized text: either a JSON list or a
    comma separated string.
    """

    id: str
    name: str
    capabilities: Optional[str] = None


class StepRecord(BaseModel):
    """Persisted workflow step."""

    id: str
    workflow_id: str
    workflow_type: Optional[str] = None
    step_number: int = 1
    name: str
    description: Optional[str] = None
    status: StepStatus = StepStatus.PENDING
    assigned_agent_id: Optional[str] = None
    inputs: Optional[str] = None
    outputs: Optional[str] = None
    errors: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
