from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel


class AgentRow(SQLModel, table=True):
    """Agent that can be assigned to workflow steps."""

    __tablename__ = "agents"

    id: str = Field(primary_key=True)
    name: str
    capabilities: Optional[str] = None


class WorkflowStepRow(SQLModel, table=True):
    """Single unit of work inside a workflow."""

    __tablename__ = "workflow_steps"

    id: str = Field(primary_key=True)
    workflow_id: str = Field(index=True)
    workflow_type: Optional[str] = None
    step_number: int = 1
    name: str
    description: Optional[str] = None
    status: str = Field(default="pending")
    assigned_agent_id: Optional[str] = Field(default=None, foreign_key="agents.id")
    inputs: Optional[str] = None
    outputs: Optional[str] = None
    errors: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
