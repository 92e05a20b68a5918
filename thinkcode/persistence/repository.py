"""Repository abstraction for step state persistence."""

from __future__ import annotations

from typing import Any, Protocol

from ..contracts import StepStatus
from .models import AgentRecord, StepRecord

# Columns ``update_step_status`` may touch besides ``status``.
UPDATABLE_STEP_FIELDS = frozenset({"started_at", "completed_at", "outputs", "errors"})


class StepNotFoundError(LookupError):
    """Raised when updating a step that does not exist."""

    def __init__(self, step_id: str) -> None:
        super().__init__(f"Workflow step {step_id} not found")
        self.step_id = step_id


def check_step_fields(fields: dict[str, Any]) -> None:
    unknown = set(fields) - UPDATABLE_STEP_FIELDS
    if unknown:
        raise ValueError(f"Unsupported step fields: {sorted(unknown)}")


class StepRepository(Protocol):
    """Protocol for step state persistence backends."""

    async def get_step(self, step_id: str) -> StepRecord | None:
        """Retrieve a step by id."""

    async def get_agent(self, agent_id: str) -> AgentRecord | None:
        """Retrieve an agent by id."""

    async def update_step_status(
        self, step_id: str, status: StepStatus, **fields: Any
    ) -> None:
        """Persist a status transition together with extra step columns."""

    async def create_agent(self, agent: AgentRecord) -> None:
        """Persist a new agent."""

    async def create_step(self, step: StepRecord) -> None:
        """Persist a new step."""

    async def list_steps(self) -> list[StepRecord]:
        """Return all persisted steps."""
