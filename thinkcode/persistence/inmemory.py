"""In-memory implementation of the step repository."""

from __future__ import annotations

from typing import Any, Dict

from ..contracts import StepStatus
from .models import AgentRecord, StepRecord
from .repository import StepNotFoundError, StepRepository, check_step_fields


class InMemoryStepRepository(StepRepository):
    """Store steps and agents in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts.
    """

    def __init__(self) -> None:
        self._steps: Dict[str, StepRecord] = {}
        self._agents: Dict[str, AgentRecord] = {}

    # ------------------------------------------------------------------
    async def create_agent(self, agent: AgentRecord) -> None:
        self._agents[agent.id] = agent.model_copy()

    async def create_step(self, step: StepRecord) -> None:
        self._steps[step.id] = step.model_copy()

    async def get_step(self, step_id: str) -> StepRecord | None:
        step = self._steps.get(step_id)
        return step.model_copy() if step else None

    async def get_agent(self, agent_id: str) -> AgentRecord | None:
        agent = self._agents.get(agent_id)
        return agent.model_copy() if agent else None

    async def update_step_status(
        self, step_id: str, status: StepStatus, **fields: Any
    ) -> None:
        check_step_fields(fields)
        step = self._steps.get(step_id)
        if step is None:
            raise StepNotFoundError(step_id)
        self._steps[step_id] = step.model_copy(
            update={"status": StepStatus(status), **fields}
        )

    async def list_steps(self) -> list[StepRecord]:
        return [step.model_copy() for step in self._steps.values()]
