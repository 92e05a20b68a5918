import json

import pytest

from thinkcode.persistence import AgentRecord, InMemoryStepRepository, StepRecord


async def _seed_step(
    repo,
    step_id: str = "S1",
    agent_id: str | None = "A1",
    inputs: dict | None = None,
    description: str | None = "Compute y from x",
) -> StepRecord:
    """Persist an agent (when missing) and a pending step assigned to it."""
    if agent_id is not None and await repo.get_agent(agent_id) is None:
        await repo.create_agent(
            AgentRecord(
                id=agent_id, name="Backend Developer", capabilities='["python", "sql"]'
            )
        )
    step = StepRecord(
        id=step_id,
        workflow_id="W1",
        workflow_type="new-project",
        step_number=1,
        name="Design API",
        description=description,
        assigned_agent_id=agent_id,
        inputs=json.dumps(inputs if inputs is not None else {"x": 5}),
    )
    await repo.create_step(step)
    return step


@pytest.fixture
def repo():
    return InMemoryStepRepository()


@pytest.fixture
def seed_step():
    return _seed_step
