"""Example showing how to seed a step and execute it with the configured providers.

Usage:
    python guides/execution_example.py "Summarize the release notes"

Uses the mock provider unless OPENAI_API_KEY is set.
"""

import asyncio
import json
import logging
import os
import sys

from thinkcode import ExecutionSettings, ProviderConfig, TaskExecutionEngine
from thinkcode.persistence import AgentRecord, InMemoryStepRepository, StepRecord


async def main():
    description = sys.argv[1] if len(sys.argv) > 1 else "Design a REST API for todo items"
    logging.basicConfig(level=logging.INFO)

    repo = InMemoryStepRepository()
    await repo.create_agent(
        AgentRecord(id="agent-1", name="Backend Developer", capabilities='["python", "api design"]')
    )
    await repo.create_step(
        StepRecord(
            id="step-1",
            workflow_id="wf-1",
            workflow_type="new-project",
            name="Design API",
            description=description,
            assigned_agent_id="agent-1",
            inputs=json.dumps({"resources": ["todo"], "auth": "token"}),
        )
    )

    providers = []
    if os.getenv("OPENAI_API_KEY"):
        providers.append(ProviderConfig(name="openai", type="openai", model="gpt-4o-mini"))

    engine = TaskExecutionEngine(
        repository=repo,
        provider_configs=providers,
        settings=ExecutionSettings(fallback_to_mock=True),
    )
    result = await engine.execute_step("step-1")

    if result.success:
        print(json.dumps(result.data.outputs, indent=2))
    else:
        print(f"{result.error.code.value}: {result.error.message}")

    step = await repo.get_step("step-1")
    print(f"Final status: {step.status.value}")


if __name__ == "__main__":
    asyncio.run(main())
