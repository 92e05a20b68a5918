from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlmodel import SQLModel, select

from ..contracts import StepStatus
from ..persistence.models import AgentRecord, StepRecord
from ..persistence.repository import StepNotFoundError, StepRepository, check_step_fields
from .models import AgentRow, WorkflowStepRow


class StepDB(StepRepository):
    """Async ORM-backed step repository.

    Accepts any SQLAlchemy async URL, e.g. ``sqlite+aiosqlite:///steps.db``.
    Missing tables are created on first use.
    """

    def __init__(self, database_url: str) -> None:
        connect_args = (
            {"check_same_thread": False} if database_url.startswith("sqlite") else {}
        )
        self.engine = create_async_engine(
            database_url, echo=False, future=True, connect_args=connect_args
        )
        self._initialized = False

    async def init_db(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        self._initialized = True

    async def dispose(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        if not self._initialized:
            await self.init_db()
        async with AsyncSession(self.engine, expire_on_commit=False) as session:
            yield session

    async def create_agent(self, agent: AgentRecord) -> None:
        async with self.session() as session:
            session.add(AgentRow(**agent.model_dump()))
            await session.commit()

    async def create_step(self, step: StepRecord) -> None:
        data = step.model_dump()
        data["status"] = step.status.value
        async with self.session() as session:
            session.add(WorkflowStepRow(**data))
            await session.commit()

    async def get_step(self, step_id: str) -> StepRecord | None:
        async with self.session() as session:
            row = await session.get(WorkflowStepRow, step_id)
            return StepRecord.model_validate(row.model_dump()) if row else None

    async def get_agent(self, agent_id: str) -> AgentRecord | None:
        async with self.session() as session:
            row = await session.get(AgentRow, agent_id)
            return AgentRecord.model_validate(row.model_dump()) if row else None

    async def update_step_status(
        self, step_id: str, status: StepStatus, **fields: Any
    ) -> None:
        check_step_fields(fields)
        async with self.session() as session:
            row = await session.get(WorkflowStepRow, step_id)
            if row is None:
                raise StepNotFoundError(step_id)
            row.status = StepStatus(status).value
            for column, value in fields.items():
                setattr(row, column, value)
            await session.commit()

    async def list_steps(self) -> list[StepRecord]:
        async with self.session() as session:
            result = await session.execute(
                select(WorkflowStepRow).order_by(
                    WorkflowStepRow.workflow_id, WorkflowStepRow.step_number
                )
            )
            return [
                StepRecord.model_validate(row.model_dump())
                for row in result.scalars().all()
            ]
