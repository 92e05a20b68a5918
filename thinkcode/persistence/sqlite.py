"""SQLite implementation of the step repository."""

from __future__ import annotations

import asyncio
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any

from ..contracts import StepStatus
from .models import AgentRecord, StepRecord
from .repository import StepNotFoundError, StepRepository, check_step_fields

_STEP_COLUMNS = (
    "id, workflow_id, workflow_type, step_number, name, description, status, "
    "assigned_agent_id, inputs, outputs, errors, started_at, completed_at"
)


def _to_iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _from_iso(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SQLiteStepRepository(StepRepository):
    """Persist steps and agents using SQLite."""

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS agents (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                capabilities TEXT
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS workflow_steps (
                id TEXT PRIMARY KEY,
                workflow_id TEXT NOT NULL,
                workflow_type TEXT,
                step_number INTEGER NOT NULL DEFAULT 1,
                name TEXT NOT NULL,
                description TEXT,
                status TEXT NOT NULL DEFAULT 'pending',
                assigned_agent_id TEXT REFERENCES agents (id),
                inputs TEXT,
                outputs TEXT,
                errors TEXT,
                started_at TEXT,
                completed_at TEXT
            )
            """
        )
        self._conn.commit()

    # ------------------------------------------------------------------
    # Helper methods
    def _execute(self, query: str, *params: Any) -> int:
        cur = self._conn.cursor()
        cur.execute(query, params)
        self._conn.commit()
        return cur.rowcount

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchone()

    def _fetchall(self, query: str, *params: Any) -> list[sqlite3.Row]:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchall()

    @staticmethod
    def _row_to_step(row: sqlite3.Row) -> StepRecord:
        return StepRecord(
            id=row["id"],
            workflow_id=row["workflow_id"],
            workflow_type=row["workflow_type"],
            step_number=row["step_number"],
            name=row["name"],
            description=row["description"],
            status=StepStatus(row["status"]),
            assigned_agent_id=row["assigned_agent_id"],
            inputs=row["inputs"],
            outputs=row["outputs"],
            errors=row["errors"],
            started_at=_from_iso(row["started_at"]),
            completed_at=_from_iso(row["completed_at"]),
        )

    # ------------------------------------------------------------------
    # Repository API
    async def create_agent(self, agent: AgentRecord) -> None:
        await asyncio.to_thread(
            self._execute,
            "INSERT INTO agents (id, name, capabilities) VALUES (?, ?, ?)",
            agent.id,
            agent.name,
            agent.capabilities,
        )

    async def create_step(self, step: StepRecord) -> None:
        await asyncio.to_thread(
            self._execute,
            f"INSERT INTO workflow_steps ({_STEP_COLUMNS}) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            step.id,
            step.workflow_id,
            step.workflow_type,
            step.step_number,
            step.name,
            step.description,
            step.status.value,
            step.assigned_agent_id,
            step.inputs,
            step.outputs,
            step.errors,
            _to_iso(step.started_at),
            _to_iso(step.completed_at),
        )

    async def get_step(self, step_id: str) -> StepRecord | None:
        row = await asyncio.to_thread(
            self._fetchone,
            f"SELECT {_STEP_COLUMNS} FROM workflow_steps WHERE id = ?",
            step_id,
        )
        return self._row_to_step(row) if row else None

    async def get_agent(self, agent_id: str) -> AgentRecord | None:
        row = await asyncio.to_thread(
            self._fetchone,
            "SELECT id, name, capabilities FROM agents WHERE id = ?",
            agent_id,
        )
        if not row:
            return None
        return AgentRecord(
            id=row["id"], name=row["name"], capabilities=row["capabilities"]
        )

    async def update_step_status(
        self, step_id: str, status: StepStatus, **fields: Any
    ) -> None:
        check_step_fields(fields)
        assignments = ["status = ?"]
        params: list[Any] = [StepStatus(status).value]
        # Column names come from the UPDATABLE_STEP_FIELDS whitelist.
        for column, value in sorted(fields.items()):
            assignments.append(f"{column} = ?")
            params.append(_to_iso(value) if isinstance(value, datetime) else value)
        params.append(step_id)
        updated = await asyncio.to_thread(
            self._execute,
            f"UPDATE workflow_steps SET {', '.join(assignments)} WHERE id = ?",
            *params,
        )
        if updated == 0:
            raise StepNotFoundError(step_id)

    async def list_steps(self) -> list[StepRecord]:
        rows = await asyncio.to_thread(
            self._fetchall,
            f"SELECT {_STEP_COLUMNS} FROM workflow_steps ORDER BY workflow_id, step_number",
        )
        return [self._row_to_step(row) for row in rows]

    def close(self) -> None:
        self._conn.close()
