from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, Field

MetricKey = Tuple[str, str]


class ExecutionMetric(BaseModel):
    """Diagnostic record of the latest execution of one step."""

    workflow_id: str
    step_id: str
    agent_id: str
    executed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    duration: int
    success: bool
    retry_count: int = 0
    confidence: Optional[float] = None


class ExecutionMetrics:
    """In-process metrics keyed by ``(workflow_id, step_id)``.

    Entries are overwritten on every execution and lost on restart.
    """

    def __init__(self) -> None:
        self._entries: Dict[MetricKey, ExecutionMetric] = {}
        self._lock = threading.Lock()

    def record(self, metric: ExecutionMetric) -> None:
        with self._lock:
            self._entries[(metric.workflow_id, metric.step_id)] = metric

    def get(self, workflow_id: str, step_id: str) -> Optional[ExecutionMetric]:
        with self._lock:
            return self._entries.get((workflow_id, step_id))

    def snapshot(self) -> Dict[MetricKey, ExecutionMetric]:
        with self._lock:
            return dict(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
