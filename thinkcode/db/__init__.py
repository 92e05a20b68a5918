from .models import AgentRow, WorkflowStepRow
from .step_db import StepDB

__all__ = [
    "AgentRow",
    "WorkflowStepRow",
    "StepDB",
]
