"""Core contracts for step execution results and errors."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class StepStatus(str, Enum):
    """Lifecycle of a workflow step: pending -> running -> completed|failed."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (StepStatus.COMPLETED, StepStatus.FAILED)


class ErrorCode(str, Enum):
    STEP_NOT_FOUND = "STEP_NOT_FOUND"
    NO_AGENT_ASSIGNED = "NO_AGENT_ASSIGNED"
    NO_PROVIDER_AVAILABLE = "NO_PROVIDER_AVAILABLE"
    ML_GENERATION_FAILED = "ML_GENERATION_FAILED"
    RESULT_PARSING_ERROR = "RESULT_PARSING_ERROR"
    EXECUTION_FAILED = "EXECUTION_FAILED"
    EXECUTION_ERROR = "EXECUTION_ERROR"


class ExecutionContext(BaseModel):
    """Per-call values handed to the prompt builder. Never persisted."""

    workflow_id: str
    step_id: str
    agent_id: str
    inputs: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ContextOverrides(BaseModel):
    """Caller supplied additions to the execution context."""

    inputs: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class StepResult(BaseModel):
    """Successful outcome of a step execution."""

    outputs: Dict[str, Any]
    duration: int = Field(description="Wall time in milliseconds")
    retry_count: int = 0
    confidence: Optional[float] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ExecutionError(BaseModel):
    """Machine readable failure returned instead of raising."""

    code: ErrorCode
    message: str
    retryable: bool = False
    workflow_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


class ExecutionResult(BaseModel):
    """Tagged success/failure wrapper returned by the engine."""

    success: bool
    data: Optional[StepResult] = None
    error: Optional[ExecutionError] = None

    @classmethod
    def ok(cls, data: StepResult) -> "ExecutionResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(
        cls,
        code: ErrorCode,
        message: str,
        retryable: bool = False,
        **kwargs: Any,
    ) -> "ExecutionResult":
        return cls(
            success=False,
            error=ExecutionError(
                code=code, message=message, retryable=retryable, **kwargs
            ),
        )


class StepExecutionFailed(Exception):
    """Raised by a single execution attempt; consumed by the retry loop."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        retryable: bool = False,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.error = ExecutionError(
            code=code, message=message, retryable=retryable, details=details
        )

    @property
    def retryable(self) -> bool:
        return self.error.retryable
