"""thinkcode: LLM-backed workflow step execution with provider fallback."""

from .config import ExecutionSettings, ProviderConfig, load_config
from .contracts import (
    ContextOverrides,
    ErrorCode,
    ExecutionContext,
    ExecutionError,
    ExecutionResult,
    StepResult,
    StepStatus,
)
from .execute import TaskExecutionEngine
from .persistence import get_repository
from .resolver import ProviderCache, ProviderResolver

__version__ = "0.1.0"
__all__ = [
    "ContextOverrides",
    "ErrorCode",
    "ExecutionContext",
    "ExecutionError",
    "ExecutionResult",
    "ExecutionSettings",
    "ProviderCache",
    "ProviderConfig",
    "ProviderResolver",
    "StepResult",
    "StepStatus",
    "TaskExecutionEngine",
    "get_repository",
    "load_config",
]
