"""Step execution engine with provider fallback and bounded retries."""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from pydantic import ValidationError

from .config import ExecutionSettings, ProviderConfig, ThinkcodeConfig, load_config
from .contracts import (
    ContextOverrides,
    ErrorCode,
    ExecutionContext,
    ExecutionError,
    ExecutionResult,
    StepExecutionFailed,
    StepResult,
    StepStatus,
)
from .metrics import ExecutionMetric, ExecutionMetrics, MetricKey
from .parsing import calculate_confidence, parse_execution_result
from .persistence import StepRepository, get_repository
from .persistence.models import AgentRecord, StepRecord
from .prompts import build_execution_prompt, parse_inputs
from .providers import (
    GenerationOptions,
    MockProvider,
    ProviderError,
    get_default_provider_configs,
)
from .resolver import NoProviderAvailable, ProviderResolver
from .utils import retry

logger = logging.getLogger(__name__)

AttemptOutcome = Tuple[Dict[str, Any], float, Dict[str, Any]]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class TaskExecutionEngine:
    """Executes one workflow step with its assigned agent.

    ``execute_step`` never raises: every outcome is an ``ExecutionResult``.
    The step goes ``running`` once per call, before any attempt, and ends
    ``completed`` or ``failed``. There is no internal timeout or cancellation;
    wrap the call in ``asyncio.wait_for`` when one is needed. A crash between
    the ``running`` and final writes leaves the step in ``running``.
    """

    def __init__(
        self,
        repository: StepRepository | None = None,
        resolver: ProviderResolver | None = None,
        provider_configs: Optional[Iterable[ProviderConfig]] = None,
        settings: ExecutionSettings | None = None,
        metrics: ExecutionMetrics | None = None,
    ) -> None:
        self._repository = repository or get_repository()
        self._settings = settings or ExecutionSettings()
        if resolver is None:
            fallback = MockProvider() if self._settings.fallback_to_mock else None
            resolver = ProviderResolver(fallback=fallback)
        self._resolver = resolver
        self._provider_configs = (
            list(provider_configs)
            if provider_configs is not None
            else get_default_provider_configs()
        )
        self._metrics = metrics or ExecutionMetrics()

    @classmethod
    def from_config(
        cls,
        config: ThinkcodeConfig | None = None,
        repository: StepRepository | None = None,
    ) -> "TaskExecutionEngine":
        """Build an engine from loaded configuration."""
        config = config or load_config()
        return cls(
            repository=repository or get_repository(config=config),
            provider_configs=config.providers or None,
            settings=config.execution,
        )

    @property
    def provider_configs(self) -> list[ProviderConfig]:
        return list(self._provider_configs)

    def get_execution_metrics(self) -> Dict[MetricKey, ExecutionMetric]:
        return self._metrics.snapshot()

    # ------------------------------------------------------------------
    async def execute_step(
        self,
        step_id: str,
        context: Union[ContextOverrides, Dict[str, Any], None] = None,
    ) -> ExecutionResult:
        """Execute ``step_id`` and persist its final status."""
        started = time.monotonic()
        try:
            overrides = ContextOverrides.model_validate(context or {})
        except ValidationError as e:
            logger.warning(f"Rejected context overrides for step {step_id}: {e}")
            return ExecutionResult.fail(
                ErrorCode.EXECUTION_ERROR,
                "Invalid execution context overrides",
                details={
                    "error_type": "ValidationError",
                    "errors": [err["msg"] for err in e.errors()],
                },
            )

        try:
            step = await self._repository.get_step(step_id)
            if step is None:
                return ExecutionResult.fail(
                    ErrorCode.STEP_NOT_FOUND, f"Workflow step {step_id} not found"
                )

            agent = (
                await self._repository.get_agent(step.assigned_agent_id)
                if step.assigned_agent_id
                else None
            )
            if agent is None:
                return ExecutionResult.fail(
                    ErrorCode.NO_AGENT_ASSIGNED,
                    f"No agent assigned to step {step_id}",
                    workflow_id=step.workflow_id,
                )

            await self._repository.update_step_status(
                step_id, StepStatus.RUNNING, started_at=_now()
            )
            logger.info(f"Step {step_id} running with agent {agent.name}")

            execution_context = self._create_context(step, agent, overrides)
            return await self._run_with_retries(step, agent, execution_context, started)

        except Exception as e:
            duration = _elapsed_ms(started)
            logger.exception(f"Unexpected error while executing step {step_id}")
            await self._mark_failed_quietly(
                step_id, {"message": str(e), "duration": duration}
            )
            return ExecutionResult.fail(
                ErrorCode.EXECUTION_ERROR,
                str(e),
                details={"error_type": type(e).__name__, "duration": duration},
            )

    # ------------------------------------------------------------------
    def _create_context(
        self, step: StepRecord, agent: AgentRecord, overrides: ContextOverrides
    ) -> ExecutionContext:
        return ExecutionContext(
            workflow_id=step.workflow_id,
            step_id=step.id,
            agent_id=agent.id,
            inputs={**parse_inputs(step.inputs), **overrides.inputs},
            metadata={
                **overrides.metadata,
                "step_name": step.name,
                "agent_name": agent.name,
                "workflow_type": step.workflow_type,
            },
        )

    async def _run_with_retries(
        self,
        step: StepRecord,
        agent: AgentRecord,
        context: ExecutionContext,
        started: float,
    ) -> ExecutionResult:
        max_retries = self._settings.max_retries
        last_error: ExecutionError | None = None
        retry_count = 0

        for attempt in range(max_retries + 1):
            retry_count = attempt
            if attempt > 0:
                delay = await retry.schedule_retry(
                    attempt,
                    base=self._settings.backoff_base,
                    jitter=self._settings.backoff_jitter,
                )
                logger.debug(f"Step {step.id} retry {attempt} after {delay:.2f}s")

            try:
                outputs, confidence, metadata = await self._attempt(step, agent, context)
            except StepExecutionFailed as e:
                last_error = e.error
            except Exception as e:
                last_error = ExecutionError(
                    code=ErrorCode.EXECUTION_ERROR,
                    message=str(e),
                    retryable=True,
                    details={"error_type": type(e).__name__},
                )
            else:
                # Persistence errors here propagate to execute_step.
                await self._repository.update_step_status(
                    step.id,
                    StepStatus.COMPLETED,
                    completed_at=_now(),
                    outputs=json.dumps(outputs, default=str),
                )
                result = StepResult(
                    outputs=outputs,
                    duration=_elapsed_ms(started),
                    retry_count=retry_count,
                    confidence=confidence,
                    metadata=metadata,
                )
                self._record_metrics(context, result.duration, True, retry_count, confidence)
                logger.info(
                    f"Step {step.id} completed after {retry_count} retries "
                    f"(confidence={confidence:.2f})"
                )
                return ExecutionResult.ok(result)

            logger.warning(
                f"Step {step.id} attempt {attempt + 1}/{max_retries + 1} failed: "
                f"{last_error.code.value}: {last_error.message}"
            )
            if not last_error.retryable:
                break

        message = last_error.message if last_error else "Unknown execution error"
        duration = _elapsed_ms(started)
        await self._mark_failed_quietly(
            step.id,
            {
                "message": message,
                "retry_count": retry_count,
                "last_error": last_error.model_dump(mode="json") if last_error else None,
            },
        )
        self._record_metrics(context, duration, False, retry_count, None)
        return ExecutionResult.fail(
            ErrorCode.EXECUTION_FAILED,
            message,
            workflow_id=step.workflow_id,
            details={
                "retry_count": retry_count,
                "duration": duration,
                "last_error": last_error.model_dump(mode="json") if last_error else None,
            },
        )

    async def _attempt(
        self, step: StepRecord, agent: AgentRecord, context: ExecutionContext
    ) -> AttemptOutcome:
        """Run one resolve -> prompt -> generate -> parse cycle.

        Raises:
            StepExecutionFailed: Classified failure of this attempt.
        """
        try:
            provider = await self._resolver.resolve(agent.id, self._provider_configs)
        except NoProviderAvailable as e:
            raise StepExecutionFailed(
                ErrorCode.NO_PROVIDER_AVAILABLE,
                str(e),
                retryable=e.retryable,
                details={"attempted": e.attempted},
            ) from e

        prompt = build_execution_prompt(step, agent, context)
        options = GenerationOptions(
            temperature=self._settings.temperature,
            max_tokens=self._settings.max_tokens,
        )

        try:
            generation = await provider.generate_text(prompt, options)
        except ProviderError as e:
            raise StepExecutionFailed(
                ErrorCode.ML_GENERATION_FAILED,
                e.message,
                retryable=e.retryable,
                details=e.to_dict(),
            ) from e
        except Exception as e:
            raise StepExecutionFailed(
                ErrorCode.ML_GENERATION_FAILED,
                str(e),
                retryable=True,
                details={"error_type": type(e).__name__},
            ) from e

        try:
            parsed = parse_execution_result(generation.text, step.name)
            confidence = calculate_confidence(generation.usage, step.description)
        except Exception as e:
            raise StepExecutionFailed(
                ErrorCode.RESULT_PARSING_ERROR,
                f"Failed to parse execution result: {e}",
                retryable=True,
                details={"raw_result": generation.text},
            ) from e

        outputs = parsed.get("outputs", parsed)
        if not isinstance(outputs, dict):
            outputs = {"result": outputs}

        metadata: Dict[str, Any] = {
            "provider": provider.name,
            "model": generation.metadata.get("model"),
            "usage": generation.usage.model_dump() if generation.usage else None,
            "prompt": prompt,
            "parse_error": bool(parsed.get("parseError", False)),
        }
        for key in ("analysis", "actions_taken", "recommendations"):
            if key in parsed:
                metadata[key] = parsed[key]
        return outputs, confidence, metadata

    async def _mark_failed_quietly(self, step_id: str, error: Dict[str, Any]) -> None:
        try:
            await self._repository.update_step_status(
                step_id,
                StepStatus.FAILED,
                completed_at=_now(),
                errors=json.dumps(error, default=str),
            )
        except Exception:
            logger.exception(f"Failed to mark step {step_id} as failed")

    def _record_metrics(
        self,
        context: ExecutionContext,
        duration: int,
        success: bool,
        retry_count: int,
        confidence: Optional[float],
    ) -> None:
        self._metrics.record(
            ExecutionMetric(
                workflow_id=context.workflow_id,
                step_id=context.step_id,
                agent_id=context.agent_id,
                duration=duration,
                success=success,
                retry_count=retry_count,
                confidence=confidence,
            )
        )
