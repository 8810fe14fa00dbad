"""
Task Executor: runs a validated request's pipeline step by step.

Responsibilities:
- Resolve which pipeline steps run for a request
- Load the context snapshot for steps that need it
- Invoke workers sequentially under a per-step timeout
- Turn worker failures into StepOutcomes and aggregate a TaskResult
- Fan a composite request out into nested generate-artifact tasks

Does NOT:
- Validate requests (validation.py)
- Admit, count or publish tasks (Coordinator's job)
- Know what workers do internally
"""

import asyncio
import logging
import time
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from agentcoord.application.context_cache import ContextCache
from agentcoord.application.task_event_emitter import TaskEventEmitter
from agentcoord.application.validation import ValidatedRequest
from agentcoord.domain.exceptions import (
    ContextUnavailable,
    OptionalStepFailure,
    RequiredStepFailure,
    StepFailure,
)
from agentcoord.domain.interfaces import WorkerProviderInterface
from agentcoord.domain.lifecycle import TaskLifecycle
from agentcoord.domain.models import (
    StepOutcome,
    StepStatus,
    TaskKind,
    TaskResult,
    TaskState,
    WorkerTask,
    WorkerType,
    freeze,
)
from agentcoord.domain.pipeline import PipelineStep, is_composite, resolve_steps

logger = logging.getLogger(__name__)


def advance(
    lifecycle: TaskLifecycle,
    emitter: TaskEventEmitter | None,
    state: TaskState,
    step_index: int | None = None,
) -> None:
    """Move a lifecycle to state and record the transition."""
    lifecycle.advance(state, step_index)
    if emitter is not None:
        emitter.state_change(state, step_index)


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000.0


class TaskExecutor:
    """Runs pipelines for validated requests."""

    def __init__(
        self,
        workers: WorkerProviderInterface,
        cache: ContextCache,
        step_timeout: float = 120.0,
        auto_apply_side_effects: bool = False,
    ):
        """
        Args:
            workers: Source of worker instances
            cache: Shared context cache
            step_timeout: Seconds each step may take, context load included
            auto_apply_side_effects: Run the persistence step when a
                generate-artifact payload has no autoUpdate flag
        """
        self._workers = workers
        self._cache = cache
        self._step_timeout = step_timeout
        self._auto_apply = auto_apply_side_effects

    async def run(
        self,
        task_id: str,
        request: ValidatedRequest,
        lifecycle: TaskLifecycle,
        emitter: TaskEventEmitter | None = None,
    ) -> TaskResult:
        """
        Execute a request whose lifecycle is in VALIDATING.

        Leaves the lifecycle in AGGREGATING; the caller completes it.

        Args:
            task_id: Identifier of the task
            request: Validated request
            lifecycle: Task state machine
            emitter: Optional event emitter bound to task_id

        Returns:
            Aggregated TaskResult

        Raises:
            asyncio.CancelledError: If the task is cancelled mid-step
        """
        if is_composite(request.kind):
            return await self._run_composite(task_id, request, lifecycle, emitter)
        return await self._run_pipeline(
            task_id, request.kind, request.requested_workers, request.payload,
            lifecycle, emitter,
        )

    async def _run_pipeline(
        self,
        task_id: str,
        kind: TaskKind,
        requested: tuple[WorkerType, ...],
        payload: Mapping[str, Any],
        lifecycle: TaskLifecycle,
        emitter: TaskEventEmitter | None,
    ) -> TaskResult:
        started = time.perf_counter()
        steps = resolve_steps(kind, requested, payload, self._auto_apply)
        logger.debug(
            f"Task {task_id} ({kind.value}): "
            f"{' -> '.join(s.worker.value for s in steps) or '(no steps)'}"
        )

        outcomes: dict[WorkerType, StepOutcome] = {}
        previous: dict[WorkerType, Mapping[str, Any]] = {}
        errors: list[str] = []
        warnings: list[str] = []
        succeeded = True

        for index, step in enumerate(steps):
            advance(lifecycle, emitter, TaskState.EXECUTING, index)
            if emitter is not None:
                emitter.step_start(step.worker, index)

            step_started = time.perf_counter()
            try:
                output = await self._run_step(task_id, kind, step, payload, previous)
            except ContextUnavailable as e:
                message = f"{step.worker.value}: {e}"
                outcomes[step.worker] = StepOutcome(
                    worker=step.worker,
                    required=step.required,
                    status=StepStatus.FAILED,
                    error=str(e),
                    duration_ms=_elapsed_ms(step_started),
                    invoked=False,
                )
                if emitter is not None:
                    emitter.step_fail(step.worker, index, str(e))
                logger.error(f"Task {task_id} aborted, context unavailable: {e}")
                errors.append(message)
                succeeded = False
                break
            except StepFailure as failure:
                outcomes[step.worker] = StepOutcome(
                    worker=step.worker,
                    required=step.required,
                    status=StepStatus.FAILED,
                    error=str(failure),
                    duration_ms=_elapsed_ms(step_started),
                    timed_out=failure.timed_out,
                )
                if emitter is not None:
                    emitter.step_fail(step.worker, index, str(failure), failure.timed_out)
                message = f"{step.worker.value}: {failure}"
                if isinstance(failure, RequiredStepFailure):
                    logger.error(f"Task {task_id} required step failed: {message}")
                    errors.append(message)
                    succeeded = False
                    break
                logger.warning(f"Task {task_id} optional step failed: {message}")
                warnings.append(message)
                continue

            outcomes[step.worker] = StepOutcome(
                worker=step.worker,
                required=step.required,
                status=StepStatus.COMPLETED,
                output=output,
                duration_ms=_elapsed_ms(step_started),
            )
            previous[step.worker] = output
            if emitter is not None:
                emitter.step_pass(step.worker, index)

        advance(lifecycle, emitter, TaskState.AGGREGATING)
        return TaskResult(
            task_id=task_id,
            kind=kind,
            succeeded=succeeded,
            steps=MappingProxyType(outcomes),
            errors=tuple(errors),
            warnings=tuple(warnings),
            duration_ms=_elapsed_ms(started),
        )

    async def _run_step(
        self,
        task_id: str,
        kind: TaskKind,
        step: PipelineStep,
        payload: Mapping[str, Any],
        previous: Mapping[WorkerType, Mapping[str, Any]],
    ) -> Mapping[str, Any]:
        """
        Run one step under the step timeout.

        Raises:
            ContextUnavailable: Snapshot rebuild failed
            RequiredStepFailure / OptionalStepFailure: Worker raised or timed out
        """
        failure_type = RequiredStepFailure if step.required else OptionalStepFailure
        invoking = False
        try:
            async with asyncio.timeout(self._step_timeout):
                snapshot = await self._cache.load() if step.needs_context else None
                worker = self._workers.get(step.worker)
                invoking = True
                output = await worker.invoke(
                    WorkerTask(
                        task_id=task_id,
                        kind=kind,
                        payload=payload,
                        snapshot=snapshot,
                        previous=MappingProxyType(dict(previous)),
                    )
                )
        except ContextUnavailable as e:
            # Only a failed snapshot load aborts the task outright
            if invoking:
                raise failure_type(step.worker, str(e)) from e
            raise
        except TimeoutError as e:
            timeout_ms = int(self._step_timeout * 1000)
            raise failure_type(
                step.worker, f"timed out after {timeout_ms} ms", timed_out=True
            ) from e
        except Exception as e:
            raise failure_type(step.worker, str(e) or type(e).__name__) from e

        if not isinstance(output, Mapping):
            raise failure_type(
                step.worker, f"returned {type(output).__name__}, expected a mapping"
            )
        return freeze(output)

    async def _run_composite(
        self,
        task_id: str,
        request: ValidatedRequest,
        lifecycle: TaskLifecycle,
        emitter: TaskEventEmitter | None,
    ) -> TaskResult:
        """Run each component as a nested generate-artifact task, in order."""
        started = time.perf_counter()
        components = request.payload.get("components", ())
        auto_update = request.payload.get("autoUpdate")

        children: list[TaskResult] = []
        errors: list[str] = []
        warnings: list[str] = []

        for index, component in enumerate(components):
            advance(lifecycle, emitter, TaskState.EXECUTING, index)
            name = str(component.get("name", f"component-{index + 1}"))
            child_payload = dict(component)
            if isinstance(auto_update, bool) and "autoUpdate" not in child_payload:
                child_payload["autoUpdate"] = auto_update

            child_id = f"{task_id}.{index + 1}"
            child_lifecycle = TaskLifecycle(child_id)
            child_emitter = (
                emitter.child(child_id, TaskKind.GENERATE_ARTIFACT.value)
                if emitter is not None
                else None
            )
            advance(child_lifecycle, child_emitter, TaskState.VALIDATING)
            child = await self._run_pipeline(
                child_id,
                TaskKind.GENERATE_ARTIFACT,
                request.requested_workers,
                freeze(child_payload),
                child_lifecycle,
                child_emitter,
            )
            advance(child_lifecycle, child_emitter, TaskState.COMPLETED)
            if child_emitter is not None:
                child_emitter.task_complete(child.succeeded, "; ".join(child.errors))

            children.append(child)
            errors.extend(f"{name}: {message}" for message in child.errors)
            warnings.extend(f"{name}: {message}" for message in child.warnings)
            if not child.succeeded:
                logger.warning(f"Task {task_id}: component '{name}' failed")

        advance(lifecycle, emitter, TaskState.AGGREGATING)
        return TaskResult(
            task_id=task_id,
            kind=request.kind,
            succeeded=all(child.succeeded for child in children),
            errors=tuple(errors),
            warnings=tuple(warnings),
            duration_ms=_elapsed_ms(started),
            children=tuple(children),
        )
