"""
Coordinator: public entry point for task execution.

Validates requests, admits at most max_concurrent_tasks at a time, hands
them to the TaskExecutor, records metrics and publishes completion events.
Also owns the in-memory FIFO used by queue() / drain_queue().
"""

import asyncio
import inspect
import logging
import time
import uuid
from collections import deque
from collections.abc import Callable
from dataclasses import replace
from types import MappingProxyType
from typing import Any

from agentcoord.application.context_cache import ContextCache
from agentcoord.application.executor import TaskExecutor, advance
from agentcoord.application.task_event_emitter import TaskEventEmitter
from agentcoord.application.validation import validate_request
from agentcoord.domain.exceptions import ValidationError
from agentcoord.domain.interfaces import (
    TaskEventStoreInterface,
    WorkerProviderInterface,
)
from agentcoord.domain.lifecycle import TaskLifecycle
from agentcoord.domain.models import (
    CoordinatorMetrics,
    CoordinatorStatus,
    TaskKind,
    TaskRequest,
    TaskResult,
    TaskState,
)

logger = logging.getLogger(__name__)

TASK_COMPLETE = "task-complete"
TASK_QUEUED = "task-queued"
EVENTS = (TASK_COMPLETE, TASK_QUEUED)

Subscriber = Callable[[Any], Any]


def _kind_label(kind: TaskKind | str) -> str:
    return kind.value if isinstance(kind, TaskKind) else str(kind)


class Coordinator:
    """
    Runs tasks through their pipelines and keeps aggregate metrics.

    Concurrent execute() calls are independent. Only queue()/drain_queue()
    guarantee ordering.
    """

    def __init__(
        self,
        executor: TaskExecutor,
        workers: WorkerProviderInterface,
        cache: ContextCache,
        event_store: TaskEventStoreInterface | None = None,
        max_concurrent_tasks: int = 3,
    ):
        """
        Args:
            executor: Runs validated requests
            workers: Worker registry (reported in status, reset by cancel_all)
            cache: Context cache (reported in status)
            event_store: Where lifecycle events go; None disables them
            max_concurrent_tasks: Tasks executing at once; others wait in order
        """
        self._executor = executor
        self._workers = workers
        self._cache = cache
        self._event_store = event_store
        self._admission = asyncio.Semaphore(max_concurrent_tasks)
        self._metrics = CoordinatorMetrics()
        self._queue: deque[tuple[str, TaskRequest]] = deque()
        self._lifecycles: dict[str, TaskLifecycle] = {}
        self._waiting = 0
        self._in_flight: set[asyncio.Task[TaskResult]] = set()
        self._subscribers: dict[str, list[Subscriber]] = {e: [] for e in EVENTS}
        self._background: set[asyncio.Future[Any]] = set()

    # =========================================================================
    # EXECUTION
    # =========================================================================

    async def execute(
        self, request: TaskRequest, task_id: str | None = None
    ) -> TaskResult:
        """
        Validate and run one task.

        Args:
            request: The task to run
            task_id: Identifier to use (generated if omitted)

        Returns:
            TaskResult; succeeded is False when a required step failed

        Raises:
            ValidationError: Unknown kind, unknown worker or malformed payload.
                Raised before any worker runs; metrics are not updated.
            asyncio.CancelledError: The task was cancelled while running
        """
        task_id = task_id or str(uuid.uuid4())
        lifecycle = TaskLifecycle(task_id)
        emitter = self._emitter(task_id, _kind_label(request.kind))

        advance(lifecycle, emitter, TaskState.VALIDATING)
        try:
            validated = validate_request(request)
        except ValidationError as e:
            advance(lifecycle, emitter, TaskState.COMPLETED)
            logger.warning(f"Task {task_id} rejected: {e}")
            raise

        self._lifecycles[task_id] = lifecycle
        self._waiting += 1
        try:
            await self._admission.acquire()
        except asyncio.CancelledError:
            self._lifecycles.pop(task_id, None)
            advance(lifecycle, emitter, TaskState.COMPLETED)
            raise
        finally:
            self._waiting -= 1

        logger.info(f"Task {task_id} ({validated.kind.value}) started")
        started = time.perf_counter()
        runner = asyncio.create_task(
            self._executor.run(task_id, validated, lifecycle, emitter)
        )
        self._in_flight.add(runner)
        try:
            result = await runner
        except asyncio.CancelledError:
            cancelled = TaskResult(
                task_id=task_id,
                kind=validated.kind,
                succeeded=False,
                errors=("Task cancelled",),
            )
            self._finish(lifecycle, emitter, cancelled, started)
            raise
        finally:
            self._in_flight.discard(runner)
            self._lifecycles.pop(task_id, None)
            self._admission.release()

        return self._finish(lifecycle, emitter, result, started)

    def _finish(
        self,
        lifecycle: TaskLifecycle,
        emitter: TaskEventEmitter | None,
        result: TaskResult,
        started: float,
    ) -> TaskResult:
        """Stamp duration, record metrics, complete the lifecycle and publish."""
        duration_ms = (time.perf_counter() - started) * 1000.0
        result = replace(result, duration_ms=duration_ms)
        self._metrics.record(result.succeeded, duration_ms, result.invocations)

        if not lifecycle.is_completed:
            advance(lifecycle, emitter, TaskState.COMPLETED)
        if emitter is not None:
            emitter.task_complete(result.succeeded, "; ".join(result.errors))

        if result.succeeded:
            logger.info(f"Task {result.task_id} succeeded in {duration_ms:.0f} ms")
        else:
            logger.error(
                f"Task {result.task_id} failed in {duration_ms:.0f} ms: "
                f"{'; '.join(result.errors) or 'no error recorded'}"
            )
        self._publish(TASK_COMPLETE, result)
        return result

    def _emitter(self, task_id: str, kind: str) -> TaskEventEmitter | None:
        if self._event_store is None:
            return None
        return TaskEventEmitter(self._event_store, task_id, kind)

    # =========================================================================
    # QUEUE
    # =========================================================================

    def queue(self, request: TaskRequest) -> str:
        """
        Append a request to the FIFO without running it.

        Returns:
            The task id the request will run under
        """
        task_id = str(uuid.uuid4())
        self._queue.append((task_id, request))
        if (emitter := self._emitter(task_id, _kind_label(request.kind))) is not None:
            emitter.task_queued()
        logger.debug(f"Task {task_id} queued (depth {len(self._queue)})")
        self._publish(
            TASK_QUEUED,
            {
                "taskId": task_id,
                "kind": _kind_label(request.kind),
                "queueDepth": len(self._queue),
            },
        )
        return task_id

    async def drain_queue(self) -> list[TaskResult]:
        """
        Run queued requests one at a time, in arrival order.

        A request that fails validation yields a failed TaskResult instead of
        stopping the drain.

        Returns:
            One result per drained request, in order
        """
        results: list[TaskResult] = []
        while self._queue:
            task_id, request = self._queue.popleft()
            try:
                results.append(await self.execute(request, task_id=task_id))
            except ValidationError as e:
                results.append(
                    TaskResult(
                        task_id=task_id,
                        kind=request.kind,
                        succeeded=False,
                        errors=(str(e),),
                    )
                )
        return results

    # =========================================================================
    # OBSERVATION
    # =========================================================================

    def get_status(self) -> CoordinatorStatus:
        """Read-only view of workers, queue, running tasks and metrics."""
        return CoordinatorStatus(
            active_worker_types=self._workers.active_types(),
            queue_depth=len(self._queue),
            metrics=self._metrics.snapshot(),
            active_tasks=MappingProxyType(
                {task_id: lc.state for task_id, lc in self._lifecycles.items()}
            ),
            waiting_tasks=self._waiting,
            context_cached=self._cache.is_cached(),
        )

    def get_metrics(self) -> CoordinatorMetrics:
        """Independent copy of the current metrics."""
        return self._metrics.snapshot()

    def subscribe(self, event: str, callback: Subscriber) -> Callable[[], None]:
        """
        Register an observer for 'task-complete' or 'task-queued'.

        Callbacks may be plain functions or coroutine functions. Their errors
        are logged and never reach the task.

        Returns:
            A function that removes the subscription

        Raises:
            ValueError: If event is not a known event name
        """
        if event not in self._subscribers:
            raise ValueError(f"Unknown event '{event}'. Expected one of: {', '.join(EVENTS)}")
        self._subscribers[event].append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers[event]:
                self._subscribers[event].remove(callback)

        return unsubscribe

    def _publish(self, event: str, payload: Any) -> None:
        for callback in list(self._subscribers[event]):
            try:
                outcome = callback(payload)
            except Exception:
                logger.exception(f"Subscriber for '{event}' raised")
                continue
            if inspect.isawaitable(outcome):
                self._schedule(event, outcome)

    def _schedule(self, event: str, awaitable: Any) -> None:
        try:
            future = asyncio.ensure_future(awaitable)
        except RuntimeError:
            logger.warning(f"Async subscriber for '{event}' skipped: no running loop")
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return
        self._background.add(future)

        def done(fut: asyncio.Future[Any]) -> None:
            self._background.discard(fut)
            if not fut.cancelled() and fut.exception() is not None:
                logger.error(f"Async subscriber for '{event}' failed: {fut.exception()}")

        future.add_done_callback(done)

    # =========================================================================
    # CONTROL
    # =========================================================================

    def cancel_all(self) -> int:
        """
        Clear the FIFO, cancel running tasks and reset the worker registry.

        Side effects already applied by cancelled tasks are not rolled back.

        Returns:
            Number of queued plus running tasks that were dropped
        """
        dropped = len(self._queue)
        self._queue.clear()
        for runner in list(self._in_flight):
            if not runner.done():
                runner.cancel()
                dropped += 1
        self._workers.reset()
        logger.info(f"Cancelled {dropped} task(s)")
        return dropped
