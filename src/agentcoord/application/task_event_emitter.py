"""Task event emission service."""

import uuid
from datetime import datetime, timezone

from agentcoord.domain.interfaces import TaskEventStoreInterface
from agentcoord.domain.models import TaskState, WorkerType
from agentcoord.domain.task_event import TaskEvent, TaskEventType


class TaskEventEmitter:
    """Emits lifecycle events for one task to a store.

    Provides convenience methods for the events a task produces while it
    moves through its pipeline, handling ID generation and timestamps.
    """

    def __init__(
        self, event_store: TaskEventStoreInterface, task_id: str, kind: str
    ) -> None:
        self._store = event_store
        self._task_id = task_id
        self._kind = kind

    @property
    def task_id(self) -> str:
        return self._task_id

    def child(self, task_id: str, kind: str) -> "TaskEventEmitter":
        """Emitter for a nested task sharing this emitter's store."""
        return TaskEventEmitter(self._store, task_id, kind)

    def _emit(self, event: TaskEvent) -> str:
        return self._store.store_event(event)

    def _now(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    def _event(self, event_type: TaskEventType, **fields: object) -> TaskEvent:
        return TaskEvent(
            event_id=str(uuid.uuid4()),
            event_type=event_type,
            task_id=self._task_id,
            kind=self._kind,
            created_at=self._now(),
            **fields,  # type: ignore[arg-type]
        )

    def task_queued(self) -> None:
        """Emit TASK_QUEUED when a request enters the FIFO."""
        self._emit(self._event(TaskEventType.TASK_QUEUED))

    def state_change(self, state: TaskState, step_index: int | None = None) -> None:
        """Emit STATE_CHANGE on every lifecycle transition."""
        self._emit(
            self._event(
                TaskEventType.STATE_CHANGE, state=state.value, step_index=step_index
            )
        )

    def step_start(self, worker: WorkerType, step_index: int) -> None:
        """Emit STEP_START before a worker is invoked."""
        self._emit(
            self._event(
                TaskEventType.STEP_START, worker=worker.value, step_index=step_index
            )
        )

    def step_pass(self, worker: WorkerType, step_index: int) -> None:
        """Emit STEP_PASS when a worker returns an output."""
        self._emit(
            self._event(
                TaskEventType.STEP_PASS,
                worker=worker.value,
                step_index=step_index,
                verdict="PASS",
            )
        )

    def step_fail(
        self, worker: WorkerType, step_index: int, error: str, timed_out: bool = False
    ) -> None:
        """Emit STEP_FAIL when a worker raises or times out."""
        self._emit(
            self._event(
                TaskEventType.STEP_FAIL,
                worker=worker.value,
                step_index=step_index,
                verdict="TIMEOUT" if timed_out else "FAIL",
                summary=error[:500],
            )
        )

    def task_complete(self, succeeded: bool, summary: str = "") -> None:
        """Emit TASK_COMPLETE once the result is aggregated."""
        self._emit(
            self._event(
                TaskEventType.TASK_COMPLETE,
                state=TaskState.COMPLETED.value,
                verdict="PASS" if succeeded else "FAIL",
                summary=summary[:500],
            )
        )
