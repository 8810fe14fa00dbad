"""Task execution trace models."""

from dataclasses import dataclass
from enum import Enum


class TaskEventType(str, Enum):
    """Types of task lifecycle events."""

    TASK_QUEUED = "TASK_QUEUED"
    STATE_CHANGE = "STATE_CHANGE"
    STEP_START = "STEP_START"
    STEP_PASS = "STEP_PASS"
    STEP_FAIL = "STEP_FAIL"
    TASK_COMPLETE = "TASK_COMPLETE"


@dataclass(frozen=True)
class TaskEvent:
    """Single task state transition.

    Represents an atomic event in the task execution trace, captured for
    observability and debugging.
    """

    event_id: str
    event_type: TaskEventType
    task_id: str
    kind: str
    state: str | None = None  # TaskState value for STATE_CHANGE
    worker: str | None = None
    step_index: int | None = None
    verdict: str | None = None  # "PASS", "FAIL", "TIMEOUT"
    summary: str = ""
    created_at: str = ""  # ISO 8601
