"""
Task lifecycle state machine.

received -> validating -> executing(step) -> aggregating -> completed

A completed task never re-enters executing; retries are new tasks.
"""

from agentcoord.domain.exceptions import CoordinationError
from agentcoord.domain.models import TaskState


class InvalidTransition(CoordinationError):
    """Raised when a lifecycle transition is not allowed."""


_ALLOWED: dict[TaskState, frozenset[TaskState]] = {
    TaskState.RECEIVED: frozenset({TaskState.VALIDATING}),
    # Validation failure completes the task without executing
    TaskState.VALIDATING: frozenset({TaskState.EXECUTING, TaskState.COMPLETED}),
    # Executing -> executing advances the step index; -> completed on cancellation
    TaskState.EXECUTING: frozenset(
        {TaskState.EXECUTING, TaskState.AGGREGATING, TaskState.COMPLETED}
    ),
    TaskState.AGGREGATING: frozenset({TaskState.COMPLETED}),
    TaskState.COMPLETED: frozenset(),
}


class TaskLifecycle:
    """Tracks one task's state and current step index."""

    def __init__(self, task_id: str):
        self.task_id = task_id
        self.state = TaskState.RECEIVED
        self.step_index: int | None = None
        self.history: list[TaskState] = [TaskState.RECEIVED]

    def advance(self, target: TaskState, step_index: int | None = None) -> None:
        """
        Move to target.

        Raises:
            InvalidTransition: If target is not reachable from the current state
        """
        if target not in _ALLOWED[self.state]:
            raise InvalidTransition(
                f"Task {self.task_id}: cannot move from {self.state.value} "
                f"to {target.value}"
            )
        self.state = target
        self.step_index = step_index if target == TaskState.EXECUTING else None
        self.history.append(target)

    @property
    def is_completed(self) -> bool:
        return self.state == TaskState.COMPLETED
