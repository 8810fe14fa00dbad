"""
Application layer for agent coordination.

Contains orchestration logic: validation, the context cache, pipeline
execution and the coordinator.
"""

from agentcoord.application.context_cache import ContextCache
from agentcoord.application.coordinator import (
    TASK_COMPLETE,
    TASK_QUEUED,
    Coordinator,
)
from agentcoord.application.executor import TaskExecutor
from agentcoord.application.state import CoordinatorState
from agentcoord.application.task_event_emitter import TaskEventEmitter
from agentcoord.application.validation import ValidatedRequest, validate_request

__all__ = [
    "ContextCache",
    "Coordinator",
    "CoordinatorState",
    "TaskEventEmitter",
    "TaskExecutor",
    "ValidatedRequest",
    "validate_request",
    "TASK_COMPLETE",
    "TASK_QUEUED",
]
