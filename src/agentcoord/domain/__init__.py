"""
Domain layer for agent coordination.

Contains core business rules with no external dependencies.
"""

from agentcoord.domain.exceptions import (
    ConfigurationError,
    ContextUnavailable,
    CoordinationError,
    OptionalStepFailure,
    RequiredStepFailure,
    StepFailure,
    UnknownWorkerType,
    ValidationError,
    WorkerError,
)
from agentcoord.domain.interfaces import (
    KnowledgeStoreInterface,
    LLMClientInterface,
    SideEffectSinkInterface,
    TaskEventStoreInterface,
    WorkerProviderInterface,
    WorkerInterface,
)
from agentcoord.domain.lifecycle import InvalidTransition, TaskLifecycle
from agentcoord.domain.models import (
    ComponentSummary,
    ContextSnapshot,
    CoordinatorMetrics,
    CoordinatorStatus,
    GeneratedFile,
    SideEffectDescriptor,
    SideEffectResult,
    StepOutcome,
    StepStatus,
    TaskKind,
    TaskRequest,
    TaskResult,
    TaskState,
    WorkerTask,
    WorkerType,
)
from agentcoord.domain.pipeline import PIPELINES, PipelineStep, StepGate, resolve_steps
from agentcoord.domain.task_event import TaskEvent, TaskEventType

__all__ = [
    # Models
    "ComponentSummary",
    "ContextSnapshot",
    "CoordinatorMetrics",
    "CoordinatorStatus",
    "GeneratedFile",
    "SideEffectDescriptor",
    "SideEffectResult",
    "StepOutcome",
    "StepStatus",
    "TaskKind",
    "TaskRequest",
    "TaskResult",
    "TaskState",
    "WorkerTask",
    "WorkerType",
    # Pipelines and lifecycle
    "PIPELINES",
    "PipelineStep",
    "StepGate",
    "resolve_steps",
    "TaskLifecycle",
    "InvalidTransition",
    # Events
    "TaskEvent",
    "TaskEventType",
    # Interfaces
    "WorkerInterface",
    "KnowledgeStoreInterface",
    "SideEffectSinkInterface",
    "LLMClientInterface",
    "TaskEventStoreInterface",
    "WorkerProviderInterface",
    # Exceptions
    "CoordinationError",
    "ValidationError",
    "UnknownWorkerType",
    "ContextUnavailable",
    "WorkerError",
    "StepFailure",
    "RequiredStepFailure",
    "OptionalStepFailure",
    "ConfigurationError",
]
