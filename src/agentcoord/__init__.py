"""
agentcoord: coordination of specialized workers for design-system tasks.

Accepts a task (generate a component, review it, update the component
library, create a feature), runs the workers its pipeline defines in order,
and aggregates their outputs into a single TaskResult.

Example:
    from agentcoord import TaskRequest, build_state

    state = build_state()
    result = await state.coordinator.execute(
        TaskRequest(
            kind="generate-artifact",
            requested_workers=("generator", "reviewer"),
            payload={"name": "Badge", "variants": ["success", "warning"]},
        )
    )
"""

# Application layer (orchestration)
from agentcoord.application import (
    ContextCache,
    Coordinator,
    CoordinatorState,
    TaskExecutor,
)
from agentcoord.bootstrap import build_state
from agentcoord.config import CoordinatorConfig, config_from_env, load_config

# Domain exceptions
from agentcoord.domain.exceptions import (
    ConfigurationError,
    ContextUnavailable,
    CoordinationError,
    UnknownWorkerType,
    ValidationError,
    WorkerError,
)

# Domain interfaces (for type hints and custom implementations)
from agentcoord.domain.interfaces import (
    KnowledgeStoreInterface,
    SideEffectSinkInterface,
    WorkerInterface,
)
from agentcoord.domain.models import (
    ContextSnapshot,
    CoordinatorMetrics,
    TaskKind,
    TaskRequest,
    TaskResult,
    WorkerTask,
    WorkerType,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Domain models
    "ContextSnapshot",
    "CoordinatorMetrics",
    "TaskKind",
    "TaskRequest",
    "TaskResult",
    "WorkerTask",
    "WorkerType",
    # Domain interfaces
    "WorkerInterface",
    "KnowledgeStoreInterface",
    "SideEffectSinkInterface",
    # Domain exceptions
    "CoordinationError",
    "ValidationError",
    "UnknownWorkerType",
    "ContextUnavailable",
    "WorkerError",
    "ConfigurationError",
    # Application layer
    "ContextCache",
    "Coordinator",
    "CoordinatorState",
    "TaskExecutor",
    # Configuration and wiring
    "CoordinatorConfig",
    "load_config",
    "config_from_env",
    "build_state",
]
