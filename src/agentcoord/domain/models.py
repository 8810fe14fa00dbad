"""
Domain models for agent coordination.

Pure data structures for task requests, step outcomes, results, context
snapshots and coordinator metrics. Everything except CoordinatorMetrics is
immutable (frozen dataclasses with read-only collections).
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from agentcoord.domain.exceptions import UnknownWorkerType, ValidationError

# =============================================================================
# READ-ONLY COLLECTION HELPERS
# =============================================================================


def freeze(value: Any) -> Any:
    """Recursively convert dicts to read-only mappings and lists to tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, list | tuple):
        return tuple(freeze(v) for v in value)
    return value


def thaw(value: Any) -> Any:
    """Inverse of freeze(): plain dicts and lists, ready for JSON encoding."""
    if isinstance(value, Mapping):
        return {(k.value if isinstance(k, Enum) else str(k)): thaw(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [thaw(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    return value


# =============================================================================
# CLOSED ENUMERATIONS
# =============================================================================


class TaskKind(str, Enum):
    """Closed set of task types the coordinator accepts."""

    GENERATE_ARTIFACT = "generate-artifact"
    REVIEW_ARTIFACT = "review-artifact"
    UPDATE_STORE = "update-store"
    CREATE_FEATURE = "create-feature"

    @classmethod
    def parse(cls, value: "TaskKind | str") -> "TaskKind":
        """
        Resolve a task kind from its identifier or a legacy alias.

        Raises:
            ValidationError: If the value names no known task kind
        """
        if isinstance(value, TaskKind):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            key = _TASK_KIND_ALIASES.get(key, key)
            for kind in cls:
                if kind.value == key:
                    return kind
        known = ", ".join(k.value for k in cls)
        raise ValidationError(
            f"Unknown task kind '{value}'. Expected one of: {known}", field="kind"
        )


_TASK_KIND_ALIASES = {
    "generate-component": "generate-artifact",
    "review-component": "review-artifact",
    "update-library": "update-store",
    "generateartifact": "generate-artifact",
    "reviewartifact": "review-artifact",
    "updatestore": "update-store",
    "createfeature": "create-feature",
}


class WorkerType(str, Enum):
    """Closed set of worker kinds. Each has exactly one instance per registry."""

    GENERATOR = "generator"
    REVIEWER = "reviewer"
    QUALITY_CHECKER = "quality-checker"
    PERSISTENCE_UPDATER = "persistence-updater"

    @classmethod
    def parse(cls, value: "WorkerType | str") -> "WorkerType":
        """
        Resolve a worker type from its identifier or a legacy alias.

        Raises:
            UnknownWorkerType: If the value names no known worker
        """
        if isinstance(value, WorkerType):
            return value
        if isinstance(value, str):
            key = value.strip().lower().replace("_", "-")
            key = _WORKER_ALIASES.get(key, key)
            for worker in cls:
                if worker.value == key:
                    return worker
        raise UnknownWorkerType(str(value), tuple(w.value for w in cls))


_WORKER_ALIASES = {
    "component-generator": "generator",
    "design-reviewer": "reviewer",
    "qa": "quality-checker",
    "quality": "quality-checker",
    "library-updater": "persistence-updater",
    "updater": "persistence-updater",
}


class TaskState(str, Enum):
    """Per-task lifecycle states."""

    RECEIVED = "received"
    VALIDATING = "validating"
    EXECUTING = "executing"
    AGGREGATING = "aggregating"
    COMPLETED = "completed"


class StepStatus(str, Enum):
    """Outcome of a single pipeline step."""

    COMPLETED = "completed"
    FAILED = "failed"


# =============================================================================
# REQUEST
# =============================================================================


@dataclass(frozen=True)
class TaskRequest:
    """
    A unit of work submitted to the coordinator.

    Fields hold what the caller sent; the coordinator normalizes and checks
    them during validation, so an unknown kind is rejected by execute()
    rather than at construction.
    """

    kind: TaskKind | str
    requested_workers: tuple[WorkerType | str, ...] = ()
    payload: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TaskRequest":
        """
        Build a request from the wire shape {kind, requestedWorkers, payload}.

        Only the shape is checked here; kind and worker names are checked by
        the coordinator.

        Raises:
            ValidationError: If a field has the wrong type
        """
        if not isinstance(data, Mapping):
            raise ValidationError("Task request must be a JSON object")
        kind = data.get("kind", data.get("task"))
        if not isinstance(kind, str) or not kind:
            raise ValidationError("Task request requires a 'kind' string", "kind")
        workers = data.get("requestedWorkers", data.get("agents", []))
        if not isinstance(workers, list | tuple) or not all(
            isinstance(w, str) for w in workers
        ):
            raise ValidationError(
                "'requestedWorkers' must be a list of strings", "requestedWorkers"
            )
        payload = data.get("payload", data.get("config", {}))
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValidationError("'payload' must be a JSON object", "payload")
        return cls(kind=kind, requested_workers=tuple(workers), payload=dict(payload))


@dataclass(frozen=True)
class WorkerTask:
    """What a worker receives for one pipeline step."""

    task_id: str
    kind: TaskKind
    payload: Mapping[str, Any]
    snapshot: "ContextSnapshot | None" = None
    previous: Mapping[WorkerType, Mapping[str, Any]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def previous_output(self, worker: WorkerType) -> Mapping[str, Any] | None:
        """Output of an earlier step in the same pipeline, if it completed."""
        return self.previous.get(worker)


# =============================================================================
# RESULTS
# =============================================================================


@dataclass(frozen=True)
class StepOutcome:
    """Bookkeeping for one pipeline step: status, timing and the worker's output.

    invoked is False when the step failed before its worker was called
    (the context snapshot could not be built).
    """

    worker: WorkerType
    required: bool
    status: StepStatus
    output: Mapping[str, Any] | None = None
    error: str | None = None
    duration_ms: float = 0.0
    timed_out: bool = False
    invoked: bool = True

    @property
    def succeeded(self) -> bool:
        return self.status == StepStatus.COMPLETED

    @property
    def result(self) -> Mapping[str, Any]:
        """The worker's output, or {"error": message} for a failed step."""
        if self.output is not None:
            return self.output
        return MappingProxyType({"error": self.error or "no output"})

    def to_dict(self) -> dict[str, Any]:
        return {
            "worker": self.worker.value,
            "required": self.required,
            "status": self.status.value,
            "error": self.error,
            "durationMs": round(self.duration_ms, 3),
            "timedOut": self.timed_out,
            "invoked": self.invoked,
        }


@dataclass(frozen=True)
class TaskResult:
    """Aggregated result of one task.

    steps keeps per-step bookkeeping; per_worker_results exposes only what
    each worker produced (or its error), keyed by worker.
    """

    task_id: str
    kind: TaskKind | str  # str only for requests rejected before parsing
    succeeded: bool
    steps: Mapping[WorkerType, StepOutcome] = field(
        default_factory=lambda: MappingProxyType({})
    )
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    duration_ms: float = 0.0
    children: tuple["TaskResult", ...] = ()

    @property
    def per_worker_results(self) -> Mapping[WorkerType, Mapping[str, Any]]:
        """Worker id -> its output, or {"error": message} if its step failed."""
        return MappingProxyType(
            {worker: outcome.result for worker, outcome in self.steps.items()}
        )

    @property
    def invocations(self) -> tuple[WorkerType, ...]:
        """Every worker invocation made for this task, nested tasks included."""
        own = tuple(w for w, outcome in self.steps.items() if outcome.invoked)
        nested = tuple(w for child in self.children for w in child.invocations)
        return own + nested

    def to_dict(self) -> dict[str, Any]:
        return {
            "taskId": self.task_id,
            "kind": self.kind.value if isinstance(self.kind, TaskKind) else self.kind,
            "succeeded": self.succeeded,
            "perWorkerResults": thaw(self.per_worker_results),
            "steps": {
                worker.value: outcome.to_dict() for worker, outcome in self.steps.items()
            },
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "durationMs": round(self.duration_ms, 3),
            "children": [child.to_dict() for child in self.children],
        }


# =============================================================================
# CONTEXT SNAPSHOT
# =============================================================================


@dataclass(frozen=True)
class ComponentSummary:
    """Reference data for one existing component."""

    name: str
    path: str
    summary: str = ""
    variants: tuple[str, ...] = ()
    states: tuple[str, ...] = ()
    platforms: tuple[str, ...] = ()


@dataclass(frozen=True)
class ContextSnapshot:
    """Immutable point-in-time copy of knowledge store reference data."""

    version: str
    tokens: Mapping[str, Any]
    components: Mapping[str, ComponentSummary]
    built_at: float

    def summary(self) -> dict[str, Any]:
        """Compact description for status endpoints."""
        return {
            "version": self.version,
            "builtAt": self.built_at,
            "tokenCategories": sorted(self.tokens),
            "totalTokens": _count_leaves(self.tokens),
            "components": sorted(self.components),
        }


def _count_leaves(value: Any) -> int:
    if isinstance(value, Mapping):
        return sum(_count_leaves(v) for v in value.values())
    return 1


# =============================================================================
# SIDE EFFECTS
# =============================================================================


@dataclass(frozen=True)
class GeneratedFile:
    """One file produced by the generator."""

    path: str
    content: str
    platform: str = "all"

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "content": self.content, "platform": self.platform}


@dataclass(frozen=True)
class SideEffectDescriptor:
    """What the persistence sink is asked to apply for one component."""

    component: str
    description: str = ""
    files: tuple[GeneratedFile, ...] = ()
    platforms: tuple[str, ...] = ()
    commit: bool = False
    version_bump: str | None = None  # "major" | "minor" | "patch"


@dataclass(frozen=True)
class SideEffectResult:
    """Outcome reported by the sink; actions already applied stay applied."""

    success: bool
    applied: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()
    new_version: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "applied": list(self.applied),
            "errors": list(self.errors),
            "newVersion": self.new_version,
        }


# =============================================================================
# METRICS AND STATUS
# =============================================================================


@dataclass
class CoordinatorMetrics:
    """Mutable counters updated by the coordinator after each task."""

    tasks_completed: int = 0
    tasks_succeeded: int = 0
    tasks_failed: int = 0
    average_duration_ms: float = 0.0
    worker_usage: dict[str, int] = field(default_factory=dict)

    def record(
        self,
        succeeded: bool,
        duration_ms: float,
        invocations: tuple[WorkerType, ...] = (),
    ) -> None:
        self.tasks_completed += 1
        if succeeded:
            self.tasks_succeeded += 1
        else:
            self.tasks_failed += 1
        # Incremental mean; individual durations are not retained
        self.average_duration_ms += (
            duration_ms - self.average_duration_ms
        ) / self.tasks_completed
        for worker in invocations:
            self.worker_usage[worker.value] = self.worker_usage.get(worker.value, 0) + 1

    def snapshot(self) -> "CoordinatorMetrics":
        """Independent copy for readers."""
        return CoordinatorMetrics(
            tasks_completed=self.tasks_completed,
            tasks_succeeded=self.tasks_succeeded,
            tasks_failed=self.tasks_failed,
            average_duration_ms=self.average_duration_ms,
            worker_usage=dict(self.worker_usage),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "tasksCompleted": self.tasks_completed,
            "tasksSucceeded": self.tasks_succeeded,
            "tasksFailed": self.tasks_failed,
            "averageDurationMs": round(self.average_duration_ms, 3),
            "workerUsage": dict(self.worker_usage),
        }


@dataclass(frozen=True)
class CoordinatorStatus:
    """Read-only view of registry, queue and metrics state."""

    active_worker_types: tuple[WorkerType, ...]
    queue_depth: int
    metrics: CoordinatorMetrics
    active_tasks: Mapping[str, TaskState] = field(
        default_factory=lambda: MappingProxyType({})
    )
    waiting_tasks: int = 0
    context_cached: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "activeWorkerTypes": [w.value for w in self.active_worker_types],
            "queueDepth": self.queue_depth,
            "metrics": self.metrics.to_dict(),
            "activeTasks": {k: v.value for k, v in self.active_tasks.items()},
            "waitingTasks": self.waiting_tasks,
            "contextCached": self.context_cached,
        }
