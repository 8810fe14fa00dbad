"""
Pipeline definitions: which workers run, in which order, for each task kind.

Pipelines are fixed. A request can only narrow the optional steps that run;
it can never add a worker the pipeline does not define.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from agentcoord.domain.models import TaskKind, WorkerType


class StepGate(str, Enum):
    """Condition under which a step is included in a run."""

    ALWAYS = "always"
    REQUESTED = "requested"  # only if the worker is in requested_workers
    AUTO_UPDATE = "auto_update"  # payload.autoUpdate, else the configured default


@dataclass(frozen=True)
class PipelineStep:
    """One ordered step of a pipeline."""

    worker: WorkerType
    required: bool
    needs_context: bool = False
    gate: StepGate = StepGate.ALWAYS


PIPELINES: Mapping[TaskKind, tuple[PipelineStep, ...]] = {
    TaskKind.GENERATE_ARTIFACT: (
        PipelineStep(WorkerType.GENERATOR, required=True, needs_context=True),
        PipelineStep(
            WorkerType.REVIEWER,
            required=False,
            needs_context=True,
            gate=StepGate.REQUESTED,
        ),
        PipelineStep(
            WorkerType.QUALITY_CHECKER, required=False, gate=StepGate.REQUESTED
        ),
        PipelineStep(
            WorkerType.PERSISTENCE_UPDATER, required=False, gate=StepGate.AUTO_UPDATE
        ),
    ),
    TaskKind.REVIEW_ARTIFACT: (
        PipelineStep(WorkerType.REVIEWER, required=True, needs_context=True),
    ),
    TaskKind.UPDATE_STORE: (
        PipelineStep(WorkerType.PERSISTENCE_UPDATER, required=True),
    ),
    # Composite: runs one nested generate-artifact pipeline per component
    TaskKind.CREATE_FEATURE: (),
}

COMPOSITE_KINDS = frozenset({TaskKind.CREATE_FEATURE})


def is_composite(kind: TaskKind) -> bool:
    return kind in COMPOSITE_KINDS


def _auto_update_enabled(payload: Mapping[str, Any], default: bool) -> bool:
    # Listing persistence-updater never enables it; side effects need the flag
    flag = payload.get("autoUpdate")
    if isinstance(flag, bool):
        return flag
    return default


def resolve_steps(
    kind: TaskKind,
    requested: tuple[WorkerType, ...],
    payload: Mapping[str, Any],
    auto_apply_side_effects: bool = False,
) -> tuple[PipelineStep, ...]:
    """
    Select the steps of kind's pipeline that will run for this request.

    Args:
        kind: Task kind
        requested: Normalized worker types the caller asked for
        payload: Request payload (autoUpdate is read from it)
        auto_apply_side_effects: Default when payload has no autoUpdate flag

    Returns:
        Ordered steps; required steps are always included
    """
    selected = []
    for step in PIPELINES[kind]:
        if step.gate == StepGate.REQUESTED and step.worker not in requested:
            continue
        if step.gate == StepGate.AUTO_UPDATE and not _auto_update_enabled(
            payload, auto_apply_side_effects
        ):
            continue
        selected.append(step)
    return tuple(selected)


def pipeline_workers(kind: TaskKind) -> tuple[WorkerType, ...]:
    """All workers kind's pipeline can ever run, in order."""
    return tuple(step.worker for step in PIPELINES[kind])
